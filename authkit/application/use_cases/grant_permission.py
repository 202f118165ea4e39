from __future__ import annotations

import logging
from uuid import uuid4

from authkit.application.dto.access_control import (
    GrantPermissionInput,
    PermissionGrantOutput,
    RevokePermissionInput,
)
from authkit.application.ports.access_control_port import AccessControlPort
from authkit.application.ports.accounts_port import AccountsPort
from authkit.domain.entities.permission import PermissionGrant, PermissionScope
from authkit.domain.exceptions import (
    DuplicateKeyError,
    InvalidPermissionError,
    PermissionAlreadyGrantedError,
    PermissionNotGrantedError,
    UserNotFoundError,
    ValidationError,
)
from authkit.domain.services.permissions import is_valid_permission

from .auth_common import utcnow


logger = logging.getLogger(__name__)


def build_grant_output(grant: PermissionGrant) -> PermissionGrantOutput:
    return PermissionGrantOutput(
        id=grant.id,
        user_id=grant.user_id,
        permission=grant.permission,
        scope=grant.scope.value if grant.scope else None,
        expires_at=grant.expires_at,
        granted_by=grant.granted_by,
        created_at=grant.created_at,
    )


class GrantPermissionUseCase:
    def __init__(self, *, accounts_port: AccountsPort, access_control_port: AccessControlPort):
        self._accounts_port = accounts_port
        self._access_control_port = access_control_port

    def execute(self, command: GrantPermissionInput) -> PermissionGrantOutput:
        permission = command.permission.strip()
        if not is_valid_permission(permission):
            raise InvalidPermissionError(f"Invalid permission format: '{command.permission}'.")

        scope = None
        if command.scope:
            try:
                scope = PermissionScope(command.scope)
            except ValueError as exc:
                raise ValidationError(f"Invalid scope '{command.scope}'.") from exc

        now = utcnow()
        if command.expires_at is not None and command.expires_at <= now:
            raise ValidationError("expires_at must be in the future.")

        user = self._accounts_port.get_user_by_id(user_id=command.user_id)
        if user is None or user.is_deleted:
            raise UserNotFoundError("User not found.")

        try:
            grant = self._access_control_port.create_grant(
                grant=PermissionGrant(
                    id=str(uuid4()),
                    user_id=user.id,
                    permission=permission,
                    granted=True,
                    scope=scope,
                    expires_at=command.expires_at,
                    granted_by=command.granted_by,
                    created_at=now,
                )
            )
        except DuplicateKeyError as exc:
            raise PermissionAlreadyGrantedError(f"Permission '{permission}' is already granted.") from exc

        logger.info(
            "permissions: granted user_id=%s permission=%s granted_by=%s",
            user.id,
            permission,
            command.granted_by,
        )
        return build_grant_output(grant)


class RevokePermissionUseCase:
    """Remove a direct grant. Permissions inherited from the role are not affected."""

    def __init__(self, *, access_control_port: AccessControlPort):
        self._access_control_port = access_control_port

    def execute(self, command: RevokePermissionInput) -> None:
        permission = command.permission.strip()
        deleted = self._access_control_port.delete_grant(user_id=command.user_id, permission=permission)
        if not deleted:
            raise PermissionNotGrantedError(f"Permission '{permission}' is not directly granted to this user.")
        logger.info("permissions: revoked user_id=%s permission=%s", command.user_id, permission)


class ListPermissionGrantsUseCase:
    def __init__(self, *, accounts_port: AccountsPort, access_control_port: AccessControlPort):
        self._accounts_port = accounts_port
        self._access_control_port = access_control_port

    def execute(self, *, user_id: str) -> list[PermissionGrantOutput]:
        user = self._accounts_port.get_user_by_id(user_id=user_id)
        if user is None:
            raise UserNotFoundError("User not found.")
        grants = self._access_control_port.list_grants(user_id=user.id)
        return [build_grant_output(grant) for grant in sorted(grants, key=lambda item: item.permission)]
