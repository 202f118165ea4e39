from __future__ import annotations

import logging
from typing import Iterable

from authkit.application.dto.access_control import CheckPermissionInput, EffectivePermissionsOutput
from authkit.application.ports.access_control_port import AccessControlPort
from authkit.application.ports.accounts_port import AccountsPort
from authkit.domain.exceptions import UserNotFoundError
from authkit.domain.services.permissions import (
    WILDCARD,
    effective_grant_permissions,
    filter_by_resource,
    has_all_permissions,
    has_any_permission,
    resolve_effective_permissions,
)

from .auth_common import utcnow


logger = logging.getLogger(__name__)


def _scope_to_resource(permissions: Iterable[str], resource: str | None) -> list[str]:
    values = sorted(permissions)
    if resource is None:
        return values
    scoped = filter_by_resource(values, resource)
    if WILDCARD in values:
        return [WILDCARD, *scoped]
    return scoped


class ListEffectivePermissionsUseCase:
    def __init__(self, *, accounts_port: AccountsPort, access_control_port: AccessControlPort):
        self._accounts_port = accounts_port
        self._access_control_port = access_control_port

    def execute(self, *, user_id: str, resource: str | None = None) -> EffectivePermissionsOutput:
        user = self._accounts_port.get_user_by_id(user_id=user_id)
        if user is None or user.is_deleted:
            raise UserNotFoundError("User not found.")

        role = self._access_control_port.get_role_by_slug(slug=user.role)
        if role is None:
            logger.warning("permissions: role missing user_id=%s role=%s", user.id, user.role)
            role_permissions: frozenset[str] = frozenset()
        else:
            role_permissions = role.permissions

        grants = self._access_control_port.list_grants(user_id=user.id)
        now = utcnow()
        effective = resolve_effective_permissions(role_permissions=role_permissions, grants=grants, now=now)
        return EffectivePermissionsOutput(
            user_id=user.id,
            role=user.role,
            permissions=_scope_to_resource(effective, resource),
            role_permissions=_scope_to_resource(role_permissions, resource),
            direct_permissions=_scope_to_resource(effective_grant_permissions(grants, now=now), resource),
        )


class CheckPermissionUseCase:
    def __init__(self, *, list_effective_permissions_use_case: ListEffectivePermissionsUseCase):
        self._list_effective_permissions_use_case = list_effective_permissions_use_case

    def execute(self, command: CheckPermissionInput) -> bool:
        effective = self._list_effective_permissions_use_case.execute(user_id=command.user_id)
        if command.match == "any":
            return has_any_permission(effective.permissions, command.permissions)
        return has_all_permissions(effective.permissions, command.permissions)
