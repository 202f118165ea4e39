from __future__ import annotations

import logging

from authkit.application.dto.users import (
    USER_STATUS_ACTIVE,
    USER_STATUS_DELETED,
    AdminUserOutput,
    DeleteUserInput,
    ListUsersInput,
    SetUserStatusInput,
    UserListOutput,
    UserStatusOutput,
)
from authkit.application.ports.access_control_port import AccessControlPort
from authkit.application.ports.accounts_port import AccountsPort
from authkit.domain.entities.user import User
from authkit.domain.exceptions import (
    CannotManageUserError,
    CannotModifySelfError,
    UserNotFoundError,
    ValidationError,
)
from authkit.domain.services.permissions import has_all_permissions

from .auth_common import utcnow
from .list_effective_permissions import ListEffectivePermissionsUseCase
from .roles import MAX_PAGE_SIZE


logger = logging.getLogger(__name__)

STATUS_FILTERS = {USER_STATUS_ACTIVE: False, USER_STATUS_DELETED: True}


def build_admin_user_output(user: User) -> AdminUserOutput:
    return AdminUserOutput(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        is_verified=user.is_verified,
        is_deleted=user.is_deleted,
        deleted_at=user.deleted_at,
        linked_providers=[provider.value for provider in user.linked_providers],
        primary_provider=user.primary_provider.value if user.primary_provider else None,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class ListUsersUseCase:
    def __init__(self, *, accounts_port: AccountsPort):
        self._accounts_port = accounts_port

    def execute(self, command: ListUsersInput) -> UserListOutput:
        is_deleted = None
        if command.status:
            if command.status not in STATUS_FILTERS:
                raise ValidationError(f"Invalid status '{command.status}'.")
            is_deleted = STATUS_FILTERS[command.status]

        page = max(command.page, 1)
        limit = min(max(command.limit, 1), MAX_PAGE_SIZE)
        search = command.search.strip() if command.search else None
        role = command.role.strip() if command.role else None
        users, total = self._accounts_port.list_users(
            search=search or None,
            role=role or None,
            is_deleted=is_deleted,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return UserListOutput(
            items=[build_admin_user_output(user) for user in users],
            total=total,
            page=page,
            limit=limit,
        )


class GetUserUseCase:
    """Admin view of a single account. Deactivated accounts are included."""

    def __init__(self, *, accounts_port: AccountsPort):
        self._accounts_port = accounts_port

    def execute(self, *, user_id: str) -> AdminUserOutput:
        user = self._accounts_port.get_user_by_id(user_id=user_id)
        if user is None:
            raise UserNotFoundError("User not found.")
        return build_admin_user_output(user)


class _ManageUserUseCase:
    def __init__(
        self,
        *,
        accounts_port: AccountsPort,
        access_control_port: AccessControlPort,
        list_effective_permissions_use_case: ListEffectivePermissionsUseCase,
    ):
        self._accounts_port = accounts_port
        self._access_control_port = access_control_port
        self._list_effective_permissions_use_case = list_effective_permissions_use_case

    def _ensure_can_manage(self, *, actor_id: str, target: User) -> None:
        """An actor may only manage accounts whose role grants nothing the actor lacks."""
        if actor_id == target.id:
            raise CannotModifySelfError("Use the account endpoints to change your own account.")
        role = self._access_control_port.get_role_by_slug(slug=target.role)
        target_permissions = role.permissions if role is not None else frozenset()
        actor = self._list_effective_permissions_use_case.execute(user_id=actor_id)
        if not has_all_permissions(actor.permissions, target_permissions):
            logger.warning(
                "manage_users: denied actor_id=%s user_id=%s role=%s",
                actor_id,
                target.id,
                target.role,
            )
            raise CannotManageUserError(f"Cannot manage a user with role '{target.role}'.")


class SetUserStatusUseCase(_ManageUserUseCase):
    def execute(self, command: SetUserStatusInput) -> UserStatusOutput:
        target = self._accounts_port.get_user_by_id(user_id=command.user_id)
        if target is None:
            raise UserNotFoundError("User not found.")
        self._ensure_can_manage(actor_id=command.actor_id, target=target)

        if command.is_active == (not target.is_deleted):
            return UserStatusOutput(user=build_admin_user_output(target), revoked_sessions=0)

        def _tx(accounts_port: AccountsPort) -> int:
            now = utcnow()
            if command.is_active:
                accounts_port.restore_user(user_id=target.id, updated_at=now)
                return 0
            accounts_port.soft_delete_user(user_id=target.id, deleted_at=now)
            return accounts_port.invalidate_sessions_except(user_id=target.id, keep_token_hash=None)

        revoked = self._accounts_port.execute_in_transaction(_tx)
        logger.info(
            "manage_users: status changed user_id=%s active=%s actor_id=%s revoked_sessions=%s",
            target.id,
            command.is_active,
            command.actor_id,
            revoked,
        )
        updated = self._accounts_port.get_user_by_id(user_id=target.id)
        if updated is None:
            raise UserNotFoundError("User not found.")
        return UserStatusOutput(user=build_admin_user_output(updated), revoked_sessions=revoked)


class DeleteUserUseCase(_ManageUserUseCase):
    """Soft-delete another user's account and end all of its sessions."""

    def execute(self, command: DeleteUserInput) -> int:
        target = self._accounts_port.get_user_by_id(user_id=command.user_id)
        if target is None or target.is_deleted:
            raise UserNotFoundError("User not found.")
        self._ensure_can_manage(actor_id=command.actor_id, target=target)

        def _tx(accounts_port: AccountsPort) -> int:
            accounts_port.soft_delete_user(user_id=target.id, deleted_at=utcnow())
            return accounts_port.invalidate_sessions_except(user_id=target.id, keep_token_hash=None)

        revoked = self._accounts_port.execute_in_transaction(_tx)
        logger.info(
            "manage_users: deleted user_id=%s actor_id=%s revoked_sessions=%s",
            target.id,
            command.actor_id,
            revoked,
        )
        return revoked
