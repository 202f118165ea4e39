from __future__ import annotations

import logging

from authkit.application.dto.account import ProfileOutput, UpdateProfileInput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.domain.entities.user import User
from authkit.domain.exceptions import UserNotFoundError, ValidationError

from .auth_common import utcnow


logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100


def build_profile_output(user: User) -> ProfileOutput:
    return ProfileOutput(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        is_verified=user.is_verified,
        has_password=user.has_password,
        linked_providers=[provider.value for provider in user.linked_providers],
        primary_provider=user.primary_provider.value if user.primary_provider else None,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class GetProfileUseCase:
    def __init__(self, *, accounts_port: AccountsPort):
        self._accounts_port = accounts_port

    def execute(self, *, user_id: str) -> ProfileOutput:
        user = self._accounts_port.get_user_by_id(user_id=user_id)
        if user is None or user.is_deleted:
            raise UserNotFoundError("User not found.")
        return build_profile_output(user)


class UpdateProfileUseCase:
    """Apply user-edited profile fields. Omitted fields are left untouched."""

    def __init__(self, *, accounts_port: AccountsPort):
        self._accounts_port = accounts_port

    def execute(self, command: UpdateProfileInput) -> ProfileOutput:
        if command.name is None:
            return GetProfileUseCase(accounts_port=self._accounts_port).execute(user_id=command.user_id)

        name = command.name.strip()
        if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
            raise ValidationError(f"name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters.")

        user = self._accounts_port.update_user_name(user_id=command.user_id, name=name, updated_at=utcnow())
        if user is None:
            raise UserNotFoundError("User not found.")
        logger.info("profile: updated user_id=%s", user.id)
        return build_profile_output(user)
