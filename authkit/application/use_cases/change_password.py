from __future__ import annotations

import logging

from authkit.application.dto.account import ChangePasswordInput, ChangePasswordOutput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.credential_hasher_port import CredentialHasherPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.exceptions import (
    InvalidCredentialsError,
    PasswordNotSetError,
    SamePasswordError,
    UserNotFoundError,
    ValidationError,
)

from .auth_common import utcnow


logger = logging.getLogger(__name__)


class ChangePasswordUseCase:
    def __init__(
        self,
        *,
        accounts_port: AccountsPort,
        credential_hasher: CredentialHasherPort,
        token_port: TokenPort,
    ):
        self._accounts_port = accounts_port
        self._credential_hasher = credential_hasher
        self._token_port = token_port

    def execute(self, command: ChangePasswordInput) -> ChangePasswordOutput:
        user = self._accounts_port.get_user_by_id(user_id=command.user_id)
        if user is None or user.is_deleted:
            raise UserNotFoundError("User not found.")
        if not user.has_password:
            raise PasswordNotSetError("This account signs in with an OAuth provider and has no password.")

        if not self._credential_hasher.verify(command.current_password, user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect.")
        if len(command.new_password) < 8:
            raise ValidationError("password must have at least 8 characters.")
        if self._credential_hasher.verify(command.new_password, user.password_hash):
            raise SamePasswordError("New password must differ from the current password.")

        self._accounts_port.update_user_password(
            user_id=user.id,
            password_hash=self._credential_hasher.hash(command.new_password),
            updated_at=utcnow(),
        )

        keep_hash = None
        if command.current_refresh_token:
            keep_hash = self._token_port.hash_refresh_token(refresh_token=command.current_refresh_token)
        revoked = self._accounts_port.invalidate_sessions_except(user_id=user.id, keep_token_hash=keep_hash)
        logger.info("account: password changed user_id=%s revoked_sessions=%s", user.id, revoked)
        return ChangePasswordOutput(revoked_sessions=revoked)
