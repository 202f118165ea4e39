from __future__ import annotations

import logging

from authkit.application.dto.auth import AuthTokensOutput, LoginLocalInput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.credential_hasher_port import CredentialHasherPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.exceptions import InvalidCredentialsError

from .auth_common import issue_tokens, normalize_email, utcnow


logger = logging.getLogger(__name__)


class LoginLocalUseCase:
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

    def execute(self, command: LoginLocalInput) -> AuthTokensOutput:
        email = normalize_email(command.email)
        user = self._accounts_port.get_user_by_email(email=email)
        if user is None or user.is_deleted or not user.has_password:
            raise InvalidCredentialsError("Invalid credentials.")

        if not self._credential_hasher.verify(command.password, user.password_hash):
            logger.info("login_local: password mismatch user_id=%s", user.id)
            raise InvalidCredentialsError("Invalid credentials.")

        if self._credential_hasher.needs_rehash(user.password_hash):
            self._accounts_port.update_user_password(
                user_id=user.id,
                password_hash=self._credential_hasher.hash(command.password),
                updated_at=utcnow(),
            )

        return issue_tokens(
            user=user,
            accounts_port=self._accounts_port,
            token_port=self._token_port,
            user_agent=command.user_agent,
            ip=command.ip,
        )
