from __future__ import annotations

import logging
from uuid import uuid4

from authkit.application.dto.auth import ActivateRegistrationInput, AuthTokensOutput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.credential_hasher_port import CredentialHasherPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.entities.user import AuthProvider, User
from authkit.domain.exceptions import (
    DuplicateKeyError,
    InvalidCodeError,
    RegistrationNotFoundError,
    TooManyAttemptsError,
)
from authkit.domain.services.activation import remaining_attempts

from .auth_common import issue_tokens, normalize_email, translate_duplicate_key, utcnow


logger = logging.getLogger(__name__)


class ActivateRegistrationUseCase:
    def __init__(
        self,
        *,
        accounts_port: AccountsPort,
        credential_hasher: CredentialHasherPort,
        token_port: TokenPort,
        max_attempts: int,
        default_role: str,
    ):
        self._accounts_port = accounts_port
        self._credential_hasher = credential_hasher
        self._token_port = token_port
        self._max_attempts = max_attempts
        self._default_role = default_role

    def execute(self, command: ActivateRegistrationInput) -> AuthTokensOutput:
        email = normalize_email(command.email)
        code = command.code.strip()
        now = utcnow()

        registration = self._accounts_port.increment_activation_attempts(email=email, now=now)
        if registration is None:
            raise RegistrationNotFoundError("No pending registration for this email, or it has expired.")

        if registration.attempts > self._max_attempts:
            self._accounts_port.delete_pending_registration(email=email)
            logger.warning("activate_registration: attempts exhausted email=%s", email)
            raise TooManyAttemptsError("Too many activation attempts. Register again.")

        if not self._credential_hasher.verify(code, registration.code_hash):
            remaining = remaining_attempts(attempts=registration.attempts, max_attempts=self._max_attempts)
            raise InvalidCodeError(
                f"Invalid activation code. {remaining} attempt(s) remaining.",
                remaining_attempts=remaining,
            )

        def _tx(accounts_port: AccountsPort) -> User:
            user = accounts_port.create_user(
                user=User(
                    id=str(uuid4()),
                    email=registration.email,
                    name=registration.name,
                    password_hash=registration.password_hash,
                    role=self._default_role,
                    is_verified=True,
                    is_deleted=False,
                    deleted_at=None,
                    linked_providers=(AuthProvider.EMAIL,),
                    primary_provider=None,
                    google_id=None,
                    facebook_id=None,
                    github_id=None,
                    profile_synced_at=None,
                    last_synced_provider=None,
                    created_at=now,
                    updated_at=now,
                )
            )
            accounts_port.delete_pending_registration(email=registration.email)
            return user

        try:
            user = self._accounts_port.execute_in_transaction(_tx)
        except DuplicateKeyError as exc:
            raise translate_duplicate_key(exc) from exc

        logger.info("activate_registration: user created user_id=%s", user.id)
        return issue_tokens(
            user=user,
            accounts_port=self._accounts_port,
            token_port=self._token_port,
            user_agent=command.user_agent,
            ip=command.ip,
        )
