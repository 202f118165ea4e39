from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from authkit.application.dto.auth import RegisterUserInput, RegisterUserOutput, ResendActivationInput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.credential_hasher_port import CredentialHasherPort
from authkit.application.ports.mailer_port import MailerPort
from authkit.domain.entities.pending_registration import PendingRegistration
from authkit.domain.exceptions import (
    ActivationEmailFailedError,
    EmailAlreadyRegisteredError,
    RegistrationNotFoundError,
    ValidationError,
)
from authkit.domain.services.activation import generate_activation_code

from .auth_common import normalize_email, utcnow


logger = logging.getLogger(__name__)

ACTIVATION_SUBJECT = "Your activation code"

ACTIVATION_TEXT = """Hello {name},

Your activation code is {code}.
It expires in {minutes} minutes.

If you did not create an account, you can ignore this email.
"""

ACTIVATION_HTML = """<!DOCTYPE html>
<html>
<body style="font-family: sans-serif;">
    <p>Hello {name},</p>
    <p>Your activation code is:</p>
    <p style="font-size: 28px; font-weight: 600; letter-spacing: 4px;">{code}</p>
    <p>It expires in {minutes} minutes.</p>
    <p style="color: #6b7280; font-size: 13px;">If you did not create an account, you can ignore this email.</p>
</body>
</html>
"""


def send_activation_code(
    *,
    mailer: MailerPort,
    email: str,
    name: str,
    code: str,
    ttl_seconds: int,
) -> None:
    minutes = max(ttl_seconds // 60, 1)
    try:
        mailer.send(
            to=email,
            subject=ACTIVATION_SUBJECT,
            html=ACTIVATION_HTML.format(name=name, code=code, minutes=minutes),
            text=ACTIVATION_TEXT.format(name=name, code=code, minutes=minutes),
        )
    except Exception as exc:
        logger.error("register_user: activation email failed email=%s error=%s", email, exc)
        raise ActivationEmailFailedError("Could not send the activation email.") from exc


class RegisterUserUseCase:
    def __init__(
        self,
        *,
        accounts_port: AccountsPort,
        credential_hasher: CredentialHasherPort,
        mailer: MailerPort,
        code_ttl_seconds: int,
        code_generator: Callable[[], str] = generate_activation_code,
    ):
        self._accounts_port = accounts_port
        self._credential_hasher = credential_hasher
        self._mailer = mailer
        self._code_ttl_seconds = code_ttl_seconds
        self._code_generator = code_generator

    def execute(self, command: RegisterUserInput) -> RegisterUserOutput:
        name = command.name.strip()
        email = normalize_email(command.email)
        password = command.password

        if not name:
            raise ValidationError("name is required.")
        if not email or "@" not in email:
            raise ValidationError("a valid email is required.")
        if len(password) < 8:
            raise ValidationError("password must have at least 8 characters.")

        if self._accounts_port.get_user_by_email(email=email) is not None:
            raise EmailAlreadyRegisteredError("Email already in use.")

        now = utcnow()
        code = self._code_generator()
        registration = PendingRegistration(
            email=email,
            name=name,
            password_hash=self._credential_hasher.hash(password),
            code_hash=self._credential_hasher.hash(code),
            attempts=0,
            expires_at=now + timedelta(seconds=self._code_ttl_seconds),
            created_at=now,
        )
        self._accounts_port.save_pending_registration(registration=registration)
        logger.info("register_user: pending registration saved email=%s", email)

        send_activation_code(
            mailer=self._mailer,
            email=email,
            name=name,
            code=code,
            ttl_seconds=self._code_ttl_seconds,
        )
        return RegisterUserOutput(email=email, expires_at=registration.expires_at)


class ResendActivationUseCase:
    def __init__(
        self,
        *,
        accounts_port: AccountsPort,
        credential_hasher: CredentialHasherPort,
        mailer: MailerPort,
        code_ttl_seconds: int,
        code_generator: Callable[[], str] = generate_activation_code,
    ):
        self._accounts_port = accounts_port
        self._credential_hasher = credential_hasher
        self._mailer = mailer
        self._code_ttl_seconds = code_ttl_seconds
        self._code_generator = code_generator

    def execute(self, command: ResendActivationInput) -> RegisterUserOutput:
        email = normalize_email(command.email)
        now = utcnow()
        current = self._accounts_port.get_pending_registration(email=email, now=now)
        if current is None:
            raise RegistrationNotFoundError("No pending registration for this email.")

        code = self._code_generator()
        expires_at: datetime = now + timedelta(seconds=self._code_ttl_seconds)
        self._accounts_port.save_pending_registration(
            registration=PendingRegistration(
                email=current.email,
                name=current.name,
                password_hash=current.password_hash,
                code_hash=self._credential_hasher.hash(code),
                attempts=0,
                expires_at=expires_at,
                created_at=current.created_at,
            )
        )
        logger.info("register_user: activation code reissued email=%s", email)

        send_activation_code(
            mailer=self._mailer,
            email=email,
            name=current.name,
            code=code,
            ttl_seconds=self._code_ttl_seconds,
        )
        return RegisterUserOutput(email=email, expires_at=expires_at)
