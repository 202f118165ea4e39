from __future__ import annotations

import logging

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

from authkit.application.ports.credential_hasher_port import CredentialHasherPort


logger = logging.getLogger(__name__)


class CredentialHasher(CredentialHasherPort):
    def __init__(self):
        self._ctx = CryptContext(
            schemes=["argon2", "bcrypt"],
            deprecated="auto",
        )

    def hash(self, secret: str) -> str:
        return self._ctx.hash(secret)

    def verify(self, secret: str, secret_hash: str) -> bool:
        try:
            return self._ctx.verify(secret, secret_hash)
        except (UnknownHashError, ValueError, TypeError):
            logger.warning("credential_hasher: unverifiable hash format")
            return False

    def needs_rehash(self, secret_hash: str) -> bool:
        try:
            return self._ctx.needs_update(secret_hash)
        except (UnknownHashError, ValueError, TypeError):
            return False
