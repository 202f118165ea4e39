from __future__ import annotations

from typing import Protocol


class CredentialHasherPort(Protocol):
    """Hashes passwords and activation codes."""

    def hash(self, secret: str) -> str:
        ...

    def verify(self, secret: str, secret_hash: str) -> bool:
        ...

    def needs_rehash(self, secret_hash: str) -> bool:
        ...
