from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ChangePasswordInput:
    user_id: str
    current_password: str
    new_password: str
    current_refresh_token: str | None


@dataclass(frozen=True)
class ChangePasswordOutput:
    revoked_sessions: int


@dataclass(frozen=True)
class DeactivateAccountInput:
    user_id: str


@dataclass(frozen=True)
class DeactivateAccountOutput:
    revoked_sessions: int


@dataclass(frozen=True)
class ProfileOutput:
    id: str
    email: str
    name: str
    role: str
    is_verified: bool
    has_password: bool
    linked_providers: list[str]
    primary_provider: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UpdateProfileInput:
    user_id: str
    name: str | None = None
