from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SessionOutput:
    id: str
    device_name: str
    user_agent: str | None
    ip: str | None
    last_used_at: datetime
    expires_at: datetime
    created_at: datetime
    is_current: bool


@dataclass(frozen=True)
class ListSessionsInput:
    user_id: str
    current_refresh_token: str | None


@dataclass(frozen=True)
class RevokeOtherSessionsInput:
    user_id: str
    current_refresh_token: str


@dataclass(frozen=True)
class RevokeOtherSessionsOutput:
    revoked_count: int


@dataclass(frozen=True)
class RevokeSessionInput:
    user_id: str
    session_id: str
    current_refresh_token: str | None
