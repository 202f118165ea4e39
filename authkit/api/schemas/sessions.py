from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SessionResponse(BaseModel):
    id: str
    device_name: str
    user_agent: str | None
    ip: str | None
    last_used_at: datetime
    expires_at: datetime
    created_at: datetime
    is_current: bool


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse]


class RevokeOtherSessionsResponse(BaseModel):
    revoked_count: int
