from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Session:
    id: str
    user_id: str
    token_hash: str
    user_agent: str | None
    ip: str | None
    device_name: str
    is_valid: bool
    last_used_at: datetime
    expires_at: datetime
    created_at: datetime

    def is_active(self, now: datetime) -> bool:
        return self.is_valid and self.expires_at > now
