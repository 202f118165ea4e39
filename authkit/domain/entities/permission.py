from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class PermissionScope(str, Enum):
    OWN = "own"
    ALL = "all"
    TEAM = "team"


@dataclass(frozen=True)
class ParsedPermission:
    resource: str
    action: str
    scope: str | None


@dataclass(frozen=True)
class PermissionGrant:
    id: str
    user_id: str
    permission: str
    granted: bool
    scope: PermissionScope | None
    expires_at: datetime | None
    granted_by: str | None
    created_at: datetime

    def is_effective(self, now: datetime) -> bool:
        if not self.granted:
            return False
        return self.expires_at is None or self.expires_at > now
