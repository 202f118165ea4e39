from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Role:
    id: str
    name: str
    slug: str
    description: str | None
    is_system_role: bool
    is_protected: bool
    permissions: frozenset[str]
    created_at: datetime
    updated_at: datetime
