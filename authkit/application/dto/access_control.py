from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class EffectivePermissionsOutput:
    user_id: str
    role: str
    permissions: list[str]
    role_permissions: list[str]
    direct_permissions: list[str]


@dataclass(frozen=True)
class CheckPermissionInput:
    user_id: str
    permissions: tuple[str, ...]
    match: str = "all"


@dataclass(frozen=True)
class GrantPermissionInput:
    user_id: str
    permission: str
    scope: str | None = None
    expires_at: datetime | None = None
    granted_by: str | None = None


@dataclass(frozen=True)
class RevokePermissionInput:
    user_id: str
    permission: str


@dataclass(frozen=True)
class PermissionGrantOutput:
    id: str
    user_id: str
    permission: str
    scope: str | None
    expires_at: datetime | None
    granted_by: str | None
    created_at: datetime


@dataclass(frozen=True)
class RoleOutput:
    id: str
    name: str
    slug: str
    description: str | None
    is_system_role: bool
    is_protected: bool
    permissions: list[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class CreateRoleInput:
    name: str
    description: str | None
    permissions: list[str]


@dataclass(frozen=True)
class UpdateRoleInput:
    role_ref: str
    name: str | None = None
    description: str | None = None
    permissions: list[str] | None = None


@dataclass(frozen=True)
class ListRolesInput:
    search: str | None = None
    page: int = 1
    limit: int = 20


@dataclass(frozen=True)
class RoleListOutput:
    items: list[RoleOutput]
    total: int
    page: int
    limit: int


@dataclass(frozen=True)
class AssignRoleInput:
    user_id: str
    role_slug: str
