from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class EffectivePermissionsResponse(BaseModel):
    user_id: str
    role: str
    permissions: list[str]
    role_permissions: list[str]
    direct_permissions: list[str]


class PermissionCheckResponse(BaseModel):
    permissions: list[str]
    match: Literal["any", "all"]
    allowed: bool


class GrantPermissionRequest(BaseModel):
    permission: str = Field(..., min_length=1, max_length=128)
    scope: str | None = Field(default=None, pattern=r"^(own|all|team)$")
    expires_at: datetime | None = None


class PermissionGrantResponse(BaseModel):
    id: str
    user_id: str
    permission: str
    scope: str | None
    expires_at: datetime | None
    granted_by: str | None
    created_at: datetime


class UserPermissionsResponse(BaseModel):
    effective: EffectivePermissionsResponse
    grants: list[PermissionGrantResponse]


class RoleResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None
    is_system_role: bool
    is_protected: bool
    permissions: list[str]
    created_at: datetime
    updated_at: datetime


class RoleListResponse(BaseModel):
    items: list[RoleResponse]
    total: int
    page: int
    limit: int


class CreateRoleRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    description: str | None = Field(default=None, max_length=500)
    permissions: list[str] = Field(default_factory=list)


class UpdateRoleRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=80)
    description: str | None = Field(default=None, max_length=500)
    permissions: list[str] | None = None


class AssignRoleRequest(BaseModel):
    role: str = Field(..., min_length=1, max_length=80)
