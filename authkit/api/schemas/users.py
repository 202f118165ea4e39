from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class AdminUserResponse(BaseModel):
    id: str
    email: str
    name: str
    role: str
    is_verified: bool
    is_deleted: bool
    deleted_at: datetime | None
    linked_providers: list[str]
    primary_provider: str | None
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    items: list[AdminUserResponse]
    total: int
    page: int
    limit: int


class UpdateUserStatusRequest(BaseModel):
    is_active: bool


class UserStatusResponse(BaseModel):
    user: AdminUserResponse
    revoked_sessions: int


class DeleteUserResponse(BaseModel):
    revoked_sessions: int
