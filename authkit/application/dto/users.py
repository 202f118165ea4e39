from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


USER_STATUS_ACTIVE = "active"
USER_STATUS_DELETED = "deleted"


@dataclass(frozen=True)
class ListUsersInput:
    search: str | None = None
    role: str | None = None
    status: str | None = None
    page: int = 1
    limit: int = 20


@dataclass(frozen=True)
class AdminUserOutput:
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


@dataclass(frozen=True)
class UserListOutput:
    items: list[AdminUserOutput]
    total: int
    page: int
    limit: int


@dataclass(frozen=True)
class SetUserStatusInput:
    actor_id: str
    user_id: str
    is_active: bool


@dataclass(frozen=True)
class DeleteUserInput:
    actor_id: str
    user_id: str


@dataclass(frozen=True)
class UserStatusOutput:
    user: AdminUserOutput
    revoked_sessions: int
