from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class LinkedProvidersResponse(BaseModel):
    user_id: str
    linked_providers: list[str]
    primary_provider: str | None
    can_unlink: dict[str, bool]
    profile_synced_at: datetime | None
    last_synced_provider: str | None


class LinkProviderRequest(BaseModel):
    code: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=256)
    new_password: str = Field(..., min_length=8, max_length=256)


class ChangePasswordResponse(BaseModel):
    revoked_sessions: int


class DeactivateAccountResponse(BaseModel):
    revoked_sessions: int


class ProfileResponse(BaseModel):
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


class UpdateProfileRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
