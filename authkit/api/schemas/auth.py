from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, max_length=256)


class RegisterResponse(BaseModel):
    email: str
    expires_at: datetime


class ResendActivationRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)


class ActivateRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    code: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=256)


class AuthUserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    is_verified: bool
    linked_providers: list[str]
    primary_provider: str | None


class AuthTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    session_id: str
    access_expires_at: datetime
    refresh_expires_at: datetime
    user: AuthUserResponse


class LogoutResponse(BaseModel):
    ok: bool
