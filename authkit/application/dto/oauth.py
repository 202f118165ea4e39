from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from authkit.domain.entities.user import AuthProvider


OAUTH_INTENT_LOGIN = "login"
OAUTH_INTENT_LINK = "link"


@dataclass(frozen=True)
class OAuthProfile:
    provider: AuthProvider
    provider_user_id: str
    email: str | None
    email_verified: bool
    name: str | None


@dataclass(frozen=True)
class OAuthState:
    provider: AuthProvider
    intent: str
    user_id: str | None
    nonce: str


@dataclass(frozen=True)
class OAuthAuthorizeInput:
    provider: str
    intent: str = OAUTH_INTENT_LOGIN
    user_id: str | None = None


@dataclass(frozen=True)
class OAuthAuthorizeOutput:
    provider: str
    authorization_url: str
    state: str


@dataclass(frozen=True)
class OAuthCallbackInput:
    provider: str
    code: str
    state: str
    user_agent: str | None
    ip: str | None


@dataclass(frozen=True)
class LinkProviderInput:
    user_id: str
    provider: str
    code: str
    state: str


@dataclass(frozen=True)
class UnlinkProviderInput:
    user_id: str
    provider: str


@dataclass(frozen=True)
class SetPrimaryProviderInput:
    user_id: str
    provider: str


@dataclass(frozen=True)
class LinkedProvidersOutput:
    user_id: str
    linked_providers: list[str]
    primary_provider: str | None
    can_unlink: dict[str, bool]
    profile_synced_at: datetime | None
    last_synced_provider: str | None


@dataclass(frozen=True)
class SupportedProvidersOutput:
    providers: list[str]
