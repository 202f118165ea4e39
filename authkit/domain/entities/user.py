from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class AuthProvider(str, Enum):
    EMAIL = "email"
    GOOGLE = "google"
    FACEBOOK = "facebook"
    GITHUB = "github"


OAUTH_PROVIDERS: tuple[AuthProvider, ...] = (
    AuthProvider.GOOGLE,
    AuthProvider.FACEBOOK,
    AuthProvider.GITHUB,
)

# External account id column per OAuth provider.
PROVIDER_ID_FIELDS: dict[AuthProvider, str] = {
    AuthProvider.GOOGLE: "google_id",
    AuthProvider.FACEBOOK: "facebook_id",
    AuthProvider.GITHUB: "github_id",
}


def parse_provider(value: str) -> AuthProvider | None:
    try:
        return AuthProvider(value.strip().lower())
    except ValueError:
        return None


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str
    password_hash: str | None
    role: str
    is_verified: bool
    is_deleted: bool
    deleted_at: datetime | None
    linked_providers: tuple[AuthProvider, ...]
    primary_provider: AuthProvider | None
    google_id: str | None
    facebook_id: str | None
    github_id: str | None
    profile_synced_at: datetime | None
    last_synced_provider: AuthProvider | None
    created_at: datetime
    updated_at: datetime

    def has_provider(self, provider: AuthProvider) -> bool:
        return provider in self.linked_providers

    def provider_id(self, provider: AuthProvider) -> str | None:
        field_name = PROVIDER_ID_FIELDS.get(provider)
        if field_name is None:
            return None
        return getattr(self, field_name)

    def with_provider_id(self, provider: AuthProvider, provider_user_id: str | None) -> User:
        field_name = PROVIDER_ID_FIELDS[provider]
        return replace(self, **{field_name: provider_user_id})

    @property
    def has_password(self) -> bool:
        return AuthProvider.EMAIL in self.linked_providers and bool(self.password_hash)
