from __future__ import annotations

from typing import Protocol

from authkit.application.dto.oauth import OAuthProfile
from authkit.domain.entities.user import AuthProvider


class OAuthStrategyPort(Protocol):
    provider: AuthProvider

    def get_authorization_url(self, *, state: str) -> str:
        ...

    def get_user_profile(self, *, code: str, state: str) -> OAuthProfile:
        ...
