from __future__ import annotations

from datetime import datetime
from typing import Protocol

from authkit.application.dto.auth import AccessTokenPayload
from authkit.application.dto.oauth import OAuthState


class TokenPort(Protocol):
    def create_access_token(self, *, user_id: str, session_id: str, now: datetime) -> tuple[str, datetime]:
        ...

    def decode_access_token(self, *, token: str) -> AccessTokenPayload:
        ...

    def generate_refresh_token(self) -> str:
        ...

    def hash_refresh_token(self, *, refresh_token: str) -> str:
        ...

    def refresh_token_expires_at(self, *, now: datetime) -> datetime:
        ...

    def create_oauth_state(self, *, state: OAuthState, now: datetime) -> str:
        ...

    def decode_oauth_state(self, *, token: str) -> OAuthState:
        ...
