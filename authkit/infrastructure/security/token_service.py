from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta

import jwt

from authkit.application.dto.auth import AccessTokenPayload
from authkit.application.dto.oauth import OAuthState
from authkit.application.ports.token_port import TokenPort
from authkit.domain.entities.user import parse_provider


class JwtTokenService(TokenPort):
    def __init__(
        self,
        *,
        jwt_secret: str,
        access_ttl_minutes: int,
        session_max_age_days: int,
        oauth_state_ttl_seconds: int,
    ):
        self._jwt_secret = jwt_secret
        self._access_ttl_minutes = access_ttl_minutes
        self._session_max_age_days = session_max_age_days
        self._oauth_state_ttl_seconds = oauth_state_ttl_seconds

    def create_access_token(self, *, user_id: str, session_id: str, now: datetime) -> tuple[str, datetime]:
        exp = now + timedelta(minutes=self._access_ttl_minutes)
        payload = {
            "sub": user_id,
            "sid": session_id,
            "type": "access",
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
        }
        token = jwt.encode(payload, self._jwt_secret, algorithm="HS256")
        return token, exp

    def decode_access_token(self, *, token: str) -> AccessTokenPayload:
        payload = self._decode(token, expected_type="access")

        user_id = payload.get("sub")
        session_id = payload.get("sid")
        if not user_id or not isinstance(user_id, str):
            raise ValueError("Invalid token subject.")
        if not session_id or not isinstance(session_id, str):
            raise ValueError("Invalid token session.")

        return AccessTokenPayload(user_id=user_id, session_id=session_id)

    def generate_refresh_token(self) -> str:
        return secrets.token_urlsafe(48)

    def hash_refresh_token(self, *, refresh_token: str) -> str:
        return hashlib.sha256(refresh_token.encode("utf-8")).hexdigest()

    def refresh_token_expires_at(self, *, now: datetime) -> datetime:
        return now + timedelta(days=self._session_max_age_days)

    def create_oauth_state(self, *, state: OAuthState, now: datetime) -> str:
        exp = now + timedelta(seconds=self._oauth_state_ttl_seconds)
        payload = {
            "type": "oauth_state",
            "provider": state.provider.value,
            "intent": state.intent,
            "uid": state.user_id,
            "nonce": state.nonce,
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
        }
        return jwt.encode(payload, self._jwt_secret, algorithm="HS256")

    def decode_oauth_state(self, *, token: str) -> OAuthState:
        payload = self._decode(token, expected_type="oauth_state")

        provider = parse_provider(str(payload.get("provider", "")))
        intent = payload.get("intent")
        nonce = payload.get("nonce")
        if provider is None or not isinstance(intent, str) or not isinstance(nonce, str):
            raise ValueError("Malformed OAuth state.")

        user_id = payload.get("uid")
        return OAuthState(
            provider=provider,
            intent=intent,
            user_id=user_id if isinstance(user_id, str) else None,
            nonce=nonce,
        )

    def _decode(self, token: str, *, expected_type: str) -> dict:
        try:
            payload = jwt.decode(token, self._jwt_secret, algorithms=["HS256"])
        except jwt.PyJWTError as exc:
            raise ValueError("Invalid token.") from exc

        if payload.get("type") != expected_type:
            raise ValueError("Invalid token type.")
        return payload
