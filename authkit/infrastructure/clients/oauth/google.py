from __future__ import annotations

from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests
from google.oauth2 import id_token

from authkit.application.dto.oauth import OAuthProfile
from authkit.domain.entities.user import AuthProvider
from authkit.domain.exceptions import OAuthProviderError

from .base import HttpOAuthStrategy


GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


class GoogleOAuthStrategy(HttpOAuthStrategy):
    provider = AuthProvider.GOOGLE
    authorize_endpoint = GOOGLE_AUTH_URL
    scopes = ("openid", "email", "profile")

    def authorization_params(self, *, state: str) -> dict[str, str]:
        params = super().authorization_params(state=state)
        params["access_type"] = "offline"
        params["prompt"] = "consent"
        return params

    def get_user_profile(self, *, code: str, state: str) -> OAuthProfile:
        tokens = self._exchange_code(GOOGLE_TOKEN_URL, code=code)
        raw_id_token = tokens.get("id_token")
        if not raw_id_token:
            raise OAuthProviderError("google token response has no id_token.")

        try:
            payload = id_token_verify(token=raw_id_token, audience=self._config.client_id)
        except (ValueError, GoogleAuthError) as exc:
            raise OAuthProviderError("Invalid Google id_token.") from exc

        subject = payload.get("sub")
        email = payload.get("email")
        if not subject or not email:
            raise OAuthProviderError("Google id_token missing required claims.")

        email_verified_raw = payload.get("email_verified", False)
        email_verified = bool(email_verified_raw)
        if isinstance(email_verified_raw, str):
            email_verified = email_verified_raw.lower() == "true"
        if not email_verified:
            raise OAuthProviderError("Google account email is not verified.")

        name = payload.get("name") if isinstance(payload.get("name"), str) else None
        return OAuthProfile(
            provider=self.provider,
            provider_user_id=str(subject),
            email=str(email),
            email_verified=email_verified,
            name=name,
        )


def id_token_verify(*, token: str, audience: str) -> dict:
    request = requests.Request()
    return id_token.verify_oauth2_token(token, request, audience)
