from __future__ import annotations

from typing import Any

from authkit.application.dto.oauth import OAuthProfile
from authkit.domain.entities.user import AuthProvider
from authkit.domain.exceptions import OAuthProviderError

from .base import HttpOAuthStrategy, require_access_token


GITHUB_AUTH_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"
GITHUB_EMAILS_URL = "https://api.github.com/user/emails"


def pick_primary_email(emails: Any) -> tuple[str | None, bool]:
    if not isinstance(emails, list):
        return None, False
    for item in emails:
        if isinstance(item, dict) and item.get("primary") and item.get("verified") and item.get("email"):
            return str(item["email"]), True
    return None, False


class GithubOAuthStrategy(HttpOAuthStrategy):
    provider = AuthProvider.GITHUB
    authorize_endpoint = GITHUB_AUTH_URL
    scopes = ("user:email", "read:user")

    def get_user_profile(self, *, code: str, state: str) -> OAuthProfile:
        tokens = self._exchange_code(GITHUB_TOKEN_URL, code=code)
        access_token = require_access_token(self.provider, tokens)
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
        }

        user = self._request_json("GET", GITHUB_USER_URL, headers=headers)
        if not isinstance(user, dict) or not user.get("id"):
            raise OAuthProviderError("github user response has no id.")

        # The public profile email is optional; the emails endpoint says which one is verified.
        email, email_verified = pick_primary_email(
            self._request_json("GET", GITHUB_EMAILS_URL, headers=headers)
        )
        if email is None and user.get("email"):
            email, email_verified = str(user["email"]), False

        name = user.get("name") or user.get("login")
        return OAuthProfile(
            provider=self.provider,
            provider_user_id=str(user["id"]),
            email=email,
            email_verified=email_verified,
            name=str(name) if name else None,
        )
