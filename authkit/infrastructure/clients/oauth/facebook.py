from __future__ import annotations

from authkit.application.dto.oauth import OAuthProfile
from authkit.domain.entities.user import AuthProvider
from authkit.domain.exceptions import OAuthProviderError

from .base import HttpOAuthStrategy, require_access_token


FACEBOOK_GRAPH_VERSION = "v18.0"
FACEBOOK_AUTH_URL = f"https://www.facebook.com/{FACEBOOK_GRAPH_VERSION}/dialog/oauth"
FACEBOOK_TOKEN_URL = f"https://graph.facebook.com/{FACEBOOK_GRAPH_VERSION}/oauth/access_token"
FACEBOOK_ME_URL = f"https://graph.facebook.com/{FACEBOOK_GRAPH_VERSION}/me"


class FacebookOAuthStrategy(HttpOAuthStrategy):
    provider = AuthProvider.FACEBOOK
    authorize_endpoint = FACEBOOK_AUTH_URL
    scopes = ("email", "public_profile")
    scope_separator = ","

    def get_user_profile(self, *, code: str, state: str) -> OAuthProfile:
        tokens = self._exchange_code(FACEBOOK_TOKEN_URL, code=code, method="GET")
        access_token = require_access_token(self.provider, tokens)

        me = self._request_json(
            "GET",
            FACEBOOK_ME_URL,
            params={"fields": "id,email,name,picture", "access_token": access_token},
        )
        if not isinstance(me, dict) or not me.get("id"):
            raise OAuthProviderError("facebook profile response has no id.")

        email = me.get("email")
        return OAuthProfile(
            provider=self.provider,
            provider_user_id=str(me["id"]),
            email=str(email) if email else None,
            # Graph API only returns confirmed emails.
            email_verified=bool(email),
            name=me.get("name") if isinstance(me.get("name"), str) else None,
        )
