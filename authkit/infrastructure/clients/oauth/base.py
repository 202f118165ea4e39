from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from authkit.application.dto.oauth import OAuthProfile
from authkit.domain.entities.user import AuthProvider
from authkit.domain.exceptions import OAuthProviderError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuthClientConfig:
    client_id: str
    client_secret: str
    callback_url: str
    timeout_seconds: float = 10.0


class HttpOAuthStrategy:
    provider: AuthProvider
    authorize_endpoint: str
    scopes: tuple[str, ...] = ()
    scope_separator = " "

    def __init__(self, config: OAuthClientConfig):
        self._config = config

    def authorization_params(self, *, state: str) -> dict[str, str]:
        return {
            "client_id": self._config.client_id,
            "redirect_uri": self._config.callback_url,
            "response_type": "code",
            "scope": self.scope_separator.join(self.scopes),
            "state": state,
        }

    def get_authorization_url(self, *, state: str) -> str:
        return f"{self.authorize_endpoint}?{urlencode(self.authorization_params(state=state))}"

    def get_user_profile(self, *, code: str, state: str) -> OAuthProfile:
        raise NotImplementedError

    def _request_json(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        try:
            with httpx.Client(timeout=self._config.timeout_seconds) as client:
                response = client.request(method, url, params=params, data=data, headers=headers)
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("oauth: %s request failed url=%s error=%s", self.provider.value, url, exc)
            raise OAuthProviderError(f"{self.provider.value} request failed.") from exc

    def _exchange_code(self, token_endpoint: str, *, code: str, method: str = "POST") -> dict[str, Any]:
        form = {
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "redirect_uri": self._config.callback_url,
            "code": code,
        }
        if method == "GET":
            payload = self._request_json("GET", token_endpoint, params=form)
        else:
            payload = self._request_json(
                "POST",
                token_endpoint,
                data={**form, "grant_type": "authorization_code"},
                headers={"Accept": "application/json"},
            )
        if not isinstance(payload, dict) or payload.get("error"):
            error = payload.get("error") if isinstance(payload, dict) else None
            raise OAuthProviderError(f"{self.provider.value} rejected the authorization code: {error}")
        return payload


def require_access_token(provider: AuthProvider, payload: dict[str, Any]) -> str:
    access_token = payload.get("access_token")
    if not access_token or not isinstance(access_token, str):
        raise OAuthProviderError(f"{provider.value} token response has no access_token.")
    return access_token
