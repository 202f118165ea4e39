from __future__ import annotations

from dataclasses import replace
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from authkit.domain.entities.user import AuthProvider
from authkit.domain.exceptions import OAuthProviderError
from authkit.infrastructure.clients.oauth import google as google_module
from authkit.infrastructure.clients.oauth.base import OAuthClientConfig
from authkit.infrastructure.clients.oauth.facebook import FacebookOAuthStrategy
from authkit.infrastructure.clients.oauth.github import (
    GITHUB_EMAILS_URL,
    GITHUB_TOKEN_URL,
    GITHUB_USER_URL,
    GithubOAuthStrategy,
    pick_primary_email,
)
from authkit.infrastructure.clients.oauth.google import GoogleOAuthStrategy
from authkit.infrastructure.clients.oauth.registry import build_oauth_strategies
from authkit.shared.config import OAuthClientSettings, get_settings


def _config() -> OAuthClientConfig:
    return OAuthClientConfig(
        client_id="client-id",
        client_secret="client-secret",
        callback_url="https://app.example.com/v1/auth/oauth/callback",
    )


def _query(url: str) -> dict[str, list[str]]:
    return parse_qs(urlparse(url).query)


def test_authorization_urls_carry_state_and_scopes():
    google_query = _query(GoogleOAuthStrategy(_config()).get_authorization_url(state="state-1"))
    facebook_query = _query(FacebookOAuthStrategy(_config()).get_authorization_url(state="state-2"))

    assert google_query["state"] == ["state-1"]
    assert google_query["scope"] == ["openid email profile"]
    assert google_query["access_type"] == ["offline"]
    assert google_query["redirect_uri"] == ["https://app.example.com/v1/auth/oauth/callback"]
    assert facebook_query["scope"] == ["email,public_profile"]
    assert facebook_query["state"] == ["state-2"]


def test_pick_primary_email_requires_primary_and_verified():
    emails = [
        {"email": "old@example.com", "primary": False, "verified": True},
        {"email": "alice@example.com", "primary": True, "verified": True},
    ]

    assert pick_primary_email(emails) == ("alice@example.com", True)
    assert pick_primary_email([{"email": "a@example.com", "primary": True, "verified": False}]) == (None, False)
    assert pick_primary_email({"message": "Bad credentials"}) == (None, False)


def test_github_profile_uses_verified_primary_email(monkeypatch: pytest.MonkeyPatch):
    strategy = GithubOAuthStrategy(_config())
    responses = {
        GITHUB_TOKEN_URL: {"access_token": "gh-token", "token_type": "bearer"},
        GITHUB_USER_URL: {"id": 4242, "login": "alice", "name": None, "email": None},
        GITHUB_EMAILS_URL: [{"email": "alice@example.com", "primary": True, "verified": True}],
    }
    monkeypatch.setattr(strategy, "_request_json", lambda method, url, **kwargs: responses[url])

    profile = strategy.get_user_profile(code="code-1", state="state-1")

    assert profile.provider == AuthProvider.GITHUB
    assert profile.provider_user_id == "4242"
    assert profile.email == "alice@example.com"
    assert profile.email_verified is True
    assert profile.name == "alice"


def test_github_rejected_code_raises_provider_error(monkeypatch: pytest.MonkeyPatch):
    strategy = GithubOAuthStrategy(_config())
    monkeypatch.setattr(
        strategy,
        "_request_json",
        lambda method, url, **kwargs: {"error": "bad_verification_code"},
    )

    with pytest.raises(OAuthProviderError):
        strategy.get_user_profile(code="expired", state="state-1")


def test_http_failures_become_provider_errors(monkeypatch: pytest.MonkeyPatch):
    real_client = httpx.Client

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"message": "unavailable"})

    monkeypatch.setattr(
        "authkit.infrastructure.clients.oauth.base.httpx.Client",
        lambda timeout: real_client(transport=httpx.MockTransport(handler), timeout=timeout),
    )

    with pytest.raises(OAuthProviderError):
        GithubOAuthStrategy(_config()).get_user_profile(code="code-1", state="state-1")


def test_facebook_profile_treats_returned_email_as_verified(monkeypatch: pytest.MonkeyPatch):
    strategy = FacebookOAuthStrategy(_config())

    def fake_request_json(method, url, **kwargs):
        if "access_token" in url:
            return {"access_token": "fb-token"}
        return {"id": "fb-1", "name": "Alice", "email": "alice@example.com"}

    monkeypatch.setattr(strategy, "_request_json", fake_request_json)

    profile = strategy.get_user_profile(code="code-1", state="state-1")

    assert profile.provider_user_id == "fb-1"
    assert profile.email_verified is True


def test_google_profile_requires_verified_email(monkeypatch: pytest.MonkeyPatch):
    strategy = GoogleOAuthStrategy(_config())
    claims = {"sub": "g-1", "email": "alice@example.com", "email_verified": "true", "name": "Alice"}
    monkeypatch.setattr(strategy, "_exchange_code", lambda endpoint, *, code: {"id_token": "raw"})
    monkeypatch.setattr(google_module, "id_token_verify", lambda *, token, audience: claims)

    profile = strategy.get_user_profile(code="code-1", state="state-1")

    assert profile.provider_user_id == "g-1"
    assert profile.email_verified is True

    claims["email_verified"] = False
    with pytest.raises(OAuthProviderError):
        strategy.get_user_profile(code="code-1", state="state-1")


def test_registry_builds_only_configured_providers():
    settings = replace(
        get_settings(),
        google=OAuthClientSettings(client_id="id", client_secret="secret", callback_url="https://cb"),
        facebook=OAuthClientSettings(client_id="id", client_secret="", callback_url="https://cb"),
        github=OAuthClientSettings(client_id="", client_secret="", callback_url=""),
    )

    strategies = build_oauth_strategies(settings)

    assert list(strategies) == [AuthProvider.GOOGLE]
    assert isinstance(strategies[AuthProvider.GOOGLE], GoogleOAuthStrategy)
