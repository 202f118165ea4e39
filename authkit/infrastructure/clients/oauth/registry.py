from __future__ import annotations

import logging

from authkit.application.ports.oauth_port import OAuthStrategyPort
from authkit.domain.entities.user import AuthProvider
from authkit.shared.config import OAuthClientSettings, Settings

from .base import HttpOAuthStrategy, OAuthClientConfig
from .facebook import FacebookOAuthStrategy
from .github import GithubOAuthStrategy
from .google import GoogleOAuthStrategy


logger = logging.getLogger(__name__)

STRATEGY_CLASSES: dict[AuthProvider, type[HttpOAuthStrategy]] = {
    AuthProvider.GOOGLE: GoogleOAuthStrategy,
    AuthProvider.FACEBOOK: FacebookOAuthStrategy,
    AuthProvider.GITHUB: GithubOAuthStrategy,
}


def build_oauth_strategies(settings: Settings) -> dict[AuthProvider, OAuthStrategyPort]:
    """Instantiate a strategy for every provider with complete client settings."""
    configured: dict[AuthProvider, OAuthClientSettings] = {
        AuthProvider.GOOGLE: settings.google,
        AuthProvider.FACEBOOK: settings.facebook,
        AuthProvider.GITHUB: settings.github,
    }
    strategies: dict[AuthProvider, OAuthStrategyPort] = {}
    for provider, client in configured.items():
        if not client.enabled:
            logger.info("oauth: provider disabled provider=%s", provider.value)
            continue
        strategies[provider] = STRATEGY_CLASSES[provider](
            OAuthClientConfig(
                client_id=client.client_id,
                client_secret=client.client_secret,
                callback_url=client.callback_url,
                timeout_seconds=settings.oauth_http_timeout_seconds,
            )
        )
    return strategies
