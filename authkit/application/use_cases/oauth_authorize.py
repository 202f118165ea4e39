from __future__ import annotations

import secrets
from typing import Mapping

from authkit.application.dto.oauth import (
    OAUTH_INTENT_LINK,
    OAUTH_INTENT_LOGIN,
    OAuthAuthorizeInput,
    OAuthAuthorizeOutput,
    OAuthState,
    SupportedProvidersOutput,
)
from authkit.application.ports.oauth_port import OAuthStrategyPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.entities.user import OAUTH_PROVIDERS, AuthProvider
from authkit.domain.exceptions import ValidationError

from .auth_common import resolve_oauth_provider, resolve_strategy, utcnow


class OAuthAuthorizeUseCase:
    def __init__(
        self,
        *,
        token_port: TokenPort,
        strategies: Mapping[AuthProvider, OAuthStrategyPort],
    ):
        self._token_port = token_port
        self._strategies = strategies

    def execute(self, command: OAuthAuthorizeInput) -> OAuthAuthorizeOutput:
        provider = resolve_oauth_provider(command.provider)
        strategy = resolve_strategy(self._strategies, provider)

        if command.intent not in (OAUTH_INTENT_LOGIN, OAUTH_INTENT_LINK):
            raise ValidationError(f"Unknown OAuth intent '{command.intent}'.")
        if command.intent == OAUTH_INTENT_LINK and not command.user_id:
            raise ValidationError("Linking a provider requires a signed-in user.")

        state = self._token_port.create_oauth_state(
            state=OAuthState(
                provider=provider,
                intent=command.intent,
                user_id=command.user_id if command.intent == OAUTH_INTENT_LINK else None,
                nonce=secrets.token_urlsafe(16),
            ),
            now=utcnow(),
        )
        return OAuthAuthorizeOutput(
            provider=provider.value,
            authorization_url=strategy.get_authorization_url(state=state),
            state=state,
        )


class ListOAuthProvidersUseCase:
    def __init__(self, *, strategies: Mapping[AuthProvider, OAuthStrategyPort]):
        self._strategies = strategies

    def execute(self) -> SupportedProvidersOutput:
        return SupportedProvidersOutput(
            providers=[provider.value for provider in OAUTH_PROVIDERS if provider in self._strategies]
        )
