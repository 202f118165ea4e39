from __future__ import annotations

from typing import Mapping

from authkit.application.dto.oauth import OAuthProfile, OAuthState
from authkit.application.ports.oauth_port import OAuthStrategyPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.entities.user import AuthProvider
from authkit.domain.exceptions import InvalidOAuthStateError

from .auth_common import resolve_strategy


def verify_oauth_state(
    token_port: TokenPort,
    *,
    token: str,
    provider: AuthProvider,
    intent: str,
) -> OAuthState:
    try:
        state = token_port.decode_oauth_state(token=token)
    except ValueError as exc:
        raise InvalidOAuthStateError("Invalid or expired OAuth state.") from exc

    if state.provider != provider:
        raise InvalidOAuthStateError("OAuth state was issued for another provider.")
    if state.intent != intent:
        raise InvalidOAuthStateError("OAuth state was issued for another flow.")
    return state


def fetch_oauth_profile(
    strategies: Mapping[AuthProvider, OAuthStrategyPort],
    *,
    provider: AuthProvider,
    code: str,
    state: str,
) -> OAuthProfile:
    strategy = resolve_strategy(strategies, provider)
    return strategy.get_user_profile(code=code, state=state)
