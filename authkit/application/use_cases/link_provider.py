from __future__ import annotations

import logging
from typing import Mapping

from authkit.application.dto.oauth import OAUTH_INTENT_LINK, LinkProviderInput, LinkedProvidersOutput, OAuthProfile
from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.oauth_port import OAuthStrategyPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.entities.user import AuthProvider, User
from authkit.domain.exceptions import InvalidOAuthStateError
from authkit.domain.services.provider_linking import ensure_can_link, link_provider

from .auth_common import apply_link_change, resolve_oauth_provider, utcnow
from .get_linked_providers import build_linked_providers_output
from .oauth_common import fetch_oauth_profile, verify_oauth_state


logger = logging.getLogger(__name__)


class LinkProviderUseCase:
    """Attach an OAuth identity to an existing account.

    Checks run in a fixed order: provider already linked, provider account owned
    by another user, then email mismatch.
    """

    def __init__(self, *, accounts_port: AccountsPort):
        self._accounts_port = accounts_port

    def execute(self, *, user_id: str, profile: OAuthProfile) -> LinkedProvidersOutput:
        provider = profile.provider

        def _change(user: User) -> User:
            existing_owner = self._accounts_port.get_user_by_provider_id(
                provider=provider,
                provider_user_id=profile.provider_user_id,
            )
            ensure_can_link(
                user,
                provider=provider,
                profile_email=profile.email,
                existing_owner=existing_owner,
            )
            return link_provider(
                user,
                provider=provider,
                provider_user_id=profile.provider_user_id,
                now=utcnow(),
            )

        user = apply_link_change(self._accounts_port, user_id=user_id, change=_change)
        logger.info("link_provider: linked user_id=%s provider=%s", user.id, provider.value)
        return build_linked_providers_output(user)


class CompleteOAuthLinkUseCase:
    """Finish the link flow started by an authorize request with intent `link`."""

    def __init__(
        self,
        *,
        token_port: TokenPort,
        strategies: Mapping[AuthProvider, OAuthStrategyPort],
        link_provider_use_case: LinkProviderUseCase,
    ):
        self._token_port = token_port
        self._strategies = strategies
        self._link_provider_use_case = link_provider_use_case

    def execute(self, command: LinkProviderInput) -> LinkedProvidersOutput:
        provider = resolve_oauth_provider(command.provider)
        state = verify_oauth_state(
            self._token_port,
            token=command.state,
            provider=provider,
            intent=OAUTH_INTENT_LINK,
        )
        if state.user_id != command.user_id:
            raise InvalidOAuthStateError("OAuth state was issued for another user.")

        profile = fetch_oauth_profile(
            self._strategies,
            provider=provider,
            code=command.code,
            state=command.state,
        )
        return self._link_provider_use_case.execute(user_id=command.user_id, profile=profile)
