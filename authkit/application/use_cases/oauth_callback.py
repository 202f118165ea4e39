from __future__ import annotations

import logging
from typing import Mapping, Sequence
from uuid import uuid4

from authkit.application.dto.auth import AuthTokensOutput
from authkit.application.dto.oauth import OAUTH_INTENT_LOGIN, OAuthCallbackInput, OAuthProfile
from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.oauth_port import OAuthStrategyPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.entities.user import AuthProvider, User
from authkit.domain.exceptions import (
    AccountLinkRequiredError,
    DuplicateKeyError,
    OAuthProviderError,
    ProviderAlreadyLinkedError,
    UserInactiveError,
)
from authkit.domain.services.profile_sync import apply_profile_sync
from authkit.domain.services.provider_linking import link_provider

from .auth_common import (
    apply_link_change,
    issue_tokens,
    normalize_email,
    resolve_oauth_provider,
    translate_duplicate_key,
    utcnow,
)
from .oauth_common import fetch_oauth_profile, verify_oauth_state


logger = logging.getLogger(__name__)


class OAuthCallbackUseCase:
    """Sign in with an OAuth provider, creating or auto-linking the account as needed.

    Resolution order: the provider account id, then the profile email, then a new user.
    A matching email is linked implicitly only when the provider asserts the email is
    verified and `auto_link_verified_email` is enabled; otherwise the caller must sign in
    and link the provider explicitly.
    """

    def __init__(
        self,
        *,
        accounts_port: AccountsPort,
        token_port: TokenPort,
        strategies: Mapping[AuthProvider, OAuthStrategyPort],
        default_role: str,
        auto_link_verified_email: bool = True,
        profile_sync_fields: Sequence[str] = ("name",),
    ):
        self._accounts_port = accounts_port
        self._token_port = token_port
        self._strategies = strategies
        self._default_role = default_role
        self._auto_link_verified_email = auto_link_verified_email
        self._profile_sync_fields = tuple(profile_sync_fields)

    def execute(self, command: OAuthCallbackInput) -> AuthTokensOutput:
        provider = resolve_oauth_provider(command.provider)
        verify_oauth_state(
            self._token_port,
            token=command.state,
            provider=provider,
            intent=OAUTH_INTENT_LOGIN,
        )
        profile = fetch_oauth_profile(
            self._strategies,
            provider=provider,
            code=command.code,
            state=command.state,
        )

        user = self._find_or_create_user(profile)
        user = self._sync_profile(user, profile)

        return issue_tokens(
            user=user,
            accounts_port=self._accounts_port,
            token_port=self._token_port,
            user_agent=command.user_agent,
            ip=command.ip,
        )

    def _find_or_create_user(self, profile: OAuthProfile) -> User:
        provider = profile.provider
        user = self._accounts_port.get_user_by_provider_id(
            provider=provider,
            provider_user_id=profile.provider_user_id,
        )
        if user is not None:
            if user.is_deleted:
                raise UserInactiveError("User is inactive.")
            return user

        if not profile.email:
            raise OAuthProviderError(f"{provider.value} did not return an email address.")
        email = normalize_email(profile.email)

        existing = self._accounts_port.get_user_by_email(email=email)
        if existing is not None:
            return self._auto_link(existing, profile)

        now = utcnow()
        name = profile.name.strip() if profile.name and profile.name.strip() else email.split("@")[0]
        new_user = User(
            id=str(uuid4()),
            email=email,
            name=name,
            password_hash=None,
            role=self._default_role,
            is_verified=True,
            is_deleted=False,
            deleted_at=None,
            linked_providers=(provider,),
            primary_provider=provider,
            google_id=None,
            facebook_id=None,
            github_id=None,
            profile_synced_at=None,
            last_synced_provider=None,
            created_at=now,
            updated_at=now,
        ).with_provider_id(provider, profile.provider_user_id)
        try:
            created = self._accounts_port.create_user(user=new_user)
        except DuplicateKeyError as exc:
            raise translate_duplicate_key(exc) from exc
        logger.info("oauth_callback: user created user_id=%s provider=%s", created.id, provider.value)
        return created

    def _auto_link(self, existing: User, profile: OAuthProfile) -> User:
        provider = profile.provider
        if existing.is_deleted:
            raise UserInactiveError("User is inactive.")
        if existing.has_provider(provider):
            raise ProviderAlreadyLinkedError(
                f"This account already has a different {provider.value} account linked."
            )
        if not (self._auto_link_verified_email and profile.email_verified):
            raise AccountLinkRequiredError(
                f"An account with this email already exists. Sign in and link {provider.value} from your account."
            )

        def _change(user: User) -> User:
            if user.has_provider(provider):
                raise ProviderAlreadyLinkedError(f"Provider '{provider.value}' is already linked.")
            return link_provider(
                user,
                provider=provider,
                provider_user_id=profile.provider_user_id,
                now=utcnow(),
                mark_verified=True,
            )

        linked = apply_link_change(self._accounts_port, user_id=existing.id, change=_change)
        logger.info("oauth_callback: provider auto-linked user_id=%s provider=%s", linked.id, provider.value)
        return linked

    def _sync_profile(self, user: User, profile: OAuthProfile) -> User:
        synced = apply_profile_sync(
            user,
            provider=profile.provider,
            profile={"name": profile.name},
            fields=self._profile_sync_fields,
            now=utcnow(),
        )
        if synced is None:
            return user
        return self._accounts_port.update_user_profile(user=synced)
