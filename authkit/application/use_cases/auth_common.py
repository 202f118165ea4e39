from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Mapping
from uuid import uuid4

from authkit.application.dto.auth import AuthTokensOutput, AuthUserOutput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.oauth_port import OAuthStrategyPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.entities.session import Session
from authkit.domain.entities.user import OAUTH_PROVIDERS, AuthProvider, User, parse_provider
from authkit.domain.exceptions import (
    ConcurrentUpdateError,
    DuplicateKeyError,
    EmailAlreadyRegisteredError,
    ProviderLinkedToOtherAccountError,
    UnsupportedProviderError,
    UserNotFoundError,
)
from authkit.domain.services.device_name import describe_device


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def build_auth_user_output(user: User) -> AuthUserOutput:
    return AuthUserOutput(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        is_verified=user.is_verified,
        linked_providers=[provider.value for provider in user.linked_providers],
        primary_provider=user.primary_provider.value if user.primary_provider else None,
    )


def resolve_oauth_provider(value: str) -> AuthProvider:
    provider = parse_provider(value)
    if provider is None or provider not in OAUTH_PROVIDERS:
        raise UnsupportedProviderError(f"Unsupported provider '{value}'.")
    return provider


def resolve_strategy(
    strategies: Mapping[AuthProvider, OAuthStrategyPort],
    provider: AuthProvider,
) -> OAuthStrategyPort:
    strategy = strategies.get(provider)
    if strategy is None:
        raise UnsupportedProviderError(f"Provider '{provider.value}' is not enabled.")
    return strategy


def translate_duplicate_key(exc: DuplicateKeyError) -> Exception:
    if exc.key == "email":
        return EmailAlreadyRegisteredError("Email already in use.")
    if exc.key in ("google_id", "facebook_id", "github_id"):
        return ProviderLinkedToOtherAccountError("This provider account is already linked to another user.")
    return exc


def issue_tokens(
    *,
    user: User,
    accounts_port: AccountsPort,
    token_port: TokenPort,
    user_agent: str | None,
    ip: str | None,
) -> AuthTokensOutput:
    now = utcnow()
    refresh_token = token_port.generate_refresh_token()
    refresh_expires_at = token_port.refresh_token_expires_at(now=now)
    session = accounts_port.create_session(
        session=Session(
            id=str(uuid4()),
            user_id=user.id,
            token_hash=token_port.hash_refresh_token(refresh_token=refresh_token),
            user_agent=user_agent,
            ip=ip,
            device_name=describe_device(user_agent),
            is_valid=True,
            last_used_at=now,
            expires_at=refresh_expires_at,
            created_at=now,
        )
    )
    access_token, access_expires_at = token_port.create_access_token(
        user_id=user.id,
        session_id=session.id,
        now=now,
    )
    logger.info("auth: session issued user_id=%s session_id=%s", user.id, session.id)
    return AuthTokensOutput(
        user=build_auth_user_output(user),
        session_id=session.id,
        access_token=access_token,
        refresh_token=refresh_token,
        access_expires_at=access_expires_at,
        refresh_expires_at=refresh_expires_at,
    )


def apply_link_change(
    accounts_port: AccountsPort,
    *,
    user_id: str,
    change: Callable[[User], User],
) -> User:
    """Apply `change` to the user's linked providers with a compare-and-set write.

    When another request changed the provider list first, the change is
    re-validated against the fresh row so the caller sees the precise error.
    """
    user = accounts_port.get_user_by_id(user_id=user_id)
    if user is None or user.is_deleted:
        raise UserNotFoundError("User not found.")

    updated = change(user)
    try:
        stored = accounts_port.compare_and_set_links(
            user=updated,
            expected_linked_providers=user.linked_providers,
        )
    except DuplicateKeyError as exc:
        raise translate_duplicate_key(exc) from exc
    if stored is not None:
        return stored

    fresh = accounts_port.get_user_by_id(user_id=user_id)
    if fresh is None or fresh.is_deleted:
        raise UserNotFoundError("User not found.")
    change(fresh)
    logger.warning("auth: linked providers changed concurrently user_id=%s", user_id)
    raise ConcurrentUpdateError("The account changed while updating providers. Retry the request.")
