from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Sequence

from authkit.domain.entities.user import AuthProvider, User
from authkit.domain.exceptions import (
    CannotUnlinkLastProviderError,
    EmailMismatchOnLinkError,
    InvalidPrimaryProviderError,
    ProviderAlreadyLinkedError,
    ProviderLinkedToOtherAccountError,
    ProviderNotLinkedError,
    UnsupportedProviderError,
)


def next_primary_provider(linked_providers: Sequence[AuthProvider]) -> AuthProvider | None:
    """Most recently linked provider that is not `email`."""
    for provider in reversed(linked_providers):
        if provider != AuthProvider.EMAIL:
            return provider
    return None


def ensure_can_link(
    user: User,
    *,
    provider: AuthProvider,
    profile_email: str | None,
    existing_owner: User | None,
) -> None:
    if provider == AuthProvider.EMAIL:
        raise UnsupportedProviderError("The email provider cannot be linked through OAuth.")
    if user.has_provider(provider):
        raise ProviderAlreadyLinkedError(f"Provider '{provider.value}' is already linked.")
    if existing_owner is not None and existing_owner.id != user.id:
        raise ProviderLinkedToOtherAccountError(
            f"This {provider.value} account is already linked to another user."
        )
    if not profile_email or profile_email.strip().lower() != user.email.lower():
        raise EmailMismatchOnLinkError(
            f"The {provider.value} account email does not match the account email."
        )


def link_provider(
    user: User,
    *,
    provider: AuthProvider,
    provider_user_id: str,
    now: datetime,
    mark_verified: bool = False,
) -> User:
    primary = user.primary_provider
    if primary is None and provider != AuthProvider.EMAIL:
        primary = provider
    linked = user.with_provider_id(provider, provider_user_id)
    return replace(
        linked,
        linked_providers=user.linked_providers + (provider,),
        primary_provider=primary,
        is_verified=user.is_verified or mark_verified,
        updated_at=now,
    )


def can_unlink_provider(user: User, provider: AuthProvider) -> bool:
    return user.has_provider(provider) and len(user.linked_providers) > 1


def unlink_provider(user: User, *, provider: AuthProvider, now: datetime) -> User:
    if not user.has_provider(provider):
        raise ProviderNotLinkedError(f"Provider '{provider.value}' is not linked.")
    if len(user.linked_providers) <= 1:
        raise CannotUnlinkLastProviderError(
            "Cannot unlink the last sign-in method. Link another provider first."
        )

    remaining = tuple(p for p in user.linked_providers if p != provider)
    primary = user.primary_provider
    if primary == provider:
        primary = next_primary_provider(remaining)

    if provider == AuthProvider.EMAIL:
        updated = replace(user, password_hash=None)
    else:
        updated = user.with_provider_id(provider, None)
    return replace(
        updated,
        linked_providers=remaining,
        primary_provider=primary,
        updated_at=now,
    )


def set_primary_provider(user: User, *, provider: AuthProvider, now: datetime) -> User:
    if not user.has_provider(provider):
        raise ProviderNotLinkedError(f"Provider '{provider.value}' is not linked.")
    if provider == AuthProvider.EMAIL:
        raise InvalidPrimaryProviderError("The email provider cannot be the primary provider.")
    return replace(user, primary_provider=provider, updated_at=now)
