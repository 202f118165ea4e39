from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable

from authkit.domain.entities.user import AuthProvider, User


SYNCABLE_FIELDS = frozenset({"name"})


def should_sync_from(user: User, provider: AuthProvider) -> bool:
    if provider == AuthProvider.EMAIL:
        return False
    return user.primary_provider is None or user.primary_provider == provider


def apply_profile_sync(
    user: User,
    *,
    provider: AuthProvider,
    profile: dict[str, str | None],
    fields: Iterable[str],
    now: datetime,
) -> User | None:
    """Return the synced user, or None when the provider may not sync or nothing changed."""
    if not should_sync_from(user, provider):
        return None

    changes: dict[str, str] = {}
    for field_name in fields:
        if field_name not in SYNCABLE_FIELDS:
            continue
        value = profile.get(field_name)
        if value and value != getattr(user, field_name):
            changes[field_name] = value

    if not changes:
        return None

    return replace(
        user,
        **changes,
        profile_synced_at=now,
        last_synced_provider=provider,
        updated_at=now,
    )
