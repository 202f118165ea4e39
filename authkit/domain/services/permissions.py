from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable

from authkit.domain.entities.permission import ParsedPermission, PermissionGrant
from authkit.domain.exceptions import InvalidPermissionError


WILDCARD = "*"
PERMISSION_PATTERN = re.compile(r"^([a-z-]+:[a-z-]+(:[a-z-]+)?|\*)$")


def is_valid_permission(permission: str) -> bool:
    return bool(PERMISSION_PATTERN.match(permission))


def validate_permissions(permissions: Iterable[str]) -> frozenset[str]:
    normalized: set[str] = set()
    for permission in permissions:
        value = permission.strip()
        if not is_valid_permission(value):
            raise InvalidPermissionError(f"Invalid permission format: '{permission}'.")
        normalized.add(value)
    return frozenset(normalized)


def parse_permission(permission: str) -> ParsedPermission | None:
    """Split a permission into resource, action and optional scope.

    Informational only: matching never relaxes on scope or wildcards other than `*`.
    """
    if permission == WILDCARD or not is_valid_permission(permission):
        return None
    parts = permission.split(":")
    return ParsedPermission(
        resource=parts[0],
        action=parts[1],
        scope=parts[2] if len(parts) == 3 else None,
    )


def has_permission(effective: Iterable[str], permission: str) -> bool:
    permissions = effective if isinstance(effective, (set, frozenset)) else set(effective)
    if WILDCARD in permissions:
        return True
    return permission in permissions


def has_any_permission(effective: Iterable[str], permissions: Iterable[str]) -> bool:
    resolved = frozenset(effective)
    return any(has_permission(resolved, permission) for permission in permissions)


def has_all_permissions(effective: Iterable[str], permissions: Iterable[str]) -> bool:
    resolved = frozenset(effective)
    return all(has_permission(resolved, permission) for permission in permissions)


def filter_by_resource(permissions: Iterable[str], resource: str) -> list[str]:
    result: list[str] = []
    for permission in permissions:
        parsed = parse_permission(permission)
        if parsed is not None and parsed.resource == resource:
            result.append(permission)
    return sorted(result)


def merge_permissions(*groups: Iterable[str]) -> frozenset[str]:
    merged: set[str] = set()
    for group in groups:
        merged.update(group)
    return frozenset(merged)


def effective_grant_permissions(grants: Iterable[PermissionGrant], *, now: datetime) -> frozenset[str]:
    return frozenset(grant.permission for grant in grants if grant.is_effective(now))


def resolve_effective_permissions(
    *,
    role_permissions: Iterable[str],
    grants: Iterable[PermissionGrant],
    now: datetime,
) -> frozenset[str]:
    return merge_permissions(role_permissions, effective_grant_permissions(grants, now=now))
