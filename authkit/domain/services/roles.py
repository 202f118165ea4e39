from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class RoleDefinition:
    name: str
    slug: str
    description: str
    permissions: tuple[str, ...]
    is_protected: bool


USER_PERMISSIONS = ("profile:read:own", "profile:update:own")
SUPPORT_PERMISSIONS = USER_PERMISSIONS + ("users:read:all", "sessions:read:all")
MANAGER_PERMISSIONS = SUPPORT_PERMISSIONS + ("users:update:all", "roles:read:all")

DEFAULT_ROLES: tuple[RoleDefinition, ...] = (
    RoleDefinition(
        name="User",
        slug="user",
        description="Default role for every new account.",
        permissions=USER_PERMISSIONS,
        is_protected=True,
    ),
    RoleDefinition(
        name="Support",
        slug="support",
        description="Read access to users and sessions.",
        permissions=SUPPORT_PERMISSIONS,
        is_protected=False,
    ),
    RoleDefinition(
        name="Manager",
        slug="manager",
        description="Manages users and reads roles.",
        permissions=MANAGER_PERMISSIONS,
        is_protected=False,
    ),
    RoleDefinition(
        name="Admin",
        slug="admin",
        description="Full access.",
        permissions=("*",),
        is_protected=True,
    ),
)


def slugify_role_name(name: str) -> str:
    slug = name.strip().lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("-")
    if not slug:
        raise ValueError("role name must contain letters or digits.")
    return slug
