from __future__ import annotations

from typing import Any, Mapping

from authkit.domain.entities.pending_registration import PendingRegistration
from authkit.domain.entities.permission import PermissionGrant, PermissionScope
from authkit.domain.entities.role import Role
from authkit.domain.entities.session import Session
from authkit.domain.entities.user import AuthProvider, User


def _as_str(value: Any) -> str:
    return str(value)


def _as_optional_str(value: Any) -> str | None:
    return str(value) if value is not None else None


def _as_provider(value: Any) -> AuthProvider | None:
    return AuthProvider(value) if value else None


def map_row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        id=_as_str(row["id"]),
        email=row["email"],
        name=row["name"],
        password_hash=row.get("password_hash"),
        role=row["role"],
        is_verified=bool(row["is_verified"]),
        is_deleted=bool(row["is_deleted"]),
        deleted_at=row.get("deleted_at"),
        linked_providers=tuple(AuthProvider(item) for item in (row["linked_providers"] or [])),
        primary_provider=_as_provider(row.get("primary_provider")),
        google_id=row.get("google_id"),
        facebook_id=row.get("facebook_id"),
        github_id=row.get("github_id"),
        profile_synced_at=row.get("profile_synced_at"),
        last_synced_provider=_as_provider(row.get("last_synced_provider")),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def map_user_to_params(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "password_hash": user.password_hash,
        "role": user.role,
        "is_verified": user.is_verified,
        "is_deleted": user.is_deleted,
        "deleted_at": user.deleted_at,
        "linked_providers": [provider.value for provider in user.linked_providers],
        "primary_provider": user.primary_provider.value if user.primary_provider else None,
        "google_id": user.google_id,
        "facebook_id": user.facebook_id,
        "github_id": user.github_id,
        "profile_synced_at": user.profile_synced_at,
        "last_synced_provider": user.last_synced_provider.value if user.last_synced_provider else None,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def map_row_to_pending_registration(row: Mapping[str, Any]) -> PendingRegistration:
    return PendingRegistration(
        email=row["email"],
        name=row["name"],
        password_hash=row["password_hash"],
        code_hash=row["code_hash"],
        attempts=int(row["attempts"]),
        expires_at=row["expires_at"],
        created_at=row["created_at"],
    )


def map_row_to_session(row: Mapping[str, Any]) -> Session:
    return Session(
        id=_as_str(row["id"]),
        user_id=_as_str(row["user_id"]),
        token_hash=row["token_hash"],
        user_agent=row.get("user_agent"),
        ip=row.get("ip"),
        device_name=row["device_name"],
        is_valid=bool(row["is_valid"]),
        last_used_at=row["last_used_at"],
        expires_at=row["expires_at"],
        created_at=row["created_at"],
    )


def map_row_to_role(row: Mapping[str, Any]) -> Role:
    return Role(
        id=_as_str(row["id"]),
        name=row["name"],
        slug=row["slug"],
        description=row.get("description"),
        is_system_role=bool(row["is_system_role"]),
        is_protected=bool(row["is_protected"]),
        permissions=frozenset(row["permissions"] or []),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def map_row_to_permission_grant(row: Mapping[str, Any]) -> PermissionGrant:
    scope = row.get("scope")
    return PermissionGrant(
        id=_as_str(row["id"]),
        user_id=_as_str(row["user_id"]),
        permission=row["permission"],
        granted=bool(row["granted"]),
        scope=PermissionScope(scope) if scope else None,
        expires_at=row.get("expires_at"),
        granted_by=_as_optional_str(row.get("granted_by")),
        created_at=row["created_at"],
    )
