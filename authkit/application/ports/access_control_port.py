from __future__ import annotations

from typing import Protocol

from authkit.domain.entities.permission import PermissionGrant
from authkit.domain.entities.role import Role


class AccessControlPort(Protocol):
    def get_role_by_id(self, *, role_id: str) -> Role | None:
        ...

    def get_role_by_slug(self, *, slug: str) -> Role | None:
        ...

    def list_roles(self, *, search: str | None, offset: int, limit: int) -> tuple[list[Role], int]:
        ...

    def create_role(self, *, role: Role) -> Role:
        """Raises DuplicateKeyError when the slug is taken."""
        ...

    def update_role(self, *, role: Role) -> Role:
        ...

    def delete_role(self, *, role_id: str) -> None:
        ...

    def count_users_with_role(self, *, slug: str) -> int:
        ...

    def list_grants(self, *, user_id: str) -> list[PermissionGrant]:
        ...

    def create_grant(self, *, grant: PermissionGrant) -> PermissionGrant:
        """Replace a lapsed grant for (user_id, permission) or raise DuplicateKeyError if one is still in force."""
        ...

    def delete_grant(self, *, user_id: str, permission: str) -> bool:
        ...
