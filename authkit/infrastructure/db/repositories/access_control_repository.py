from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from authkit.application.ports.access_control_port import AccessControlPort
from authkit.domain.entities.permission import PermissionGrant
from authkit.domain.entities.role import Role
from authkit.domain.exceptions import DuplicateKeyError
from authkit.infrastructure.db.mappers.identity_mapper import map_row_to_permission_grant, map_row_to_role

from .accounts_repository import is_uuid
from .integrity import as_duplicate_key


ROLE_COLUMNS = """
    id, name, slug, description, is_system_role, is_protected, permissions, created_at, updated_at
"""

GRANT_COLUMNS = """
    id, user_id, permission, granted, scope, expires_at, granted_by, created_at
"""

ROLE_CONSTRAINTS = {"uq_roles_slug": "slug"}
GRANT_CONSTRAINTS = {"uq_permission_grants_user_permission": "user_permission"}


def _role_params(role: Role) -> dict:
    return {
        "id": role.id,
        "name": role.name,
        "slug": role.slug,
        "description": role.description,
        "is_system_role": role.is_system_role,
        "is_protected": role.is_protected,
        "permissions": sorted(role.permissions),
        "created_at": role.created_at,
        "updated_at": role.updated_at,
    }


class SqlAccessControlRepository(AccessControlPort):
    def __init__(self, engine):
        self._engine = engine

    def get_role_by_id(self, *, role_id: str):
        if not is_uuid(role_id):
            return None
        sql = f"""
            SELECT {ROLE_COLUMNS}
            FROM public.roles
            WHERE id = CAST(:role_id AS uuid)
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"role_id": role_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_role(row)

    def get_role_by_slug(self, *, slug: str):
        sql = f"""
            SELECT {ROLE_COLUMNS}
            FROM public.roles
            WHERE slug = :slug
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"slug": slug}).mappings().first()
        if row is None:
            return None
        return map_row_to_role(row)

    def list_roles(self, *, search: str | None, offset: int, limit: int):
        where = ""
        params: dict = {"offset": offset, "limit": limit}
        if search:
            where = "WHERE name ILIKE :search OR slug ILIKE :search OR description ILIKE :search"
            params["search"] = f"%{search}%"

        list_sql = f"""
            SELECT {ROLE_COLUMNS}
            FROM public.roles
            {where}
            ORDER BY is_system_role DESC, name ASC
            OFFSET :offset
            LIMIT :limit
        """
        count_sql = f"SELECT count(*) FROM public.roles {where}"
        with self._engine.connect() as conn:
            rows = conn.execute(text(list_sql), params).mappings().all()
            total = conn.execute(text(count_sql), params).scalar_one()
        return [map_row_to_role(row) for row in rows], int(total)

    def create_role(self, *, role: Role):
        sql = f"""
            INSERT INTO public.roles (
                id, name, slug, description, is_system_role, is_protected, permissions, created_at, updated_at
            ) VALUES (
                :id, :name, :slug, :description, :is_system_role, :is_protected, :permissions, :created_at, :updated_at
            )
            RETURNING {ROLE_COLUMNS}
        """
        try:
            with self._engine.begin() as conn:
                row = conn.execute(text(sql), _role_params(role)).mappings().one()
        except IntegrityError as exc:
            duplicate = as_duplicate_key(exc, ROLE_CONSTRAINTS)
            if duplicate is None:
                raise
            raise duplicate from exc
        return map_row_to_role(row)

    def update_role(self, *, role: Role):
        sql = f"""
            UPDATE public.roles
            SET name = :name,
                slug = :slug,
                description = :description,
                permissions = :permissions,
                updated_at = :updated_at
            WHERE id = CAST(:id AS uuid)
            RETURNING {ROLE_COLUMNS}
        """
        try:
            with self._engine.begin() as conn:
                row = conn.execute(text(sql), _role_params(role)).mappings().one()
        except IntegrityError as exc:
            duplicate = as_duplicate_key(exc, ROLE_CONSTRAINTS)
            if duplicate is None:
                raise
            raise duplicate from exc
        return map_row_to_role(row)

    def delete_role(self, *, role_id: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(text("DELETE FROM public.roles WHERE id = CAST(:role_id AS uuid)"), {"role_id": role_id})

    def count_users_with_role(self, *, slug: str) -> int:
        sql = """
            SELECT count(*)
            FROM public.users
            WHERE role = :slug
              AND is_deleted = false
        """
        with self._engine.connect() as conn:
            return int(conn.execute(text(sql), {"slug": slug}).scalar_one())

    def list_grants(self, *, user_id: str):
        if not is_uuid(user_id):
            return []
        sql = f"""
            SELECT {GRANT_COLUMNS}
            FROM public.permission_grants
            WHERE user_id = CAST(:user_id AS uuid)
            ORDER BY permission ASC
        """
        with self._engine.connect() as conn:
            rows = conn.execute(text(sql), {"user_id": user_id}).mappings().all()
        return [map_row_to_permission_grant(row) for row in rows]

    def create_grant(self, *, grant: PermissionGrant):
        sql = f"""
            INSERT INTO public.permission_grants (
                id, user_id, permission, granted, scope, expires_at, granted_by, created_at
            ) VALUES (
                :id, :user_id, :permission, :granted, :scope, :expires_at, :granted_by, :created_at
            )
            ON CONFLICT ON CONSTRAINT uq_permission_grants_user_permission DO UPDATE
            SET granted = EXCLUDED.granted,
                scope = EXCLUDED.scope,
                expires_at = EXCLUDED.expires_at,
                granted_by = EXCLUDED.granted_by,
                created_at = EXCLUDED.created_at
            WHERE permission_grants.granted = false
               OR permission_grants.expires_at <= EXCLUDED.created_at
            RETURNING {GRANT_COLUMNS}
        """
        params = {
            "id": grant.id,
            "user_id": grant.user_id,
            "permission": grant.permission,
            "granted": grant.granted,
            "scope": grant.scope.value if grant.scope else None,
            "expires_at": grant.expires_at,
            "granted_by": grant.granted_by,
            "created_at": grant.created_at,
        }
        try:
            with self._engine.begin() as conn:
                row = conn.execute(text(sql), params).mappings().first()
        except IntegrityError as exc:
            duplicate = as_duplicate_key(exc, GRANT_CONSTRAINTS)
            if duplicate is None:
                raise
            raise duplicate from exc
        if row is None:
            raise DuplicateKeyError("user_permission")
        return map_row_to_permission_grant(row)

    def delete_grant(self, *, user_id: str, permission: str) -> bool:
        if not is_uuid(user_id):
            return False
        sql = """
            DELETE FROM public.permission_grants
            WHERE user_id = CAST(:user_id AS uuid)
              AND permission = :permission
        """
        with self._engine.begin() as conn:
            result = conn.execute(text(sql), {"user_id": user_id, "permission": permission})
        return result.rowcount > 0
