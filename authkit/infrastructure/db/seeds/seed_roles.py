from __future__ import annotations

from uuid import uuid4

from sqlalchemy import text

from authkit.domain.services.roles import DEFAULT_ROLES


def seed_roles(engine) -> None:
    with engine.begin() as conn:
        for role in DEFAULT_ROLES:
            conn.execute(
                text(
                    """
                    INSERT INTO public.roles (
                        id, name, slug, description, is_system_role, is_protected, permissions
                    )
                    VALUES (:id, :name, :slug, :description, true, :is_protected, :permissions)
                    ON CONFLICT (slug) DO UPDATE
                    SET name = EXCLUDED.name,
                        description = EXCLUDED.description,
                        is_system_role = true,
                        is_protected = EXCLUDED.is_protected,
                        permissions = EXCLUDED.permissions,
                        updated_at = now()
                    """
                ),
                {
                    "id": str(uuid4()),
                    "name": role.name,
                    "slug": role.slug,
                    "description": role.description,
                    "is_protected": role.is_protected,
                    "permissions": list(role.permissions),
                },
            )


if __name__ == "__main__":
    from authkit.infrastructure.db.engine import create_schema, get_engine
    from authkit.shared.config import get_settings

    settings = get_settings()
    if not settings.postgres_dsn:
        raise SystemExit("POSTGRES_DSN is required.")
    db_engine = get_engine(settings.postgres_dsn)
    create_schema(db_engine)
    seed_roles(db_engine)
