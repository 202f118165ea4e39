from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, TypeVar
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from authkit.application.ports.accounts_port import AccountsPort
from authkit.domain.entities.pending_registration import PendingRegistration
from authkit.domain.entities.session import Session
from authkit.domain.entities.user import PROVIDER_ID_FIELDS, AuthProvider, User
from authkit.infrastructure.db.mappers.identity_mapper import (
    map_row_to_pending_registration,
    map_row_to_session,
    map_row_to_user,
    map_user_to_params,
)

from .integrity import as_duplicate_key


T = TypeVar("T")

USER_COLUMNS = """
    id, email, name, password_hash, role, is_verified, is_deleted, deleted_at,
    linked_providers, primary_provider, google_id, facebook_id, github_id,
    profile_synced_at, last_synced_provider, created_at, updated_at
"""

PENDING_COLUMNS = "email, name, password_hash, code_hash, attempts, expires_at, created_at"

SESSION_COLUMNS = """
    id, user_id, token_hash, user_agent, ip, device_name, is_valid,
    last_used_at, expires_at, created_at
"""

USER_CONSTRAINTS = {
    "uq_users_email": "email",
    "users_email_key": "email",
    "uq_users_google_id": "google_id",
    "uq_users_facebook_id": "facebook_id",
    "uq_users_github_id": "github_id",
}


def is_uuid(value: str) -> bool:
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


class SqlAccountsRepository(AccountsPort):
    def __init__(self, engine, *, connection: Connection | None = None):
        self._engine = engine
        self._connection = connection

    @contextmanager
    def _read(self) -> Iterator[Connection]:
        if self._connection is not None:
            yield self._connection
            return
        with self._engine.connect() as conn:
            yield conn

    @contextmanager
    def _write(self) -> Iterator[Connection]:
        if self._connection is not None:
            yield self._connection
            return
        with self._engine.begin() as conn:
            yield conn

    def execute_in_transaction(self, fn: Callable[[AccountsPort], T]) -> T:
        if self._connection is not None:
            return fn(self)
        with self._engine.begin() as conn:
            return fn(SqlAccountsRepository(self._engine, connection=conn))

    def _fetch_user(self, where: str, params: dict) -> User | None:
        sql = f"""
            SELECT {USER_COLUMNS}
            FROM public.users
            WHERE {where}
            LIMIT 1
        """
        with self._read() as conn:
            row = conn.execute(text(sql), params).mappings().first()
        if row is None:
            return None
        return map_row_to_user(row)

    def get_user_by_id(self, *, user_id: str):
        if not is_uuid(user_id):
            return None
        return self._fetch_user("id = CAST(:user_id AS uuid)", {"user_id": user_id})

    def get_user_by_email(self, *, email: str):
        return self._fetch_user("lower(email) = :email", {"email": email.lower()})

    def get_user_by_provider_id(self, *, provider: AuthProvider, provider_user_id: str):
        column = PROVIDER_ID_FIELDS.get(provider)
        if column is None:
            return None
        return self._fetch_user(f"{column} = :provider_user_id", {"provider_user_id": provider_user_id})

    def create_user(self, *, user: User):
        sql = f"""
            INSERT INTO public.users (
                id, email, name, password_hash, role, is_verified, is_deleted, deleted_at,
                linked_providers, primary_provider, google_id, facebook_id, github_id,
                profile_synced_at, last_synced_provider, created_at, updated_at
            ) VALUES (
                :id, :email, :name, :password_hash, :role, :is_verified, :is_deleted, :deleted_at,
                :linked_providers, :primary_provider, :google_id, :facebook_id, :github_id,
                :profile_synced_at, :last_synced_provider, :created_at, :updated_at
            )
            RETURNING {USER_COLUMNS}
        """
        try:
            with self._write() as conn:
                row = conn.execute(text(sql), map_user_to_params(user)).mappings().one()
        except IntegrityError as exc:
            duplicate = as_duplicate_key(exc, USER_CONSTRAINTS)
            if duplicate is None:
                raise
            raise duplicate from exc
        return map_row_to_user(row)

    def compare_and_set_links(
        self,
        *,
        user: User,
        expected_linked_providers: tuple[AuthProvider, ...],
    ):
        sql = f"""
            UPDATE public.users
            SET linked_providers = :linked_providers,
                primary_provider = :primary_provider,
                google_id = :google_id,
                facebook_id = :facebook_id,
                github_id = :github_id,
                password_hash = CASE
                    WHEN 'email' = ANY(CAST(:linked_providers AS text[])) THEN password_hash
                    ELSE NULL
                END,
                is_verified = is_verified OR :is_verified,
                updated_at = :updated_at
            WHERE id = CAST(:id AS uuid)
              AND linked_providers = CAST(:expected_linked_providers AS text[])
              AND is_deleted = false
            RETURNING {USER_COLUMNS}
        """
        params = map_user_to_params(user)
        params["expected_linked_providers"] = [provider.value for provider in expected_linked_providers]
        try:
            with self._write() as conn:
                row = conn.execute(text(sql), params).mappings().first()
        except IntegrityError as exc:
            duplicate = as_duplicate_key(exc, USER_CONSTRAINTS)
            if duplicate is None:
                raise
            raise duplicate from exc
        if row is None:
            return None
        return map_row_to_user(row)

    def update_user_profile(self, *, user: User):
        sql = f"""
            UPDATE public.users
            SET name = :name,
                profile_synced_at = :profile_synced_at,
                last_synced_provider = :last_synced_provider,
                updated_at = :updated_at
            WHERE id = CAST(:id AS uuid)
            RETURNING {USER_COLUMNS}
        """
        params = map_user_to_params(user)
        with self._write() as conn:
            row = conn.execute(text(sql), params).mappings().one()
        return map_row_to_user(row)

    def update_user_password(self, *, user_id: str, password_hash: str, updated_at: datetime) -> None:
        sql = """
            UPDATE public.users
            SET password_hash = :password_hash,
                updated_at = :updated_at
            WHERE id = CAST(:user_id AS uuid)
        """
        with self._write() as conn:
            conn.execute(
                text(sql),
                {
                    "user_id": user_id,
                    "password_hash": password_hash,
                    "updated_at": updated_at,
                },
            )

    def update_user_role(self, *, user_id: str, role: str, updated_at: datetime) -> bool:
        if not is_uuid(user_id):
            return False
        sql = """
            UPDATE public.users
            SET role = :role,
                updated_at = :updated_at
            WHERE id = CAST(:user_id AS uuid)
              AND is_deleted = false
        """
        with self._write() as conn:
            result = conn.execute(text(sql), {"user_id": user_id, "role": role, "updated_at": updated_at})
        return result.rowcount > 0

    def update_user_name(self, *, user_id: str, name: str, updated_at: datetime):
        if not is_uuid(user_id):
            return None
        sql = f"""
            UPDATE public.users
            SET name = :name,
                updated_at = :updated_at
            WHERE id = CAST(:user_id AS uuid)
              AND is_deleted = false
            RETURNING {USER_COLUMNS}
        """
        with self._write() as conn:
            row = conn.execute(
                text(sql),
                {"user_id": user_id, "name": name, "updated_at": updated_at},
            ).mappings().first()
        if row is None:
            return None
        return map_row_to_user(row)

    def list_users(
        self,
        *,
        search: str | None,
        role: str | None,
        is_deleted: bool | None,
        offset: int,
        limit: int,
    ):
        filters: list[str] = []
        params: dict = {"offset": offset, "limit": limit}
        if search:
            filters.append("(name ILIKE :search OR email ILIKE :search)")
            params["search"] = f"%{search}%"
        if role:
            filters.append("role = :role")
            params["role"] = role
        if is_deleted is not None:
            filters.append("is_deleted = :is_deleted")
            params["is_deleted"] = is_deleted
        where = f"WHERE {' AND '.join(filters)}" if filters else ""

        list_sql = f"""
            SELECT {USER_COLUMNS}
            FROM public.users
            {where}
            ORDER BY created_at DESC, email ASC
            OFFSET :offset
            LIMIT :limit
        """
        count_sql = f"SELECT count(*) FROM public.users {where}"
        with self._read() as conn:
            rows = conn.execute(text(list_sql), params).mappings().all()
            total = conn.execute(text(count_sql), params).scalar_one()
        return [map_row_to_user(row) for row in rows], int(total)

    def restore_user(self, *, user_id: str, updated_at: datetime) -> None:
        sql = """
            UPDATE public.users
            SET is_deleted = false,
                deleted_at = NULL,
                updated_at = :updated_at
            WHERE id = CAST(:user_id AS uuid)
        """
        with self._write() as conn:
            conn.execute(text(sql), {"user_id": user_id, "updated_at": updated_at})

    def soft_delete_user(self, *, user_id: str, deleted_at: datetime) -> None:
        sql = """
            UPDATE public.users
            SET is_deleted = true,
                deleted_at = :deleted_at,
                updated_at = :deleted_at
            WHERE id = CAST(:user_id AS uuid)
        """
        with self._write() as conn:
            conn.execute(text(sql), {"user_id": user_id, "deleted_at": deleted_at})

    def get_pending_registration(self, *, email: str, now: datetime):
        sql = f"""
            SELECT {PENDING_COLUMNS}
            FROM public.pending_registrations
            WHERE email = :email
              AND expires_at > :now
            LIMIT 1
        """
        with self._read() as conn:
            row = conn.execute(text(sql), {"email": email, "now": now}).mappings().first()
        if row is None:
            return None
        return map_row_to_pending_registration(row)

    def save_pending_registration(self, *, registration: PendingRegistration) -> None:
        sql = """
            INSERT INTO public.pending_registrations (
                email, name, password_hash, code_hash, attempts, expires_at, created_at
            ) VALUES (
                :email, :name, :password_hash, :code_hash, :attempts, :expires_at, :created_at
            )
            ON CONFLICT (email) DO UPDATE
            SET name = EXCLUDED.name,
                password_hash = EXCLUDED.password_hash,
                code_hash = EXCLUDED.code_hash,
                attempts = EXCLUDED.attempts,
                expires_at = EXCLUDED.expires_at,
                created_at = EXCLUDED.created_at
        """
        with self._write() as conn:
            conn.execute(
                text(sql),
                {
                    "email": registration.email,
                    "name": registration.name,
                    "password_hash": registration.password_hash,
                    "code_hash": registration.code_hash,
                    "attempts": registration.attempts,
                    "expires_at": registration.expires_at,
                    "created_at": registration.created_at,
                },
            )

    def increment_activation_attempts(self, *, email: str, now: datetime):
        sql = f"""
            UPDATE public.pending_registrations
            SET attempts = attempts + 1
            WHERE email = :email
              AND expires_at > :now
            RETURNING {PENDING_COLUMNS}
        """
        with self._write() as conn:
            row = conn.execute(text(sql), {"email": email, "now": now}).mappings().first()
        if row is None:
            return None
        return map_row_to_pending_registration(row)

    def delete_pending_registration(self, *, email: str) -> None:
        with self._write() as conn:
            conn.execute(
                text("DELETE FROM public.pending_registrations WHERE email = :email"),
                {"email": email},
            )

    def delete_expired_pending_registrations(self, *, now: datetime) -> int:
        with self._write() as conn:
            result = conn.execute(
                text("DELETE FROM public.pending_registrations WHERE expires_at <= :now"),
                {"now": now},
            )
        return result.rowcount

    def create_session(self, *, session: Session):
        sql = f"""
            INSERT INTO public.sessions (
                id, user_id, token_hash, user_agent, ip, device_name, is_valid,
                last_used_at, expires_at, created_at
            ) VALUES (
                :id, :user_id, :token_hash, :user_agent, :ip, :device_name, :is_valid,
                :last_used_at, :expires_at, :created_at
            )
            RETURNING {SESSION_COLUMNS}
        """
        with self._write() as conn:
            row = conn.execute(
                text(sql),
                {
                    "id": session.id,
                    "user_id": session.user_id,
                    "token_hash": session.token_hash,
                    "user_agent": session.user_agent,
                    "ip": session.ip,
                    "device_name": session.device_name,
                    "is_valid": session.is_valid,
                    "last_used_at": session.last_used_at,
                    "expires_at": session.expires_at,
                    "created_at": session.created_at,
                },
            ).mappings().one()
        return map_row_to_session(row)

    def _fetch_session(self, where: str, params: dict) -> Session | None:
        sql = f"""
            SELECT {SESSION_COLUMNS}
            FROM public.sessions
            WHERE {where}
            LIMIT 1
        """
        with self._read() as conn:
            row = conn.execute(text(sql), params).mappings().first()
        if row is None:
            return None
        return map_row_to_session(row)

    def get_session_by_id(self, *, session_id: str):
        if not is_uuid(session_id):
            return None
        return self._fetch_session("id = CAST(:session_id AS uuid)", {"session_id": session_id})

    def get_session_by_token_hash(self, *, token_hash: str):
        return self._fetch_session("token_hash = :token_hash", {"token_hash": token_hash})

    def rotate_session_token(
        self,
        *,
        session_id: str,
        current_token_hash: str,
        new_token_hash: str,
        used_at: datetime,
        expires_at: datetime,
        user_agent: str | None,
        ip: str | None,
    ):
        sql = f"""
            UPDATE public.sessions
            SET token_hash = :new_token_hash,
                last_used_at = :used_at,
                expires_at = :expires_at,
                user_agent = :user_agent,
                ip = :ip
            WHERE id = CAST(:session_id AS uuid)
              AND token_hash = :current_token_hash
              AND is_valid = true
              AND expires_at > :used_at
            RETURNING {SESSION_COLUMNS}
        """
        with self._write() as conn:
            row = conn.execute(
                text(sql),
                {
                    "session_id": session_id,
                    "current_token_hash": current_token_hash,
                    "new_token_hash": new_token_hash,
                    "used_at": used_at,
                    "expires_at": expires_at,
                    "user_agent": user_agent,
                    "ip": ip,
                },
            ).mappings().first()
        if row is None:
            return None
        return map_row_to_session(row)

    def invalidate_session(self, *, session_id: str) -> bool:
        sql = """
            UPDATE public.sessions
            SET is_valid = false
            WHERE id = CAST(:session_id AS uuid)
              AND is_valid = true
        """
        with self._write() as conn:
            result = conn.execute(text(sql), {"session_id": session_id})
        return result.rowcount > 0

    def invalidate_sessions_except(self, *, user_id: str, keep_token_hash: str | None) -> int:
        sql = """
            UPDATE public.sessions
            SET is_valid = false
            WHERE user_id = CAST(:user_id AS uuid)
              AND is_valid = true
        """
        params = {"user_id": user_id}
        if keep_token_hash is not None:
            sql += "  AND token_hash <> :keep_token_hash"
            params["keep_token_hash"] = keep_token_hash
        with self._write() as conn:
            result = conn.execute(text(sql), params)
        return result.rowcount

    def list_active_sessions(self, *, user_id: str, now: datetime):
        sql = f"""
            SELECT {SESSION_COLUMNS}
            FROM public.sessions
            WHERE user_id = CAST(:user_id AS uuid)
              AND is_valid = true
              AND expires_at > :now
            ORDER BY last_used_at DESC
        """
        with self._read() as conn:
            rows = conn.execute(text(sql), {"user_id": user_id, "now": now}).mappings().all()
        return [map_row_to_session(row) for row in rows]
