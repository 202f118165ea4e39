from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol, TypeVar

from authkit.domain.entities.pending_registration import PendingRegistration
from authkit.domain.entities.session import Session
from authkit.domain.entities.user import AuthProvider, User


TAccountsResult = TypeVar("TAccountsResult")


class AccountsPort(Protocol):
    def execute_in_transaction(self, fn: Callable[[AccountsPort], TAccountsResult]) -> TAccountsResult:
        ...

    def get_user_by_id(self, *, user_id: str) -> User | None:
        ...

    def get_user_by_email(self, *, email: str) -> User | None:
        ...

    def get_user_by_provider_id(self, *, provider: AuthProvider, provider_user_id: str) -> User | None:
        ...

    def create_user(self, *, user: User) -> User:
        """Raises DuplicateKeyError on email or provider id collisions."""
        ...

    def compare_and_set_links(
        self,
        *,
        user: User,
        expected_linked_providers: tuple[AuthProvider, ...],
    ) -> User | None:
        """Write the link columns of `user` only if the stored provider list still matches.

        The stored password hash is kept unless the email provider is no longer
        linked, and the verified flag can only be raised.
        """
        ...

    def update_user_profile(self, *, user: User) -> User:
        ...

    def update_user_password(self, *, user_id: str, password_hash: str, updated_at: datetime) -> None:
        ...

    def update_user_role(self, *, user_id: str, role: str, updated_at: datetime) -> bool:
        ...

    def update_user_name(self, *, user_id: str, name: str, updated_at: datetime) -> User | None:
        ...

    def soft_delete_user(self, *, user_id: str, deleted_at: datetime) -> None:
        ...

    def restore_user(self, *, user_id: str, updated_at: datetime) -> None:
        ...

    def list_users(
        self,
        *,
        search: str | None,
        role: str | None,
        is_deleted: bool | None,
        offset: int,
        limit: int,
    ) -> tuple[list[User], int]:
        ...

    def get_pending_registration(self, *, email: str, now: datetime) -> PendingRegistration | None:
        ...

    def save_pending_registration(self, *, registration: PendingRegistration) -> None:
        ...

    def increment_activation_attempts(self, *, email: str, now: datetime) -> PendingRegistration | None:
        """Atomically bump attempts on the live record and return it, or None."""
        ...

    def delete_pending_registration(self, *, email: str) -> None:
        ...

    def delete_expired_pending_registrations(self, *, now: datetime) -> int:
        ...

    def create_session(self, *, session: Session) -> Session:
        ...

    def get_session_by_id(self, *, session_id: str) -> Session | None:
        ...

    def get_session_by_token_hash(self, *, token_hash: str) -> Session | None:
        ...

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
    ) -> Session | None:
        ...

    def invalidate_session(self, *, session_id: str) -> bool:
        ...

    def invalidate_sessions_except(self, *, user_id: str, keep_token_hash: str | None) -> int:
        ...

    def list_active_sessions(self, *, user_id: str, now: datetime) -> list[Session]:
        ...
