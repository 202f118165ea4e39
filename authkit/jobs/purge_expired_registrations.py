from __future__ import annotations

import logging

from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.use_cases.purge_expired_registrations import PurgeExpiredRegistrationsUseCase


def purge_expired_registrations(accounts_port: AccountsPort) -> int:
    return PurgeExpiredRegistrationsUseCase(accounts_port=accounts_port).execute()


if __name__ == "__main__":
    from authkit.infrastructure.db.engine import get_engine
    from authkit.infrastructure.db.repositories.accounts_repository import SqlAccountsRepository
    from authkit.shared.config import get_settings

    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    if not settings.postgres_dsn:
        raise SystemExit("POSTGRES_DSN is required.")
    purge_expired_registrations(SqlAccountsRepository(get_engine(settings.postgres_dsn)))
