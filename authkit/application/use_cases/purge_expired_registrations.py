from __future__ import annotations

import logging

from authkit.application.ports.accounts_port import AccountsPort

from .auth_common import utcnow


logger = logging.getLogger(__name__)


class PurgeExpiredRegistrationsUseCase:
    def __init__(self, *, accounts_port: AccountsPort):
        self._accounts_port = accounts_port

    def execute(self) -> int:
        deleted = self._accounts_port.delete_expired_pending_registrations(now=utcnow())
        if deleted:
            logger.info("registrations: purged expired count=%s", deleted)
        return deleted
