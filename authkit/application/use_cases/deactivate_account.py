from __future__ import annotations

import logging

from authkit.application.dto.account import DeactivateAccountInput, DeactivateAccountOutput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.domain.exceptions import UserNotFoundError

from .auth_common import utcnow


logger = logging.getLogger(__name__)


class DeactivateAccountUseCase:
    def __init__(self, *, accounts_port: AccountsPort):
        self._accounts_port = accounts_port

    def execute(self, command: DeactivateAccountInput) -> DeactivateAccountOutput:
        def _tx(accounts_port: AccountsPort) -> int:
            user = accounts_port.get_user_by_id(user_id=command.user_id)
            if user is None or user.is_deleted:
                raise UserNotFoundError("User not found.")
            accounts_port.soft_delete_user(user_id=user.id, deleted_at=utcnow())
            return accounts_port.invalidate_sessions_except(user_id=user.id, keep_token_hash=None)

        revoked = self._accounts_port.execute_in_transaction(_tx)
        logger.info("account: deactivated user_id=%s revoked_sessions=%s", command.user_id, revoked)
        return DeactivateAccountOutput(revoked_sessions=revoked)
