from __future__ import annotations

import logging

from authkit.application.dto.sessions import RevokeOtherSessionsInput, RevokeOtherSessionsOutput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.exceptions import SessionExpiredError

from .auth_common import utcnow


logger = logging.getLogger(__name__)


class RevokeOtherSessionsUseCase:
    def __init__(self, *, accounts_port: AccountsPort, token_port: TokenPort):
        self._accounts_port = accounts_port
        self._token_port = token_port

    def execute(self, command: RevokeOtherSessionsInput) -> RevokeOtherSessionsOutput:
        token = command.current_refresh_token.strip()
        if not token:
            raise SessionExpiredError("Current session is required.")

        current_hash = self._token_port.hash_refresh_token(refresh_token=token)
        current = self._accounts_port.get_session_by_token_hash(token_hash=current_hash)
        if current is None or current.user_id != command.user_id or not current.is_active(utcnow()):
            raise SessionExpiredError("Current session is not valid.")

        revoked = self._accounts_port.invalidate_sessions_except(
            user_id=command.user_id,
            keep_token_hash=current_hash,
        )
        logger.info("sessions: revoked others user_id=%s count=%s", command.user_id, revoked)
        return RevokeOtherSessionsOutput(revoked_count=revoked)
