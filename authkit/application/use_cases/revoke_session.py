from __future__ import annotations

import logging

from authkit.application.dto.sessions import RevokeSessionInput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.exceptions import CannotRevokeCurrentSessionError, SessionNotFoundError


logger = logging.getLogger(__name__)


class RevokeSessionUseCase:
    def __init__(self, *, accounts_port: AccountsPort, token_port: TokenPort):
        self._accounts_port = accounts_port
        self._token_port = token_port

    def execute(self, command: RevokeSessionInput) -> None:
        session = self._accounts_port.get_session_by_id(session_id=command.session_id)
        if session is None or session.user_id != command.user_id or not session.is_valid:
            raise SessionNotFoundError("Session not found.")

        if command.current_refresh_token:
            current_hash = self._token_port.hash_refresh_token(refresh_token=command.current_refresh_token)
            if session.token_hash == current_hash:
                raise CannotRevokeCurrentSessionError("Use logout to end the current session.")

        self._accounts_port.invalidate_session(session_id=session.id)
        logger.info("sessions: revoked user_id=%s session_id=%s", command.user_id, session.id)
