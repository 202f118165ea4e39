from __future__ import annotations

import logging

from authkit.application.dto.auth import LogoutInput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.token_port import TokenPort


logger = logging.getLogger(__name__)


class LogoutSessionUseCase:
    def __init__(self, *, accounts_port: AccountsPort, token_port: TokenPort):
        self._accounts_port = accounts_port
        self._token_port = token_port

    def execute(self, command: LogoutInput) -> bool:
        token = command.refresh_token.strip()
        if not token:
            return False

        token_hash = self._token_port.hash_refresh_token(refresh_token=token)
        session = self._accounts_port.get_session_by_token_hash(token_hash=token_hash)
        if session is None or not session.is_valid:
            return False

        self._accounts_port.invalidate_session(session_id=session.id)
        logger.info("logout_session: session invalidated session_id=%s", session.id)
        return True
