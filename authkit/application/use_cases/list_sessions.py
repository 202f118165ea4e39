from __future__ import annotations

from authkit.application.dto.sessions import ListSessionsInput, SessionOutput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.entities.session import Session

from .auth_common import utcnow


def build_session_output(session: Session, *, current_hash: str | None) -> SessionOutput:
    return SessionOutput(
        id=session.id,
        device_name=session.device_name,
        user_agent=session.user_agent,
        ip=session.ip,
        last_used_at=session.last_used_at,
        expires_at=session.expires_at,
        created_at=session.created_at,
        is_current=current_hash is not None and session.token_hash == current_hash,
    )


class ListSessionsUseCase:
    def __init__(self, *, accounts_port: AccountsPort, token_port: TokenPort):
        self._accounts_port = accounts_port
        self._token_port = token_port

    def execute(self, command: ListSessionsInput) -> list[SessionOutput]:
        current_hash = None
        if command.current_refresh_token:
            current_hash = self._token_port.hash_refresh_token(refresh_token=command.current_refresh_token)

        sessions = self._accounts_port.list_active_sessions(user_id=command.user_id, now=utcnow())
        sessions = sorted(sessions, key=lambda item: item.last_used_at, reverse=True)
        return [build_session_output(session, current_hash=current_hash) for session in sessions]
