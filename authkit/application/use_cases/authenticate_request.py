from __future__ import annotations

from dataclasses import dataclass

from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.entities.session import Session
from authkit.domain.entities.user import User
from authkit.domain.exceptions import InvalidSessionError, SessionExpiredError, UserInactiveError

from .auth_common import utcnow


@dataclass(frozen=True)
class Principal:
    user: User
    session: Session


class AuthenticateRequestUseCase:
    """Resolve a bearer access token to its user and still-valid session."""

    def __init__(self, *, accounts_port: AccountsPort, token_port: TokenPort):
        self._accounts_port = accounts_port
        self._token_port = token_port

    def execute(self, *, access_token: str) -> Principal:
        try:
            payload = self._token_port.decode_access_token(token=access_token)
        except ValueError as exc:
            raise InvalidSessionError(str(exc)) from exc

        session = self._accounts_port.get_session_by_id(session_id=payload.session_id)
        if session is None or session.user_id != payload.user_id or not session.is_active(utcnow()):
            raise SessionExpiredError("Session expired. Sign in again.")

        user = self._accounts_port.get_user_by_id(user_id=payload.user_id)
        if user is None or user.is_deleted:
            raise UserInactiveError("User is inactive.")
        return Principal(user=user, session=session)
