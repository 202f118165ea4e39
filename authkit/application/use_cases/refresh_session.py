from __future__ import annotations

import logging

from authkit.application.dto.auth import AuthTokensOutput, RefreshSessionInput
from authkit.application.ports.accounts_port import AccountsPort
from authkit.application.ports.token_port import TokenPort
from authkit.domain.exceptions import InvalidSessionError, SessionExpiredError, UserInactiveError

from .auth_common import build_auth_user_output, utcnow


logger = logging.getLogger(__name__)


class RefreshSessionUseCase:
    """Rotate the refresh token of a live session.

    The stored digest is replaced in a single conditional update, so a token
    that was already rotated (or used concurrently) cannot be redeemed twice.
    """

    def __init__(self, *, accounts_port: AccountsPort, token_port: TokenPort):
        self._accounts_port = accounts_port
        self._token_port = token_port

    def execute(self, command: RefreshSessionInput) -> AuthTokensOutput:
        token = command.refresh_token.strip()
        if not token:
            raise InvalidSessionError("Missing refresh token.")

        now = utcnow()
        current_hash = self._token_port.hash_refresh_token(refresh_token=token)
        session = self._accounts_port.get_session_by_token_hash(token_hash=current_hash)
        if session is None:
            raise InvalidSessionError("Invalid refresh session.")
        if not session.is_active(now):
            raise SessionExpiredError("Session expired. Sign in again.")

        user = self._accounts_port.get_user_by_id(user_id=session.user_id)
        if user is None or user.is_deleted:
            raise UserInactiveError("User is inactive.")

        new_token = self._token_port.generate_refresh_token()
        expires_at = self._token_port.refresh_token_expires_at(now=now)
        rotated = self._accounts_port.rotate_session_token(
            session_id=session.id,
            current_token_hash=current_hash,
            new_token_hash=self._token_port.hash_refresh_token(refresh_token=new_token),
            used_at=now,
            expires_at=expires_at,
            user_agent=command.user_agent or session.user_agent,
            ip=command.ip or session.ip,
        )
        if rotated is None:
            logger.warning("refresh_session: rotation lost session_id=%s", session.id)
            raise SessionExpiredError("Session expired. Sign in again.")

        access_token, access_expires_at = self._token_port.create_access_token(
            user_id=user.id,
            session_id=rotated.id,
            now=now,
        )
        return AuthTokensOutput(
            user=build_auth_user_output(user),
            session_id=rotated.id,
            access_token=access_token,
            refresh_token=new_token,
            access_expires_at=access_expires_at,
            refresh_expires_at=rotated.expires_at,
        )
