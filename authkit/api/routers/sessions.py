from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from authkit.api.deps import (
    get_current_user,
    get_list_sessions_use_case,
    get_refresh_token,
    get_revoke_other_sessions_use_case,
    get_revoke_session_use_case,
)
from authkit.api.errors import http_error
from authkit.api.schemas.sessions import (
    RevokeOtherSessionsResponse,
    SessionListResponse,
    SessionResponse,
)
from authkit.application.dto.sessions import (
    ListSessionsInput,
    RevokeOtherSessionsInput,
    RevokeSessionInput,
)
from authkit.application.use_cases.list_sessions import ListSessionsUseCase
from authkit.application.use_cases.revoke_other_sessions import RevokeOtherSessionsUseCase
from authkit.application.use_cases.revoke_session import RevokeSessionUseCase
from authkit.domain.entities.user import User
from authkit.domain.exceptions import DomainError


router = APIRouter()


@router.get("/v1/sessions", response_model=SessionListResponse)
def list_sessions(
    current_user: User = Depends(get_current_user),
    refresh_token: str | None = Depends(get_refresh_token),
    use_case: ListSessionsUseCase = Depends(get_list_sessions_use_case),
):
    rows = use_case.execute(
        ListSessionsInput(user_id=current_user.id, current_refresh_token=refresh_token)
    )
    return SessionListResponse(
        sessions=[
            SessionResponse(
                id=row.id,
                device_name=row.device_name,
                user_agent=row.user_agent,
                ip=row.ip,
                last_used_at=row.last_used_at,
                expires_at=row.expires_at,
                created_at=row.created_at,
                is_current=row.is_current,
            )
            for row in rows
        ]
    )


@router.delete("/v1/sessions", response_model=RevokeOtherSessionsResponse)
def revoke_other_sessions(
    current_user: User = Depends(get_current_user),
    refresh_token: str | None = Depends(get_refresh_token),
    use_case: RevokeOtherSessionsUseCase = Depends(get_revoke_other_sessions_use_case),
):
    if not refresh_token:
        raise HTTPException(status_code=401, detail="Missing refresh token cookie.")

    try:
        output = use_case.execute(
            RevokeOtherSessionsInput(user_id=current_user.id, current_refresh_token=refresh_token)
        )
    except DomainError as exc:
        raise http_error(exc) from exc

    return RevokeOtherSessionsResponse(revoked_count=output.revoked_count)


@router.delete("/v1/sessions/{session_id}", status_code=204)
def revoke_session(
    session_id: str,
    current_user: User = Depends(get_current_user),
    refresh_token: str | None = Depends(get_refresh_token),
    use_case: RevokeSessionUseCase = Depends(get_revoke_session_use_case),
):
    try:
        use_case.execute(
            RevokeSessionInput(
                user_id=current_user.id,
                session_id=session_id,
                current_refresh_token=refresh_token,
            )
        )
    except DomainError as exc:
        raise http_error(exc) from exc

    return Response(status_code=204)
