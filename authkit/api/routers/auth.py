from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response

from authkit.api.cookies import clear_refresh_cookie, client_ip, set_refresh_cookie
from authkit.api.deps import (
    get_activate_registration_use_case,
    get_login_local_use_case,
    get_logout_session_use_case,
    get_refresh_session_use_case,
    get_refresh_token,
    get_register_user_use_case,
    get_resend_activation_use_case,
)
from authkit.api.errors import http_error
from authkit.api.schemas.auth import (
    ActivateRequest,
    AuthTokenResponse,
    LoginRequest,
    LogoutResponse,
    RegisterRequest,
    RegisterResponse,
    ResendActivationRequest,
)
from authkit.application.dto.auth import (
    ActivateRegistrationInput,
    AuthTokensOutput,
    LoginLocalInput,
    LogoutInput,
    RefreshSessionInput,
    RegisterUserInput,
    ResendActivationInput,
)
from authkit.application.use_cases.activate_registration import ActivateRegistrationUseCase
from authkit.application.use_cases.login_local import LoginLocalUseCase
from authkit.application.use_cases.logout_session import LogoutSessionUseCase
from authkit.application.use_cases.refresh_session import RefreshSessionUseCase
from authkit.application.use_cases.register_user import RegisterUserUseCase, ResendActivationUseCase
from authkit.domain.exceptions import DomainError


router = APIRouter()


def token_response(response: Response, output: AuthTokensOutput) -> AuthTokenResponse:
    set_refresh_cookie(response, output.refresh_token, output.refresh_expires_at)
    return AuthTokenResponse(
        access_token=output.access_token,
        session_id=output.session_id,
        access_expires_at=output.access_expires_at,
        refresh_expires_at=output.refresh_expires_at,
        user={
            "id": output.user.id,
            "name": output.user.name,
            "email": output.user.email,
            "role": output.user.role,
            "is_verified": output.user.is_verified,
            "linked_providers": output.user.linked_providers,
            "primary_provider": output.user.primary_provider,
        },
    )


@router.post("/v1/auth/register", response_model=RegisterResponse, status_code=202)
def register_user(
    req: RegisterRequest,
    use_case: RegisterUserUseCase = Depends(get_register_user_use_case),
):
    try:
        output = use_case.execute(
            RegisterUserInput(
                name=req.name,
                email=req.email,
                password=req.password,
            )
        )
    except DomainError as exc:
        raise http_error(exc) from exc

    return RegisterResponse(email=output.email, expires_at=output.expires_at)


@router.post("/v1/auth/activate/resend", response_model=RegisterResponse, status_code=202)
def resend_activation(
    req: ResendActivationRequest,
    use_case: ResendActivationUseCase = Depends(get_resend_activation_use_case),
):
    try:
        output = use_case.execute(ResendActivationInput(email=req.email))
    except DomainError as exc:
        raise http_error(exc) from exc

    return RegisterResponse(email=output.email, expires_at=output.expires_at)


@router.post("/v1/auth/activate", response_model=AuthTokenResponse)
def activate_registration(
    req: ActivateRequest,
    request: Request,
    response: Response,
    user_agent: str | None = Header(default=None),
    x_forwarded_for: str | None = Header(default=None),
    use_case: ActivateRegistrationUseCase = Depends(get_activate_registration_use_case),
):
    try:
        output = use_case.execute(
            ActivateRegistrationInput(
                email=req.email,
                code=req.code,
                user_agent=user_agent,
                ip=client_ip(x_forwarded_for, request.client.host if request.client else None),
            )
        )
    except DomainError as exc:
        raise http_error(exc) from exc

    return token_response(response, output)


@router.post("/v1/auth/login", response_model=AuthTokenResponse)
def login_local(
    req: LoginRequest,
    request: Request,
    response: Response,
    user_agent: str | None = Header(default=None),
    x_forwarded_for: str | None = Header(default=None),
    use_case: LoginLocalUseCase = Depends(get_login_local_use_case),
):
    try:
        output = use_case.execute(
            LoginLocalInput(
                email=req.email,
                password=req.password,
                user_agent=user_agent,
                ip=client_ip(x_forwarded_for, request.client.host if request.client else None),
            )
        )
    except DomainError as exc:
        raise http_error(exc) from exc

    return token_response(response, output)


@router.post("/v1/auth/refresh", response_model=AuthTokenResponse)
def refresh_auth(
    request: Request,
    response: Response,
    refresh_token: str | None = Depends(get_refresh_token),
    user_agent: str | None = Header(default=None),
    x_forwarded_for: str | None = Header(default=None),
    use_case: RefreshSessionUseCase = Depends(get_refresh_session_use_case),
):
    if not refresh_token:
        raise HTTPException(status_code=401, detail="Missing refresh token cookie.")

    try:
        output = use_case.execute(
            RefreshSessionInput(
                refresh_token=refresh_token,
                user_agent=user_agent,
                ip=client_ip(x_forwarded_for, request.client.host if request.client else None),
            )
        )
    except DomainError as exc:
        raise http_error(exc) from exc

    return token_response(response, output)


@router.post("/v1/auth/logout", response_model=LogoutResponse)
def logout_auth(
    response: Response,
    refresh_token: str | None = Depends(get_refresh_token),
    use_case: LogoutSessionUseCase = Depends(get_logout_session_use_case),
):
    if refresh_token:
        use_case.execute(LogoutInput(refresh_token=refresh_token))
    clear_refresh_cookie(response)
    return LogoutResponse(ok=True)
