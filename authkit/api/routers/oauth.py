from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response

from authkit.api.cookies import client_ip
from authkit.api.deps import (
    get_list_oauth_providers_use_case,
    get_oauth_authorize_use_case,
    get_oauth_callback_use_case,
)
from authkit.api.errors import http_error
from authkit.api.routers.auth import token_response
from authkit.api.schemas.auth import AuthTokenResponse
from authkit.api.schemas.oauth import OAuthAuthorizeResponse, OAuthProvidersResponse
from authkit.application.dto.oauth import OAuthAuthorizeInput, OAuthCallbackInput
from authkit.application.use_cases.oauth_authorize import ListOAuthProvidersUseCase, OAuthAuthorizeUseCase
from authkit.application.use_cases.oauth_callback import OAuthCallbackUseCase
from authkit.domain.exceptions import DomainError


router = APIRouter()


@router.get("/v1/auth/oauth/providers", response_model=OAuthProvidersResponse)
def list_oauth_providers(
    use_case: ListOAuthProvidersUseCase = Depends(get_list_oauth_providers_use_case),
):
    output = use_case.execute()
    return OAuthProvidersResponse(providers=output.providers)


@router.get("/v1/auth/oauth/{provider}/authorize", response_model=OAuthAuthorizeResponse)
def oauth_authorize(
    provider: str,
    use_case: OAuthAuthorizeUseCase = Depends(get_oauth_authorize_use_case),
):
    try:
        output = use_case.execute(OAuthAuthorizeInput(provider=provider))
    except DomainError as exc:
        raise http_error(exc) from exc

    return OAuthAuthorizeResponse(
        provider=output.provider,
        authorization_url=output.authorization_url,
        state=output.state,
    )


@router.get("/v1/auth/oauth/{provider}/callback", response_model=AuthTokenResponse)
def oauth_callback(
    provider: str,
    request: Request,
    response: Response,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    user_agent: str | None = Header(default=None),
    x_forwarded_for: str | None = Header(default=None),
    use_case: OAuthCallbackUseCase = Depends(get_oauth_callback_use_case),
):
    if error:
        raise HTTPException(
            status_code=400,
            detail={"message": f"Authorization was not granted: {error}.", "code": "oauth_denied"},
        )
    if not code or not state:
        raise HTTPException(status_code=400, detail="code and state are required.")

    try:
        output = use_case.execute(
            OAuthCallbackInput(
                provider=provider,
                code=code,
                state=state,
                user_agent=user_agent,
                ip=client_ip(x_forwarded_for, request.client.host if request.client else None),
            )
        )
    except DomainError as exc:
        raise http_error(exc) from exc

    return token_response(response, output)
