from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from authkit.api.cookies import clear_refresh_cookie
from authkit.api.deps import (
    get_change_password_use_case,
    get_complete_oauth_link_use_case,
    get_current_user,
    get_deactivate_account_use_case,
    get_get_profile_use_case,
    get_linked_providers_use_case,
    get_oauth_authorize_use_case,
    get_refresh_token,
    get_set_primary_provider_use_case,
    get_unlink_provider_use_case,
    get_update_profile_use_case,
)
from authkit.api.errors import http_error
from authkit.api.schemas.account import (
    ChangePasswordRequest,
    ChangePasswordResponse,
    DeactivateAccountResponse,
    LinkedProvidersResponse,
    LinkProviderRequest,
    ProfileResponse,
    UpdateProfileRequest,
)
from authkit.api.schemas.oauth import OAuthAuthorizeResponse
from authkit.application.dto.account import (
    ChangePasswordInput,
    DeactivateAccountInput,
    ProfileOutput,
    UpdateProfileInput,
)
from authkit.application.dto.oauth import (
    OAUTH_INTENT_LINK,
    LinkedProvidersOutput,
    LinkProviderInput,
    OAuthAuthorizeInput,
    SetPrimaryProviderInput,
    UnlinkProviderInput,
)
from authkit.application.use_cases.change_password import ChangePasswordUseCase
from authkit.application.use_cases.deactivate_account import DeactivateAccountUseCase
from authkit.application.use_cases.get_linked_providers import GetLinkedProvidersUseCase
from authkit.application.use_cases.link_provider import CompleteOAuthLinkUseCase
from authkit.application.use_cases.oauth_authorize import OAuthAuthorizeUseCase
from authkit.application.use_cases.profile import GetProfileUseCase, UpdateProfileUseCase
from authkit.application.use_cases.set_primary_provider import SetPrimaryProviderUseCase
from authkit.application.use_cases.unlink_provider import UnlinkProviderUseCase
from authkit.domain.entities.user import User
from authkit.domain.exceptions import DomainError


router = APIRouter()


def _providers_response(output: LinkedProvidersOutput) -> LinkedProvidersResponse:
    return LinkedProvidersResponse(
        user_id=output.user_id,
        linked_providers=output.linked_providers,
        primary_provider=output.primary_provider,
        can_unlink=output.can_unlink,
        profile_synced_at=output.profile_synced_at,
        last_synced_provider=output.last_synced_provider,
    )


def _profile_response(output: ProfileOutput) -> ProfileResponse:
    return ProfileResponse(
        id=output.id,
        email=output.email,
        name=output.name,
        role=output.role,
        is_verified=output.is_verified,
        has_password=output.has_password,
        linked_providers=output.linked_providers,
        primary_provider=output.primary_provider,
        created_at=output.created_at,
        updated_at=output.updated_at,
    )


@router.get("/v1/account/profile", response_model=ProfileResponse)
def get_profile(
    current_user: User = Depends(get_current_user),
    use_case: GetProfileUseCase = Depends(get_get_profile_use_case),
):
    try:
        output = use_case.execute(user_id=current_user.id)
    except DomainError as exc:
        raise http_error(exc) from exc
    return _profile_response(output)


@router.patch("/v1/account/profile", response_model=ProfileResponse)
def update_profile(
    req: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    use_case: UpdateProfileUseCase = Depends(get_update_profile_use_case),
):
    try:
        output = use_case.execute(UpdateProfileInput(user_id=current_user.id, name=req.name))
    except DomainError as exc:
        raise http_error(exc) from exc
    return _profile_response(output)


@router.get("/v1/account/providers", response_model=LinkedProvidersResponse)
def get_linked_providers(
    current_user: User = Depends(get_current_user),
    use_case: GetLinkedProvidersUseCase = Depends(get_linked_providers_use_case),
):
    try:
        output = use_case.execute(user_id=current_user.id)
    except DomainError as exc:
        raise http_error(exc) from exc
    return _providers_response(output)


@router.get("/v1/account/providers/{provider}/link/authorize", response_model=OAuthAuthorizeResponse)
def authorize_provider_link(
    provider: str,
    current_user: User = Depends(get_current_user),
    use_case: OAuthAuthorizeUseCase = Depends(get_oauth_authorize_use_case),
):
    try:
        output = use_case.execute(
            OAuthAuthorizeInput(provider=provider, intent=OAUTH_INTENT_LINK, user_id=current_user.id)
        )
    except DomainError as exc:
        raise http_error(exc) from exc

    return OAuthAuthorizeResponse(
        provider=output.provider,
        authorization_url=output.authorization_url,
        state=output.state,
    )


@router.post("/v1/account/providers/{provider}/link", response_model=LinkedProvidersResponse)
def link_provider(
    provider: str,
    req: LinkProviderRequest,
    current_user: User = Depends(get_current_user),
    use_case: CompleteOAuthLinkUseCase = Depends(get_complete_oauth_link_use_case),
):
    try:
        output = use_case.execute(
            LinkProviderInput(
                user_id=current_user.id,
                provider=provider,
                code=req.code,
                state=req.state,
            )
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return _providers_response(output)


@router.delete("/v1/account/providers/{provider}", response_model=LinkedProvidersResponse)
def unlink_provider(
    provider: str,
    current_user: User = Depends(get_current_user),
    use_case: UnlinkProviderUseCase = Depends(get_unlink_provider_use_case),
):
    try:
        output = use_case.execute(UnlinkProviderInput(user_id=current_user.id, provider=provider))
    except DomainError as exc:
        raise http_error(exc) from exc
    return _providers_response(output)


@router.put("/v1/account/providers/{provider}/primary", response_model=LinkedProvidersResponse)
def set_primary_provider(
    provider: str,
    current_user: User = Depends(get_current_user),
    use_case: SetPrimaryProviderUseCase = Depends(get_set_primary_provider_use_case),
):
    try:
        output = use_case.execute(SetPrimaryProviderInput(user_id=current_user.id, provider=provider))
    except DomainError as exc:
        raise http_error(exc) from exc
    return _providers_response(output)


@router.put("/v1/account/password", response_model=ChangePasswordResponse)
def change_password(
    req: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    refresh_token: str | None = Depends(get_refresh_token),
    use_case: ChangePasswordUseCase = Depends(get_change_password_use_case),
):
    try:
        output = use_case.execute(
            ChangePasswordInput(
                user_id=current_user.id,
                current_password=req.current_password,
                new_password=req.new_password,
                current_refresh_token=refresh_token,
            )
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return ChangePasswordResponse(revoked_sessions=output.revoked_sessions)


@router.delete("/v1/account", response_model=DeactivateAccountResponse)
def deactivate_account(
    response: Response,
    current_user: User = Depends(get_current_user),
    use_case: DeactivateAccountUseCase = Depends(get_deactivate_account_use_case),
):
    try:
        output = use_case.execute(DeactivateAccountInput(user_id=current_user.id))
    except DomainError as exc:
        raise http_error(exc) from exc
    clear_refresh_cookie(response)
    return DeactivateAccountResponse(revoked_sessions=output.revoked_sessions)
