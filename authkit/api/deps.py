from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException, Request

from authkit.api.errors import http_error
from authkit.application.ports.oauth_port import OAuthStrategyPort
from authkit.application.use_cases.activate_registration import ActivateRegistrationUseCase
from authkit.application.use_cases.authenticate_request import AuthenticateRequestUseCase, Principal
from authkit.application.use_cases.change_password import ChangePasswordUseCase
from authkit.application.use_cases.deactivate_account import DeactivateAccountUseCase
from authkit.application.use_cases.get_linked_providers import GetLinkedProvidersUseCase
from authkit.application.use_cases.grant_permission import (
    GrantPermissionUseCase,
    ListPermissionGrantsUseCase,
    RevokePermissionUseCase,
)
from authkit.application.use_cases.link_provider import CompleteOAuthLinkUseCase, LinkProviderUseCase
from authkit.application.use_cases.list_effective_permissions import (
    CheckPermissionUseCase,
    ListEffectivePermissionsUseCase,
)
from authkit.application.use_cases.list_sessions import ListSessionsUseCase
from authkit.application.use_cases.login_local import LoginLocalUseCase
from authkit.application.use_cases.logout_session import LogoutSessionUseCase
from authkit.application.use_cases.manage_users import (
    DeleteUserUseCase,
    GetUserUseCase,
    ListUsersUseCase,
    SetUserStatusUseCase,
)
from authkit.application.use_cases.oauth_authorize import ListOAuthProvidersUseCase, OAuthAuthorizeUseCase
from authkit.application.use_cases.oauth_callback import OAuthCallbackUseCase
from authkit.application.use_cases.profile import GetProfileUseCase, UpdateProfileUseCase
from authkit.application.use_cases.refresh_session import RefreshSessionUseCase
from authkit.application.use_cases.register_user import RegisterUserUseCase, ResendActivationUseCase
from authkit.application.use_cases.revoke_other_sessions import RevokeOtherSessionsUseCase
from authkit.application.use_cases.revoke_session import RevokeSessionUseCase
from authkit.application.use_cases.roles import (
    AssignRoleUseCase,
    CreateRoleUseCase,
    DeleteRoleUseCase,
    GetRoleUseCase,
    ListRolesUseCase,
    UpdateRoleUseCase,
)
from authkit.application.use_cases.set_primary_provider import SetPrimaryProviderUseCase
from authkit.application.use_cases.unlink_provider import UnlinkProviderUseCase
from authkit.domain.entities.user import AuthProvider, User
from authkit.domain.exceptions import DomainError, PermissionDeniedError
from authkit.domain.services.permissions import has_all_permissions, has_any_permission
from authkit.infrastructure.clients.oauth.registry import build_oauth_strategies
from authkit.infrastructure.clients.smtp_mailer import SmtpMailer, SmtpMailerSettings
from authkit.infrastructure.db.engine import get_engine
from authkit.infrastructure.db.repositories.access_control_repository import SqlAccessControlRepository
from authkit.infrastructure.db.repositories.accounts_repository import SqlAccountsRepository
from authkit.infrastructure.security.credential_hasher import CredentialHasher
from authkit.infrastructure.security.token_service import JwtTokenService
from authkit.shared.config import get_settings


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=500, detail="POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


def _get_accounts_repository() -> SqlAccountsRepository:
    return SqlAccountsRepository(_get_db_engine())


def _get_access_control_repository() -> SqlAccessControlRepository:
    return SqlAccessControlRepository(_get_db_engine())


@lru_cache(maxsize=1)
def _get_credential_hasher() -> CredentialHasher:
    return CredentialHasher()


@lru_cache(maxsize=1)
def _get_token_service() -> JwtTokenService:
    settings = get_settings()
    if not settings.jwt_secret:
        raise HTTPException(status_code=500, detail="JWT_SECRET is required.")
    return JwtTokenService(
        jwt_secret=settings.jwt_secret,
        access_ttl_minutes=settings.jwt_access_ttl_minutes,
        session_max_age_days=settings.session_max_age_days,
        oauth_state_ttl_seconds=settings.oauth_state_ttl_seconds,
    )


@lru_cache(maxsize=1)
def _get_mailer() -> SmtpMailer:
    settings = get_settings()
    return SmtpMailer(
        SmtpMailerSettings(
            enabled=settings.smtp_enabled,
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            starttls=settings.smtp_starttls,
            from_email=settings.smtp_from_email,
            from_name=settings.smtp_from_name,
        )
    )


@lru_cache(maxsize=1)
def _get_oauth_strategies() -> dict[AuthProvider, OAuthStrategyPort]:
    return build_oauth_strategies(get_settings())


def get_register_user_use_case() -> RegisterUserUseCase:
    return RegisterUserUseCase(
        accounts_port=_get_accounts_repository(),
        credential_hasher=_get_credential_hasher(),
        mailer=_get_mailer(),
        code_ttl_seconds=get_settings().activation_code_ttl_seconds,
    )


def get_resend_activation_use_case() -> ResendActivationUseCase:
    return ResendActivationUseCase(
        accounts_port=_get_accounts_repository(),
        credential_hasher=_get_credential_hasher(),
        mailer=_get_mailer(),
        code_ttl_seconds=get_settings().activation_code_ttl_seconds,
    )


def get_activate_registration_use_case() -> ActivateRegistrationUseCase:
    settings = get_settings()
    return ActivateRegistrationUseCase(
        accounts_port=_get_accounts_repository(),
        credential_hasher=_get_credential_hasher(),
        token_port=_get_token_service(),
        max_attempts=settings.activation_max_attempts,
        default_role=settings.default_role,
    )


def get_login_local_use_case() -> LoginLocalUseCase:
    return LoginLocalUseCase(
        accounts_port=_get_accounts_repository(),
        credential_hasher=_get_credential_hasher(),
        token_port=_get_token_service(),
    )


def get_refresh_session_use_case() -> RefreshSessionUseCase:
    return RefreshSessionUseCase(
        accounts_port=_get_accounts_repository(),
        token_port=_get_token_service(),
    )


def get_logout_session_use_case() -> LogoutSessionUseCase:
    return LogoutSessionUseCase(
        accounts_port=_get_accounts_repository(),
        token_port=_get_token_service(),
    )


def get_list_sessions_use_case() -> ListSessionsUseCase:
    return ListSessionsUseCase(
        accounts_port=_get_accounts_repository(),
        token_port=_get_token_service(),
    )


def get_revoke_other_sessions_use_case() -> RevokeOtherSessionsUseCase:
    return RevokeOtherSessionsUseCase(
        accounts_port=_get_accounts_repository(),
        token_port=_get_token_service(),
    )


def get_revoke_session_use_case() -> RevokeSessionUseCase:
    return RevokeSessionUseCase(
        accounts_port=_get_accounts_repository(),
        token_port=_get_token_service(),
    )


def get_authenticate_request_use_case() -> AuthenticateRequestUseCase:
    return AuthenticateRequestUseCase(
        accounts_port=_get_accounts_repository(),
        token_port=_get_token_service(),
    )


def get_list_oauth_providers_use_case() -> ListOAuthProvidersUseCase:
    return ListOAuthProvidersUseCase(strategies=_get_oauth_strategies())


def get_oauth_authorize_use_case() -> OAuthAuthorizeUseCase:
    return OAuthAuthorizeUseCase(
        token_port=_get_token_service(),
        strategies=_get_oauth_strategies(),
    )


def get_oauth_callback_use_case() -> OAuthCallbackUseCase:
    settings = get_settings()
    return OAuthCallbackUseCase(
        accounts_port=_get_accounts_repository(),
        token_port=_get_token_service(),
        strategies=_get_oauth_strategies(),
        default_role=settings.default_role,
        auto_link_verified_email=settings.oauth_auto_link_verified_email,
        profile_sync_fields=settings.profile_sync_fields,
    )


def get_complete_oauth_link_use_case() -> CompleteOAuthLinkUseCase:
    return CompleteOAuthLinkUseCase(
        token_port=_get_token_service(),
        strategies=_get_oauth_strategies(),
        link_provider_use_case=LinkProviderUseCase(accounts_port=_get_accounts_repository()),
    )


def get_unlink_provider_use_case() -> UnlinkProviderUseCase:
    return UnlinkProviderUseCase(accounts_port=_get_accounts_repository())


def get_set_primary_provider_use_case() -> SetPrimaryProviderUseCase:
    return SetPrimaryProviderUseCase(accounts_port=_get_accounts_repository())


def get_linked_providers_use_case() -> GetLinkedProvidersUseCase:
    return GetLinkedProvidersUseCase(accounts_port=_get_accounts_repository())


def get_change_password_use_case() -> ChangePasswordUseCase:
    return ChangePasswordUseCase(
        accounts_port=_get_accounts_repository(),
        credential_hasher=_get_credential_hasher(),
        token_port=_get_token_service(),
    )


def get_deactivate_account_use_case() -> DeactivateAccountUseCase:
    return DeactivateAccountUseCase(accounts_port=_get_accounts_repository())


def get_list_effective_permissions_use_case() -> ListEffectivePermissionsUseCase:
    return ListEffectivePermissionsUseCase(
        accounts_port=_get_accounts_repository(),
        access_control_port=_get_access_control_repository(),
    )


def get_check_permission_use_case() -> CheckPermissionUseCase:
    return CheckPermissionUseCase(
        list_effective_permissions_use_case=get_list_effective_permissions_use_case(),
    )


def get_grant_permission_use_case() -> GrantPermissionUseCase:
    return GrantPermissionUseCase(
        accounts_port=_get_accounts_repository(),
        access_control_port=_get_access_control_repository(),
    )


def get_revoke_permission_use_case() -> RevokePermissionUseCase:
    return RevokePermissionUseCase(access_control_port=_get_access_control_repository())


def get_list_permission_grants_use_case() -> ListPermissionGrantsUseCase:
    return ListPermissionGrantsUseCase(
        accounts_port=_get_accounts_repository(),
        access_control_port=_get_access_control_repository(),
    )


def get_create_role_use_case() -> CreateRoleUseCase:
    return CreateRoleUseCase(access_control_port=_get_access_control_repository())


def get_get_role_use_case() -> GetRoleUseCase:
    return GetRoleUseCase(access_control_port=_get_access_control_repository())


def get_list_roles_use_case() -> ListRolesUseCase:
    return ListRolesUseCase(access_control_port=_get_access_control_repository())


def get_update_role_use_case() -> UpdateRoleUseCase:
    return UpdateRoleUseCase(access_control_port=_get_access_control_repository())


def get_delete_role_use_case() -> DeleteRoleUseCase:
    return DeleteRoleUseCase(access_control_port=_get_access_control_repository())


def get_assign_role_use_case() -> AssignRoleUseCase:
    return AssignRoleUseCase(
        accounts_port=_get_accounts_repository(),
        access_control_port=_get_access_control_repository(),
    )


def get_get_profile_use_case() -> GetProfileUseCase:
    return GetProfileUseCase(accounts_port=_get_accounts_repository())


def get_update_profile_use_case() -> UpdateProfileUseCase:
    return UpdateProfileUseCase(accounts_port=_get_accounts_repository())


def get_list_users_use_case() -> ListUsersUseCase:
    return ListUsersUseCase(accounts_port=_get_accounts_repository())


def get_get_user_use_case() -> GetUserUseCase:
    return GetUserUseCase(accounts_port=_get_accounts_repository())


def get_set_user_status_use_case() -> SetUserStatusUseCase:
    return SetUserStatusUseCase(
        accounts_port=_get_accounts_repository(),
        access_control_port=_get_access_control_repository(),
        list_effective_permissions_use_case=get_list_effective_permissions_use_case(),
    )


def get_delete_user_use_case() -> DeleteUserUseCase:
    return DeleteUserUseCase(
        accounts_port=_get_accounts_repository(),
        access_control_port=_get_access_control_repository(),
        list_effective_permissions_use_case=get_list_effective_permissions_use_case(),
    )


def get_refresh_cookie_name() -> str:
    return get_settings().refresh_cookie_name


def get_refresh_token(
    request: Request,
    cookie_name: str = Depends(get_refresh_cookie_name),
) -> str | None:
    return request.cookies.get(cookie_name)


def get_current_principal(
    authorization: str = Header(...),
    use_case: AuthenticateRequestUseCase = Depends(get_authenticate_request_use_case),
) -> Principal:
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header.")
    token = authorization.replace("Bearer ", "", 1).strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing access token.")

    try:
        return use_case.execute(access_token=token)
    except DomainError as exc:
        raise http_error(exc) from exc


def get_current_user(principal: Principal = Depends(get_current_principal)) -> User:
    return principal.user


def _permission_guard(permissions: tuple[str, ...], *, match_any: bool):
    check = has_any_permission if match_any else has_all_permissions

    def _dependency(
        user: User = Depends(get_current_user),
        permissions_use_case: ListEffectivePermissionsUseCase = Depends(get_list_effective_permissions_use_case),
    ) -> User:
        try:
            effective = permissions_use_case.execute(user_id=user.id)
        except DomainError as exc:
            raise http_error(exc) from exc
        if not check(effective.permissions, permissions):
            joined = ", ".join(f"'{permission}'" for permission in permissions)
            if match_any:
                message = f"One of {joined} is required."
            else:
                message = f"Permission {joined} is required."
            raise http_error(PermissionDeniedError(message))
        return user

    return _dependency


def require_permission(permission: str):
    return _permission_guard((permission,), match_any=False)


def require_all_permissions(*permissions: str):
    return _permission_guard(permissions, match_any=False)


def require_any_permission(*permissions: str):
    return _permission_guard(permissions, match_any=True)
