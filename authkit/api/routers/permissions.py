from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, Response

from authkit.api.deps import (
    get_check_permission_use_case,
    get_current_user,
    get_grant_permission_use_case,
    get_list_effective_permissions_use_case,
    get_list_permission_grants_use_case,
    get_revoke_permission_use_case,
    require_any_permission,
    require_permission,
)
from authkit.api.errors import http_error
from authkit.api.schemas.access_control import (
    EffectivePermissionsResponse,
    GrantPermissionRequest,
    PermissionCheckResponse,
    PermissionGrantResponse,
    UserPermissionsResponse,
)
from authkit.application.dto.access_control import (
    CheckPermissionInput,
    EffectivePermissionsOutput,
    GrantPermissionInput,
    PermissionGrantOutput,
    RevokePermissionInput,
)
from authkit.application.use_cases.grant_permission import (
    GrantPermissionUseCase,
    ListPermissionGrantsUseCase,
    RevokePermissionUseCase,
)
from authkit.application.use_cases.list_effective_permissions import (
    CheckPermissionUseCase,
    ListEffectivePermissionsUseCase,
)
from authkit.domain.entities.user import User
from authkit.domain.exceptions import DomainError


router = APIRouter()


def _effective_response(output: EffectivePermissionsOutput) -> EffectivePermissionsResponse:
    return EffectivePermissionsResponse(
        user_id=output.user_id,
        role=output.role,
        permissions=output.permissions,
        role_permissions=output.role_permissions,
        direct_permissions=output.direct_permissions,
    )


def _grant_response(output: PermissionGrantOutput) -> PermissionGrantResponse:
    return PermissionGrantResponse(
        id=output.id,
        user_id=output.user_id,
        permission=output.permission,
        scope=output.scope,
        expires_at=output.expires_at,
        granted_by=output.granted_by,
        created_at=output.created_at,
    )


@router.get("/v1/me/permissions", response_model=EffectivePermissionsResponse)
def get_my_permissions(
    resource: str | None = Query(None, min_length=1, max_length=64),
    current_user: User = Depends(get_current_user),
    use_case: ListEffectivePermissionsUseCase = Depends(get_list_effective_permissions_use_case),
):
    try:
        output = use_case.execute(user_id=current_user.id, resource=resource)
    except DomainError as exc:
        raise http_error(exc) from exc
    return _effective_response(output)


@router.get("/v1/me/permissions/check", response_model=PermissionCheckResponse)
def check_my_permission(
    permission: list[str] = Query(...),
    match: Literal["any", "all"] = Query("all"),
    current_user: User = Depends(get_current_user),
    use_case: CheckPermissionUseCase = Depends(get_check_permission_use_case),
):
    try:
        allowed = use_case.execute(
            CheckPermissionInput(user_id=current_user.id, permissions=tuple(permission), match=match)
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return PermissionCheckResponse(permissions=permission, match=match, allowed=allowed)


@router.get("/v1/users/{user_id}/permissions", response_model=UserPermissionsResponse)
def get_user_permissions(
    user_id: str,
    _admin: User = Depends(require_any_permission("users:read:all", "permissions:grant:all")),
    effective_use_case: ListEffectivePermissionsUseCase = Depends(get_list_effective_permissions_use_case),
    grants_use_case: ListPermissionGrantsUseCase = Depends(get_list_permission_grants_use_case),
):
    try:
        effective = effective_use_case.execute(user_id=user_id)
        grants = grants_use_case.execute(user_id=user_id)
    except DomainError as exc:
        raise http_error(exc) from exc
    return UserPermissionsResponse(
        effective=_effective_response(effective),
        grants=[_grant_response(grant) for grant in grants],
    )


@router.post("/v1/users/{user_id}/permissions", response_model=PermissionGrantResponse, status_code=201)
def grant_user_permission(
    user_id: str,
    req: GrantPermissionRequest,
    admin: User = Depends(require_permission("permissions:grant:all")),
    use_case: GrantPermissionUseCase = Depends(get_grant_permission_use_case),
):
    try:
        output = use_case.execute(
            GrantPermissionInput(
                user_id=user_id,
                permission=req.permission,
                scope=req.scope,
                expires_at=req.expires_at,
                granted_by=admin.id,
            )
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return _grant_response(output)


@router.delete("/v1/users/{user_id}/permissions", status_code=204)
def revoke_user_permission(
    user_id: str,
    permission: str = Query(..., min_length=1, max_length=128),
    _admin: User = Depends(require_permission("permissions:revoke:all")),
    use_case: RevokePermissionUseCase = Depends(get_revoke_permission_use_case),
):
    try:
        use_case.execute(RevokePermissionInput(user_id=user_id, permission=permission))
    except DomainError as exc:
        raise http_error(exc) from exc
    return Response(status_code=204)
