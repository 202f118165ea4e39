from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from authkit.api.deps import (
    get_delete_user_use_case,
    get_get_user_use_case,
    get_list_users_use_case,
    get_set_user_status_use_case,
    require_all_permissions,
    require_permission,
)
from authkit.api.errors import http_error
from authkit.api.schemas.users import (
    AdminUserResponse,
    DeleteUserResponse,
    UpdateUserStatusRequest,
    UserListResponse,
    UserStatusResponse,
)
from authkit.application.dto.users import (
    AdminUserOutput,
    DeleteUserInput,
    ListUsersInput,
    SetUserStatusInput,
)
from authkit.application.use_cases.manage_users import (
    DeleteUserUseCase,
    GetUserUseCase,
    ListUsersUseCase,
    SetUserStatusUseCase,
)
from authkit.domain.entities.user import User
from authkit.domain.exceptions import DomainError


router = APIRouter()


def _user_response(output: AdminUserOutput) -> AdminUserResponse:
    return AdminUserResponse(
        id=output.id,
        email=output.email,
        name=output.name,
        role=output.role,
        is_verified=output.is_verified,
        is_deleted=output.is_deleted,
        deleted_at=output.deleted_at,
        linked_providers=output.linked_providers,
        primary_provider=output.primary_provider,
        created_at=output.created_at,
        updated_at=output.updated_at,
    )


@router.get("/v1/users", response_model=UserListResponse)
def list_users(
    search: str | None = Query(default=None, max_length=120),
    role: str | None = Query(default=None, max_length=80),
    status: str | None = Query(default=None, pattern="^(active|deleted)$"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    _admin: User = Depends(require_permission("users:read:all")),
    use_case: ListUsersUseCase = Depends(get_list_users_use_case),
):
    try:
        output = use_case.execute(ListUsersInput(search=search, role=role, status=status, page=page, limit=limit))
    except DomainError as exc:
        raise http_error(exc) from exc
    return UserListResponse(
        items=[_user_response(item) for item in output.items],
        total=output.total,
        page=output.page,
        limit=output.limit,
    )


@router.get("/v1/users/{user_id}", response_model=AdminUserResponse)
def get_user(
    user_id: str,
    _admin: User = Depends(require_permission("users:read:all")),
    use_case: GetUserUseCase = Depends(get_get_user_use_case),
):
    try:
        output = use_case.execute(user_id=user_id)
    except DomainError as exc:
        raise http_error(exc) from exc
    return _user_response(output)


@router.patch("/v1/users/{user_id}/status", response_model=UserStatusResponse)
def update_user_status(
    user_id: str,
    req: UpdateUserStatusRequest,
    admin: User = Depends(require_all_permissions("users:read:all", "users:update:all")),
    use_case: SetUserStatusUseCase = Depends(get_set_user_status_use_case),
):
    try:
        output = use_case.execute(SetUserStatusInput(actor_id=admin.id, user_id=user_id, is_active=req.is_active))
    except DomainError as exc:
        raise http_error(exc) from exc
    return UserStatusResponse(user=_user_response(output.user), revoked_sessions=output.revoked_sessions)


@router.delete("/v1/users/{user_id}", response_model=DeleteUserResponse)
def delete_user(
    user_id: str,
    admin: User = Depends(require_all_permissions("users:read:all", "users:update:all")),
    use_case: DeleteUserUseCase = Depends(get_delete_user_use_case),
):
    try:
        revoked = use_case.execute(DeleteUserInput(actor_id=admin.id, user_id=user_id))
    except DomainError as exc:
        raise http_error(exc) from exc
    return DeleteUserResponse(revoked_sessions=revoked)
