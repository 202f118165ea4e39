from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from authkit.api.deps import (
    get_assign_role_use_case,
    get_create_role_use_case,
    get_delete_role_use_case,
    get_get_role_use_case,
    get_list_roles_use_case,
    get_update_role_use_case,
    require_permission,
)
from authkit.api.errors import http_error
from authkit.api.schemas.access_control import (
    AssignRoleRequest,
    CreateRoleRequest,
    RoleListResponse,
    RoleResponse,
    UpdateRoleRequest,
)
from authkit.application.dto.access_control import (
    AssignRoleInput,
    CreateRoleInput,
    ListRolesInput,
    RoleOutput,
    UpdateRoleInput,
)
from authkit.application.use_cases.roles import (
    AssignRoleUseCase,
    CreateRoleUseCase,
    DeleteRoleUseCase,
    GetRoleUseCase,
    ListRolesUseCase,
    UpdateRoleUseCase,
)
from authkit.domain.entities.user import User
from authkit.domain.exceptions import DomainError


router = APIRouter()


def _role_response(output: RoleOutput) -> RoleResponse:
    return RoleResponse(
        id=output.id,
        name=output.name,
        slug=output.slug,
        description=output.description,
        is_system_role=output.is_system_role,
        is_protected=output.is_protected,
        permissions=output.permissions,
        created_at=output.created_at,
        updated_at=output.updated_at,
    )


@router.get("/v1/roles", response_model=RoleListResponse)
def list_roles(
    search: str | None = Query(default=None, max_length=80),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    _user: User = Depends(require_permission("roles:read:all")),
    use_case: ListRolesUseCase = Depends(get_list_roles_use_case),
):
    output = use_case.execute(ListRolesInput(search=search, page=page, limit=limit))
    return RoleListResponse(
        items=[_role_response(item) for item in output.items],
        total=output.total,
        page=output.page,
        limit=output.limit,
    )


@router.get("/v1/roles/{role_ref}", response_model=RoleResponse)
def get_role(
    role_ref: str,
    _user: User = Depends(require_permission("roles:read:all")),
    use_case: GetRoleUseCase = Depends(get_get_role_use_case),
):
    try:
        output = use_case.execute(role_ref=role_ref)
    except DomainError as exc:
        raise http_error(exc) from exc
    return _role_response(output)


@router.post("/v1/roles", response_model=RoleResponse, status_code=201)
def create_role(
    req: CreateRoleRequest,
    _admin: User = Depends(require_permission("roles:manage:all")),
    use_case: CreateRoleUseCase = Depends(get_create_role_use_case),
):
    try:
        output = use_case.execute(
            CreateRoleInput(
                name=req.name,
                description=req.description,
                permissions=req.permissions,
            )
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return _role_response(output)


@router.patch("/v1/roles/{role_ref}", response_model=RoleResponse)
def update_role(
    role_ref: str,
    req: UpdateRoleRequest,
    _admin: User = Depends(require_permission("roles:manage:all")),
    use_case: UpdateRoleUseCase = Depends(get_update_role_use_case),
):
    try:
        output = use_case.execute(
            UpdateRoleInput(
                role_ref=role_ref,
                name=req.name,
                description=req.description,
                permissions=req.permissions,
            )
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return _role_response(output)


@router.delete("/v1/roles/{role_ref}", status_code=204)
def delete_role(
    role_ref: str,
    _admin: User = Depends(require_permission("roles:manage:all")),
    use_case: DeleteRoleUseCase = Depends(get_delete_role_use_case),
):
    try:
        use_case.execute(role_ref=role_ref)
    except DomainError as exc:
        raise http_error(exc) from exc
    return Response(status_code=204)


@router.put("/v1/users/{user_id}/role", response_model=RoleResponse)
def assign_role(
    user_id: str,
    req: AssignRoleRequest,
    _admin: User = Depends(require_permission("roles:assign:all")),
    use_case: AssignRoleUseCase = Depends(get_assign_role_use_case),
):
    try:
        output = use_case.execute(AssignRoleInput(user_id=user_id, role_slug=req.role))
    except DomainError as exc:
        raise http_error(exc) from exc
    return _role_response(output)
