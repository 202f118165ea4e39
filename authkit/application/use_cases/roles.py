from __future__ import annotations

import logging
from dataclasses import replace
from uuid import uuid4

from authkit.application.dto.access_control import (
    AssignRoleInput,
    CreateRoleInput,
    ListRolesInput,
    RoleListOutput,
    RoleOutput,
    UpdateRoleInput,
)
from authkit.application.ports.access_control_port import AccessControlPort
from authkit.application.ports.accounts_port import AccountsPort
from authkit.domain.entities.role import Role
from authkit.domain.exceptions import (
    DuplicateKeyError,
    ProtectedRoleError,
    RoleAlreadyExistsError,
    RoleInUseError,
    RoleNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from authkit.domain.services.permissions import validate_permissions
from authkit.domain.services.roles import slugify_role_name

from .auth_common import utcnow


logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def build_role_output(role: Role) -> RoleOutput:
    return RoleOutput(
        id=role.id,
        name=role.name,
        slug=role.slug,
        description=role.description,
        is_system_role=role.is_system_role,
        is_protected=role.is_protected,
        permissions=sorted(role.permissions),
        created_at=role.created_at,
        updated_at=role.updated_at,
    )


def find_role(access_control_port: AccessControlPort, role_ref: str) -> Role:
    """Look a role up by id first, then by slug."""
    role = access_control_port.get_role_by_id(role_id=role_ref)
    if role is None:
        role = access_control_port.get_role_by_slug(slug=role_ref)
    if role is None:
        raise RoleNotFoundError(f"Role '{role_ref}' not found.")
    return role


def _slug_for(name: str) -> str:
    try:
        return slugify_role_name(name)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


class CreateRoleUseCase:
    def __init__(self, *, access_control_port: AccessControlPort):
        self._access_control_port = access_control_port

    def execute(self, command: CreateRoleInput) -> RoleOutput:
        name = command.name.strip()
        if not name:
            raise ValidationError("name is required.")
        slug = _slug_for(name)
        permissions = validate_permissions(command.permissions)

        if self._access_control_port.get_role_by_slug(slug=slug) is not None:
            raise RoleAlreadyExistsError(f"Role '{slug}' already exists.")

        now = utcnow()
        try:
            role = self._access_control_port.create_role(
                role=Role(
                    id=str(uuid4()),
                    name=name,
                    slug=slug,
                    description=command.description,
                    is_system_role=False,
                    is_protected=False,
                    permissions=permissions,
                    created_at=now,
                    updated_at=now,
                )
            )
        except DuplicateKeyError as exc:
            raise RoleAlreadyExistsError(f"Role '{slug}' already exists.") from exc

        logger.info("roles: created slug=%s", role.slug)
        return build_role_output(role)


class GetRoleUseCase:
    def __init__(self, *, access_control_port: AccessControlPort):
        self._access_control_port = access_control_port

    def execute(self, *, role_ref: str) -> RoleOutput:
        return build_role_output(find_role(self._access_control_port, role_ref))


class ListRolesUseCase:
    def __init__(self, *, access_control_port: AccessControlPort):
        self._access_control_port = access_control_port

    def execute(self, command: ListRolesInput) -> RoleListOutput:
        page = max(command.page, 1)
        limit = min(max(command.limit, 1), MAX_PAGE_SIZE)
        search = command.search.strip() if command.search else None
        roles, total = self._access_control_port.list_roles(
            search=search or None,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return RoleListOutput(
            items=[build_role_output(role) for role in roles],
            total=total,
            page=page,
            limit=limit,
        )


class UpdateRoleUseCase:
    def __init__(self, *, access_control_port: AccessControlPort):
        self._access_control_port = access_control_port

    def execute(self, command: UpdateRoleInput) -> RoleOutput:
        role = find_role(self._access_control_port, command.role_ref)
        if role.is_protected:
            raise ProtectedRoleError(f"Role '{role.slug}' is protected and cannot be modified.")

        updated = role
        if command.name is not None and command.name.strip() and command.name.strip() != role.name:
            name = command.name.strip()
            slug = _slug_for(name)
            if slug != role.slug:
                # Users reference roles by slug, so a rename must not orphan assignments.
                if self._access_control_port.count_users_with_role(slug=role.slug) > 0:
                    raise RoleInUseError(f"Role '{role.slug}' is assigned to users and cannot be renamed.")
                if self._access_control_port.get_role_by_slug(slug=slug) is not None:
                    raise RoleAlreadyExistsError(f"Role '{slug}' already exists.")
            updated = replace(updated, name=name, slug=slug)
        if command.description is not None:
            updated = replace(updated, description=command.description)
        if command.permissions is not None:
            updated = replace(updated, permissions=validate_permissions(command.permissions))

        try:
            stored = self._access_control_port.update_role(role=replace(updated, updated_at=utcnow()))
        except DuplicateKeyError as exc:
            raise RoleAlreadyExistsError(f"Role '{updated.slug}' already exists.") from exc

        logger.info("roles: updated slug=%s", stored.slug)
        return build_role_output(stored)


class DeleteRoleUseCase:
    def __init__(self, *, access_control_port: AccessControlPort):
        self._access_control_port = access_control_port

    def execute(self, *, role_ref: str) -> None:
        role = find_role(self._access_control_port, role_ref)
        if role.is_protected:
            raise ProtectedRoleError(f"Role '{role.slug}' is protected and cannot be deleted.")

        assigned = self._access_control_port.count_users_with_role(slug=role.slug)
        if assigned > 0:
            raise RoleInUseError(f"Role '{role.slug}' is assigned to {assigned} user(s).")

        self._access_control_port.delete_role(role_id=role.id)
        logger.info("roles: deleted slug=%s", role.slug)


class AssignRoleUseCase:
    def __init__(self, *, accounts_port: AccountsPort, access_control_port: AccessControlPort):
        self._accounts_port = accounts_port
        self._access_control_port = access_control_port

    def execute(self, command: AssignRoleInput) -> RoleOutput:
        role = self._access_control_port.get_role_by_slug(slug=command.role_slug.strip())
        if role is None:
            raise RoleNotFoundError(f"Role '{command.role_slug}' not found.")

        updated = self._accounts_port.update_user_role(
            user_id=command.user_id,
            role=role.slug,
            updated_at=utcnow(),
        )
        if not updated:
            raise UserNotFoundError("User not found.")

        logger.info("roles: assigned user_id=%s role=%s", command.user_id, role.slug)
        return build_role_output(role)
