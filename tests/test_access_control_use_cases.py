from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from authkit.application.dto.access_control import (
    AssignRoleInput,
    CheckPermissionInput,
    CreateRoleInput,
    GrantPermissionInput,
    ListRolesInput,
    RevokePermissionInput,
    UpdateRoleInput,
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
from authkit.application.use_cases.roles import (
    AssignRoleUseCase,
    CreateRoleUseCase,
    DeleteRoleUseCase,
    GetRoleUseCase,
    ListRolesUseCase,
    UpdateRoleUseCase,
)
from authkit.domain.entities.permission import PermissionGrant
from authkit.domain.exceptions import (
    InvalidPermissionError,
    PermissionAlreadyGrantedError,
    PermissionNotGrantedError,
    ProtectedRoleError,
    RoleAlreadyExistsError,
    RoleInUseError,
    RoleNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from tests.fakes import FakeAccessControlPort, FakeAccountsPort, make_role, make_user


def _editor_setup():
    accounts = FakeAccountsPort(users=[make_user(role="editor")])
    access = FakeAccessControlPort(
        roles=[make_role(slug="editor", permissions=("articles:update:all",))],
        accounts=accounts,
    )
    return accounts, access


def test_editor_role_plus_direct_grant_resolves_effective_permissions():
    accounts, access = _editor_setup()
    GrantPermissionUseCase(accounts_port=accounts, access_control_port=access).execute(
        GrantPermissionInput(user_id="user-1", permission="articles:delete:own")
    )
    effective_use_case = ListEffectivePermissionsUseCase(accounts_port=accounts, access_control_port=access)
    check = CheckPermissionUseCase(list_effective_permissions_use_case=effective_use_case)

    output = effective_use_case.execute(user_id="user-1")

    assert output.permissions == ["articles:delete:own", "articles:update:all"]
    assert output.role_permissions == ["articles:update:all"]
    assert output.direct_permissions == ["articles:delete:own"]
    assert check.execute(CheckPermissionInput(user_id="user-1", permissions=("articles:delete:own",))) is True
    assert check.execute(CheckPermissionInput(user_id="user-1", permissions=("articles:delete:all",))) is False


def test_wildcard_role_allows_everything():
    accounts = FakeAccountsPort(users=[make_user(role="admin")])
    access = FakeAccessControlPort(roles=[make_role(slug="admin", permissions=("*",), is_protected=True)])
    check = CheckPermissionUseCase(
        list_effective_permissions_use_case=ListEffectivePermissionsUseCase(
            accounts_port=accounts,
            access_control_port=access,
        )
    )

    assert check.execute(CheckPermissionInput(user_id="user-1", permissions=("anything:at:all",))) is True


def test_expired_grants_are_ignored():
    accounts, access = _editor_setup()
    now = datetime.now(timezone.utc)
    access.grants.append(
        PermissionGrant(
            id="grant-1",
            user_id="user-1",
            permission="reports:read:all",
            granted=True,
            scope=None,
            expires_at=now - timedelta(minutes=1),
            granted_by=None,
            created_at=now - timedelta(days=1),
        )
    )

    output = ListEffectivePermissionsUseCase(accounts_port=accounts, access_control_port=access).execute(
        user_id="user-1"
    )

    assert output.permissions == ["articles:update:all"]


def test_grant_validates_permission_and_user():
    accounts, access = _editor_setup()
    use_case = GrantPermissionUseCase(accounts_port=accounts, access_control_port=access)

    with pytest.raises(InvalidPermissionError):
        use_case.execute(GrantPermissionInput(user_id="user-1", permission="Articles Delete"))
    with pytest.raises(UserNotFoundError):
        use_case.execute(GrantPermissionInput(user_id="ghost", permission="articles:read"))
    with pytest.raises(ValidationError):
        use_case.execute(GrantPermissionInput(user_id="user-1", permission="articles:read", scope="galaxy"))


def test_grant_twice_conflicts():
    accounts, access = _editor_setup()
    use_case = GrantPermissionUseCase(accounts_port=accounts, access_control_port=access)
    output = use_case.execute(
        GrantPermissionInput(user_id="user-1", permission="articles:delete:own", scope="own", granted_by="admin-1")
    )

    assert output.scope == "own"
    assert output.granted_by == "admin-1"
    with pytest.raises(PermissionAlreadyGrantedError):
        use_case.execute(GrantPermissionInput(user_id="user-1", permission="articles:delete:own"))


def test_grant_replaces_expired_grant():
    accounts, access = _editor_setup()
    now = datetime.now(timezone.utc)
    access.grants.append(
        PermissionGrant(
            id="grant-1",
            user_id="user-1",
            permission="reports:read:all",
            granted=True,
            scope=None,
            expires_at=now - timedelta(minutes=1),
            granted_by=None,
            created_at=now - timedelta(days=1),
        )
    )
    use_case = GrantPermissionUseCase(accounts_port=accounts, access_control_port=access)

    output = use_case.execute(
        GrantPermissionInput(user_id="user-1", permission="reports:read:all", granted_by="admin-1")
    )

    assert output.id == "grant-1"
    assert output.expires_at is None
    assert output.granted_by == "admin-1"
    assert len(access.grants) == 1
    effective = ListEffectivePermissionsUseCase(accounts_port=accounts, access_control_port=access).execute(
        user_id="user-1"
    )
    assert "reports:read:all" in effective.permissions
    with pytest.raises(PermissionAlreadyGrantedError):
        use_case.execute(GrantPermissionInput(user_id="user-1", permission="reports:read:all"))


def test_check_permission_matches_any_or_all():
    accounts, access = _editor_setup()
    check = CheckPermissionUseCase(
        list_effective_permissions_use_case=ListEffectivePermissionsUseCase(
            accounts_port=accounts,
            access_control_port=access,
        )
    )
    wanted = ("articles:update:all", "articles:delete:all")

    assert check.execute(CheckPermissionInput(user_id="user-1", permissions=wanted, match="any")) is True
    assert check.execute(CheckPermissionInput(user_id="user-1", permissions=wanted)) is False


def test_effective_permissions_filtered_by_resource():
    accounts, access = _editor_setup()
    GrantPermissionUseCase(accounts_port=accounts, access_control_port=access).execute(
        GrantPermissionInput(user_id="user-1", permission="reports:read:all")
    )
    use_case = ListEffectivePermissionsUseCase(accounts_port=accounts, access_control_port=access)

    output = use_case.execute(user_id="user-1", resource="reports")

    assert output.permissions == ["reports:read:all"]
    assert output.role_permissions == []
    assert output.direct_permissions == ["reports:read:all"]


def test_resource_filter_keeps_wildcard():
    accounts = FakeAccountsPort(users=[make_user(role="admin")])
    access = FakeAccessControlPort(roles=[make_role(slug="admin", permissions=("*",), is_protected=True)])

    output = ListEffectivePermissionsUseCase(accounts_port=accounts, access_control_port=access).execute(
        user_id="user-1",
        resource="users",
    )

    assert output.permissions == ["*"]


def test_revoke_removes_direct_grant_only():
    accounts, access = _editor_setup()
    GrantPermissionUseCase(accounts_port=accounts, access_control_port=access).execute(
        GrantPermissionInput(user_id="user-1", permission="articles:delete:own")
    )
    revoke = RevokePermissionUseCase(access_control_port=access)

    revoke.execute(RevokePermissionInput(user_id="user-1", permission="articles:delete:own"))

    assert access.grants == []
    with pytest.raises(PermissionNotGrantedError):
        revoke.execute(RevokePermissionInput(user_id="user-1", permission="articles:update:all"))


def test_list_grants_for_user():
    accounts, access = _editor_setup()
    grant = GrantPermissionUseCase(accounts_port=accounts, access_control_port=access)
    grant.execute(GrantPermissionInput(user_id="user-1", permission="reports:read:all"))
    grant.execute(GrantPermissionInput(user_id="user-1", permission="articles:delete:own"))

    rows = ListPermissionGrantsUseCase(accounts_port=accounts, access_control_port=access).execute(user_id="user-1")

    assert [row.permission for row in rows] == ["articles:delete:own", "reports:read:all"]


def test_create_role_slugifies_name_and_validates_permissions():
    access = FakeAccessControlPort()
    use_case = CreateRoleUseCase(access_control_port=access)

    output = use_case.execute(
        CreateRoleInput(name="Content Editor", description="Edits content", permissions=["articles:update:all"])
    )

    assert output.slug == "content-editor"
    assert output.permissions == ["articles:update:all"]
    assert output.is_protected is False
    with pytest.raises(RoleAlreadyExistsError):
        use_case.execute(CreateRoleInput(name="content editor", description=None, permissions=[]))
    with pytest.raises(InvalidPermissionError):
        use_case.execute(CreateRoleInput(name="Broken", description=None, permissions=["not valid"]))
    with pytest.raises(ValidationError):
        use_case.execute(CreateRoleInput(name="!!!", description=None, permissions=[]))


def test_get_role_by_id_or_slug():
    access = FakeAccessControlPort(roles=[make_role(slug="editor", role_id="role-42")])
    use_case = GetRoleUseCase(access_control_port=access)

    assert use_case.execute(role_ref="role-42").slug == "editor"
    assert use_case.execute(role_ref="editor").id == "role-42"
    with pytest.raises(RoleNotFoundError):
        use_case.execute(role_ref="missing")


def test_list_roles_paginates_and_clamps_limit():
    access = FakeAccessControlPort(roles=[make_role(slug=f"role{index}") for index in range(5)])

    output = ListRolesUseCase(access_control_port=access).execute(ListRolesInput(page=2, limit=2))
    clamped = ListRolesUseCase(access_control_port=access).execute(ListRolesInput(limit=1000))

    assert output.total == 5
    assert [item.slug for item in output.items] == ["role2", "role3"]
    assert clamped.limit == 100


def test_update_role_changes_permissions_and_renames_unused_role():
    access = FakeAccessControlPort(roles=[make_role(slug="editor")], accounts=FakeAccountsPort())

    output = UpdateRoleUseCase(access_control_port=access).execute(
        UpdateRoleInput(role_ref="editor", name="Writer", permissions=["articles:create"])
    )

    assert output.slug == "writer"
    assert output.permissions == ["articles:create"]


def test_update_role_rename_blocked_while_assigned():
    accounts, access = _editor_setup()

    with pytest.raises(RoleInUseError):
        UpdateRoleUseCase(access_control_port=access).execute(UpdateRoleInput(role_ref="editor", name="Writer"))


def test_protected_role_cannot_be_updated_or_deleted():
    access = FakeAccessControlPort(roles=[make_role(slug="admin", permissions=("*",), is_protected=True)])

    with pytest.raises(ProtectedRoleError):
        UpdateRoleUseCase(access_control_port=access).execute(
            UpdateRoleInput(role_ref="admin", permissions=["articles:read"])
        )
    with pytest.raises(ProtectedRoleError):
        DeleteRoleUseCase(access_control_port=access).execute(role_ref="admin")


def test_delete_role_in_use_is_refused():
    accounts, access = _editor_setup()

    with pytest.raises(RoleInUseError):
        DeleteRoleUseCase(access_control_port=access).execute(role_ref="editor")

    accounts.users.clear()
    DeleteRoleUseCase(access_control_port=access).execute(role_ref="editor")
    assert access.roles == {}


def test_assign_role():
    accounts, access = _editor_setup()
    access.roles["role-support"] = make_role(slug="support")
    use_case = AssignRoleUseCase(accounts_port=accounts, access_control_port=access)

    output = use_case.execute(AssignRoleInput(user_id="user-1", role_slug="support"))

    assert output.slug == "support"
    assert accounts.users["user-1"].role == "support"
    with pytest.raises(RoleNotFoundError):
        use_case.execute(AssignRoleInput(user_id="user-1", role_slug="nope"))
    with pytest.raises(UserNotFoundError):
        use_case.execute(AssignRoleInput(user_id="ghost", role_slug="support"))
