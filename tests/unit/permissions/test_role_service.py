"""Unit tests for RoleService business rules."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from backoffice.core.auth.schemas import Identity
from backoffice.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from backoffice.core.permissions.models import Role, RoleType
from backoffice.modules.roles.schemas import RoleCreate, RoleUpdate
from backoffice.modules.roles.services import RoleService


pytestmark = pytest.mark.unit


def _permission(permission_id=None, name="posts.read"):
    permission = MagicMock()
    permission.id = permission_id or uuid4()
    permission.name = name
    return permission


def _role(**overrides) -> Role:
    return Role(
        id=overrides.get("id", uuid4()),
        organization_id=overrides.get("organization_id"),
        name=overrides.get("name", "coordinator"),
        display_name=overrides.get("display_name", "Coordinator"),
        type=overrides.get("type", RoleType.CUSTOM.value),
        level=overrides.get("level", 10),
        is_default=False,
    )


@pytest.fixture
def repos():
    role_repo = AsyncMock()
    permission_repo = AsyncMock()
    organization_repo = AsyncMock()
    role_repo.create.side_effect = lambda role: role
    role_repo.update.side_effect = lambda role: role
    role_repo.get_by_name.return_value = None
    role_repo.is_held_by.return_value = False
    permission_repo.get_by_ids.return_value = []
    return role_repo, permission_repo, organization_repo


@pytest.fixture
def checker():
    checker = AsyncMock()
    checker.has_all_permissions.return_value = True
    return checker


@pytest.fixture
def identity() -> Identity:
    return Identity(user_id=uuid4(), email="editor@example.com", full_name="Editor")


@pytest.fixture
def service(repos, checker) -> RoleService:
    return RoleService(*repos, checker)


class TestCreateRole:
    async def test_create_assigns_exact_permission_set(self, service, repos, identity):
        role_repo, permission_repo, _ = repos
        p1, p2 = _permission(), _permission()
        permission_repo.get_by_ids.return_value = [p1, p2]

        role = await service.create_role(
            RoleCreate(name="coordinator", display_name="Coordinator", permission_ids=[p1.id, p2.id, p1.id]),
            identity,
        )

        role_repo.replace_permissions.assert_awaited_once_with(role.id, [p1.id, p2.id])

    async def test_create_without_permissions_still_applies_empty_set(self, service, repos, identity):
        role_repo, _, _ = repos

        role = await service.create_role(RoleCreate(name="viewer", display_name="Viewer"), identity)

        role_repo.replace_permissions.assert_awaited_once_with(role.id, [])

    async def test_unknown_permission_ids_are_rejected(self, service, repos, identity):
        role_repo, permission_repo, _ = repos
        known = _permission()
        permission_repo.get_by_ids.return_value = [known]

        with pytest.raises(ValidationError) as exc_info:
            await service.create_role(
                RoleCreate(name="x", display_name="X", permission_ids=[known.id, uuid4()]),
                identity,
            )

        assert exc_info.value.status_code == 400
        role_repo.create.assert_not_called()

    async def test_system_role_cannot_belong_to_organization(self, service, repos, identity):
        role_repo, _, _ = repos

        with pytest.raises(ValidationError):
            await service.create_role(
                RoleCreate(
                    name="x",
                    display_name="X",
                    type=RoleType.SYSTEM,
                    organization_id=uuid4(),
                ),
                identity,
            )

        role_repo.create.assert_not_called()

    async def test_missing_organization(self, service, repos, identity):
        _, _, organization_repo = repos
        organization_repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await service.create_role(
                RoleCreate(name="x", display_name="X", organization_id=uuid4()),
                identity,
            )

    async def test_duplicate_name_in_scope(self, service, repos, identity):
        role_repo, _, _ = repos
        role_repo.get_by_name.return_value = _role()

        with pytest.raises(ConflictError):
            await service.create_role(RoleCreate(name="coordinator", display_name="C"), identity)


class TestSystemRoleImmutability:
    async def test_update_system_role_is_forbidden(self, service, repos, identity):
        role_repo, _, _ = repos
        role_repo.get_by_id.return_value = _role(type=RoleType.SYSTEM.value)

        with pytest.raises(ForbiddenError) as exc_info:
            await service.update_role(uuid4(), RoleUpdate(display_name="Renamed"), identity)

        assert exc_info.value.error_code == "system_role_immutable"
        role_repo.update.assert_not_called()
        role_repo.replace_permissions.assert_not_called()

    async def test_delete_system_role_is_forbidden(self, service, repos, identity):
        role_repo, _, _ = repos
        role_repo.get_by_id.return_value = _role(type=RoleType.SYSTEM.value)

        with pytest.raises(ForbiddenError):
            await service.delete_role(uuid4())

        role_repo.delete.assert_not_called()


class TestUpdateRole:
    async def test_empty_fields_leave_role_unchanged(self, service, repos, identity):
        role_repo, _, _ = repos
        role = _role(name="coordinator", display_name="Coordinator", level=10)
        role_repo.get_by_id.return_value = role

        updated = await service.update_role(role.id, RoleUpdate(name="", display_name="", level=0), identity)

        assert updated.name == "coordinator"
        assert updated.display_name == "Coordinator"
        assert updated.level == 10
        role_repo.replace_permissions.assert_not_called()

    async def test_permission_ids_replace_whole_set(self, service, repos, identity):
        role_repo, permission_repo, _ = repos
        role = _role()
        role_repo.get_by_id.return_value = role
        p3 = _permission()
        permission_repo.get_by_ids.return_value = [p3]

        await service.update_role(role.id, RoleUpdate(permission_ids=[p3.id]), identity)

        role_repo.replace_permissions.assert_awaited_once_with(role.id, [p3.id])

    async def test_empty_permission_list_clears_set(self, service, repos, identity):
        role_repo, _, _ = repos
        role = _role()
        role_repo.get_by_id.return_value = role

        await service.update_role(role.id, RoleUpdate(permission_ids=[]), identity)

        role_repo.replace_permissions.assert_awaited_once_with(role.id, [])

    async def test_rename_to_taken_name(self, service, repos, identity):
        role_repo, _, _ = repos
        role_repo.get_by_id.return_value = _role(name="coordinator")
        role_repo.get_by_name.return_value = _role(name="taken")

        with pytest.raises(ConflictError):
            await service.update_role(uuid4(), RoleUpdate(name="taken"), identity)

    async def test_missing_role(self, service, repos, identity):
        role_repo, _, _ = repos
        role_repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await service.update_role(uuid4(), RoleUpdate(display_name="X"), identity)


class TestPermissionEscalation:
    async def test_create_refuses_permissions_the_caller_lacks(
        self, service, repos, checker, identity
    ):
        role_repo, permission_repo, _ = repos
        organization_id = uuid4()
        granted = _permission(name="*.*")
        permission_repo.get_by_ids.return_value = [granted]
        checker.has_all_permissions.return_value = False

        with pytest.raises(ForbiddenError) as exc_info:
            await service.create_role(
                RoleCreate(
                    name="takeover",
                    display_name="Takeover",
                    organization_id=organization_id,
                    permission_ids=[granted.id],
                ),
                identity,
            )

        assert exc_info.value.error_code == "permission_escalation"
        checker.has_all_permissions.assert_awaited_once_with(
            identity.user_id, ["*.*"], organization_id=organization_id
        )
        role_repo.create.assert_not_called()

    async def test_update_checks_grants_in_the_role_organization(
        self, service, repos, checker, identity
    ):
        role_repo, permission_repo, _ = repos
        role = _role(organization_id=uuid4())
        role_repo.get_by_id.return_value = role
        granted = _permission(name="units.update")
        permission_repo.get_by_ids.return_value = [granted]

        await service.update_role(role.id, RoleUpdate(permission_ids=[granted.id]), identity)

        checker.has_all_permissions.assert_awaited_once_with(
            identity.user_id, ["units.update"], organization_id=role.organization_id
        )

    async def test_holder_cannot_rewrite_own_role(self, service, repos, identity):
        role_repo, _, _ = repos
        role = _role(organization_id=uuid4())
        role_repo.get_by_id.return_value = role
        role_repo.is_held_by.return_value = True

        with pytest.raises(ForbiddenError) as exc_info:
            await service.update_role(role.id, RoleUpdate(permission_ids=[]), identity)

        assert exc_info.value.error_code == "own_role_immutable"
        role_repo.replace_permissions.assert_not_called()

    async def test_holder_may_still_rename_own_role(self, service, repos, identity):
        role_repo, _, _ = repos
        role = _role(organization_id=uuid4())
        role_repo.get_by_id.return_value = role
        role_repo.is_held_by.return_value = True

        updated = await service.update_role(role.id, RoleUpdate(display_name="Renamed"), identity)

        assert updated.display_name == "Renamed"
        role_repo.is_held_by.assert_not_called()

    async def test_super_admin_may_rewrite_own_role(self, service, repos):
        role_repo, _, _ = repos
        role = _role()
        role_repo.get_by_id.return_value = role
        role_repo.is_held_by.return_value = True
        root = Identity(user_id=uuid4(), email="root@example.com", full_name="Root", is_super_admin=True)

        await service.update_role(role.id, RoleUpdate(permission_ids=[]), root)

        role_repo.replace_permissions.assert_awaited_once_with(role.id, [])
