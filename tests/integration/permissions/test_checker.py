"""Tests for DatabasePermissionChecker against a real schema."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.permissions import DatabasePermissionChecker
from tests.helpers import (
    add_organization_member,
    create_organization,
    create_permissions,
    create_role,
)


pytestmark = pytest.mark.integration


@pytest.fixture
def checker(db: AsyncSession) -> DatabasePermissionChecker:
    return DatabasePermissionChecker(db)


@pytest.fixture
async def organization(db, super_admin):
    return await create_organization(db, super_admin)


class TestDatabasePermissionChecker:
    async def test_user_without_memberships_has_nothing(self, checker, user, organization):
        assert await checker.get_user_permissions(user.id, organization.id) == set()
        assert (
            await checker.has_permission(user.id, "classes.read", organization_id=organization.id)
            is False
        )

    async def test_permissions_come_from_membership_role(self, db, checker, user, organization):
        read, update = await create_permissions(db, "classes.read", "classes.update")
        role = await create_role(db, [read])
        await add_organization_member(db, organization, user, role)
        scope = {"organization_id": organization.id}

        assert await checker.get_user_permissions(user.id, organization.id) == {"classes.read"}
        assert await checker.has_permission(user.id, "classes.read", **scope) is True
        assert await checker.has_permission(user.id, update.name, **scope) is False

    async def test_grants_stay_inside_their_organization(
        self, db, checker, user, organization, super_admin
    ):
        read, update = await create_permissions(db, "classes.read", "classes.update")
        reader = await create_role(db, [read])
        editor = await create_role(db, [update])
        second = await create_organization(db, super_admin)
        await add_organization_member(db, organization, user, reader)
        await add_organization_member(db, second, user, editor)

        assert await checker.get_user_permissions(user.id, organization.id) == {"classes.read"}
        assert await checker.get_user_permissions(user.id, second.id) == {"classes.update"}
        assert not await checker.has_all_permissions(
            user.id, ["classes.read", "classes.update"], organization_id=organization.id
        )
        assert not await checker.has_permission(
            user.id, "classes.update", organization_id=organization.id
        )

    async def test_custom_role_does_not_reach_other_organization(
        self, db, checker, user, organization, super_admin
    ):
        (everything,) = await create_permissions(db, "*.*")
        local_admin = await create_role(db, [everything], organization_id=organization.id)
        await add_organization_member(db, organization, user, local_admin)
        other = await create_organization(db, super_admin)

        assert await checker.has_permission(
            user.id, "roles.update", organization_id=organization.id
        )
        assert not await checker.has_permission(user.id, "roles.update", organization_id=other.id)

    async def test_platform_scope_grants_nothing_to_members(
        self, db, checker, user, organization
    ):
        (everything,) = await create_permissions(db, "*.*")
        role = await create_role(db, [everything])
        await add_organization_member(db, organization, user, role)

        assert await checker.get_user_permissions(user.id) == set()
        assert await checker.has_permission(user.id, "permissions.create") is False

    async def test_any_versus_all(self, db, checker, user, organization):
        (read,) = await create_permissions(db, "posts.read")
        role = await create_role(db, [read])
        await add_organization_member(db, organization, user, role)
        required = ["posts.read", "posts.delete"]

        assert (
            await checker.has_any_permission(user.id, required, organization_id=organization.id)
            is True
        )
        assert (
            await checker.has_all_permissions(user.id, required, organization_id=organization.id)
            is False
        )

    async def test_inactive_membership_grants_nothing(self, db, checker, user, organization):
        (read,) = await create_permissions(db, "classes.read")
        role = await create_role(db, [read])
        await add_organization_member(db, organization, user, role, is_active=False)

        assert (
            await checker.has_permission(user.id, "classes.read", organization_id=organization.id)
            is False
        )

    async def test_removed_membership_grants_nothing(self, db, checker, user, organization):
        (read,) = await create_permissions(db, "classes.read")
        role = await create_role(db, [read])
        member = await add_organization_member(db, organization, user, role)
        member.soft_delete()
        await db.flush()

        assert (
            await checker.has_permission(user.id, "classes.read", organization_id=organization.id)
            is False
        )

    async def test_deleted_organization_grants_nothing(self, db, checker, user, organization):
        (read,) = await create_permissions(db, "classes.read")
        role = await create_role(db, [read])
        await add_organization_member(db, organization, user, role)
        organization.soft_delete()
        await db.flush()

        assert (
            await checker.has_permission(user.id, "classes.read", organization_id=organization.id)
            is False
        )

    async def test_wildcard_permission(self, db, checker, user, organization):
        (wildcard,) = await create_permissions(db, "units.*")
        role = await create_role(db, [wildcard])
        await add_organization_member(db, organization, user, role)
        scope = {"organization_id": organization.id}

        assert await checker.has_permission(user.id, "units.delete", **scope) is True
        assert await checker.has_permission(user.id, "roles.delete", **scope) is False

    async def test_super_admin_bypasses_every_check(self, checker, super_admin, organization):
        assert await checker.has_permission(super_admin.id, "anything.at_all") is True
        assert (
            await checker.has_all_permissions(
                super_admin.id, ["a.b", "c.d"], organization_id=organization.id
            )
            is True
        )
