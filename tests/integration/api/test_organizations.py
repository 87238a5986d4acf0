"""Integration tests for organization and organization member endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from tests.helpers import add_organization_member, create_organization, create_role


pytestmark = pytest.mark.integration


class TestOrganizations:
    async def test_create_sets_owner_and_default_type(self, client: AsyncClient, user, auth_headers):
        response = await client.post(
            "/api/v1/organizations",
            headers=auth_headers,
            json={"name": "Yayasan Nusantara", "code": "YN"},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["owner_id"] == str(user.id)
        assert data["type"] == "general"
        assert data["is_active"] is True

    async def test_duplicate_code(self, client, db, auth_headers, super_admin):
        await create_organization(db, super_admin, code="YN")

        response = await client.post(
            "/api/v1/organizations",
            headers=auth_headers,
            json={"name": "Other", "code": "YN"},
        )

        assert response.status_code == 409

    async def test_code_of_deleted_organization_stays_reserved(self, client, db, auth_headers, super_admin):
        organization = await create_organization(db, super_admin, code="OLD")
        organization.soft_delete()
        await db.flush()

        response = await client.post(
            "/api/v1/organizations",
            headers=auth_headers,
            json={"name": "Reuse", "code": "OLD"},
        )

        assert response.status_code == 409

    async def test_get_includes_member_count(self, client, db, auth_headers, user, super_admin):
        organization = await create_organization(db, super_admin)
        role = await create_role(db)
        await add_organization_member(db, organization, user, role)

        response = await client.get(f"/api/v1/organizations/{organization.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["member_count"] == 1

    async def test_partial_update(self, client, db, auth_headers, super_admin):
        organization = await create_organization(db, super_admin, name="Before", code="KEEP")

        response = await client.put(
            f"/api/v1/organizations/{organization.id}",
            headers=auth_headers,
            json={"name": "After", "is_active": False},
        )

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["name"] == "After"
        assert data["code"] == "KEEP"
        assert data["is_active"] is False

    async def test_delete_is_soft(self, client, db, auth_headers, super_admin):
        organization = await create_organization(db, super_admin)

        deleted = await client.delete(f"/api/v1/organizations/{organization.id}", headers=auth_headers)
        fetched = await client.get(f"/api/v1/organizations/{organization.id}", headers=auth_headers)

        assert deleted.status_code == 200
        assert fetched.status_code == 404
        assert organization.deleted_at is not None

    async def test_list_filters_by_owner(self, client, db, auth_headers, user, super_admin):
        await create_organization(db, super_admin)
        mine = await create_organization(db, user)

        response = await client.get(f"/api/v1/organizations?owner_id={user.id}", headers=auth_headers)

        assert [o["id"] for o in response.json()["data"]] == [str(mine.id)]


class TestOrganizationMembers:
    async def test_add_then_add_again_conflicts(self, client, db, auth_headers, make_user, super_admin):
        organization = await create_organization(db, super_admin)
        bob = await make_user(email="bob@example.com", full_name="Bob")
        role_x = await create_role(db, name="role_x")
        role_y = await create_role(db, name="role_y")
        url = f"/api/v1/organizations/{organization.id}/members"

        first = await client.post(url, headers=auth_headers, json={"user_id": str(bob.id), "role_id": str(role_x.id)})
        second = await client.post(url, headers=auth_headers, json={"user_id": str(bob.id), "role_id": str(role_y.id)})

        assert first.status_code == 201
        data = first.json()["data"]
        assert data["user_email"] == "bob@example.com"
        assert data["role_name"] == "role_x"
        assert data["organization_code"] == organization.code
        assert second.status_code == 409

    async def test_invited_by_is_the_caller(self, client, db, auth_headers, user, make_user, super_admin):
        organization = await create_organization(db, super_admin)
        other = await make_user()
        role = await create_role(db)

        response = await client.post(
            f"/api/v1/organizations/{organization.id}/members",
            headers=auth_headers,
            json={"user_id": str(other.id), "role_id": str(role.id)},
        )

        assert response.json()["data"]["invited_by"] == str(user.id)

    async def test_role_from_another_organization(self, client, db, auth_headers, user, super_admin):
        organization = await create_organization(db, super_admin)
        elsewhere = await create_organization(db, super_admin)
        foreign_role = await create_role(db, organization_id=elsewhere.id)

        response = await client.post(
            f"/api/v1/organizations/{organization.id}/members",
            headers=auth_headers,
            json={"user_id": str(user.id), "role_id": str(foreign_role.id)},
        )

        assert response.status_code == 400

    async def test_unknown_user(self, client, db, auth_headers, super_admin):
        organization = await create_organization(db, super_admin)
        role = await create_role(db)

        response = await client.post(
            f"/api/v1/organizations/{organization.id}/members",
            headers=auth_headers,
            json={"user_id": str(uuid4()), "role_id": str(role.id)},
        )

        assert response.status_code == 404

    async def test_update_member_role(self, client, db, auth_headers, user, super_admin):
        organization = await create_organization(db, super_admin)
        old_role = await create_role(db, name="old")
        new_role = await create_role(db, name="new", organization_id=organization.id)
        await add_organization_member(db, organization, user, old_role)

        response = await client.put(
            f"/api/v1/organizations/{organization.id}/members/{user.id}",
            headers=auth_headers,
            json={"role_id": str(new_role.id), "is_active": False},
        )

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["role_name"] == "new"
        assert data["is_active"] is False

    async def test_remove_then_readd(self, client, db, auth_headers, user, super_admin):
        organization = await create_organization(db, super_admin)
        role = await create_role(db)
        await add_organization_member(db, organization, user, role)
        member_url = f"/api/v1/organizations/{organization.id}/members/{user.id}"

        removed = await client.delete(member_url, headers=auth_headers)
        removed_again = await client.delete(member_url, headers=auth_headers)
        readded = await client.post(
            f"/api/v1/organizations/{organization.id}/members",
            headers=auth_headers,
            json={"user_id": str(user.id), "role_id": str(role.id)},
        )

        assert removed.status_code == 200
        assert removed_again.status_code == 404
        assert readded.status_code == 201

    async def test_list_members(self, client, db, auth_headers, user, make_user, super_admin):
        organization = await create_organization(db, super_admin)
        role = await create_role(db)
        other = await make_user()
        await add_organization_member(db, organization, user, role)
        await add_organization_member(db, organization, other, role, is_active=False)

        everyone = await client.get(f"/api/v1/organizations/{organization.id}/members", headers=auth_headers)
        active = await client.get(
            f"/api/v1/organizations/{organization.id}/members?is_active=true",
            headers=auth_headers,
        )

        assert everyone.json()["paginate"]["total_data"] == 2
        assert [m["user_id"] for m in active.json()["data"]] == [str(user.id)]
