"""Integration tests for unit and unit member endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from tests.helpers import add_unit_member, create_organization, create_unit


pytestmark = pytest.mark.integration


class TestUnits:
    async def test_create_defaults_type(self, client: AsyncClient, db, auth_headers, super_admin):
        organization = await create_organization(db, super_admin)

        response = await client.post(
            "/api/v1/units",
            headers=auth_headers,
            json={"organization_id": str(organization.id), "name": "SMP Satu", "code": "SMP1"},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["type"] == "SMP"
        assert data["organization_id"] == str(organization.id)

    async def test_create_requires_organization(self, client, auth_headers):
        response = await client.post(
            "/api/v1/units",
            headers=auth_headers,
            json={"organization_id": str(uuid4()), "name": "Lost", "code": "LOST"},
        )

        assert response.status_code == 404

    async def test_duplicate_code(self, client, db, auth_headers, super_admin):
        organization = await create_organization(db, super_admin)
        await create_unit(db, organization, code="SMP1")

        response = await client.post(
            "/api/v1/units",
            headers=auth_headers,
            json={"organization_id": str(organization.id), "name": "Again", "code": "SMP1"},
        )

        assert response.status_code == 409

    async def test_get_update_delete(self, client, db, auth_headers, user, super_admin):
        organization = await create_organization(db, super_admin)
        unit = await create_unit(db, organization)
        await add_unit_member(db, unit, user)
        url = f"/api/v1/units/{unit.id}"

        fetched = await client.get(url, headers=auth_headers)
        updated = await client.put(url, headers=auth_headers, json={"type": "SMA"})
        deleted = await client.delete(url, headers=auth_headers)
        gone = await client.get(url, headers=auth_headers)

        assert fetched.json()["data"]["member_count"] == 1
        assert updated.json()["data"]["type"] == "SMA"
        assert deleted.status_code == 200
        assert gone.status_code == 404

    async def test_list_filters_by_organization(self, client, db, auth_headers, super_admin):
        first = await create_organization(db, super_admin)
        second = await create_organization(db, super_admin)
        unit = await create_unit(db, first)
        await create_unit(db, second)

        response = await client.get(f"/api/v1/units?organization_id={first.id}", headers=auth_headers)

        assert [u["id"] for u in response.json()["data"]] == [str(unit.id)]


class TestUnitMembers:
    async def test_add_defaults_to_staff(self, client, db, auth_headers, user, make_user, super_admin):
        organization = await create_organization(db, super_admin)
        unit = await create_unit(db, organization)
        teacher = await make_user(full_name="Guru")

        response = await client.post(
            f"/api/v1/units/{unit.id}/members",
            headers=auth_headers,
            json={"user_id": str(teacher.id)},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["role"] == "staff"
        assert data["user_full_name"] == "Guru"
        assert data["unit_code"] == unit.code
        assert data["organization_name"] == organization.name
        assert data["invited_by"] == str(user.id)

    async def test_unknown_role(self, client, db, auth_headers, user, super_admin):
        organization = await create_organization(db, super_admin)
        unit = await create_unit(db, organization)

        response = await client.post(
            f"/api/v1/units/{unit.id}/members",
            headers=auth_headers,
            json={"user_id": str(user.id), "role": "headmaster"},
        )

        assert response.status_code == 400

    async def test_duplicate_member(self, client, db, auth_headers, user, super_admin):
        organization = await create_organization(db, super_admin)
        unit = await create_unit(db, organization)
        await add_unit_member(db, unit, user)

        response = await client.post(
            f"/api/v1/units/{unit.id}/members",
            headers=auth_headers,
            json={"user_id": str(user.id), "role": "parent"},
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "User is already a member of this unit"

    async def test_update_and_remove_by_member_id(self, client, db, auth_headers, user, super_admin):
        organization = await create_organization(db, super_admin)
        unit = await create_unit(db, organization)
        member = await add_unit_member(db, unit, user)
        url = f"/api/v1/units/{unit.id}/members/{member.id}"

        updated = await client.put(url, headers=auth_headers, json={"role": "admin"})
        removed = await client.delete(url, headers=auth_headers)
        missing = await client.get(url, headers=auth_headers)

        assert updated.json()["data"]["role"] == "admin"
        assert removed.status_code == 200
        assert missing.status_code == 404

    async def test_member_of_other_unit_is_not_found(self, client, db, auth_headers, user, super_admin):
        organization = await create_organization(db, super_admin)
        unit = await create_unit(db, organization)
        other_unit = await create_unit(db, organization)
        member = await add_unit_member(db, other_unit, user)

        response = await client.get(f"/api/v1/units/{unit.id}/members/{member.id}", headers=auth_headers)

        assert response.status_code == 404

    async def test_list_filters_by_role(self, client, db, auth_headers, user, make_user, super_admin):
        organization = await create_organization(db, super_admin)
        unit = await create_unit(db, organization)
        parent = await make_user()
        await add_unit_member(db, unit, user, role="staff")
        await add_unit_member(db, unit, parent, role="parent")

        response = await client.get(f"/api/v1/units/{unit.id}/members?role=parent", headers=auth_headers)

        assert [m["user_id"] for m in response.json()["data"]] == [str(parent.id)]
