"""Integration tests for auth endpoints."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.auth.backend import create_access_token, create_refresh_token
from backoffice.modules.units.models import MemberApproval
from tests.helpers import TEST_PASSWORD, add_unit_member, bearer, create_organization, create_unit


pytestmark = pytest.mark.integration


class TestRegistration:
    """Tests for the registration endpoint."""

    async def test_register_then_duplicate(self, client: AsyncClient):
        """Registering the same email twice gives 201 then 409."""
        payload = {
            "email": "alice@example.com",
            "password": "password123",
            "full_name": "Alice",
        }

        first = await client.post("/api/v1/auth/register", json=payload)
        second = await client.post("/api/v1/auth/register", json=payload)

        assert first.status_code == 201
        body = first.json()
        assert body["message"] == "registration successful"
        assert body["data"]["user"]["email"] == "alice@example.com"
        assert body["data"]["user"]["is_active"] is True
        assert body["data"]["user"]["is_super_admin"] is False
        assert "password_hash" not in body["data"]["user"]

        assert second.status_code == 409
        assert second.json()["type"].endswith("/errors/email_exists")

    async def test_register_short_password(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "bob@example.com", "password": "short", "full_name": "Bob"},
        )

        assert response.status_code == 400
        assert any(e["field"] == "password" for e in response.json()["errors"])

    async def test_register_invalid_email(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "not-an-email", "password": "password123", "full_name": "Bob"},
        )

        assert response.status_code == 400

    async def test_mixed_case_email_logs_in_and_blocks_case_variants(self, client: AsyncClient):
        payload = {"email": "Alice@Example.COM", "password": "password123", "full_name": "Alice"}

        registered = await client.post("/api/v1/auth/register", json=payload)
        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "Alice@Example.COM", "password": "password123"},
        )
        variant = await client.post(
            "/api/v1/auth/register", json={**payload, "email": " alice@example.com"}
        )

        assert registered.status_code == 201
        assert registered.json()["data"]["user"]["email"] == "alice@example.com"
        assert login.status_code == 200
        assert variant.status_code == 409


class TestLogin:
    """Tests for the login endpoint."""

    async def test_login_success(self, client: AsyncClient, user):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["expires_at"] > 0
        assert data["user"]["id"] == str(user.id)
        assert data["user"]["last_login_at"] is not None

    async def test_wrong_password_three_times_same_message(self, client: AsyncClient, user):
        responses = [
            await client.post(
                "/api/v1/auth/login",
                json={"email": user.email, "password": "WrongPass123!"},
            )
            for _ in range(3)
        ]

        assert [r.status_code for r in responses] == [401, 401, 401]
        assert len({r.json()["detail"] for r in responses}) == 1

    async def test_unknown_email_matches_wrong_password(self, client: AsyncClient, user):
        unknown = await client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": TEST_PASSWORD},
        )
        wrong = await client.post(
            "/api/v1/auth/login",
            json={"email": user.email, "password": "WrongPass123!"},
        )

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json()["detail"] == wrong.json()["detail"] == "Invalid email or password"

    async def test_inactive_account(self, client: AsyncClient, make_user):
        inactive = await make_user(is_active=False)

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": inactive.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 403

    async def test_soft_deleted_account_cannot_log_in(self, client: AsyncClient, db, user):
        user.soft_delete()
        await db.flush()

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 401

    @pytest.mark.parametrize(
        ("status", "detail"),
        [
            ("pending", "Your registration is awaiting verification"),
            ("rejected", "Your registration was rejected"),
        ],
    )
    async def test_registration_under_review(
        self,
        client: AsyncClient,
        db: AsyncSession,
        user,
        super_admin,
        status,
        detail,
    ):
        organization = await create_organization(db, super_admin)
        unit = await create_unit(db, organization)
        member = await add_unit_member(db, unit, user, role="parent")
        db.add(MemberApproval(unit_member_id=member.id, status=status))
        await db.flush()

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 403
        assert response.json()["detail"] == detail

    async def test_approved_registration(self, client, db, user, super_admin):
        organization = await create_organization(db, super_admin)
        unit = await create_unit(db, organization)
        member = await add_unit_member(db, unit, user, role="parent")
        db.add(MemberApproval(unit_member_id=member.id, status="approved"))
        await db.flush()

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200


class TestRefresh:
    """Tests for the token refresh endpoint."""

    async def test_refresh_returns_new_pair(self, client: AsyncClient, user):
        token, _ = create_refresh_token(user.id)

        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["user"]["email"] == user.email

    async def test_old_refresh_token_stays_valid(self, client: AsyncClient, user):
        """Refresh tokens are not rotated: the presented one keeps working."""
        token, _ = create_refresh_token(user.id)

        first = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})
        second = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})

        assert first.status_code == second.status_code == 200

    async def test_expired_refresh_token(self, client: AsyncClient, user):
        token, _ = create_refresh_token(user.id, expires_delta=timedelta(seconds=-1))

        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})

        assert response.status_code == 401

    async def test_access_token_is_not_a_refresh_token(self, client: AsyncClient, user):
        token, _ = create_access_token(user.id)

        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})

        assert response.status_code == 401

    async def test_refresh_for_inactive_user(self, client: AsyncClient, make_user):
        inactive = await make_user(is_active=False)
        token, _ = create_refresh_token(inactive.id)

        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})

        assert response.status_code == 403


class TestAuthenticatedRequests:
    """Bearer token handling on protected endpoints."""

    async def test_missing_token(self, client: AsyncClient):
        response = await client.get("/api/v1/users/me")

        assert response.status_code == 401

    async def test_refresh_token_is_not_an_access_token(self, client: AsyncClient, user):
        token, _ = create_refresh_token(user.id)

        response = await client.get(
            "/api/v1/users/me",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 401

    async def test_expired_access_token(self, client: AsyncClient, user):
        token, _ = create_access_token(user.id, expires_delta=timedelta(seconds=-1))

        response = await client.get(
            "/api/v1/users/me",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 401

    async def test_deleted_user_token(self, client: AsyncClient, db, user):
        headers = bearer(user)
        user.soft_delete()
        await db.flush()

        response = await client.get("/api/v1/users/me", headers=headers)

        assert response.status_code == 401

    async def test_me(self, client: AsyncClient, user, auth_headers):
        response = await client.get("/api/v1/users/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["email"] == user.email

    async def test_request_id_echoed(self, client: AsyncClient, auth_headers):
        response = await client.get(
            "/api/v1/users/me",
            headers={**auth_headers, "X-Request-ID": "req-123"},
        )

        assert response.headers["X-Request-ID"] == "req-123"
