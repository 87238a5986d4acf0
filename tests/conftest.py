"""Pytest configuration and shared fixtures.

Every test gets a fresh in-memory SQLite database. The ``db`` session is
bound to an outer connection-level transaction that is rolled back after
the test, and the application's ``get_db`` dependency is overridden to
hand that same session to request handlers.
"""

import os


os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DATABASE_AUTO_CREATE", "false")
os.environ.setdefault("PERMISSION_MODE", "allow_all")

from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backoffice.core.database import Base, configure_sqlite, get_db  # noqa: E402
from backoffice.core.permissions.checker import (  # noqa: E402
    PermissionCheckerFactory,
    allow_all_factory,
    database_checker_factory,
)
from backoffice.main import create_app  # noqa: E402
from backoffice.modules import import_models  # noqa: E402
from backoffice.modules.users.models import User  # noqa: E402
from tests.factories.user import UserFactory  # noqa: E402
from tests.helpers import bearer  # noqa: E402


UserMaker = Callable[..., Awaitable[User]]


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory database with every table created."""
    import_models()
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    configure_sqlite(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Session joined to an outer transaction that is always rolled back."""
    async with engine.connect() as conn:
        transaction = await conn.begin()
        session = AsyncSession(
            bind=conn,
            expire_on_commit=False,
            autoflush=False,
            join_transaction_mode="create_savepoint",
        )
        try:
            yield session
        finally:
            await session.close()
            await transaction.rollback()


def _build_app(db: AsyncSession, factory: PermissionCheckerFactory) -> FastAPI:
    app = create_app(permission_checker_factory=factory)

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def app(db: AsyncSession) -> FastAPI:
    """Application in allow-all mode: any authenticated caller passes guards."""
    return _build_app(db, allow_all_factory)


@pytest.fixture
def db_app(db: AsyncSession) -> FastAPI:
    """Application resolving permissions from organization memberships."""
    return _build_app(db, database_checker_factory)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_client(db_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=db_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(db: AsyncSession) -> UserMaker:
    """Create and flush a user. Keyword arguments override factory defaults."""

    async def _make(**overrides) -> User:
        user = UserFactory.build(**overrides)
        db.add(user)
        await db.flush()
        await db.refresh(user)
        return user

    return _make


@pytest.fixture
async def user(make_user: UserMaker) -> User:
    return await make_user(email="member@example.com", full_name="Regular Member")


@pytest.fixture
async def super_admin(make_user: UserMaker) -> User:
    return await make_user(email="root@example.com", full_name="Root", is_super_admin=True)


@pytest.fixture
def auth_headers(user: User) -> dict[str, str]:
    return bearer(user)


@pytest.fixture
def admin_headers(super_admin: User) -> dict[str, str]:
    return bearer(super_admin)
