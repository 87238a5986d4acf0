"""User repository for database operations."""

from datetime import UTC, datetime
from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy import exists, func, or_, select, update

from backoffice.api.dependencies import DBSession
from backoffice.core.database import conflict_on_integrity_error
from backoffice.core.pagination import Pagination
from backoffice.modules.organizations.models import OrganizationMember
from backoffice.modules.users.models import User, normalise_email
from backoffice.modules.users.schemas import UserFilter


class UserRepository:
    """Repository for User database operations.

    Soft-deleted users are invisible to every lookup. Emails are
    normalised on write and on lookup, so matching ignores case.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, user: User) -> User:
        """Create a new user.

        Raises:
            ConflictError: If the email is already taken
        """
        user.email = normalise_email(user.email)
        async with conflict_on_integrity_error(
            self.session,
            "Email already registered",
            error_code="email_exists",
            details={"email": user.email},
        ):
            self.session.add(user)
            await self.session.flush()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: UUID) -> User | None:
        stmt = select(User).where(User.id == user_id, User.deleted_at.is_(None))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(
            User.email == normalise_email(email),
            User.deleted_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_paginated(
        self,
        filters: UserFilter,
        pagination: Pagination,
    ) -> tuple[list[User], int]:
        """List live users, newest first.

        Returns:
            Tuple of (users, total count)
        """
        conditions: list[Any] = [User.deleted_at.is_(None)]
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            conditions.append(or_(User.email.ilike(pattern), User.full_name.ilike(pattern)))
        if filters.is_active is not None:
            conditions.append(User.is_active.is_(filters.is_active))
        if filters.is_super_admin is not None:
            conditions.append(User.is_super_admin.is_(filters.is_super_admin))
        if filters.platform_only:
            has_membership = exists().where(
                OrganizationMember.user_id == User.id,
                OrganizationMember.deleted_at.is_(None),
            )
            conditions.append(or_(User.is_super_admin.is_(True), ~has_membership))

        count_stmt = select(func.count()).select_from(User).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def update(self, user: User) -> User:
        """Persist changes made to a user.

        Raises:
            ConflictError: If an email change collides with another account
        """
        user.email = normalise_email(user.email)
        async with conflict_on_integrity_error(
            self.session,
            "Email already registered",
            error_code="email_exists",
            details={"email": user.email},
        ):
            await self.session.flush()
        await self.session.refresh(user)
        return user

    async def soft_delete(self, user: User) -> None:
        user.soft_delete()
        await self.session.flush()

    async def touch_last_login(self, user_id: UUID) -> datetime:
        """Set last_login_at to now and return the stored value."""
        now = datetime.now(UTC)
        async with self.session.begin_nested():
            await self.session.execute(
                update(User).where(User.id == user_id).values(last_login_at=now)
            )
        return now


# Type alias for dependency injection
UserRepo = Annotated[UserRepository, Depends(UserRepository)]
