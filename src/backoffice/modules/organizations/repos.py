"""Organization and organization member repositories."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy import Row, Select, func, select

from backoffice.api.dependencies import DBSession
from backoffice.core.database import conflict_on_integrity_error
from backoffice.core.pagination import Pagination
from backoffice.core.permissions.models import Role
from backoffice.modules.organizations.models import Organization, OrganizationMember
from backoffice.modules.organizations.schemas import (
    OrganizationFilter,
    OrganizationMemberFilter,
)
from backoffice.modules.users.models import User


class OrganizationRepository:
    """Repository for Organization database operations.

    Soft-deleted organizations are excluded from every query.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, organization: Organization) -> Organization:
        """Create an organization.

        Raises:
            ConflictError: If the code is already taken
        """
        async with conflict_on_integrity_error(
            self.session,
            "Organization code already exists",
            error_code="organization_code_exists",
            details={"code": organization.code},
        ):
            self.session.add(organization)
            await self.session.flush()
        await self.session.refresh(organization)
        return organization

    async def get_by_id(self, organization_id: UUID) -> Organization | None:
        stmt = select(Organization).where(
            Organization.id == organization_id,
            Organization.deleted_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_code(self, code: str) -> Organization | None:
        stmt = select(Organization).where(
            Organization.code == code,
            Organization.deleted_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_paginated(
        self,
        filters: OrganizationFilter,
        pagination: Pagination,
    ) -> tuple[list[Organization], int]:
        conditions: list[Any] = [Organization.deleted_at.is_(None)]
        if filters.owner_id:
            conditions.append(Organization.owner_id == filters.owner_id)
        if filters.type:
            conditions.append(Organization.type == filters.type)
        if filters.is_active is not None:
            conditions.append(Organization.is_active.is_(filters.is_active))

        count_stmt = select(func.count()).select_from(Organization).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(Organization)
            .where(*conditions)
            .order_by(Organization.created_at.desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def update(self, organization: Organization) -> Organization:
        """Persist changes made to an organization.

        Raises:
            ConflictError: If a code change collides with another organization
        """
        async with conflict_on_integrity_error(
            self.session,
            "Organization code already exists",
            error_code="organization_code_exists",
            details={"code": organization.code},
        ):
            await self.session.flush()
        await self.session.refresh(organization)
        return organization

    async def soft_delete(self, organization: Organization) -> None:
        organization.soft_delete()
        await self.session.flush()

    async def count_members(self, organization_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(OrganizationMember)
            .where(
                OrganizationMember.organization_id == organization_id,
                OrganizationMember.deleted_at.is_(None),
            )
        )
        return (await self.session.execute(stmt)).scalar_one()


class OrganizationMemberRepository:
    """Repository for OrganizationMember database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    @staticmethod
    def _detail_stmt() -> Select[Any]:
        return (
            select(
                OrganizationMember,
                User.full_name.label("user_full_name"),
                User.email.label("user_email"),
                Role.name.label("role_name"),
                Role.display_name.label("role_display_name"),
                Organization.name.label("organization_name"),
                Organization.code.label("organization_code"),
            )
            .join(User, User.id == OrganizationMember.user_id)
            .join(Role, Role.id == OrganizationMember.role_id)
            .join(Organization, Organization.id == OrganizationMember.organization_id)
            .where(OrganizationMember.deleted_at.is_(None))
        )

    async def create(self, member: OrganizationMember) -> OrganizationMember:
        """Create a membership.

        Raises:
            ConflictError: If the user already has a live membership here
        """
        async with conflict_on_integrity_error(
            self.session,
            "User is already a member of this organization",
            error_code="already_member",
            details={"user_id": str(member.user_id)},
        ):
            self.session.add(member)
            await self.session.flush()
        await self.session.refresh(member)
        return member

    async def get_by_user(
        self,
        organization_id: UUID,
        user_id: UUID,
    ) -> OrganizationMember | None:
        stmt = select(OrganizationMember).where(
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.user_id == user_id,
            OrganizationMember.deleted_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_detail(self, member_id: UUID) -> Row[Any] | None:
        """Get a membership with its display fields."""
        stmt = self._detail_stmt().where(OrganizationMember.id == member_id)
        result = await self.session.execute(stmt)
        return result.one_or_none()

    async def list_paginated(
        self,
        organization_id: UUID,
        filters: OrganizationMemberFilter,
        pagination: Pagination,
    ) -> tuple[list[Row[Any]], int]:
        conditions: list[Any] = [
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.deleted_at.is_(None),
        ]
        if filters.role_id:
            conditions.append(OrganizationMember.role_id == filters.role_id)
        if filters.is_active is not None:
            conditions.append(OrganizationMember.is_active.is_(filters.is_active))

        count_stmt = select(func.count()).select_from(OrganizationMember).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            self._detail_stmt()
            .where(*conditions)
            .order_by(OrganizationMember.joined_at.desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        result = await self.session.execute(stmt)
        return list(result.all()), total

    async def list_for_user(self, user_id: UUID) -> list[Row[Any]]:
        """All live memberships of a user in live organizations, with display fields."""
        stmt = (
            self._detail_stmt()
            .where(
                OrganizationMember.user_id == user_id,
                Organization.deleted_at.is_(None),
            )
            .order_by(OrganizationMember.joined_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.all())

    async def update(self, member: OrganizationMember) -> OrganizationMember:
        await self.session.flush()
        await self.session.refresh(member)
        return member

    async def soft_delete(self, member: OrganizationMember) -> None:
        member.soft_delete()
        await self.session.flush()


# Type aliases for dependency injection
OrganizationRepo = Annotated[OrganizationRepository, Depends(OrganizationRepository)]
OrganizationMemberRepo = Annotated[
    OrganizationMemberRepository, Depends(OrganizationMemberRepository)
]
