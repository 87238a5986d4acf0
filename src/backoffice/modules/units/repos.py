"""Unit and unit member repositories."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy import Row, Select, func, select

from backoffice.api.dependencies import DBSession
from backoffice.core.database import conflict_on_integrity_error
from backoffice.core.pagination import Pagination
from backoffice.modules.organizations.models import Organization
from backoffice.modules.units.models import Unit, UnitMember
from backoffice.modules.units.schemas import UnitFilter, UnitMemberFilter
from backoffice.modules.users.models import User


class UnitRepository:
    """Repository for Unit database operations.

    Soft-deleted units are excluded from every query.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, unit: Unit) -> Unit:
        """Create a unit.

        Raises:
            ConflictError: If the code is already taken
        """
        async with conflict_on_integrity_error(
            self.session,
            "Unit code already exists",
            error_code="unit_code_exists",
            details={"code": unit.code},
        ):
            self.session.add(unit)
            await self.session.flush()
        await self.session.refresh(unit)
        return unit

    async def get_by_id(self, unit_id: UUID) -> Unit | None:
        stmt = select(Unit).where(Unit.id == unit_id, Unit.deleted_at.is_(None))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_code(self, code: str) -> Unit | None:
        stmt = select(Unit).where(Unit.code == code, Unit.deleted_at.is_(None))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_paginated(
        self,
        filters: UnitFilter,
        pagination: Pagination,
    ) -> tuple[list[Unit], int]:
        conditions: list[Any] = [Unit.deleted_at.is_(None)]
        if filters.organization_id:
            conditions.append(Unit.organization_id == filters.organization_id)
        if filters.type:
            conditions.append(Unit.type == filters.type)
        if filters.is_active is not None:
            conditions.append(Unit.is_active.is_(filters.is_active))

        count_stmt = select(func.count()).select_from(Unit).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(Unit)
            .where(*conditions)
            .order_by(Unit.created_at.desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def update(self, unit: Unit) -> Unit:
        async with conflict_on_integrity_error(
            self.session,
            "Unit code already exists",
            error_code="unit_code_exists",
            details={"code": unit.code},
        ):
            await self.session.flush()
        await self.session.refresh(unit)
        return unit

    async def soft_delete(self, unit: Unit) -> None:
        unit.soft_delete()
        await self.session.flush()

    async def count_members(self, unit_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(UnitMember)
            .where(UnitMember.unit_id == unit_id, UnitMember.deleted_at.is_(None))
        )
        return (await self.session.execute(stmt)).scalar_one()


class UnitMemberRepository:
    """Repository for UnitMember database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    @staticmethod
    def _detail_stmt() -> Select[Any]:
        return (
            select(
                UnitMember,
                User.full_name.label("user_full_name"),
                User.email.label("user_email"),
                Unit.name.label("unit_name"),
                Unit.code.label("unit_code"),
                Organization.id.label("organization_id"),
                Organization.name.label("organization_name"),
            )
            .join(User, User.id == UnitMember.user_id)
            .join(Unit, Unit.id == UnitMember.unit_id)
            .join(Organization, Organization.id == Unit.organization_id)
            .where(UnitMember.deleted_at.is_(None))
        )

    async def create(self, member: UnitMember) -> UnitMember:
        """Create a membership.

        Raises:
            ConflictError: If the user already has a live membership in the unit
        """
        async with conflict_on_integrity_error(
            self.session,
            "User is already a member of this unit",
            error_code="already_member",
            details={"user_id": str(member.user_id)},
        ):
            self.session.add(member)
            await self.session.flush()
        await self.session.refresh(member)
        return member

    async def get_by_id(self, unit_id: UUID, member_id: UUID) -> UnitMember | None:
        stmt = select(UnitMember).where(
            UnitMember.id == member_id,
            UnitMember.unit_id == unit_id,
            UnitMember.deleted_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_user(self, unit_id: UUID, user_id: UUID) -> UnitMember | None:
        stmt = select(UnitMember).where(
            UnitMember.unit_id == unit_id,
            UnitMember.user_id == user_id,
            UnitMember.deleted_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_detail(self, member_id: UUID) -> Row[Any] | None:
        stmt = self._detail_stmt().where(UnitMember.id == member_id)
        result = await self.session.execute(stmt)
        return result.one_or_none()

    async def list_paginated(
        self,
        unit_id: UUID,
        filters: UnitMemberFilter,
        pagination: Pagination,
    ) -> tuple[list[Row[Any]], int]:
        conditions: list[Any] = [
            UnitMember.unit_id == unit_id,
            UnitMember.deleted_at.is_(None),
        ]
        if filters.role:
            conditions.append(UnitMember.role == filters.role.value)
        if filters.is_active is not None:
            conditions.append(UnitMember.is_active.is_(filters.is_active))

        count_stmt = select(func.count()).select_from(UnitMember).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            self._detail_stmt()
            .where(*conditions)
            .order_by(UnitMember.joined_at.desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        result = await self.session.execute(stmt)
        return list(result.all()), total

    async def list_active_for_user(self, user_id: UUID) -> list[Row[Any]]:
        """Active memberships of a user in live units of live organizations."""
        stmt = (
            self._detail_stmt()
            .where(
                UnitMember.user_id == user_id,
                UnitMember.is_active.is_(True),
                Unit.deleted_at.is_(None),
                Organization.deleted_at.is_(None),
            )
            .order_by(UnitMember.joined_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.all())

    async def update(self, member: UnitMember) -> UnitMember:
        await self.session.flush()
        await self.session.refresh(member)
        return member

    async def soft_delete(self, member: UnitMember) -> None:
        member.soft_delete()
        await self.session.flush()


# Type aliases for dependency injection
UnitRepo = Annotated[UnitRepository, Depends(UnitRepository)]
UnitMemberRepo = Annotated[UnitMemberRepository, Depends(UnitMemberRepository)]
