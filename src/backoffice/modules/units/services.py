"""Unit and unit membership services."""

from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import Depends

from backoffice.core.auth.schemas import Identity
from backoffice.core.constants import DEFAULT_UNIT_TYPE
from backoffice.core.errors import ConflictError, NotFoundError
from backoffice.core.pagination import Pagination
from backoffice.modules.organizations.repos import OrganizationRepo
from backoffice.modules.units.models import Unit, UnitMember
from backoffice.modules.units.repos import UnitMemberRepo, UnitRepo
from backoffice.modules.units.schemas import (
    UnitCreate,
    UnitFilter,
    UnitMemberCreate,
    UnitMemberFilter,
    UnitMemberUpdate,
    UnitUpdate,
)
from backoffice.modules.users.repos import UserRepo


logger = structlog.get_logger()


class UnitService:
    """Service for unit CRUD."""

    def __init__(self, repo: UnitRepo, organization_repo: OrganizationRepo) -> None:
        self.repo = repo
        self.organization_repo = organization_repo

    async def create_unit(self, data: UnitCreate) -> Unit:
        """Create a unit under an existing organization.

        Raises:
            NotFoundError: If the organization does not exist
            ConflictError: If the code is already taken
        """
        if not await self.organization_repo.get_by_id(data.organization_id):
            raise NotFoundError(
                "Organization not found",
                resource="organization",
                resource_id=str(data.organization_id),
            )

        if await self.repo.get_by_code(data.code):
            raise ConflictError(
                "Unit code already exists",
                error_code="unit_code_exists",
                details={"code": data.code},
            )

        unit = await self.repo.create(
            Unit(
                organization_id=data.organization_id,
                name=data.name,
                code=data.code,
                type=data.type or DEFAULT_UNIT_TYPE,
                address=data.address,
                phone=data.phone,
                email=data.email,
                logo=data.logo,
                settings=data.settings or {},
                is_active=True,
            )
        )
        logger.info(
            "unit_created",
            unit_id=str(unit.id),
            organization_id=str(unit.organization_id),
        )
        return unit

    async def get_unit(self, unit_id: UUID) -> Unit:
        unit = await self.repo.get_by_id(unit_id)
        if not unit:
            raise NotFoundError("Unit not found", resource="unit", resource_id=str(unit_id))
        return unit

    async def get_member_count(self, unit_id: UUID) -> int:
        return await self.repo.count_members(unit_id)

    async def list_units(
        self,
        filters: UnitFilter,
        pagination: Pagination,
    ) -> tuple[list[Unit], int]:
        return await self.repo.list_paginated(filters, pagination)

    async def update_unit(self, unit_id: UUID, data: UnitUpdate) -> Unit:
        unit = await self.get_unit(unit_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)

        new_code = changes.get("code")
        if new_code and new_code != unit.code and await self.repo.get_by_code(new_code):
            raise ConflictError(
                "Unit code already exists",
                error_code="unit_code_exists",
                details={"code": new_code},
            )

        for field, value in changes.items():
            setattr(unit, field, value)

        unit = await self.repo.update(unit)
        logger.info("unit_updated", unit_id=str(unit.id), fields=sorted(changes))
        return unit

    async def delete_unit(self, unit_id: UUID) -> None:
        unit = await self.get_unit(unit_id)
        await self.repo.soft_delete(unit)
        logger.info("unit_deleted", unit_id=str(unit_id))


class UnitMemberService:
    """Membership management for one unit at a time.

    Members are addressed by membership ID. Unit roles come from the
    closed UnitMemberRole set, not from the role store.
    """

    def __init__(
        self,
        repo: UnitMemberRepo,
        unit_repo: UnitRepo,
        user_repo: UserRepo,
    ) -> None:
        self.repo = repo
        self.unit_repo = unit_repo
        self.user_repo = user_repo

    async def _get_unit(self, unit_id: UUID) -> Unit:
        unit = await self.unit_repo.get_by_id(unit_id)
        if not unit:
            raise NotFoundError("Unit not found", resource="unit", resource_id=str(unit_id))
        return unit

    async def get_member(self, unit_id: UUID, member_id: UUID) -> UnitMember:
        member = await self.repo.get_by_id(unit_id, member_id)
        if not member:
            raise NotFoundError(
                "Member not found",
                resource="unit_member",
                resource_id=str(member_id),
            )
        return member

    async def get_member_detail(self, member_id: UUID) -> Any:
        row = await self.repo.get_detail(member_id)
        if row is None:
            raise NotFoundError(
                "Member not found",
                resource="unit_member",
                resource_id=str(member_id),
            )
        return row

    async def add_member(
        self,
        unit_id: UUID,
        data: UnitMemberCreate,
        identity: Identity,
    ) -> UnitMember:
        """Add a user to a unit.

        Raises:
            NotFoundError: Unit or user missing
            ConflictError: User already a member
        """
        await self._get_unit(unit_id)

        if not await self.user_repo.get_by_id(data.user_id):
            raise NotFoundError(
                "User not found",
                resource="user",
                resource_id=str(data.user_id),
            )

        if await self.repo.get_by_user(unit_id, data.user_id):
            raise ConflictError(
                "User is already a member of this unit",
                error_code="already_member",
                details={"user_id": str(data.user_id)},
            )

        member = await self.repo.create(
            UnitMember(
                unit_id=unit_id,
                user_id=data.user_id,
                role=data.role.value,
                is_active=True,
                invited_by=identity.user_id,
            )
        )
        logger.info(
            "member_added",
            tenant="unit",
            unit_id=str(unit_id),
            user_id=str(data.user_id),
            role=member.role,
        )
        return member

    async def update_member(
        self,
        unit_id: UUID,
        member_id: UUID,
        data: UnitMemberUpdate,
    ) -> UnitMember:
        member = await self.get_member(unit_id, member_id)

        if data.role is not None:
            member.role = data.role.value
        if data.is_active is not None:
            member.is_active = data.is_active

        member = await self.repo.update(member)
        logger.info("member_updated", tenant="unit", unit_id=str(unit_id), member_id=str(member_id))
        return member

    async def remove_member(self, unit_id: UUID, member_id: UUID) -> None:
        """Soft-remove a membership. A second removal raises NotFoundError."""
        member = await self.get_member(unit_id, member_id)
        await self.repo.soft_delete(member)
        logger.info("member_removed", tenant="unit", unit_id=str(unit_id), member_id=str(member_id))

    async def list_members(
        self,
        unit_id: UUID,
        filters: UnitMemberFilter,
        pagination: Pagination,
    ) -> tuple[list[Any], int]:
        await self._get_unit(unit_id)
        return await self.repo.list_paginated(unit_id, filters, pagination)


# Type aliases for dependency injection
UnitSvc = Annotated[UnitService, Depends(UnitService)]
UnitMemberSvc = Annotated[UnitMemberService, Depends(UnitMemberService)]
