"""Unit and unit member API routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backoffice.api.dependencies import PageParams
from backoffice.core.auth.dependencies import CurrentIdentity
from backoffice.core.auth.schemas import Identity
from backoffice.core.errors import NotFoundError
from backoffice.core.pagination import DataResponse, MessageResponse, PaginatedResponse
from backoffice.core.permissions.guards import (
    Checker,
    ensure_permissions,
    organization_from_query,
    require_any_permission,
)
from backoffice.modules.units.models import UnitMemberRole
from backoffice.modules.units.repos import UnitRepo
from backoffice.modules.units.schemas import (
    UnitCreate,
    UnitDetailResponse,
    UnitFilter,
    UnitMemberCreate,
    UnitMemberFilter,
    UnitMemberResponse,
    UnitMemberUpdate,
    UnitResponse,
    UnitUpdate,
)
from backoffice.modules.units.services import UnitMemberSvc, UnitSvc


router = APIRouter(prefix="/units", tags=["units"])


async def unit_organization(unit_id: UUID, repo: UnitRepo) -> UUID:
    """Scope of a unit route: the organization that runs the unit."""
    unit = await repo.get_by_id(unit_id)
    if not unit:
        raise NotFoundError("Unit not found", resource="unit", resource_id=str(unit_id))
    return unit.organization_id


CanManageMembers = Annotated[
    Identity, Depends(require_any_permission("units.update", scope=unit_organization))
]


# ============================================================
# Units
# ============================================================


@router.get(
    "",
    response_model=PaginatedResponse[UnitResponse],
    dependencies=[Depends(require_any_permission("units.read", scope=organization_from_query))],
    summary="List units",
    description="Without organization_id only super admins may list.",
)
async def list_units(
    service: UnitSvc,
    pagination: PageParams,
    organization_id: UUID | None = Query(None),
    type: str | None = Query(None),  # noqa: A002
    is_active: bool | None = Query(None),
) -> PaginatedResponse[UnitResponse]:
    filters = UnitFilter(organization_id=organization_id, type=type, is_active=is_active)
    units, total = await service.list_units(filters, pagination)
    return PaginatedResponse(
        message="units retrieved",
        data=[UnitResponse.model_validate(u) for u in units],
        paginate=pagination.meta(total),
    )


@router.post(
    "",
    response_model=DataResponse[UnitResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create unit",
    description="The organization must exist. Type defaults to 'SMP'.",
)
async def create_unit(
    data: UnitCreate,
    service: UnitSvc,
    identity: CurrentIdentity,
    checker: Checker,
) -> DataResponse[UnitResponse]:
    await ensure_permissions(
        checker, identity, ["units.create"], organization_id=data.organization_id
    )
    unit = await service.create_unit(data)
    return DataResponse(message="unit created", data=UnitResponse.model_validate(unit))


@router.get(
    "/{unit_id}",
    response_model=DataResponse[UnitDetailResponse],
    dependencies=[Depends(require_any_permission("units.read", scope=unit_organization))],
    summary="Get unit",
)
async def get_unit(
    unit_id: UUID,
    service: UnitSvc,
) -> DataResponse[UnitDetailResponse]:
    unit = await service.get_unit(unit_id)
    member_count = await service.get_member_count(unit_id)
    return DataResponse(
        message="unit retrieved",
        data=UnitDetailResponse(
            **UnitResponse.model_validate(unit).model_dump(),
            member_count=member_count,
        ),
    )


@router.put(
    "/{unit_id}",
    response_model=DataResponse[UnitResponse],
    dependencies=[Depends(require_any_permission("units.update", scope=unit_organization))],
    summary="Update unit",
)
async def update_unit(
    unit_id: UUID,
    data: UnitUpdate,
    service: UnitSvc,
) -> DataResponse[UnitResponse]:
    unit = await service.update_unit(unit_id, data)
    return DataResponse(message="unit updated", data=UnitResponse.model_validate(unit))


@router.delete(
    "/{unit_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_any_permission("units.delete", scope=unit_organization))],
    summary="Delete unit",
)
async def delete_unit(unit_id: UUID, service: UnitSvc) -> MessageResponse:
    await service.delete_unit(unit_id)
    return MessageResponse(message="unit deleted")


# ============================================================
# Members
# ============================================================


@router.get(
    "/{unit_id}/members",
    response_model=PaginatedResponse[UnitMemberResponse],
    dependencies=[Depends(require_any_permission("units.read", scope=unit_organization))],
    summary="List unit members",
)
async def list_members(
    unit_id: UUID,
    service: UnitMemberSvc,
    pagination: PageParams,
    role: UnitMemberRole | None = Query(None),
    is_active: bool | None = Query(None),
) -> PaginatedResponse[UnitMemberResponse]:
    filters = UnitMemberFilter(role=role, is_active=is_active)
    rows, total = await service.list_members(unit_id, filters, pagination)
    return PaginatedResponse(
        message="members retrieved",
        data=[UnitMemberResponse.from_row(row) for row in rows],
        paginate=pagination.meta(total),
    )


@router.post(
    "/{unit_id}/members",
    response_model=DataResponse[UnitMemberResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add unit member",
)
async def add_member(
    unit_id: UUID,
    data: UnitMemberCreate,
    service: UnitMemberSvc,
    identity: CanManageMembers,
) -> DataResponse[UnitMemberResponse]:
    member = await service.add_member(unit_id, data, identity)
    row = await service.get_member_detail(member.id)
    return DataResponse(message="member added", data=UnitMemberResponse.from_row(row))


@router.get(
    "/{unit_id}/members/{member_id}",
    response_model=DataResponse[UnitMemberResponse],
    dependencies=[Depends(require_any_permission("units.read", scope=unit_organization))],
    summary="Get unit member",
)
async def get_member(
    unit_id: UUID,
    member_id: UUID,
    service: UnitMemberSvc,
) -> DataResponse[UnitMemberResponse]:
    member = await service.get_member(unit_id, member_id)
    row = await service.get_member_detail(member.id)
    return DataResponse(message="member retrieved", data=UnitMemberResponse.from_row(row))


@router.put(
    "/{unit_id}/members/{member_id}",
    response_model=DataResponse[UnitMemberResponse],
    summary="Update unit member",
)
async def update_member(
    unit_id: UUID,
    member_id: UUID,
    data: UnitMemberUpdate,
    service: UnitMemberSvc,
    _identity: CanManageMembers,
) -> DataResponse[UnitMemberResponse]:
    member = await service.update_member(unit_id, member_id, data)
    row = await service.get_member_detail(member.id)
    return DataResponse(message="member updated", data=UnitMemberResponse.from_row(row))


@router.delete(
    "/{unit_id}/members/{member_id}",
    response_model=MessageResponse,
    summary="Remove unit member",
)
async def remove_member(
    unit_id: UUID,
    member_id: UUID,
    service: UnitMemberSvc,
    _identity: CanManageMembers,
) -> MessageResponse:
    await service.remove_member(unit_id, member_id)
    return MessageResponse(message="member removed")
