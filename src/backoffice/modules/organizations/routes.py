"""Organization and organization member API routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backoffice.api.dependencies import PageParams
from backoffice.core.auth.schemas import Identity
from backoffice.core.pagination import DataResponse, MessageResponse, PaginatedResponse
from backoffice.core.permissions.guards import organization_from_path, require_any_permission
from backoffice.modules.organizations.schemas import (
    OrganizationCreate,
    OrganizationDetailResponse,
    OrganizationFilter,
    OrganizationMemberCreate,
    OrganizationMemberFilter,
    OrganizationMemberResponse,
    OrganizationMemberUpdate,
    OrganizationResponse,
    OrganizationUpdate,
)
from backoffice.modules.organizations.services import (
    OrganizationMemberSvc,
    OrganizationSvc,
)


router = APIRouter(prefix="/organizations", tags=["organizations"])

CanManageMembers = Annotated[
    Identity, Depends(require_any_permission("organizations.update", scope=organization_from_path))
]


# ============================================================
# Organizations
# ============================================================


@router.get(
    "",
    response_model=PaginatedResponse[OrganizationResponse],
    dependencies=[Depends(require_any_permission("organizations.read"))],
    summary="List organizations",
)
async def list_organizations(
    service: OrganizationSvc,
    pagination: PageParams,
    owner_id: UUID | None = Query(None),
    type: str | None = Query(None),  # noqa: A002
    is_active: bool | None = Query(None),
) -> PaginatedResponse[OrganizationResponse]:
    filters = OrganizationFilter(owner_id=owner_id, type=type, is_active=is_active)
    organizations, total = await service.list_organizations(filters, pagination)
    return PaginatedResponse(
        message="organizations retrieved",
        data=[OrganizationResponse.model_validate(o) for o in organizations],
        paginate=pagination.meta(total),
    )


@router.post(
    "",
    response_model=DataResponse[OrganizationResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create organization",
    description="The caller becomes the owner. Type defaults to 'general'.",
)
async def create_organization(
    data: OrganizationCreate,
    service: OrganizationSvc,
    identity: Annotated[Identity, Depends(require_any_permission("organizations.create"))],
) -> DataResponse[OrganizationResponse]:
    organization = await service.create_organization(data, identity)
    return DataResponse(
        message="organization created",
        data=OrganizationResponse.model_validate(organization),
    )


@router.get(
    "/{organization_id}",
    response_model=DataResponse[OrganizationDetailResponse],
    dependencies=[
        Depends(require_any_permission("organizations.read", scope=organization_from_path))
    ],
    summary="Get organization",
)
async def get_organization(
    organization_id: UUID,
    service: OrganizationSvc,
) -> DataResponse[OrganizationDetailResponse]:
    organization = await service.get_organization(organization_id)
    member_count = await service.get_member_count(organization_id)
    return DataResponse(
        message="organization retrieved",
        data=OrganizationDetailResponse(
            **OrganizationResponse.model_validate(organization).model_dump(),
            member_count=member_count,
        ),
    )


@router.put(
    "/{organization_id}",
    response_model=DataResponse[OrganizationResponse],
    dependencies=[
        Depends(require_any_permission("organizations.update", scope=organization_from_path))
    ],
    summary="Update organization",
)
async def update_organization(
    organization_id: UUID,
    data: OrganizationUpdate,
    service: OrganizationSvc,
) -> DataResponse[OrganizationResponse]:
    organization = await service.update_organization(organization_id, data)
    return DataResponse(
        message="organization updated",
        data=OrganizationResponse.model_validate(organization),
    )


@router.delete(
    "/{organization_id}",
    response_model=MessageResponse,
    dependencies=[
        Depends(require_any_permission("organizations.delete", scope=organization_from_path))
    ],
    summary="Delete organization",
)
async def delete_organization(
    organization_id: UUID,
    service: OrganizationSvc,
) -> MessageResponse:
    await service.delete_organization(organization_id)
    return MessageResponse(message="organization deleted")


# ============================================================
# Members
# ============================================================


@router.get(
    "/{organization_id}/members",
    response_model=PaginatedResponse[OrganizationMemberResponse],
    dependencies=[
        Depends(require_any_permission("organizations.read", scope=organization_from_path))
    ],
    summary="List organization members",
)
async def list_members(
    organization_id: UUID,
    service: OrganizationMemberSvc,
    pagination: PageParams,
    role_id: UUID | None = Query(None),
    is_active: bool | None = Query(None),
) -> PaginatedResponse[OrganizationMemberResponse]:
    filters = OrganizationMemberFilter(role_id=role_id, is_active=is_active)
    rows, total = await service.list_members(organization_id, filters, pagination)
    return PaginatedResponse(
        message="members retrieved",
        data=[OrganizationMemberResponse.from_row(row) for row in rows],
        paginate=pagination.meta(total),
    )


@router.post(
    "/{organization_id}/members",
    response_model=DataResponse[OrganizationMemberResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add organization member",
)
async def add_member(
    organization_id: UUID,
    data: OrganizationMemberCreate,
    service: OrganizationMemberSvc,
    identity: CanManageMembers,
) -> DataResponse[OrganizationMemberResponse]:
    member = await service.add_member(organization_id, data, identity)
    row = await service.get_member_detail(member.id)
    return DataResponse(
        message="member added",
        data=OrganizationMemberResponse.from_row(row),
    )


@router.get(
    "/{organization_id}/members/{user_id}",
    response_model=DataResponse[OrganizationMemberResponse],
    dependencies=[
        Depends(require_any_permission("organizations.read", scope=organization_from_path))
    ],
    summary="Get organization member",
)
async def get_member(
    organization_id: UUID,
    user_id: UUID,
    service: OrganizationMemberSvc,
) -> DataResponse[OrganizationMemberResponse]:
    member = await service.get_member(organization_id, user_id)
    row = await service.get_member_detail(member.id)
    return DataResponse(
        message="member retrieved",
        data=OrganizationMemberResponse.from_row(row),
    )


@router.put(
    "/{organization_id}/members/{user_id}",
    response_model=DataResponse[OrganizationMemberResponse],
    summary="Update organization member",
)
async def update_member(
    organization_id: UUID,
    user_id: UUID,
    data: OrganizationMemberUpdate,
    service: OrganizationMemberSvc,
    identity: CanManageMembers,
) -> DataResponse[OrganizationMemberResponse]:
    member = await service.update_member(organization_id, user_id, data, identity)
    row = await service.get_member_detail(member.id)
    return DataResponse(
        message="member updated",
        data=OrganizationMemberResponse.from_row(row),
    )


@router.delete(
    "/{organization_id}/members/{user_id}",
    response_model=MessageResponse,
    summary="Remove organization member",
)
async def remove_member(
    organization_id: UUID,
    user_id: UUID,
    service: OrganizationMemberSvc,
    _identity: CanManageMembers,
) -> MessageResponse:
    await service.remove_member(organization_id, user_id)
    return MessageResponse(message="member removed")
