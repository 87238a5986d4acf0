"""Role API routes."""

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
from backoffice.core.permissions.models import RoleType
from backoffice.modules.permissions.schemas import PermissionResponse
from backoffice.modules.roles.repos import RoleRepo
from backoffice.modules.roles.schemas import (
    RoleCreate,
    RoleDetailResponse,
    RoleFilter,
    RoleResponse,
    RoleUpdate,
)
from backoffice.modules.roles.services import RoleService, RoleSvc


router = APIRouter(prefix="/roles", tags=["roles"])


async def role_organization(role_id: UUID, repo: RoleRepo) -> UUID | None:
    """Scope of a role route: the role's organization, or platform for global roles."""
    role = await repo.get_by_id(role_id)
    if not role:
        raise NotFoundError("Role not found", resource="role", resource_id=str(role_id))
    return role.organization_id


async def _detail(service: RoleService, role_id: UUID) -> RoleDetailResponse:
    role = await service.get_role(role_id)
    permissions = await service.get_role_permissions(role_id)
    return RoleDetailResponse(
        **RoleResponse.model_validate(role).model_dump(),
        permissions=[PermissionResponse.model_validate(p) for p in permissions],
    )


@router.get(
    "",
    response_model=PaginatedResponse[RoleResponse],
    dependencies=[Depends(require_any_permission("roles.read", scope=organization_from_query))],
    summary="List roles",
    description=(
        "Ordered by level (highest first), then newest first. "
        "Without organization_id only super admins may list."
    ),
)
async def list_roles(
    service: RoleSvc,
    pagination: PageParams,
    organization_id: UUID | None = Query(None),
    name: str | None = Query(None),
    type: RoleType | None = Query(None),  # noqa: A002
    is_global: bool | None = Query(None),
) -> PaginatedResponse[RoleResponse]:
    filters = RoleFilter(
        organization_id=organization_id,
        name=name,
        type=type,
        is_global=is_global,
    )
    roles, total = await service.list_roles(filters, pagination)
    return PaginatedResponse(
        message="roles retrieved",
        data=[RoleResponse.model_validate(r) for r in roles],
        paginate=pagination.meta(total),
    )


@router.post(
    "",
    response_model=DataResponse[RoleDetailResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create role",
    description="Requires roles.create in the role's organization; global roles need a super admin.",
)
async def create_role(
    data: RoleCreate,
    service: RoleSvc,
    identity: CurrentIdentity,
    checker: Checker,
) -> DataResponse[RoleDetailResponse]:
    await ensure_permissions(
        checker, identity, ["roles.create"], organization_id=data.organization_id
    )
    role = await service.create_role(data, identity)
    return DataResponse(message="role created", data=await _detail(service, role.id))


@router.get(
    "/{role_id}",
    response_model=DataResponse[RoleDetailResponse],
    dependencies=[Depends(require_any_permission("roles.read", scope=role_organization))],
    summary="Get role with permissions",
)
async def get_role(
    role_id: UUID,
    service: RoleSvc,
) -> DataResponse[RoleDetailResponse]:
    return DataResponse(message="role retrieved", data=await _detail(service, role_id))


@router.put(
    "/{role_id}",
    response_model=DataResponse[RoleDetailResponse],
    summary="Update role",
    description=(
        "System roles cannot be updated. permission_ids replaces the whole set, "
        "may only grant what the caller holds, and cannot target the caller's own role."
    ),
)
async def update_role(
    role_id: UUID,
    data: RoleUpdate,
    service: RoleSvc,
    identity: Annotated[
        Identity, Depends(require_any_permission("roles.update", scope=role_organization))
    ],
) -> DataResponse[RoleDetailResponse]:
    role = await service.update_role(role_id, data, identity)
    return DataResponse(message="role updated", data=await _detail(service, role.id))


@router.delete(
    "/{role_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_any_permission("roles.delete", scope=role_organization))],
    summary="Delete role",
    description="System roles and roles held by live members cannot be deleted.",
)
async def delete_role(
    role_id: UUID,
    service: RoleSvc,
) -> MessageResponse:
    await service.delete_role(role_id)
    return MessageResponse(message="role deleted")
