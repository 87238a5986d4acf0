"""Permission catalog API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backoffice.api.dependencies import PageParams
from backoffice.core.pagination import DataResponse, MessageResponse, PaginatedResponse
from backoffice.core.permissions.guards import require_any_permission, require_role_level
from backoffice.core.permissions.levels import RoleLevel
from backoffice.modules.permissions.schemas import PermissionCreate, PermissionResponse
from backoffice.modules.permissions.services import PermissionSvc


router = APIRouter(prefix="/permissions", tags=["permissions"])

# The catalog is shared by every organization
CATALOG_WRITE_LEVEL = RoleLevel.ADMIN


@router.get(
    "",
    response_model=PaginatedResponse[PermissionResponse],
    dependencies=[Depends(require_any_permission("permissions.read"))],
    summary="List permissions",
)
async def list_permissions(
    service: PermissionSvc,
    pagination: PageParams,
    resource: str | None = Query(None, description="Filter by resource"),
) -> PaginatedResponse[PermissionResponse]:
    """List the permission catalog ordered by resource and action."""
    items, total = await service.list_permissions(pagination, resource=resource)
    return PaginatedResponse(
        message="permissions retrieved",
        data=[PermissionResponse.model_validate(p) for p in items],
        paginate=pagination.meta(total),
    )


@router.post(
    "",
    response_model=DataResponse[PermissionResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[
        Depends(require_role_level(CATALOG_WRITE_LEVEL)),
        Depends(require_any_permission("permissions.create")),
    ],
    summary="Create permission",
)
async def create_permission(
    data: PermissionCreate,
    service: PermissionSvc,
) -> DataResponse[PermissionResponse]:
    permission = await service.create_permission(data)
    return DataResponse(
        message="permission created",
        data=PermissionResponse.model_validate(permission),
    )


@router.get(
    "/{permission_id}",
    response_model=DataResponse[PermissionResponse],
    dependencies=[Depends(require_any_permission("permissions.read"))],
    summary="Get permission",
)
async def get_permission(
    permission_id: UUID,
    service: PermissionSvc,
) -> DataResponse[PermissionResponse]:
    permission = await service.get_permission(permission_id)
    return DataResponse(
        message="permission retrieved",
        data=PermissionResponse.model_validate(permission),
    )


@router.delete(
    "/{permission_id}",
    response_model=MessageResponse,
    dependencies=[
        Depends(require_role_level(CATALOG_WRITE_LEVEL)),
        Depends(require_any_permission("permissions.delete")),
    ],
    summary="Delete permission",
    description="Deletes the permission and removes it from every role.",
)
async def delete_permission(
    permission_id: UUID,
    service: PermissionSvc,
) -> MessageResponse:
    await service.delete_permission(permission_id)
    return MessageResponse(message="permission deleted")
