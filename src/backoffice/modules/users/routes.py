"""User routes: the caller's own profile and memberships, and the platform users directory."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backoffice.api.dependencies import PageParams
from backoffice.core.auth.dependencies import CurrentIdentity
from backoffice.core.auth.schemas import Identity
from backoffice.core.errors import NotFoundError
from backoffice.core.pagination import DataResponse, MessageResponse, PaginatedResponse
from backoffice.core.permissions.guards import require_any_permission
from backoffice.modules.memberships.schemas import UserMemberships
from backoffice.modules.memberships.services import MembershipSvc
from backoffice.modules.users.repos import UserRepo
from backoffice.modules.users.schemas import UserCreate, UserFilter, UserResponse, UserUpdate
from backoffice.modules.users.services import UserSvc


router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/me",
    response_model=DataResponse[UserResponse],
    summary="Get current user",
)
async def get_me(identity: CurrentIdentity, repo: UserRepo) -> DataResponse[UserResponse]:
    user = await repo.get_by_id(identity.user_id)
    if not user:
        raise NotFoundError("User not found", resource="user", resource_id=str(identity.user_id))
    return DataResponse(message="user retrieved", data=UserResponse.model_validate(user))


@router.get(
    "/me/memberships",
    response_model=DataResponse[UserMemberships],
    summary="List my memberships",
    description=(
        "All organization memberships and active unit memberships of the caller, "
        "with the super-admin flag."
    ),
)
async def get_my_memberships(
    identity: CurrentIdentity,
    service: MembershipSvc,
) -> DataResponse[UserMemberships]:
    memberships = await service.get_user_memberships(identity)
    return DataResponse(message="memberships retrieved", data=memberships)


# ============================================================
# Directory
# ============================================================


@router.get(
    "",
    response_model=PaginatedResponse[UserResponse],
    dependencies=[Depends(require_any_permission("users.read"))],
    summary="List users",
    description="Newest first. search matches email or full name.",
)
async def list_users(
    service: UserSvc,
    pagination: PageParams,
    search: str | None = Query(None),
    is_active: bool | None = Query(None),
    is_super_admin: bool | None = Query(None),
    platform_only: bool = Query(False),
) -> PaginatedResponse[UserResponse]:
    filters = UserFilter(
        search=search,
        is_active=is_active,
        is_super_admin=is_super_admin,
        platform_only=platform_only,
    )
    users, total = await service.list_users(filters, pagination)
    return PaginatedResponse(
        message="users retrieved",
        data=[UserResponse.model_validate(u) for u in users],
        paginate=pagination.meta(total),
    )


@router.post(
    "",
    response_model=DataResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
)
async def create_user(
    data: UserCreate,
    service: UserSvc,
    identity: Annotated[Identity, Depends(require_any_permission("users.create"))],
) -> DataResponse[UserResponse]:
    user = await service.create_user(data, identity)
    return DataResponse(message="user created", data=UserResponse.model_validate(user))


@router.get(
    "/{user_id}",
    response_model=DataResponse[UserResponse],
    dependencies=[Depends(require_any_permission("users.read"))],
    summary="Get user",
)
async def get_user(user_id: UUID, service: UserSvc) -> DataResponse[UserResponse]:
    user = await service.get_user(user_id)
    return DataResponse(message="user retrieved", data=UserResponse.model_validate(user))


@router.put(
    "/{user_id}",
    response_model=DataResponse[UserResponse],
    dependencies=[Depends(require_any_permission("users.update"))],
    summary="Update user",
)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    service: UserSvc,
) -> DataResponse[UserResponse]:
    user = await service.update_user(user_id, data)
    return DataResponse(message="user updated", data=UserResponse.model_validate(user))


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    summary="Delete user",
    description="Soft delete. Super admin accounts cannot be deleted.",
)
async def delete_user(
    user_id: UUID,
    service: UserSvc,
    identity: Annotated[Identity, Depends(require_any_permission("users.delete"))],
) -> MessageResponse:
    await service.delete_user(user_id, identity)
    return MessageResponse(message="user deleted")
