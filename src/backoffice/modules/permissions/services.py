"""Permission catalog service."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from backoffice.core.errors import ConflictError, NotFoundError
from backoffice.core.pagination import Pagination
from backoffice.core.permissions.models import Permission, permission_name
from backoffice.modules.permissions.repos import PermissionRepo
from backoffice.modules.permissions.schemas import PermissionCreate


logger = structlog.get_logger()


class PermissionService:
    """Create, read and delete permissions. Permissions are never updated."""

    def __init__(self, repo: PermissionRepo) -> None:
        self.repo = repo

    async def create_permission(self, data: PermissionCreate) -> Permission:
        """Create a permission.

        Raises:
            ConflictError: If the resource/action pair already exists
        """
        name = permission_name(data.resource, data.action)
        if await self.repo.get_by_name(name):
            raise ConflictError(
                "Permission already exists",
                error_code="permission_exists",
                details={"name": name},
            )

        permission = await self.repo.create(
            Permission(
                name=name,
                resource=data.resource,
                action=data.action,
                description=data.description,
            )
        )
        logger.info("permission_created", permission=name)
        return permission

    async def get_permission(self, permission_id: UUID) -> Permission:
        permission = await self.repo.get_by_id(permission_id)
        if not permission:
            raise NotFoundError(
                "Permission not found",
                resource="permission",
                resource_id=str(permission_id),
            )
        return permission

    async def list_permissions(
        self,
        pagination: Pagination,
        resource: str | None = None,
    ) -> tuple[list[Permission], int]:
        return await self.repo.list_paginated(pagination, resource=resource)

    async def delete_permission(self, permission_id: UUID) -> None:
        permission = await self.get_permission(permission_id)
        await self.repo.delete(permission)
        logger.info("permission_deleted", permission=permission.name)


# Type alias for dependency injection
PermissionSvc = Annotated[PermissionService, Depends(PermissionService)]
