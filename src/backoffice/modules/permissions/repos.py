"""Permission repository for database operations."""

from collections.abc import Iterable
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import delete, func, select

from backoffice.api.dependencies import DBSession
from backoffice.core.database import conflict_on_integrity_error
from backoffice.core.pagination import Pagination
from backoffice.core.permissions.models import Permission, RolePermission


class PermissionRepository:
    """Repository for Permission database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, permission: Permission) -> Permission:
        """Create a permission.

        Raises:
            ConflictError: If the resource/action pair already exists
        """
        async with conflict_on_integrity_error(
            self.session,
            "Permission already exists",
            error_code="permission_exists",
            details={"name": permission.name},
        ):
            self.session.add(permission)
            await self.session.flush()
        await self.session.refresh(permission)
        return permission

    async def get_by_id(self, permission_id: UUID) -> Permission | None:
        return await self.session.get(Permission, permission_id)

    async def get_by_name(self, name: str) -> Permission | None:
        stmt = select(Permission).where(Permission.name == name)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_ids(self, permission_ids: Iterable[UUID]) -> list[Permission]:
        ids = list(permission_ids)
        if not ids:
            return []
        stmt = select(Permission).where(Permission.id.in_(ids))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_paginated(
        self,
        pagination: Pagination,
        resource: str | None = None,
    ) -> tuple[list[Permission], int]:
        """List permissions ordered by resource then action.

        Returns:
            Tuple of (permissions, total count)
        """
        conditions = []
        if resource:
            conditions.append(Permission.resource == resource)

        count_stmt = select(func.count()).select_from(Permission).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(Permission)
            .where(*conditions)
            .order_by(Permission.resource.asc(), Permission.action.asc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def delete(self, permission: Permission) -> None:
        """Delete a permission together with its role links."""
        async with self.session.begin_nested():
            await self.session.execute(
                delete(RolePermission).where(RolePermission.permission_id == permission.id)
            )
            await self.session.delete(permission)
            await self.session.flush()


# Type alias for dependency injection
PermissionRepo = Annotated[PermissionRepository, Depends(PermissionRepository)]
