"""Role repository: roles and their permission links."""

from collections.abc import Iterable
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError

from backoffice.api.dependencies import DBSession
from backoffice.core.database import conflict_on_integrity_error
from backoffice.core.errors import ConflictError
from backoffice.core.pagination import Pagination
from backoffice.core.permissions.models import Permission, Role, RolePermission
from backoffice.modules.organizations.models import OrganizationMember
from backoffice.modules.roles.schemas import RoleFilter


class RoleRepository:
    """Repository for Role and RolePermission database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, role: Role) -> Role:
        """Create a role.

        Raises:
            ConflictError: If the name is taken within the organization
        """
        async with conflict_on_integrity_error(
            self.session,
            "Role name already exists",
            error_code="role_exists",
            details={"name": role.name},
        ):
            self.session.add(role)
            await self.session.flush()
        await self.session.refresh(role)
        return role

    async def get_by_id(self, role_id: UUID) -> Role | None:
        stmt = select(Role).where(Role.id == role_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str, organization_id: UUID | None) -> Role | None:
        """Get a role by name within an organization, or among global roles."""
        stmt = select(Role).where(Role.name == name)
        if organization_id is None:
            stmt = stmt.where(Role.organization_id.is_(None))
        else:
            stmt = stmt.where(Role.organization_id == organization_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_paginated(
        self,
        filters: RoleFilter,
        pagination: Pagination,
    ) -> tuple[list[Role], int]:
        """List roles, highest level first, then newest.

        Returns:
            Tuple of (roles, total count)
        """
        conditions = []
        if filters.organization_id:
            conditions.append(Role.organization_id == filters.organization_id)
        if filters.name:
            conditions.append(Role.name.ilike(f"%{filters.name}%"))
        if filters.type:
            conditions.append(Role.type == filters.type.value)
        if filters.is_global is True:
            conditions.append(Role.organization_id.is_(None))
        elif filters.is_global is False:
            conditions.append(Role.organization_id.is_not(None))

        count_stmt = select(func.count()).select_from(Role).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(Role)
            .where(*conditions)
            .order_by(Role.level.desc(), Role.created_at.desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def update(self, role: Role) -> Role:
        """Persist changes made to a role.

        Raises:
            ConflictError: If a rename collides with another role
        """
        async with conflict_on_integrity_error(
            self.session,
            "Role name already exists",
            error_code="role_exists",
            details={"name": role.name},
        ):
            await self.session.flush()
        await self.session.refresh(role)
        return role

    async def count_live_members(self, role_id: UUID) -> int:
        """Count memberships that have not been removed and still hold the role."""
        stmt = (
            select(func.count())
            .select_from(OrganizationMember)
            .where(
                OrganizationMember.role_id == role_id,
                OrganizationMember.deleted_at.is_(None),
            )
        )
        return (await self.session.execute(stmt)).scalar_one()

    async def is_held_by(self, role_id: UUID, user_id: UUID) -> bool:
        """Check whether the user holds the role through a live membership."""
        stmt = select(OrganizationMember.id).where(
            OrganizationMember.role_id == role_id,
            OrganizationMember.user_id == user_id,
            OrganizationMember.deleted_at.is_(None),
        )
        return (await self.session.execute(stmt.limit(1))).first() is not None

    async def delete(self, role: Role) -> None:
        """Delete a role after clearing its permission links.

        Removed memberships keep their row but lose the role reference.

        Raises:
            ConflictError: If live memberships still hold the role
        """
        in_use = ConflictError(
            "Role is still assigned to members",
            error_code="role_in_use",
            details={"role_id": str(role.id)},
        )
        if await self.count_live_members(role.id):
            raise in_use

        try:
            async with self.session.begin_nested():
                await self.session.execute(
                    update(OrganizationMember)
                    .where(
                        OrganizationMember.role_id == role.id,
                        OrganizationMember.deleted_at.is_not(None),
                    )
                    .values(role_id=None)
                )
                await self.session.execute(
                    delete(RolePermission).where(RolePermission.role_id == role.id)
                )
                await self.session.delete(role)
                await self.session.flush()
        except IntegrityError as e:
            # A membership was added between the count and the delete
            raise in_use from e

    async def replace_permissions(self, role_id: UUID, permission_ids: Iterable[UUID]) -> None:
        """Replace the role's permission set in one transaction.

        Old links are deleted and new ones inserted inside a single
        SAVEPOINT, so other transactions see the old set or the new set,
        never a mix.
        """
        rows = [{"role_id": role_id, "permission_id": pid} for pid in permission_ids]
        async with self.session.begin_nested():
            await self.session.execute(
                delete(RolePermission).where(RolePermission.role_id == role_id)
            )
            if rows:
                await self.session.execute(insert(RolePermission), rows)

    async def get_permissions(self, role_id: UUID) -> list[Permission]:
        stmt = (
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id)
            .order_by(Permission.resource.asc(), Permission.action.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


# Type alias for dependency injection
RoleRepo = Annotated[RoleRepository, Depends(RoleRepository)]
