"""Role service: role lifecycle and permission assignment."""

from collections.abc import Iterable
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from backoffice.core.auth.schemas import Identity
from backoffice.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from backoffice.core.pagination import Pagination
from backoffice.core.permissions.guards import Checker
from backoffice.core.permissions.models import Permission, Role, RoleType
from backoffice.modules.organizations.repos import OrganizationRepo
from backoffice.modules.permissions.repos import PermissionRepo
from backoffice.modules.roles.repos import RoleRepo
from backoffice.modules.roles.schemas import RoleCreate, RoleFilter, RoleUpdate


logger = structlog.get_logger()


def _dedupe(ids: Iterable[UUID]) -> list[UUID]:
    return list(dict.fromkeys(ids))


class RoleService:
    """Business rules for roles.

    System roles are immutable: every update or delete is refused,
    whoever asks. A role's permission set is only ever replaced whole,
    and only with permissions the caller holds in the role's organization.
    Outside super admins, nobody rewrites the permission set of a role
    they hold themselves.
    """

    def __init__(
        self,
        repo: RoleRepo,
        permission_repo: PermissionRepo,
        organization_repo: OrganizationRepo,
        checker: Checker,
    ) -> None:
        self.repo = repo
        self.permission_repo = permission_repo
        self.organization_repo = organization_repo
        self.checker = checker

    async def get_role(self, role_id: UUID) -> Role:
        """Get a role by ID.

        Raises:
            NotFoundError: If role not found
        """
        role = await self.repo.get_by_id(role_id)
        if not role:
            raise NotFoundError(
                "Role not found",
                resource="role",
                resource_id=str(role_id),
            )
        return role

    async def list_roles(
        self,
        filters: RoleFilter,
        pagination: Pagination,
    ) -> tuple[list[Role], int]:
        return await self.repo.list_paginated(filters, pagination)

    async def create_role(self, data: RoleCreate, identity: Identity) -> Role:
        """Create a role and assign its initial permission set.

        Raises:
            ValidationError: System role scoped to an organization, or unknown permission IDs
            NotFoundError: If the organization does not exist
            ForbiddenError: If the caller does not hold every permission granted
            ConflictError: If the name is taken within the organization
        """
        if data.type == RoleType.SYSTEM and data.organization_id is not None:
            raise ValidationError(
                "System roles cannot belong to an organization",
                errors=[{"field": "organization_id", "message": "must be empty for system roles"}],
            )

        if data.organization_id is not None:
            organization = await self.organization_repo.get_by_id(data.organization_id)
            if not organization:
                raise NotFoundError(
                    "Organization not found",
                    resource="organization",
                    resource_id=str(data.organization_id),
                )

        permission_ids = _dedupe(data.permission_ids)
        permissions = await self._ensure_permissions_exist(permission_ids)
        await self._ensure_grantable(identity, data.organization_id, permissions)

        if await self.repo.get_by_name(data.name, data.organization_id):
            raise ConflictError(
                "Role name already exists",
                error_code="role_exists",
                details={"name": data.name},
            )

        role = await self.repo.create(
            Role(
                organization_id=data.organization_id,
                name=data.name,
                display_name=data.display_name,
                description=data.description,
                type=data.type.value,
                level=data.level,
                is_default=data.is_default,
            )
        )
        await self.set_role_permissions(role.id, permission_ids)

        logger.info(
            "role_created",
            role_id=str(role.id),
            organization_id=str(role.organization_id) if role.organization_id else None,
            permission_count=len(permission_ids),
        )
        return role

    async def update_role(self, role_id: UUID, data: RoleUpdate, identity: Identity) -> Role:
        """Apply a partial update to a custom role.

        Raises:
            NotFoundError: If role not found
            ForbiddenError: System role, a role the caller holds, or permissions
                the caller does not hold
            ConflictError: If the new name is taken
            ValidationError: If permission IDs are unknown
        """
        role = await self.get_role(role_id)
        self._ensure_mutable(role)

        permission_ids = None
        if data.permission_ids is not None:
            await self._ensure_not_own_role(role, identity)
            permission_ids = _dedupe(data.permission_ids)
            permissions = await self._ensure_permissions_exist(permission_ids)
            await self._ensure_grantable(identity, role.organization_id, permissions)

        if data.name and data.name != role.name:
            if await self.repo.get_by_name(data.name, role.organization_id):
                raise ConflictError(
                    "Role name already exists",
                    error_code="role_exists",
                    details={"name": data.name},
                )
            role.name = data.name
        if data.display_name:
            role.display_name = data.display_name
        if data.description:
            role.description = data.description
        if data.level:
            role.level = data.level
        if data.is_default is not None:
            role.is_default = data.is_default

        role = await self.repo.update(role)

        if permission_ids is not None:
            await self.set_role_permissions(role.id, permission_ids)

        logger.info("role_updated", role_id=str(role.id))
        return role

    async def delete_role(self, role_id: UUID) -> None:
        """Delete a custom role and its permission links.

        Raises:
            NotFoundError: If role not found
            ForbiddenError: If the role is a system role
            ConflictError: If live memberships still use the role
        """
        role = await self.get_role(role_id)
        self._ensure_mutable(role)

        await self.repo.delete(role)
        logger.info("role_deleted", role_id=str(role_id))

    async def set_role_permissions(
        self,
        role_id: UUID,
        permission_ids: Iterable[UUID],
    ) -> None:
        """Replace the role's permission set with exactly permission_ids."""
        ids = _dedupe(permission_ids)
        await self.repo.replace_permissions(role_id, ids)
        logger.info(
            "role_permissions_replaced",
            role_id=str(role_id),
            permission_count=len(ids),
        )

    async def get_role_permissions(self, role_id: UUID) -> list[Permission]:
        """Get the role's current permission set.

        Raises:
            NotFoundError: If role not found
        """
        await self.get_role(role_id)
        return await self.repo.get_permissions(role_id)

    def _ensure_mutable(self, role: Role) -> None:
        if role.is_system:
            logger.warning("system_role_mutation_refused", role_id=str(role.id))
            raise ForbiddenError(
                "System roles cannot be modified",
                error_code="system_role_immutable",
                details={"role_id": str(role.id)},
            )

    async def _ensure_not_own_role(self, role: Role, identity: Identity) -> None:
        if identity.is_super_admin:
            return
        if await self.repo.is_held_by(role.id, identity.user_id):
            logger.warning(
                "own_role_mutation_refused",
                role_id=str(role.id),
                user_id=str(identity.user_id),
            )
            raise ForbiddenError(
                "Cannot change the permissions of a role you hold",
                error_code="own_role_immutable",
                details={"role_id": str(role.id)},
            )

    async def _ensure_grantable(
        self,
        identity: Identity,
        organization_id: UUID | None,
        permissions: list[Permission],
    ) -> None:
        names = [p.name for p in permissions]
        if not names:
            return
        if not await self.checker.has_all_permissions(
            identity.user_id, names, organization_id=organization_id
        ):
            logger.warning(
                "permission_escalation_refused",
                user_id=str(identity.user_id),
                organization_id=str(organization_id) if organization_id else None,
                permissions=names,
            )
            raise ForbiddenError(
                "Cannot grant permissions you do not hold",
                error_code="permission_escalation",
                details={"permissions": names},
            )

    async def _ensure_permissions_exist(self, permission_ids: list[UUID]) -> list[Permission]:
        found = await self.permission_repo.get_by_ids(permission_ids)
        missing = set(permission_ids) - {p.id for p in found}
        if missing:
            raise ValidationError(
                "Unknown permission IDs",
                errors=[
                    {"field": "permission_ids", "message": f"permission {pid} does not exist"}
                    for pid in sorted(missing, key=str)
                ],
            )
        return found


# Type alias for dependency injection
RoleSvc = Annotated[RoleService, Depends(RoleService)]
