"""Organization and organization membership services."""

from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import Depends

from backoffice.core.auth.schemas import Identity
from backoffice.core.constants import DEFAULT_ORGANIZATION_TYPE
from backoffice.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from backoffice.core.pagination import Pagination
from backoffice.core.permissions.guards import Checker
from backoffice.modules.organizations.models import Organization, OrganizationMember
from backoffice.modules.organizations.repos import OrganizationMemberRepo, OrganizationRepo
from backoffice.modules.organizations.schemas import (
    OrganizationCreate,
    OrganizationFilter,
    OrganizationMemberCreate,
    OrganizationMemberFilter,
    OrganizationMemberUpdate,
    OrganizationUpdate,
)
from backoffice.modules.roles.repos import RoleRepo
from backoffice.modules.users.repos import UserRepo


logger = structlog.get_logger()


class OrganizationService:
    """Service for organization CRUD."""

    def __init__(self, repo: OrganizationRepo) -> None:
        self.repo = repo

    async def create_organization(
        self,
        data: OrganizationCreate,
        identity: Identity,
    ) -> Organization:
        """Create an organization owned by the caller.

        Raises:
            ConflictError: If the code is already taken
        """
        if await self.repo.get_by_code(data.code):
            raise ConflictError(
                "Organization code already exists",
                error_code="organization_code_exists",
                details={"code": data.code},
            )

        organization = await self.repo.create(
            Organization(
                name=data.name,
                code=data.code,
                type=data.type or DEFAULT_ORGANIZATION_TYPE,
                description=data.description,
                address=data.address,
                phone=data.phone,
                email=data.email,
                logo=data.logo,
                settings=data.settings or {},
                owner_id=identity.user_id,
                is_active=True,
            )
        )
        logger.info(
            "organization_created",
            organization_id=str(organization.id),
            code=organization.code,
        )
        return organization

    async def get_organization(self, organization_id: UUID) -> Organization:
        """Get an organization by ID.

        Raises:
            NotFoundError: If missing or soft-deleted
        """
        organization = await self.repo.get_by_id(organization_id)
        if not organization:
            raise NotFoundError(
                "Organization not found",
                resource="organization",
                resource_id=str(organization_id),
            )
        return organization

    async def get_member_count(self, organization_id: UUID) -> int:
        return await self.repo.count_members(organization_id)

    async def list_organizations(
        self,
        filters: OrganizationFilter,
        pagination: Pagination,
    ) -> tuple[list[Organization], int]:
        return await self.repo.list_paginated(filters, pagination)

    async def update_organization(
        self,
        organization_id: UUID,
        data: OrganizationUpdate,
    ) -> Organization:
        """Apply a partial update.

        Raises:
            NotFoundError: If organization not found
            ConflictError: If the new code is taken
        """
        organization = await self.get_organization(organization_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)

        new_code = changes.get("code")
        if new_code and new_code != organization.code and await self.repo.get_by_code(new_code):
            raise ConflictError(
                "Organization code already exists",
                error_code="organization_code_exists",
                details={"code": new_code},
            )

        for field, value in changes.items():
            setattr(organization, field, value)

        organization = await self.repo.update(organization)
        logger.info(
            "organization_updated",
            organization_id=str(organization.id),
            fields=sorted(changes),
        )
        return organization

    async def delete_organization(self, organization_id: UUID) -> None:
        organization = await self.get_organization(organization_id)
        await self.repo.soft_delete(organization)
        logger.info("organization_deleted", organization_id=str(organization_id))


class OrganizationMemberService:
    """Membership management for one organization at a time.

    Members are addressed by user ID. The unique index on live
    (user_id, organization_id) pairs is the authoritative duplicate check.
    A caller can only assign a role whose permissions they hold in the
    organization themselves.
    """

    def __init__(
        self,
        repo: OrganizationMemberRepo,
        organization_repo: OrganizationRepo,
        role_repo: RoleRepo,
        user_repo: UserRepo,
        checker: Checker,
    ) -> None:
        self.repo = repo
        self.organization_repo = organization_repo
        self.role_repo = role_repo
        self.user_repo = user_repo
        self.checker = checker

    async def _get_organization(self, organization_id: UUID) -> Organization:
        organization = await self.organization_repo.get_by_id(organization_id)
        if not organization:
            raise NotFoundError(
                "Organization not found",
                resource="organization",
                resource_id=str(organization_id),
            )
        return organization

    async def _ensure_role_usable(self, role_id: UUID, organization_id: UUID) -> None:
        """A member's role must be global or belong to this organization."""
        role = await self.role_repo.get_by_id(role_id)
        if not role or (role.organization_id not in (None, organization_id)):
            raise ValidationError(
                "Role is not available in this organization",
                errors=[{"field": "role_id", "message": f"role {role_id} cannot be assigned here"}],
            )

    async def _ensure_assignable(
        self, role_id: UUID, organization_id: UUID, identity: Identity
    ) -> None:
        """The caller must hold every permission the role grants, here."""
        names = [p.name for p in await self.role_repo.get_permissions(role_id)]
        if names and not await self.checker.has_all_permissions(
            identity.user_id, names, organization_id=organization_id
        ):
            logger.warning(
                "role_assignment_refused",
                user_id=str(identity.user_id),
                organization_id=str(organization_id),
                role_id=str(role_id),
            )
            raise ForbiddenError(
                "Cannot assign a role with permissions you do not hold",
                error_code="permission_escalation",
                details={"role_id": str(role_id), "permissions": names},
            )

    async def get_member(self, organization_id: UUID, user_id: UUID) -> OrganizationMember:
        """Get a live membership.

        Raises:
            NotFoundError: If the user is not a member
        """
        member = await self.repo.get_by_user(organization_id, user_id)
        if not member:
            raise NotFoundError(
                "Member not found",
                resource="organization_member",
                resource_id=str(user_id),
            )
        return member

    async def get_member_detail(self, member_id: UUID) -> Any:
        row = await self.repo.get_detail(member_id)
        if row is None:
            raise NotFoundError(
                "Member not found",
                resource="organization_member",
                resource_id=str(member_id),
            )
        return row

    async def add_member(
        self,
        organization_id: UUID,
        data: OrganizationMemberCreate,
        identity: Identity,
    ) -> OrganizationMember:
        """Add a user to an organization with a role.

        Raises:
            NotFoundError: Organization or user missing
            ValidationError: Role unknown or owned by another organization
            ForbiddenError: Role grants permissions the caller does not hold
            ConflictError: User already a member
        """
        await self._get_organization(organization_id)

        if not await self.user_repo.get_by_id(data.user_id):
            raise NotFoundError(
                "User not found",
                resource="user",
                resource_id=str(data.user_id),
            )

        await self._ensure_role_usable(data.role_id, organization_id)
        await self._ensure_assignable(data.role_id, organization_id, identity)

        if await self.repo.get_by_user(organization_id, data.user_id):
            raise ConflictError(
                "User is already a member of this organization",
                error_code="already_member",
                details={"user_id": str(data.user_id)},
            )

        member = await self.repo.create(
            OrganizationMember(
                organization_id=organization_id,
                user_id=data.user_id,
                role_id=data.role_id,
                is_active=True,
                invited_by=identity.user_id,
            )
        )
        logger.info(
            "member_added",
            tenant="organization",
            organization_id=str(organization_id),
            user_id=str(data.user_id),
            role_id=str(data.role_id),
        )
        return member

    async def update_member(
        self,
        organization_id: UUID,
        user_id: UUID,
        data: OrganizationMemberUpdate,
        identity: Identity,
    ) -> OrganizationMember:
        """Change a member's role or active flag.

        Raises:
            NotFoundError: If the user is not a member
            ValidationError: If the new role cannot be used here
            ForbiddenError: If the new role grants permissions the caller does not hold
        """
        member = await self.get_member(organization_id, user_id)

        if data.role_id is not None:
            await self._ensure_role_usable(data.role_id, organization_id)
            await self._ensure_assignable(data.role_id, organization_id, identity)
            member.role_id = data.role_id
        if data.is_active is not None:
            member.is_active = data.is_active

        member = await self.repo.update(member)
        logger.info(
            "member_updated",
            tenant="organization",
            organization_id=str(organization_id),
            user_id=str(user_id),
        )
        return member

    async def remove_member(self, organization_id: UUID, user_id: UUID) -> None:
        """Soft-remove a membership. A second removal raises NotFoundError."""
        member = await self.get_member(organization_id, user_id)
        await self.repo.soft_delete(member)
        logger.info(
            "member_removed",
            tenant="organization",
            organization_id=str(organization_id),
            user_id=str(user_id),
        )

    async def list_members(
        self,
        organization_id: UUID,
        filters: OrganizationMemberFilter,
        pagination: Pagination,
    ) -> tuple[list[Any], int]:
        await self._get_organization(organization_id)
        return await self.repo.list_paginated(organization_id, filters, pagination)


# Type aliases for dependency injection
OrganizationSvc = Annotated[OrganizationService, Depends(OrganizationService)]
OrganizationMemberSvc = Annotated[OrganizationMemberService, Depends(OrganizationMemberService)]
