"""Permission checking capability.

Guards never talk to the database directly; they ask a PermissionChecker.
Which checker is used is decided once, when the application is built:

- DatabasePermissionChecker resolves permissions from the roles of the
  caller's organization memberships.
- AllowAll answers yes to everything. It is the explicit fail-open mode
  for deployments without a permission backend.
"""

from collections.abc import Callable, Iterable
from typing import Protocol
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.constants import PERMISSION_WILDCARD
from backoffice.core.permissions.models import Permission, RolePermission


logger = structlog.get_logger()


def permission_matches(granted: str, required: str) -> bool:
    """Check if a granted permission name satisfies a required one.

    ``roles.*`` matches every action on roles and ``*.*`` matches anything.
    """
    if granted == required:
        return True

    granted_resource, _, granted_action = granted.partition(".")
    required_resource, _, required_action = required.partition(".")

    resource_ok = granted_resource in (PERMISSION_WILDCARD, required_resource)
    action_ok = granted_action in (PERMISSION_WILDCARD, required_action)
    return resource_ok and action_ok


def _grants(granted: set[str], required: str) -> bool:
    return any(permission_matches(name, required) for name in granted)


class PermissionChecker(Protocol):
    """Answers whether a user holds permissions within an organization.

    ``organization_id=None`` is platform scope: only roles outside any
    tenant could grant there, so in practice only super admins pass.
    """

    async def has_permission(
        self, user_id: UUID, permission: str, *, organization_id: UUID | None = None
    ) -> bool: ...

    async def has_any_permission(
        self, user_id: UUID, permissions: Iterable[str], *, organization_id: UUID | None = None
    ) -> bool: ...

    async def has_all_permissions(
        self, user_id: UUID, permissions: Iterable[str], *, organization_id: UUID | None = None
    ) -> bool: ...


PermissionCheckerFactory = Callable[[AsyncSession], PermissionChecker]


class AllowAll:
    """Checker that grants every permission in every organization."""

    async def has_permission(  # noqa: ARG002
        self, user_id: UUID, permission: str, *, organization_id: UUID | None = None
    ) -> bool:
        return True

    async def has_any_permission(  # noqa: ARG002
        self, user_id: UUID, permissions: Iterable[str], *, organization_id: UUID | None = None
    ) -> bool:
        return True

    async def has_all_permissions(  # noqa: ARG002
        self, user_id: UUID, permissions: Iterable[str], *, organization_id: UUID | None = None
    ) -> bool:
        return True


class DatabasePermissionChecker:
    """Resolves a user's permissions from their organization memberships.

    Inside an organization a user holds the permissions granted by the
    role of their active membership there. Nothing granted in one
    organization carries over to another. Super admins pass every check.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _is_super_admin(self, user_id: UUID) -> bool:
        from backoffice.modules.users.models import User  # noqa: PLC0415

        stmt = select(User.is_super_admin).where(
            User.id == user_id,
            User.deleted_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return bool(result.scalar_one_or_none())

    async def get_user_permissions(
        self, user_id: UUID, organization_id: UUID | None = None
    ) -> set[str]:
        """Get the permission names granted to a user within one organization.

        Platform scope (``organization_id=None``) grants nothing.
        """
        if organization_id is None:
            return set()

        from backoffice.modules.organizations.models import (  # noqa: PLC0415
            Organization,
            OrganizationMember,
        )

        stmt = (
            select(Permission.name)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .join(OrganizationMember, OrganizationMember.role_id == RolePermission.role_id)
            .join(Organization, Organization.id == OrganizationMember.organization_id)
            .where(
                OrganizationMember.user_id == user_id,
                OrganizationMember.organization_id == organization_id,
                OrganizationMember.is_active.is_(True),
                OrganizationMember.deleted_at.is_(None),
                Organization.deleted_at.is_(None),
            )
            .distinct()
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def _resolve(
        self, user_id: UUID, required: list[str], organization_id: UUID | None
    ) -> set[str] | None:
        """Return the granted set, or None when the super-admin bypass applies."""
        if await self._is_super_admin(user_id):
            logger.warning(
                "super_admin_bypass",
                user_id=str(user_id),
                permissions=required,
                organization_id=str(organization_id) if organization_id else None,
            )
            return None
        return await self.get_user_permissions(user_id, organization_id)

    async def has_permission(
        self, user_id: UUID, permission: str, *, organization_id: UUID | None = None
    ) -> bool:
        return await self.has_any_permission(
            user_id, [permission], organization_id=organization_id
        )

    async def has_any_permission(
        self, user_id: UUID, permissions: Iterable[str], *, organization_id: UUID | None = None
    ) -> bool:
        required = list(permissions)
        granted = await self._resolve(user_id, required, organization_id)
        if granted is None:
            return True
        return any(_grants(granted, name) for name in required)

    async def has_all_permissions(
        self, user_id: UUID, permissions: Iterable[str], *, organization_id: UUID | None = None
    ) -> bool:
        required = list(permissions)
        granted = await self._resolve(user_id, required, organization_id)
        if granted is None:
            return True
        return all(_grants(granted, name) for name in required)


def database_checker_factory(session: AsyncSession) -> PermissionChecker:
    return DatabasePermissionChecker(session)


def allow_all_factory(session: AsyncSession) -> PermissionChecker:  # noqa: ARG001
    return AllowAll()


def checker_factory_for_mode(mode: str) -> PermissionCheckerFactory:
    """Map a configured permission mode to a checker factory.

    Raises:
        ValueError: If the mode is unknown
    """
    factories: dict[str, PermissionCheckerFactory] = {
        "database": database_checker_factory,
        "allow_all": allow_all_factory,
    }
    try:
        return factories[mode]
    except KeyError:
        raise ValueError(f"Unknown permission mode: {mode}") from None
