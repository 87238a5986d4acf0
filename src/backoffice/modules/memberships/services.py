"""Aggregate membership lookups."""

from typing import Annotated

import structlog
from fastapi import Depends

from backoffice.core.auth.schemas import Identity
from backoffice.modules.memberships.schemas import (
    OrganizationMembership,
    UnitMembership,
    UserMemberships,
)
from backoffice.modules.organizations.repos import OrganizationMemberRepo
from backoffice.modules.units.repos import UnitMemberRepo


logger = structlog.get_logger()


class MembershipService:
    def __init__(
        self,
        organization_members: OrganizationMemberRepo,
        unit_members: UnitMemberRepo,
    ) -> None:
        self.organization_members = organization_members
        self.unit_members = unit_members

    async def get_user_memberships(self, identity: Identity) -> UserMemberships:
        """Union of the user's organization memberships and active unit memberships.

        Organization memberships are returned whether or not they are active;
        unit memberships only when active. Soft-deleted rows and rows in
        soft-deleted tenants are never included.
        """
        org_rows = await self.organization_members.list_for_user(identity.user_id)
        unit_rows = await self.unit_members.list_active_for_user(identity.user_id)

        memberships = UserMemberships(
            user_id=identity.user_id,
            is_super_admin=identity.is_super_admin,
            organizations=[OrganizationMembership.from_row(row) for row in org_rows],
            units=[UnitMembership.from_row(row) for row in unit_rows],
        )
        logger.debug(
            "memberships_resolved",
            user_id=str(identity.user_id),
            organizations=len(memberships.organizations),
            units=len(memberships.units),
        )
        return memberships


# Type alias for dependency injection
MembershipSvc = Annotated[MembershipService, Depends(MembershipService)]
