"""Approval status lookup used to gate logins.

Guardian/parent registrations are reviewed before the account may sign
in. The review lives with the unit membership; login only needs the
latest status for a user.
"""

from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


class ApprovalStatusProvider(Protocol):
    """Answers "what is the approval status of this user's registration?"."""

    async def get_approval_status(self, user_id: UUID) -> str | None:
        """Return "pending", "approved", "rejected", or None if there is no record."""
        ...


class MemberApprovalProvider:
    """Reads the most recent approval record across the user's unit memberships."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_approval_status(self, user_id: UUID) -> str | None:
        from backoffice.modules.units.models import MemberApproval, UnitMember  # noqa: PLC0415

        stmt = (
            select(MemberApproval.status)
            .join(UnitMember, UnitMember.id == MemberApproval.unit_member_id)
            .where(
                UnitMember.user_id == user_id,
                UnitMember.deleted_at.is_(None),
            )
            .order_by(MemberApproval.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
