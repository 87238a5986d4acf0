"""Membership read model.

Organization and unit memberships have different shapes: organization roles
live in the role store, unit roles come from a closed enum. They are kept as
two tagged variants that share the Membership protocol.
"""

from typing import Any, Literal, Protocol, runtime_checkable
from uuid import UUID

from pydantic import BaseModel

from backoffice.modules.units.models import UnitMemberRole


@runtime_checkable
class Membership(Protocol):
    """What callers may rely on for any membership, whatever its tenant kind."""

    @property
    def tenant_id(self) -> UUID: ...

    @property
    def principal_id(self) -> UUID: ...

    @property
    def is_active(self) -> bool: ...

    @property
    def effective_role_name(self) -> str: ...


class OrganizationMembership(BaseModel):
    kind: Literal["organization"] = "organization"
    member_id: UUID
    user_id: UUID
    organization_id: UUID
    organization_name: str
    organization_code: str
    role_id: UUID
    role_name: str
    is_active: bool

    @property
    def tenant_id(self) -> UUID:
        return self.organization_id

    @property
    def principal_id(self) -> UUID:
        return self.user_id

    @property
    def effective_role_name(self) -> str:
        return self.role_name

    @classmethod
    def from_row(cls, row: Any) -> "OrganizationMembership":
        member = row[0]
        return cls(
            member_id=member.id,
            user_id=member.user_id,
            organization_id=member.organization_id,
            organization_name=row.organization_name,
            organization_code=row.organization_code,
            role_id=member.role_id,
            role_name=row.role_name,
            is_active=member.is_active,
        )


class UnitMembership(BaseModel):
    kind: Literal["unit"] = "unit"
    member_id: UUID
    user_id: UUID
    unit_id: UUID
    unit_name: str
    unit_code: str
    organization_id: UUID
    organization_name: str
    role: UnitMemberRole
    is_active: bool

    @property
    def tenant_id(self) -> UUID:
        return self.unit_id

    @property
    def principal_id(self) -> UUID:
        return self.user_id

    @property
    def effective_role_name(self) -> str:
        return self.role.value

    @classmethod
    def from_row(cls, row: Any) -> "UnitMembership":
        member = row[0]
        return cls(
            member_id=member.id,
            user_id=member.user_id,
            unit_id=member.unit_id,
            unit_name=row.unit_name,
            unit_code=row.unit_code,
            organization_id=row.organization_id,
            organization_name=row.organization_name,
            role=member.role,
            is_active=member.is_active,
        )


class UserMemberships(BaseModel):
    """Everything a user can act in, for client-side tenant pickers."""

    user_id: UUID
    is_super_admin: bool
    organizations: list[OrganizationMembership] = []
    units: list[UnitMembership] = []
