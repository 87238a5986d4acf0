"""Small helpers shared by tests."""

from backoffice.core.auth.backend import create_access_token
from backoffice.core.permissions.models import Permission, RolePermission
from backoffice.modules.organizations.models import OrganizationMember
from backoffice.modules.units.models import UnitMember
from backoffice.modules.users.models import User
from tests.factories.tenant import OrganizationFactory, RoleFactory, UnitFactory


TEST_PASSWORD = "SecurePass123!"


def bearer(user: User) -> dict[str, str]:
    """Authorization header carrying a fresh access token for the user."""
    token, _ = create_access_token(user.id)
    return {"Authorization": f"Bearer {token}"}


async def create_permissions(db, *names: str) -> list:
    """Create catalog entries from ``resource.action`` names."""
    permissions = []
    for name in names:
        resource, _, action = name.partition(".")
        permission = Permission(name=name, resource=resource, action=action)
        db.add(permission)
        permissions.append(permission)
    await db.flush()
    return permissions


async def create_role(db, permissions=(), **overrides):
    """Create a role holding exactly the given permissions."""
    role = RoleFactory.build(**overrides)
    db.add(role)
    await db.flush()
    db.add_all(RolePermission(role_id=role.id, permission_id=p.id) for p in permissions)
    await db.flush()
    await db.refresh(role)
    return role


async def create_organization(db, owner: User, **overrides):
    organization = OrganizationFactory.build(owner_id=owner.id, **overrides)
    db.add(organization)
    await db.flush()
    await db.refresh(organization)
    return organization


async def create_unit(db, organization, **overrides):
    unit = UnitFactory.build(organization_id=organization.id, **overrides)
    db.add(unit)
    await db.flush()
    await db.refresh(unit)
    return unit


async def add_organization_member(db, organization, user: User, role, is_active: bool = True):
    member = OrganizationMember(
        organization_id=organization.id,
        user_id=user.id,
        role_id=role.id,
        is_active=is_active,
    )
    db.add(member)
    await db.flush()
    await db.refresh(member)
    return member


async def add_unit_member(db, unit, user: User, role: str = "staff", is_active: bool = True):
    member = UnitMember(
        unit_id=unit.id,
        user_id=user.id,
        role=role,
        is_active=is_active,
    )
    db.add(member)
    await db.flush()
    await db.refresh(member)
    return member
