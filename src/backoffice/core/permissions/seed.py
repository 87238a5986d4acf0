"""Seeding of the standard permission catalog and system roles.

Safe to run repeatedly: existing permissions and roles are left as they
are, and only missing ones are created.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.permissions.models import (
    Permission,
    Role,
    RolePermission,
    RoleType,
    permission_name,
)


logger = structlog.get_logger()

CATALOG_RESOURCES = [
    "users",
    "roles",
    "permissions",
    "organizations",
    "units",
    "members",
    "classes",
    "subjects",
    "activities",
    "profiles",
    "posts",
]
CATALOG_ACTIONS = ["read", "create", "update", "delete"]
ACADEMIC_RESOURCES = ["classes", "subjects", "activities", "profiles", "posts"]


@dataclass(frozen=True)
class SystemRoleSpec:
    name: str
    display_name: str
    level: int
    permissions: tuple[str, ...]
    is_default: bool = False


def _all_catalog_permissions() -> tuple[str, ...]:
    return tuple(
        permission_name(resource, action)
        for resource in CATALOG_RESOURCES
        for action in CATALOG_ACTIONS
    )


SYSTEM_ROLES: list[SystemRoleSpec] = [
    SystemRoleSpec("super_admin", "Super Admin", 100, ("*.*",)),
    SystemRoleSpec("admin", "Administrator", 80, _all_catalog_permissions()),
    SystemRoleSpec(
        "teacher",
        "Teacher",
        50,
        tuple(permission_name(r, "read") for r in ACADEMIC_RESOURCES)
        + tuple(
            permission_name(r, a)
            for r in ("classes", "activities", "posts")
            for a in ("create", "update")
        ),
    ),
    SystemRoleSpec(
        "member",
        "Member",
        10,
        tuple(permission_name(r, "read") for r in ACADEMIC_RESOURCES),
        is_default=True,
    ),
]


async def _ensure_permission(session: AsyncSession, name: str) -> Permission:
    result = await session.execute(select(Permission).where(Permission.name == name))
    permission = result.scalar_one_or_none()
    if permission:
        return permission

    resource, _, action = name.partition(".")
    permission = Permission(name=name, resource=resource, action=action)
    session.add(permission)
    await session.flush()
    return permission


async def seed_catalog(session: AsyncSession) -> dict[str, int]:
    """Create missing catalog permissions and system roles.

    Returns:
        Counts of created permissions and roles
    """
    created = {"permissions": 0, "roles": 0}

    existing = set((await session.execute(select(Permission.name))).scalars().all())
    wanted = set(_all_catalog_permissions())
    for definition in SYSTEM_ROLES:
        wanted.update(definition.permissions)

    by_name: dict[str, Permission] = {}
    for name in sorted(wanted):
        by_name[name] = await _ensure_permission(session, name)
        if name not in existing:
            created["permissions"] += 1

    for definition in SYSTEM_ROLES:
        result = await session.execute(
            select(Role).where(Role.name == definition.name, Role.organization_id.is_(None))
        )
        if result.scalar_one_or_none():
            continue

        role = Role(
            organization_id=None,
            name=definition.name,
            display_name=definition.display_name,
            type=RoleType.SYSTEM.value,
            level=definition.level,
            is_default=definition.is_default,
        )
        session.add(role)
        await session.flush()
        session.add_all(
            RolePermission(role_id=role.id, permission_id=by_name[name].id)
            for name in definition.permissions
        )
        await session.flush()
        created["roles"] += 1

    logger.info("catalog_seeded", **created)
    return created
