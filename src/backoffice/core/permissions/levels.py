"""Coarse role levels for level-based route protection."""

from enum import IntEnum


class RoleLevel(IntEnum):
    GUEST = 0
    USER = 1
    MODERATOR = 2
    ADMIN = 3
    SUPER_ADMIN = 4


_LABEL_LEVELS: dict[str, RoleLevel] = {
    "super_admin": RoleLevel.SUPER_ADMIN,
    "superadmin": RoleLevel.SUPER_ADMIN,
    "admin": RoleLevel.ADMIN,
    "moderator": RoleLevel.MODERATOR,
    "user": RoleLevel.USER,
    "member": RoleLevel.USER,
}


def role_level_from_label(label: str | None) -> RoleLevel:
    """Map a role label to its level; unknown or missing labels are guests."""
    if not label:
        return RoleLevel.GUEST
    return _LABEL_LEVELS.get(label.strip().lower(), RoleLevel.GUEST)
