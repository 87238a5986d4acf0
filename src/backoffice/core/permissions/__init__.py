"""Permissions module for role-based access control."""

from backoffice.core.permissions.checker import (
    AllowAll,
    DatabasePermissionChecker,
    PermissionChecker,
    PermissionCheckerFactory,
    checker_factory_for_mode,
    permission_matches,
)
from backoffice.core.permissions.levels import RoleLevel, role_level_from_label


__all__ = [
    "AllowAll",
    "DatabasePermissionChecker",
    "PermissionChecker",
    "PermissionCheckerFactory",
    "RoleLevel",
    "checker_factory_for_mode",
    "permission_matches",
    "role_level_from_label",
]
