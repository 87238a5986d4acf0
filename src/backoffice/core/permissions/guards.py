"""Route guards for permission and role-level checks.

Each factory returns a FastAPI dependency. Attach it to a route with
``dependencies=[Depends(...)]`` or take its return value, the caller's
Identity, as a parameter. Permission guards are checked inside one
organization, resolved by the ``scope`` dependency:

    @router.put("/{organization_id}")
    async def update_organization(
        organization_id: UUID,
        identity: Annotated[
            Identity,
            Depends(require_any_permission("organizations.update", scope=organization_from_path)),
        ],
    ): ...
"""

from collections.abc import Awaitable, Callable, Iterable
from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import Depends, Query, Request

from backoffice.api.dependencies import DBSession
from backoffice.core.auth.dependencies import CurrentIdentity
from backoffice.core.auth.schemas import Identity
from backoffice.core.errors import ForbiddenError
from backoffice.core.permissions.checker import PermissionChecker, PermissionCheckerFactory
from backoffice.core.permissions.levels import RoleLevel, role_level_from_label


logger = structlog.get_logger()

Guard = Callable[..., Awaitable[Identity]]


def get_permission_checker(request: Request, db: DBSession) -> PermissionChecker:
    """Build the checker configured on the application for this request."""
    factory: PermissionCheckerFactory = request.app.state.permission_checker_factory
    return factory(db)


Checker = Annotated[PermissionChecker, Depends(get_permission_checker)]


ScopeResolver = Callable[..., Any]


def platform_scope() -> None:
    """Scope for platform-wide resources: no tenant grants apply."""
    return None


def organization_from_path(organization_id: UUID) -> UUID:
    """Scope taken from an ``{organization_id}`` path parameter."""
    return organization_id


def organization_from_query(
    organization_id: Annotated[UUID | None, Query()] = None,
) -> UUID | None:
    """Scope taken from an optional ``?organization_id=`` filter."""
    return organization_id


def _deny(
    identity: Identity,
    permissions: list[str],
    require_all: bool,
    organization_id: UUID | None = None,
) -> ForbiddenError:
    scope = str(organization_id) if organization_id else None
    logger.warning(
        "permission_denied",
        user_id=str(identity.user_id),
        required_permissions=permissions,
        require_all=require_all,
        organization_id=scope,
    )
    return ForbiddenError(
        "Insufficient permissions",
        error_code="permission_denied",
        details={"required_permissions": permissions, "organization_id": scope},
    )


async def ensure_permissions(
    checker: PermissionChecker,
    identity: Identity,
    permissions: Iterable[str],
    *,
    organization_id: UUID | None = None,
    require_all: bool = False,
) -> None:
    """Raise ForbiddenError unless the caller holds the permissions in the scope.

    For handlers whose scope is only known from the request body.
    """
    required = list(permissions)
    if require_all:
        allowed = await checker.has_all_permissions(
            identity.user_id, required, organization_id=organization_id
        )
    else:
        allowed = await checker.has_any_permission(
            identity.user_id, required, organization_id=organization_id
        )
    if not allowed:
        raise _deny(identity, required, require_all, organization_id)


def require_any_permission(*permissions: str, scope: ScopeResolver = platform_scope) -> Guard:
    """Allow the request if the caller holds at least one of the permissions.

    ``scope`` is a dependency that resolves the organization the request
    acts on.
    """
    if not permissions:
        raise ValueError("require_any_permission needs at least one permission")
    required = list(permissions)

    async def guard(
        identity: CurrentIdentity,
        checker: Checker,
        organization_id: Annotated[UUID | None, Depends(scope)],
    ) -> Identity:
        await ensure_permissions(checker, identity, required, organization_id=organization_id)
        return identity

    return guard


def require_all_permissions(*permissions: str, scope: ScopeResolver = platform_scope) -> Guard:
    """Allow the request only if the caller holds every permission."""
    if not permissions:
        raise ValueError("require_all_permissions needs at least one permission")
    required = list(permissions)

    async def guard(
        identity: CurrentIdentity,
        checker: Checker,
        organization_id: Annotated[UUID | None, Depends(scope)],
    ) -> Identity:
        await ensure_permissions(
            checker, identity, required, organization_id=organization_id, require_all=True
        )
        return identity

    return guard


def require_role_level(minimum: RoleLevel) -> Guard:
    """Reject callers whose role level is below the minimum."""

    async def guard(identity: CurrentIdentity) -> Identity:
        level = role_level_from_label(identity.role_label)
        if level < minimum:
            logger.warning(
                "role_level_denied",
                user_id=str(identity.user_id),
                level=level.name.lower(),
                required_level=minimum.name.lower(),
            )
            raise ForbiddenError(
                "Insufficient role level",
                error_code="insufficient_role_level",
                details={"required_level": minimum.name.lower()},
            )
        return identity

    return guard
