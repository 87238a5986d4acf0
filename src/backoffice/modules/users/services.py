"""User directory service: platform-level account management."""

from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import Depends

from backoffice.core.auth.backend import hash_password
from backoffice.core.auth.schemas import Identity
from backoffice.core.errors import ConflictError, ForbiddenError, NotFoundError
from backoffice.core.pagination import Pagination
from backoffice.modules.users.models import User
from backoffice.modules.users.repos import UserRepo
from backoffice.modules.users.schemas import UserCreate, UserFilter, UserUpdate


logger = structlog.get_logger()


class UserService:
    """Account management for operators.

    Accounts created here are active and never super admins; the
    super-admin flag is only set by the seed script. Super admins cannot
    be deleted through the directory.
    """

    def __init__(self, repo: UserRepo) -> None:
        self.repo = repo

    async def get_user(self, user_id: UUID) -> User:
        """Get a live user.

        Raises:
            NotFoundError: If user not found or deleted
        """
        user = await self.repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found", resource="user", resource_id=str(user_id))
        return user

    async def list_users(
        self,
        filters: UserFilter,
        pagination: Pagination,
    ) -> tuple[list[User], int]:
        return await self.repo.list_paginated(filters, pagination)

    async def create_user(self, data: UserCreate, identity: Identity) -> User:
        """Create an active account.

        Raises:
            ConflictError: If the email is already registered
        """
        if await self.repo.get_by_email(data.email):
            raise ConflictError(
                "Email already registered",
                error_code="email_exists",
                details={"email": data.email},
            )

        user = await self.repo.create(
            User(
                email=data.email,
                password_hash=hash_password(data.password),
                full_name=data.full_name,
                is_active=True,
                is_super_admin=False,
            )
        )
        logger.info("user_created", user_id=str(user.id), created_by=str(identity.user_id))
        return user

    async def update_user(self, user_id: UUID, data: UserUpdate) -> User:
        """Apply a partial update.

        Raises:
            NotFoundError: If user not found
            ConflictError: If the new email is taken
        """
        user = await self.get_user(user_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)

        new_email = changes.get("email")
        if new_email and new_email != user.email and await self.repo.get_by_email(new_email):
            raise ConflictError(
                "Email already registered",
                error_code="email_exists",
                details={"email": new_email},
            )

        for field, value in changes.items():
            setattr(user, field, value)

        user = await self.repo.update(user)
        logger.info("user_updated", user_id=str(user.id), fields=sorted(changes))
        return user

    async def delete_user(self, user_id: UUID, identity: Identity) -> None:
        """Soft-delete an account.

        Raises:
            NotFoundError: If user not found
            ForbiddenError: If the account is a super admin
        """
        user = await self.get_user(user_id)
        if user.is_super_admin:
            logger.warning(
                "super_admin_deletion_refused",
                user_id=str(user_id),
                requested_by=str(identity.user_id),
            )
            raise ForbiddenError(
                "Super admin accounts cannot be deleted",
                error_code="super_admin_protected",
                details={"user_id": str(user_id)},
            )

        await self.repo.soft_delete(user)
        logger.info("user_deleted", user_id=str(user_id), deleted_by=str(identity.user_id))


# Type alias for dependency injection
UserSvc = Annotated[UserService, Depends(UserService)]
