"""Credential and session manager: registration, login and token refresh."""

from typing import Annotated

import structlog
from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError

from backoffice.api.dependencies import DBSession
from backoffice.core.auth.approval import ApprovalStatusProvider, MemberApprovalProvider
from backoffice.core.auth.backend import (
    create_token_pair,
    decode_token,
    hash_password,
    pwd_context,
    verify_password,
)
from backoffice.core.auth.schemas import TokenPair, TokenType
from backoffice.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from backoffice.modules.units.models import ApprovalStatus
from backoffice.modules.users.models import User, normalise_email
from backoffice.modules.users.repos import UserRepository


logger = structlog.get_logger()

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


def _invalid_credentials() -> UnauthorizedError:
    # Same message for unknown email and wrong password
    return UnauthorizedError(
        INVALID_CREDENTIALS_MESSAGE,
        error_code="invalid_credentials",
    )


class AuthService:
    """Service for authentication operations.

    Handles user registration, login and token refresh. Tokens are not
    persisted, so refresh issues a new pair without revoking the old one.
    """

    def __init__(self, db: DBSession) -> None:
        self.db = db
        self.user_repo = UserRepository(db)
        self.approvals: ApprovalStatusProvider = MemberApprovalProvider(db)

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
    ) -> User:
        """Register a new active user.

        Args:
            email: User's email address
            password: Plain text password
            full_name: User's full name

        Returns:
            The created user

        Raises:
            ConflictError: If email already exists, in any letter case
        """
        email = normalise_email(email)
        existing = await self.user_repo.get_by_email(email)
        if existing:
            raise ConflictError(
                "Email already registered",
                error_code="email_exists",
                details={"email": email},
            )

        user = User(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
            is_active=True,
            is_super_admin=False,
        )
        user = await self.user_repo.create(user)

        logger.info("user_registered", user_id=str(user.id))
        return user

    async def login(self, email: str, password: str) -> tuple[User, TokenPair]:
        """Authenticate a user with email and password.

        Checks run in a fixed order: account lookup, active flag, password,
        then the approval status of the user's unit registration.

        Returns:
            Tuple of (user, token_pair)

        Raises:
            UnauthorizedError: Unknown email or wrong password
            ForbiddenError: Inactive account, or registration pending/rejected
        """
        user = await self.user_repo.get_by_email(email)
        if not user:
            # Burn the same bcrypt time as a real check
            pwd_context.dummy_verify()
            logger.info("login_failed", reason="unknown_email")
            raise _invalid_credentials()

        if not user.is_active:
            logger.info("login_failed", reason="inactive", user_id=str(user.id))
            raise ForbiddenError(
                "Account is deactivated",
                error_code="account_inactive",
            )

        if not verify_password(password, user.password_hash):
            logger.info("login_failed", reason="bad_password", user_id=str(user.id))
            raise _invalid_credentials()

        approval_status = await self._approval_status(user)
        if approval_status == ApprovalStatus.PENDING:
            raise ForbiddenError(
                "Your registration is awaiting verification",
                error_code="approval_pending",
            )
        if approval_status == ApprovalStatus.REJECTED:
            raise ForbiddenError(
                "Your registration was rejected",
                error_code="approval_rejected",
            )

        tokens = create_token_pair(user.id)
        await self._record_login(user)

        logger.info("user_logged_in", user_id=str(user.id))
        return user, tokens

    async def refresh_tokens(self, refresh_token: str) -> tuple[User, TokenPair]:
        """Issue a new token pair from a valid refresh token.

        The presented token stays valid until its own expiry.

        Raises:
            UnauthorizedError: Bad signature, expired, or not a refresh token
            NotFoundError: The token's user no longer exists
            ForbiddenError: The user is inactive
        """
        token_data = decode_token(refresh_token)
        if not token_data or token_data.type != TokenType.REFRESH:
            raise UnauthorizedError(
                "Invalid or expired refresh token",
                error_code="invalid_refresh_token",
            )

        user = await self.user_repo.get_by_id(token_data.user_id)
        if not user:
            raise NotFoundError(
                "User not found",
                resource="user",
                resource_id=str(token_data.user_id),
            )

        if not user.is_active:
            raise ForbiddenError(
                "Account is deactivated",
                error_code="account_inactive",
            )

        logger.info("tokens_refreshed", user_id=str(user.id))
        return user, create_token_pair(user.id)

    async def _approval_status(self, user: User) -> ApprovalStatus | None:
        """Look up the registration approval; a store failure lets the login proceed."""
        try:
            return await self.approvals.get_approval_status(user.id)
        except SQLAlchemyError as e:
            logger.warning(
                "approval_lookup_failed",
                user_id=str(user.id),
                error=str(e),
            )
            return None

    async def _record_login(self, user: User) -> None:
        """Best-effort update of last_login_at; a failure never fails the login."""
        try:
            await self.user_repo.touch_last_login(user.id)
        except SQLAlchemyError as e:
            logger.warning(
                "last_login_update_failed",
                user_id=str(user.id),
                error=str(e),
            )


# Type alias for dependency injection
AuthSvc = Annotated[AuthService, Depends(AuthService)]
