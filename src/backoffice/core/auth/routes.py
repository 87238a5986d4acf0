"""Authentication API routes.

Provides endpoints for:
- User registration
- Login
- Token refresh
"""

from fastapi import APIRouter, status

from backoffice.core.auth.service import AuthSvc
from backoffice.core.pagination import DataResponse
from backoffice.modules.users.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=DataResponse[RegisterResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    description="Creates an active user account. Returns the public profile.",
)
async def register(
    data: RegisterRequest,
    service: AuthSvc,
) -> DataResponse[RegisterResponse]:
    """Register a new user."""
    user = await service.register(
        email=data.email,
        password=data.password,
        full_name=data.full_name,
    )

    return DataResponse(
        message="registration successful",
        data=RegisterResponse(user=UserResponse.model_validate(user)),
    )


@router.post(
    "/login",
    response_model=DataResponse[LoginResponse],
    summary="Login with email and password",
    description="Authenticate with email and password to receive access and refresh tokens.",
)
async def login(
    data: LoginRequest,
    service: AuthSvc,
) -> DataResponse[LoginResponse]:
    """Login with email and password."""
    user, tokens = await service.login(email=data.email, password=data.password)

    return DataResponse(
        message="login successful",
        data=LoginResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=tokens.expires_at,
            user=UserResponse.model_validate(user),
        ),
    )


@router.post(
    "/refresh",
    response_model=DataResponse[LoginResponse],
    summary="Refresh tokens",
    description="Exchange a refresh token for a new access and refresh token pair.",
)
async def refresh_token(
    data: RefreshTokenRequest,
    service: AuthSvc,
) -> DataResponse[LoginResponse]:
    """Refresh the token pair."""
    user, tokens = await service.refresh_tokens(data.refresh_token)

    return DataResponse(
        message="token refreshed",
        data=LoginResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=tokens.expires_at,
            user=UserResponse.model_validate(user),
        ),
    )
