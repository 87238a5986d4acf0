"""FastAPI application factory.

Run with ``uvicorn backoffice.main:create_app --factory``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backoffice import __version__
from backoffice.api.router import api_router
from backoffice.config import settings
from backoffice.core.database import async_engine, init_db
from backoffice.core.errors import register_exception_handlers
from backoffice.core.logging import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
)
from backoffice.core.permissions import PermissionCheckerFactory, checker_factory_for_mode


logger = structlog.get_logger()

DEV_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
        permission_mode=settings.permission_mode,
    )
    if settings.database_auto_create:
        await init_db()

    yield

    await async_engine.dispose()
    logger.info("application_shutdown")


def _add_middleware(app: FastAPI) -> None:
    # Starlette runs the last-added middleware first, so the request ID
    # is bound before the access log line is written.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or (DEV_CORS_ORIGINS if settings.is_development else []),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)


def create_app(
    permission_checker_factory: PermissionCheckerFactory | None = None,
) -> FastAPI:
    """Build the back-office API.

    Args:
        permission_checker_factory: Builds the permission checker for a
            request's session. Defaults to the one selected by
            ``settings.permission_mode``; tests pass one explicitly.
    """
    configure_logging(settings.log_level, json=settings.is_production)

    docs_enabled = not settings.is_production
    app = FastAPI(
        title=settings.app_name,
        description="Authorization and membership core for a school back-office",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.state.permission_checker_factory = (
        permission_checker_factory or checker_factory_for_mode(settings.permission_mode)
    )

    _add_middleware(app)
    register_exception_handlers(app)
    app.include_router(api_router)
    return app
