"""Top-level routing: unversioned probes plus everything under ``/api/v1``."""

from typing import Literal

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from backoffice import __version__
from backoffice.api.dependencies import DBSession
from backoffice.config import settings
from backoffice.core.auth.routes import router as auth_router
from backoffice.modules import discover_modules


logger = structlog.get_logger()

CheckResult = Literal["ok", "unavailable"]


class LivenessResponse(BaseModel):
    status: Literal["alive"] = "alive"


class ReadinessResponse(BaseModel):
    status: Literal["ready", "degraded"]
    checks: dict[str, CheckResult]


class InfoResponse(BaseModel):
    """Deployment facts an operator needs when triaging a report."""

    app: str
    version: str
    environment: str
    permission_mode: str


async def _check_database(db: DBSession) -> CheckResult:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("readiness_check_failed", check="database", error=str(e))
        return "unavailable"
    return "ok"


health_router = APIRouter(tags=["health"])


@health_router.get("/health/live", response_model=LivenessResponse, summary="Liveness probe")
async def liveness() -> LivenessResponse:
    return LivenessResponse()


@health_router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="503 until the database answers.",
)
async def readiness(db: DBSession) -> JSONResponse:
    checks: dict[str, CheckResult] = {"database": await _check_database(db)}
    ready = all(result == "ok" for result in checks.values())
    body = ReadinessResponse(status="ready" if ready else "degraded", checks=checks)
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(),
    )


@health_router.get("/info", response_model=InfoResponse, summary="Application info")
async def info() -> InfoResponse:
    return InfoResponse(
        app=settings.app_name,
        version=__version__,
        environment=settings.environment,
        permission_mode=settings.permission_mode,
    )


v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(auth_router)
for module_router in discover_modules():
    v1_router.include_router(module_router)

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(v1_router)
