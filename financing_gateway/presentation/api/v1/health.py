"""Health check endpoint for service monitoring."""

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from financing_gateway import __version__
from financing_gateway.infrastructure.database import get_db_session

logger = structlog.get_logger(__name__)

health_router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str


@health_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Reports service version and whether the plan database answers.",
)
async def health_check(session: AsyncSession = Depends(get_db_session)) -> HealthResponse:
    try:
        await session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning("health_database_unreachable", error=str(e))
        await session.rollback()
        database = "unreachable"

    status = "healthy" if database == "ok" else "degraded"
    return HealthResponse(status=status, version=__version__, database=database)
