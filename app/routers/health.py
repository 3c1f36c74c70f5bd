from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import get_db

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    summary="Service health check",
    description=(
        "Checks whether the API service is running and whether the weather refresh "
        "scheduler is active. This endpoint **does not** verify database connectivity."
    ),
    response_description="Service status",
)
def health(request: Request):
    """
    Basic health check for the API.

    **Returns:**
    - `status`: Always `ok` if the service is running
    - `service`: Service name (configured via `APP_NAME`)
    - `environment`: Current environment (configured via `ENVIRONMENT`, e.g. local/dev/prod)
    - `scheduler`: `running` when the periodic refresh task is alive, `stopped` otherwise
    """
    scheduler = getattr(request.app.state, "scheduler", None)
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.environment,
        "scheduler": "running" if scheduler is not None and scheduler.running else "stopped",
    }


@router.get(
    "/health/db",
    summary="Database health check",
    description=(
        "Checks whether the API can reach the station database by executing `SELECT 1`. "
        "If this endpoint fails, the database is down or `DATABASE_URL` is wrong."
    ),
    response_description="Database connection status",
)
async def health_db(db: AsyncSession = Depends(get_db)):
    """
    Database connectivity health check.

    **Errors:**
    - Returns HTTP 500 if the database connection fails.
    """
    await db.execute(text("SELECT 1"))
    return {"status": "ok", "db": "ok"}
