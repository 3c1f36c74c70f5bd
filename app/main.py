import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import settings
from app.core.db import AsyncSessionLocal
from app.core.init_db import init_db
from app.core.logging_config import configure_logging
from app.routers.geocoding import router as geocoding_router
from app.routers.health import router as health_router
from app.routers.stations import router as stations_router
from app.routers.weather import router as weather_router
from app.services.scheduler import RefreshScheduler
from app.services.station_locks import StationLockRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    On startup:
    - Initializes the database schema (development/MVP setup).
    - Starts the periodic weather refresh when `SCHEDULER_ENABLED` is set.

    On shutdown:
    - Cancels the refresh scheduler.
    """
    await init_db()

    scheduler = None
    if settings.scheduler_enabled:
        if settings.openweather_api_key:
            scheduler = RefreshScheduler(
                session_factory=AsyncSessionLocal,
                locks=app.state.station_locks,
                interval_hours=settings.data_refresh_interval_hours,
                tick_seconds=settings.scheduler_interval_seconds,
            )
            scheduler.start()
        else:
            logger.warning("OPENWEATHER_API_KEY is not configured; scheduled weather refresh disabled")
    app.state.scheduler = scheduler

    yield

    if scheduler is not None:
        await scheduler.stop()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    This factory function:
    - Configures logging from `LOG_LEVEL`.
    - Initializes the FastAPI app with metadata and documentation endpoints.
    - Creates the per-station refresh lock registry shared by the manual
      refresh endpoint and the scheduler.
    - Registers all API routers.

    Returns:
        Configured FastAPI application instance.
    """
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        description="Weather stations API: station registry, cached OpenWeather conditions and geocoding",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.station_locks = StationLockRegistry()

    # Register API routers
    app.include_router(health_router)
    app.include_router(stations_router)
    app.include_router(weather_router)
    app.include_router(geocoding_router)

    return app


# Application entry point
app = create_app()
