from datetime import datetime
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, settings
from app.core.db import get_db
from app.repositories.station_repository import StationRepository
from app.services.bulk_refresh import BulkRefreshCoordinator
from app.services.providers.geocoding_client import MapboxGeocodingClient
from app.services.providers.openweather_client import OpenWeatherClient
from app.services.station_locks import StationLockRegistry
from app.services.station_weather_updater import StationWeatherUpdater, utc_now


# ---------------------------------------------------------------------
# Configuration and shared state
# ---------------------------------------------------------------------

def get_settings() -> Settings:
    return settings


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_station_locks(request: Request) -> StationLockRegistry:
    """
    Application-wide lock registry, created in `create_app()`.
    """
    return request.app.state.station_locks


# ---------------------------------------------------------------------
# Provider clients
# ---------------------------------------------------------------------

def get_optional_openweather_client(cfg: Settings = Depends(get_settings)) -> Optional[OpenWeatherClient]:
    if not cfg.openweather_api_key:
        return None
    return OpenWeatherClient(
        api_key=cfg.openweather_api_key,
        base_url=cfg.openweather_base_url,
        timeout_s=cfg.http_timeout_seconds,
    )


def get_openweather_client(
    client: Optional[OpenWeatherClient] = Depends(get_optional_openweather_client),
) -> OpenWeatherClient:
    if client is None:
        raise HTTPException(status_code=503, detail="OPENWEATHER_API_KEY is not configured")
    return client


def get_optional_geocoding_client(cfg: Settings = Depends(get_settings)) -> Optional[MapboxGeocodingClient]:
    if not cfg.mapbox_token:
        return None
    return MapboxGeocodingClient(
        access_token=cfg.mapbox_token,
        base_url=cfg.mapbox_geocoding_url,
        timeout_s=cfg.http_timeout_seconds,
    )


def get_geocoding_client(
    client: Optional[MapboxGeocodingClient] = Depends(get_optional_geocoding_client),
) -> MapboxGeocodingClient:
    if client is None:
        raise HTTPException(status_code=503, detail="MAPBOX_TOKEN is not configured")
    return client


# ---------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------

def get_station_repository(db: AsyncSession = Depends(get_db)) -> StationRepository:
    return StationRepository(db)


def get_station_updater(
    repo: StationRepository = Depends(get_station_repository),
    client: OpenWeatherClient = Depends(get_openweather_client),
    locks: StationLockRegistry = Depends(get_station_locks),
    cfg: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> StationWeatherUpdater:
    return StationWeatherUpdater(
        repo=repo,
        client=client,
        interval_hours=cfg.data_refresh_interval_hours,
        locks=locks,
        clock=clock,
    )


def get_bulk_refresh_coordinator(
    repo: StationRepository = Depends(get_station_repository),
    updater: StationWeatherUpdater = Depends(get_station_updater),
) -> BulkRefreshCoordinator:
    return BulkRefreshCoordinator(repo, updater)
