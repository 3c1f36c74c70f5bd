from datetime import datetime
from typing import Callable, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter

from app.core.config import Settings
from app.core.deps import (
    get_bulk_refresh_coordinator,
    get_clock,
    get_optional_openweather_client,
    get_settings,
    get_station_repository,
    get_station_updater,
)
from app.repositories.station_repository import StationRepository
from app.routers.stations import load_station
from app.schemas.weather import (
    BulkRefreshSummary,
    FailedOutcome,
    RefreshOutcome,
    SkippedOutcome,
    SkipReason,
    StationWeatherView,
)
from app.services.bulk_refresh import BulkRefreshCoordinator
from app.services.providers.openweather_client import OpenWeatherClient
from app.services.station_weather_updater import StationWeatherUpdater
from app.services.station_weather_view import build_station_weather_view

router = APIRouter(tags=["Weather"])

_outcome_adapter = TypeAdapter(RefreshOutcome)


def _outcome_status_code(outcome: RefreshOutcome) -> int:
    if isinstance(outcome, FailedOutcome):
        return 500
    if isinstance(outcome, SkippedOutcome) and outcome.reason == SkipReason.IN_PROGRESS:
        return 409
    return 200


@router.post(
    "/stations/{station_id}/refresh-weather",
    response_model=RefreshOutcome,
    summary="Refresh one station's weather",
    description=(
        "Fetches current conditions for the station (metric and imperial) and stores the merged snapshot.\n\n"
        "- `skipped` with reason `not_due` if the refresh interval has not elapsed yet.\n"
        "- `skipped` with reason `no_location` if the station has no coordinates.\n"
        "- HTTP 409 if a refresh of the same station is already running.\n"
        "- HTTP 500 with a `failed` outcome if OpenWeather could not be reached or answered badly; "
        "the previous snapshot is kept."
    ),
    responses={409: {"description": "Refresh already in progress"}, 500: {"description": "Provider failure"}},
)
async def refresh_station_weather(
    station_id: int,
    repo: StationRepository = Depends(get_station_repository),
    updater: StationWeatherUpdater = Depends(get_station_updater),
):
    await load_station(station_id, repo)
    outcome = await updater.refresh(station_id)
    return JSONResponse(
        status_code=_outcome_status_code(outcome),
        content=_outcome_adapter.dump_python(outcome, mode="json"),
    )


@router.post(
    "/weather/refresh-all",
    response_model=BulkRefreshSummary,
    summary="Refresh every station",
    description=(
        "Runs the same bulk refresh as the scheduler. Stations that are not due are skipped; "
        "per-station failures are reported in `errors` and do not abort the run."
    ),
)
async def refresh_all_stations(
    coordinator: BulkRefreshCoordinator = Depends(get_bulk_refresh_coordinator),
) -> BulkRefreshSummary:
    return await coordinator.refresh_all()


@router.get(
    "/stations/{station_id}/weather",
    response_model=StationWeatherView,
    summary="Cached weather for one station",
)
async def get_station_weather(
    station_id: int,
    unit: Literal["celsius", "fahrenheit"] = Query(default="celsius"),
    repo: StationRepository = Depends(get_station_repository),
    cfg: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> StationWeatherView:
    """
    Formatted snapshot as stored by the last successful refresh.

    Does not contact OpenWeather.
    """
    station = await load_station(station_id, repo)
    return build_station_weather_view(station, unit, cfg.data_refresh_interval_hours, clock())


@router.get(
    "/weather",
    response_model=Dict[int, StationWeatherView],
    summary="Cached weather for all stations",
    description="Formatted snapshots of every station keyed by station id, as used by the map.",
)
async def list_stations_weather(
    unit: Literal["celsius", "fahrenheit"] = Query(default="celsius"),
    status: Optional[Literal["publish", "draft"]] = Query(default=None),
    limit: int = Query(default=1000, ge=1, le=5000),
    offset: int = Query(default=0, ge=0),
    repo: StationRepository = Depends(get_station_repository),
    cfg: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> Dict[int, StationWeatherView]:
    stations, _ = await repo.list_stations(status=status, limit=limit, offset=offset)
    now = clock()
    return {
        s.id: build_station_weather_view(s, unit, cfg.data_refresh_interval_hours, now)
        for s in stations
    }


@router.get(
    "/weather/api-key/status",
    summary="Check the OpenWeather API key",
)
async def api_key_status(
    client: Optional[OpenWeatherClient] = Depends(get_optional_openweather_client),
):
    if client is None:
        return {"valid": False}
    return {"valid": await client.validate_api_key()}
