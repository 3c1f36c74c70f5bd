from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable

from app.repositories.station_repository import StationRepository
from app.schemas.weather import (
    FailedOutcome,
    NormalizedReading,
    ProviderReading,
    RefreshError,
    RefreshOutcome,
    SkippedOutcome,
    SkipReason,
    Temperature,
    UnitSystem,
    UpdatedOutcome,
    WindSpeed,
)
from app.services.providers.errors import ProviderError, ProviderMalformedError
from app.services.providers.openweather_client import OpenWeatherClient
from app.services.refresh_policy import is_due
from app.services.station_locks import StationLockRegistry


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def merge_readings(metric: ProviderReading, imperial: ProviderReading) -> NormalizedReading:
    """
    Combine a metric and an imperial reading into one snapshot.

    Unit-dependent values are paired up; everything else is taken from
    the metric reading.
    """
    return NormalizedReading(
        temperature=Temperature(celsius=metric.temp, fahrenheit=imperial.temp),
        feels_like=Temperature(celsius=metric.feels_like, fahrenheit=imperial.feels_like),
        humidity=metric.humidity,
        wind_speed=WindSpeed(metric=metric.wind_speed, imperial=imperial.wind_speed),
        wind_direction_degrees=metric.wind_deg,
        conditions=metric.conditions,
        observed_at=metric.observed_at,
    )


class StationWeatherUpdater:
    """
    Refreshes the cached weather snapshot of a single station.

    The sequence is: per-station lock, location check, refresh policy,
    metric + imperial fetch, merge, persist. Provider failures are
    returned as `FailedOutcome`; nothing is written unless both fetches
    succeed.
    """

    def __init__(
        self,
        repo: StationRepository,
        client: OpenWeatherClient,
        interval_hours: float,
        locks: StationLockRegistry,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repo = repo
        self.client = client
        self.interval_hours = interval_hours
        self.locks = locks
        self.clock = clock

    async def refresh(self, station_id: int) -> RefreshOutcome:
        async with self.locks.try_hold(station_id) as acquired:
            if not acquired:
                logger.info("Station %s: refresh already in progress", station_id)
                return SkippedOutcome(reason=SkipReason.IN_PROGRESS)
            return await self._refresh_locked(station_id)

    async def _refresh_locked(self, station_id: int) -> RefreshOutcome:
        # The caller's session may hold a copy loaded before the lock was taken.
        station = await self.repo.get_by_id(station_id, reload=True)
        if station is None:
            return SkippedOutcome(reason=SkipReason.NOT_FOUND)

        coords = self.repo.get_coordinates(station)
        if coords is None:
            logger.debug("Station %s: no location, skipping", station_id)
            return SkippedOutcome(reason=SkipReason.NO_LOCATION)

        now = self.clock().replace(microsecond=0)
        if not is_due(self.repo.get_last_update(station), self.interval_hours, now):
            return SkippedOutcome(reason=SkipReason.NOT_DUE)

        lat, lon = coords
        results = await asyncio.gather(
            self.client.fetch_current(lat, lon, UnitSystem.METRIC),
            self.client.fetch_current(lat, lon, UnitSystem.IMPERIAL),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, ProviderError):
                self._log_failure(station_id, result)
                return FailedOutcome(
                    error=RefreshError(kind=result.kind, message=result.message, status_code=result.status_code),
                )
            if isinstance(result, BaseException):
                raise result

        metric, imperial = results
        reading = merge_readings(metric, imperial)
        await self.repo.save_snapshot(station, reading, now)
        logger.info("Station %s: weather updated (observed_at=%s)", station_id, reading.observed_at)
        return UpdatedOutcome(reading=reading, last_update=now)

    @staticmethod
    def _log_failure(station_id: int, error: ProviderError) -> None:
        if isinstance(error, ProviderMalformedError):
            # Points at an upstream contract change rather than an outage.
            logger.error("Station %s: malformed OpenWeather response: %s", station_id, error.message)
        else:
            logger.warning(
                "Weather station update failed for station %s (%s): %s",
                station_id,
                error.kind,
                error.message,
            )
