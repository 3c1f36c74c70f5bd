"""Periodic bulk weather refresh.

``RefreshScheduler`` runs ``BulkRefreshCoordinator.refresh_all`` on a fixed
cadence inside the API process. The cadence is coarse (30 or 60 minutes);
whether an individual station is actually refetched is decided by the
refresh policy on every tick.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.repositories.station_repository import StationRepository
from app.schemas.weather import BulkRefreshSummary
from app.services.bulk_refresh import BulkRefreshCoordinator
from app.services.providers.openweather_client import OpenWeatherClient
from app.services.station_locks import StationLockRegistry
from app.services.station_weather_updater import StationWeatherUpdater

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Background task running the bulk refresh every ``tick_seconds``."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        locks: StationLockRegistry,
        interval_hours: float,
        tick_seconds: float,
        client_factory: Callable[[], OpenWeatherClient] = OpenWeatherClient,
    ) -> None:
        self.session_factory = session_factory
        self.locks = locks
        self.interval_hours = interval_hours
        self.tick_seconds = tick_seconds
        self.client_factory = client_factory
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> BulkRefreshSummary:
        """Run a single bulk refresh with a fresh database session."""
        client = self.client_factory()
        async with self.session_factory() as session:
            repo = StationRepository(session)
            updater = StationWeatherUpdater(
                repo=repo,
                client=client,
                interval_hours=self.interval_hours,
                locks=self.locks,
            )
            return await BulkRefreshCoordinator(repo, updater).refresh_all()

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Scheduled weather refresh failed")
            await asyncio.sleep(self.tick_seconds)

    def start(self) -> None:
        if self.running:
            return
        logger.info("Starting weather refresh scheduler (every %ss)", self.tick_seconds)
        self._task = asyncio.create_task(self._loop(), name="weather-refresh-scheduler")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Weather refresh scheduler stopped")
