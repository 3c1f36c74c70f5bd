from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from app.repositories.station_repository import StationRepository
from app.schemas.weather import (
    BulkRefreshSummary,
    FailedOutcome,
    RefreshError,
    StationRefreshError,
    UpdatedOutcome,
)
from app.services.station_weather_updater import StationWeatherUpdater


logger = logging.getLogger(__name__)


class BulkRefreshCoordinator:
    """
    Runs a weather refresh for every known station.

    Stations are processed one after another in id order. A failing
    station is recorded in the summary and the run moves on to the next
    one. Stations refreshed within the interval are skipped by the
    updater, so repeated runs are cheap.
    """

    def __init__(self, repo: StationRepository, updater: StationWeatherUpdater):
        self.repo = repo
        self.updater = updater

    async def refresh_all(self) -> BulkRefreshSummary:
        summary = BulkRefreshSummary()
        station_ids = await self.repo.list_all_ids()
        logger.info("Bulk weather refresh: %d stations to process", len(station_ids))

        for station_id in station_ids:
            try:
                outcome = await self.updater.refresh(station_id)
            except SQLAlchemyError as e:
                # keep the session usable for the remaining stations
                logger.exception("Station %s: database error during refresh", station_id)
                await self.repo.db.rollback()
                outcome = FailedOutcome(error=RefreshError(kind="internal", message=str(e)))

            if isinstance(outcome, UpdatedOutcome):
                summary.updated += 1
            elif isinstance(outcome, FailedOutcome):
                summary.failed += 1
                summary.errors.append(StationRefreshError(station_id=station_id, error=outcome.error))
            else:
                summary.skipped += 1

        logger.info(
            "Bulk weather refresh done: updated=%d skipped=%d failed=%d",
            summary.updated,
            summary.skipped,
            summary.failed,
        )
        return summary
