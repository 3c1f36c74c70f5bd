import asyncio

import pytest

from app.core.config import Settings
from app.models.station import Station
from app.services.scheduler import RefreshScheduler
from app.services.station_locks import StationLockRegistry
from tests.conftest import OneCallStub


@pytest.mark.parametrize("interval_hours, tick", [(0.5, 1800), (1, 3600), (2.5, 3600), (24, 3600)])
def test_scheduler_cadence_follows_interval(interval_hours, tick):
    assert Settings(data_refresh_interval_hours=interval_hours).scheduler_interval_seconds == tick


@pytest.mark.parametrize("interval_hours", [0.25, 0, 25])
def test_out_of_range_interval_fails_at_load(interval_hours):
    with pytest.raises(ValueError):
        Settings(data_refresh_interval_hours=interval_hours)


@pytest.mark.asyncio
async def test_run_once_refreshes_with_own_session(session_factory, db_session):
    db_session.add(Station(name="A", latitude=1.0, longitude=2.0))
    db_session.add(Station(name="B"))
    await db_session.commit()
    stub = OneCallStub()

    scheduler = RefreshScheduler(
        session_factory=session_factory,
        locks=StationLockRegistry(),
        interval_hours=1,
        tick_seconds=3600,
        client_factory=stub.client,
    )
    summary = await scheduler.run_once()

    assert (summary.updated, summary.skipped, summary.failed) == (1, 1, 0)
    assert len(stub.requests) == 2


@pytest.mark.asyncio
async def test_loop_survives_failing_tick_and_stops_cleanly(session_factory):
    calls = []

    def flaky_factory():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("OPENWEATHER_API_KEY is not configured")
        return OneCallStub().client()

    scheduler = RefreshScheduler(
        session_factory=session_factory,
        locks=StationLockRegistry(),
        interval_hours=1,
        tick_seconds=0.01,
        client_factory=flaky_factory,
    )
    scheduler.start()
    assert scheduler.running

    for _ in range(100):
        if len(calls) >= 2:
            break
        await asyncio.sleep(0.01)

    await scheduler.stop()

    assert len(calls) >= 2
    assert not scheduler.running
