from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class StationLockRegistry:
    """
    One asyncio lock per station id currently being refreshed.

    A single registry is shared by the manual refresh endpoint and the
    scheduler so both paths see the same in-progress state. Locks are
    never waited on: a second caller is told the station is busy.
    """

    def __init__(self) -> None:
        self._locks: Dict[int, asyncio.Lock] = {}

    def is_locked(self, station_id: int) -> bool:
        lock = self._locks.get(station_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def try_hold(self, station_id: int) -> AsyncIterator[bool]:
        """
        Hold the station's lock for the duration of the block.

        Yields False, without acquiring anything, when another refresh of
        the same station is running.
        """
        lock = self._locks.setdefault(station_id, asyncio.Lock())
        if lock.locked():
            yield False
            return

        # Uncontended, so this does not suspend between the check and the acquire.
        await lock.acquire()
        try:
            yield True
        finally:
            lock.release()
            if self._locks.get(station_id) is lock:
                del self._locks[station_id]
