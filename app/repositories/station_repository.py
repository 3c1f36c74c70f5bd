from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.station import Station
from app.schemas.weather import NormalizedReading


class StationRepository:
    """
    Repository for weather station persistence.

    Wraps the SQLAlchemy queries for `Station` rows, including the cached
    weather snapshot. The snapshot and its timestamp are read and written
    through dedicated methods so they always travel together.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the repository with an active database session.

        Args:
            db: Asynchronous SQLAlchemy session.
        """
        self.db = db

    async def get_by_id(self, station_id: int, reload: bool = False) -> Optional[Station]:
        """
        Return a station by its internal DB id, or None if not found.

        With `reload`, column values already held by this session are
        overwritten with the row as currently stored.
        """
        stmt = select(Station).where(Station.id == station_id)
        if reload:
            stmt = stmt.execution_options(populate_existing=True)
        res = await self.db.execute(stmt)
        return res.scalar_one_or_none()

    async def create(
        self,
        name: Optional[str] = None,
        address: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        status: str = "publish",
    ) -> Station:
        station = Station(
            name=name,
            address=address,
            latitude=latitude,
            longitude=longitude,
            status=status,
        )
        self.db.add(station)
        await self.db.commit()
        return station

    async def update_location(
        self,
        station: Station,
        address: Optional[str],
        latitude: Optional[float],
        longitude: Optional[float],
    ) -> Station:
        """
        Replace a station's address and coordinates.

        The cached snapshot is left as is; the next due refresh picks up
        the new coordinates.
        """
        station.address = address
        station.latitude = latitude
        station.longitude = longitude
        await self.db.commit()
        return station

    async def delete(self, station: Station) -> None:
        await self.db.delete(station)
        await self.db.commit()

    async def list_stations(self, status: Optional[str] = None, limit: int = 1000, offset: int = 0) -> Tuple[List[Station], int]:
        """
        List stations with optional status filtering and pagination.

        Returns:
            The requested page of stations and the total matching count.
        """
        stmt = select(Station).order_by(Station.id.asc()).limit(limit).offset(offset)
        count_stmt = select(func.count(Station.id))
        if status:
            stmt = stmt.where(Station.status == status)
            count_stmt = count_stmt.where(Station.status == status)

        items = list((await self.db.execute(stmt)).scalars().all())
        total = (await self.db.execute(count_stmt)).scalar_one()
        return items, int(total)

    async def list_all_ids(self) -> List[int]:
        """
        Return the ids of every station, published or draft, in id order.
        """
        stmt = select(Station.id).order_by(Station.id.asc())
        res = await self.db.execute(stmt)
        return list(res.scalars().all())

    # ------------------------------------------------------------------
    # Weather cache
    # ------------------------------------------------------------------

    @staticmethod
    def get_coordinates(station: Station) -> Optional[Tuple[float, float]]:
        """
        Return `(latitude, longitude)`, or None if either is missing or not numeric.
        """
        try:
            lat = float(station.latitude)
            lon = float(station.longitude)
        except (TypeError, ValueError):
            return None
        return lat, lon

    @staticmethod
    def get_last_update(station: Station) -> Optional[datetime]:
        # SQLite hands back naive datetimes; everything is stored in UTC.
        ts = station.last_update
        if ts is not None and ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return ts

    @staticmethod
    def get_snapshot(station: Station) -> Optional[NormalizedReading]:
        if not station.weather_data:
            return None
        return NormalizedReading.model_validate(station.weather_data)

    async def save_snapshot(self, station: Station, reading: NormalizedReading, refreshed_at: datetime) -> None:
        """
        Store a merged reading together with its refresh time.

        Both columns are committed in one transaction, so readers never see
        a new reading paired with an old timestamp.
        """
        station.weather_data = reading.model_dump(mode="json")
        station.last_update = refreshed_at
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
