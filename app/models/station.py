from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class Station(Base):
    """
    Weather station entity.

    A geographic point registered by an operator. Besides its location,
    the row carries the cached weather snapshot and the time it was
    written. Both cache columns are only ever written together by the
    weather refresh.
    """

    __tablename__ = "stations"

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Internal unique identifier for the station",
    )

    name: Mapped[Optional[str]] = mapped_column(
        String(256),
        nullable=True,
        comment="Human-readable station name",
    )

    address: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
        comment="Postal address the coordinates were resolved from",
    )

    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="publish",
        comment="Visibility state ('publish' or 'draft')",
    )

    latitude: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Latitude in decimal degrees",
    )

    longitude: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Longitude in decimal degrees",
    )

    # ------------------------------------------------------------------
    # Weather cache
    # ------------------------------------------------------------------

    weather_data: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Last merged weather reading (metric + imperial)",
    )

    last_update: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Wall-clock time (UTC) of the last successful weather refresh",
    )
