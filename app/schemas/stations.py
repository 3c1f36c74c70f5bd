from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class StationCreate(BaseModel):
    """
    Request body for registering a weather station.

    Coordinates are optional: a station without them is stored but
    skipped by every weather refresh until a location is set.
    """

    name: Optional[str] = Field(default=None, max_length=256)
    address: Optional[str] = Field(default=None, max_length=512)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    status: Literal["publish", "draft"] = "publish"


class StationLocationUpdate(BaseModel):
    """
    Request body for changing a station's location.

    When both coordinates are omitted and an address is given, the
    address is geocoded.
    """

    address: Optional[str] = Field(default=None, max_length=512)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class StationOut(BaseModel):
    """
    Public representation of a stored weather station.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None
    address: Optional[str] = None
    status: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    last_update: Optional[datetime] = None


class StationListResponse(BaseModel):
    """
    Response payload for listing stations with pagination.
    """

    items: list[StationOut] = Field(default_factory=list)
    total: int
