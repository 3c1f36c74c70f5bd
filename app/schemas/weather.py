from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class UnitSystem(str, Enum):
    """Unit systems accepted by the OpenWeather `units` parameter."""

    METRIC = "metric"
    IMPERIAL = "imperial"


# ---------------------------------------------------------------------
# Readings
# ---------------------------------------------------------------------


class Conditions(BaseModel):
    """First entry of the upstream `weather` list."""

    model_config = ConfigDict(frozen=True)

    main: Optional[str] = None
    description: Optional[str] = None
    icon_code: Optional[str] = None


class ProviderReading(BaseModel):
    """
    Current conditions for one location in a single unit system.

    Every numeric field may be `None` when the upstream payload omits it.
    """

    model_config = ConfigDict(frozen=True)

    unit_system: UnitSystem
    temp: Optional[float] = None
    feels_like: Optional[float] = None
    humidity: Optional[float] = None
    wind_speed: Optional[float] = None
    wind_deg: Optional[float] = None
    conditions: Conditions = Field(default_factory=Conditions)
    observed_at: int


class Temperature(BaseModel):
    model_config = ConfigDict(frozen=True)

    celsius: Optional[float] = None
    fahrenheit: Optional[float] = None


class WindSpeed(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: Optional[float] = Field(default=None, description="m/s")
    imperial: Optional[float] = Field(default=None, description="mph")


class NormalizedReading(BaseModel):
    """
    Weather snapshot stored on a station.

    Built by merging a metric and an imperial reading taken for the
    same station at the same time. Unit-independent values (humidity,
    wind direction, conditions, observation time) come from the metric
    reading.
    """

    model_config = ConfigDict(frozen=True)

    temperature: Temperature
    feels_like: Temperature
    humidity: Optional[float] = None
    wind_speed: WindSpeed
    wind_direction_degrees: Optional[float] = None
    conditions: Conditions
    observed_at: int = Field(..., description="Upstream observation time (epoch seconds)")


# ---------------------------------------------------------------------
# Refresh outcomes
# ---------------------------------------------------------------------


class SkipReason(str, Enum):
    NO_LOCATION = "no_location"
    NOT_DUE = "not_due"
    IN_PROGRESS = "in_progress"
    NOT_FOUND = "not_found"


class RefreshError(BaseModel):
    """Serializable description of why a refresh failed."""

    kind: str = Field(..., examples=["transport", "upstream_status", "malformed"])
    message: str
    status_code: Optional[int] = None


class SkippedOutcome(BaseModel):
    status: Literal["skipped"] = "skipped"
    reason: SkipReason


class UpdatedOutcome(BaseModel):
    status: Literal["updated"] = "updated"
    reading: NormalizedReading
    last_update: datetime


class FailedOutcome(BaseModel):
    status: Literal["failed"] = "failed"
    error: RefreshError


RefreshOutcome = Annotated[
    Union[SkippedOutcome, UpdatedOutcome, FailedOutcome],
    Field(discriminator="status"),
]


class StationRefreshError(BaseModel):
    station_id: int
    error: RefreshError


class BulkRefreshSummary(BaseModel):
    """
    Tally of one bulk refresh run.
    """

    updated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[StationRefreshError] = Field(default_factory=list)


# ---------------------------------------------------------------------
# Display views
# ---------------------------------------------------------------------


class MeasuredValue(BaseModel):
    value: Optional[float] = None
    unit: str


class ConditionsView(BaseModel):
    main: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    icon_url: Optional[str] = None


class LastUpdateView(BaseModel):
    timestamp: Optional[int] = Field(default=None, description="Upstream observation time (epoch seconds)")
    refreshed_at: Optional[datetime] = Field(default=None, description="When the snapshot was stored")


class StationWeatherView(BaseModel):
    """
    Cached snapshot formatted for one display unit.

    A station that was never refreshed has every value set to `None`
    and `needs_update=True`.
    """

    station_id: int
    temp: Optional[MeasuredValue] = None
    feels_like: Optional[MeasuredValue] = None
    humidity: Optional[MeasuredValue] = None
    wind_speed: Optional[MeasuredValue] = None
    wind_deg: Optional[float] = None
    weather: ConditionsView = Field(default_factory=ConditionsView)
    last_update: Optional[LastUpdateView] = None
    needs_update: bool
