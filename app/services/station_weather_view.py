from __future__ import annotations

from datetime import datetime
from typing import Literal

from app.models.station import Station
from app.repositories.station_repository import StationRepository
from app.schemas.weather import (
    ConditionsView,
    LastUpdateView,
    MeasuredValue,
    StationWeatherView,
)
from app.services.providers.openweather_client import OpenWeatherClient
from app.services.refresh_policy import is_due


DisplayUnit = Literal["celsius", "fahrenheit"]


def build_station_weather_view(
    station: Station,
    unit: DisplayUnit,
    interval_hours: float,
    now: datetime,
) -> StationWeatherView:
    """
    Format a station's cached snapshot for one display unit.

    Never triggers a fetch. A missing snapshot yields an empty view
    flagged with `needs_update`.
    """
    reading = StationRepository.get_snapshot(station)
    if reading is None:
        return StationWeatherView(station_id=station.id, needs_update=True)

    last_update = StationRepository.get_last_update(station)
    temp_label = "°C" if unit == "celsius" else "°F"
    if unit == "celsius":
        temp, feels_like, wind = reading.temperature.celsius, reading.feels_like.celsius, reading.wind_speed.metric
        speed_label = "m/s"
    else:
        temp, feels_like, wind = reading.temperature.fahrenheit, reading.feels_like.fahrenheit, reading.wind_speed.imperial
        speed_label = "mph"

    icon = reading.conditions.icon_code
    return StationWeatherView(
        station_id=station.id,
        temp=MeasuredValue(value=temp, unit=temp_label),
        feels_like=MeasuredValue(value=feels_like, unit=temp_label),
        humidity=MeasuredValue(value=reading.humidity, unit="%"),
        wind_speed=MeasuredValue(value=wind, unit=speed_label),
        wind_deg=reading.wind_direction_degrees,
        weather=ConditionsView(
            main=reading.conditions.main,
            description=reading.conditions.description,
            icon=icon,
            icon_url=OpenWeatherClient.icon_url(icon) if icon else None,
        ),
        last_update=LastUpdateView(timestamp=reading.observed_at, refreshed_at=last_update),
        needs_update=is_due(last_update, interval_hours, now),
    )
