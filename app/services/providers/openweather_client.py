from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from app.core.config import settings
from app.schemas.weather import Conditions, ProviderReading, UnitSystem
from app.services.providers.errors import (
    ProviderMalformedError,
    ProviderTransportError,
    ProviderUpstreamStatusError,
)


logger = logging.getLogger(__name__)


class OpenWeatherClient:
    """
    OpenWeather One Call client.

    Only current conditions are requested; the other One Call blocks are
    excluded. One call returns values in a single unit system, so callers
    needing both metric and imperial values issue two requests.
    """

    EXCLUDE = "minutely,hourly,daily,alerts"
    ICON_URL = "https://openweathermap.org/img/wn/{code}@2x.png"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_s: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openweather_api_key
        if not self.api_key:
            raise RuntimeError("OPENWEATHER_API_KEY is not configured")
        self.base_url = base_url or settings.openweather_base_url
        self.timeout = timeout_s or settings.http_timeout_seconds
        self._transport = transport

    async def _get_json(self, params: Dict[str, Any]) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(self.base_url, params=params, headers={"accept": "application/json"})
        except httpx.DecodingError as e:
            raise ProviderMalformedError(f"Failed to decode OpenWeather API response: {e!r}") from e
        except httpx.RequestError as e:
            raise ProviderTransportError(f"OpenWeather request failed: {e!r}") from e

        if r.status_code != 200:
            raise ProviderUpstreamStatusError(
                r.status_code,
                f"OpenWeather API returned error code: {r.status_code}",
            )

        try:
            return r.json()
        except ValueError as e:
            raise ProviderMalformedError("Failed to decode OpenWeather API response") from e

    async def fetch_current(self, lat: float, lon: float, unit_system: UnitSystem) -> ProviderReading:
        """
        Fetch current conditions for a location in one unit system.

        Coordinates are passed through unchecked.

        Raises:
            ProviderTransportError: network failure or timeout.
            ProviderUpstreamStatusError: any non-200 response.
            ProviderMalformedError: the body cannot be decoded or has no `current` object.
        """
        unit_system = UnitSystem(unit_system)
        params = {
            "lat": lat,
            "lon": lon,
            "exclude": self.EXCLUDE,
            "units": unit_system.value,
            "appid": self.api_key,
        }
        data = await self._get_json(params)
        return self.parse_current(data, unit_system)

    @staticmethod
    def parse_current(data: Any, unit_system: UnitSystem, fetched_at: Optional[int] = None) -> ProviderReading:
        """
        Extract the `current` block of a One Call payload.

        Individual missing or wrong-typed values become `None`; only a missing or
        non-object `current` is treated as malformed.
        """
        if not isinstance(data, dict):
            raise ProviderMalformedError("OpenWeather response is not a JSON object")

        current = data.get("current")
        if not isinstance(current, dict):
            raise ProviderMalformedError("OpenWeather response has no 'current' object")

        weather = current.get("weather")
        first = weather[0] if isinstance(weather, list) and weather and isinstance(weather[0], dict) else {}

        observed_at = OpenWeatherClient._parse_int(current.get("dt"))
        if observed_at is None:
            observed_at = fetched_at if fetched_at is not None else int(time.time())

        try:
            return ProviderReading(
                unit_system=unit_system,
                temp=OpenWeatherClient._parse_float(current.get("temp")),
                feels_like=OpenWeatherClient._parse_float(current.get("feels_like")),
                humidity=OpenWeatherClient._parse_float(current.get("humidity")),
                wind_speed=OpenWeatherClient._parse_float(current.get("wind_speed")),
                wind_deg=OpenWeatherClient._parse_float(current.get("wind_deg")),
                conditions=Conditions(
                    main=OpenWeatherClient._parse_str(first.get("main")),
                    description=OpenWeatherClient._parse_str(first.get("description")),
                    icon_code=OpenWeatherClient._parse_str(first.get("icon")),
                ),
                observed_at=observed_at,
            )
        except ValidationError as e:
            raise ProviderMalformedError(f"OpenWeather 'current' object has unexpected values: {e}") from e

    async def validate_api_key(self) -> bool:
        """
        Check the configured key with a sample request at (0, 0).

        Only a 401 answer marks the key as invalid; other upstream status
        codes mean the request itself was authenticated.
        """
        try:
            await self.fetch_current(0, 0, UnitSystem.METRIC)
        except ProviderUpstreamStatusError as e:
            return e.status_code != 401
        except (ProviderTransportError, ProviderMalformedError) as e:
            logger.warning("OpenWeather key check inconclusive: %s", e)
            return False
        return True

    @classmethod
    def icon_url(cls, icon_code: str) -> str:
        return cls.ICON_URL.format(code=icon_code)

    @staticmethod
    def _parse_float(v: Any) -> Optional[float]:
        if v is None or isinstance(v, bool):
            return None
        try:
            return float(v)
        except (TypeError, ValueError, OverflowError):
            return None

    @staticmethod
    def _parse_int(v: Any) -> Optional[int]:
        if v is None or isinstance(v, bool):
            return None
        try:
            return int(v)
        except (TypeError, ValueError, OverflowError):
            return None

    @staticmethod
    def _parse_str(v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None
