from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from app.core.config import settings
from app.services.providers.errors import (
    GeocodingError,
    GeocodingNoResultsError,
    ProviderTransportError,
)


class MapboxGeocodingClient:
    """
    Mapbox `mapbox.places` client.

    Forward geocoding turns an address into coordinates; reverse geocoding
    turns coordinates into an address plus its administrative context.
    Only the best match is requested.
    """

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        timeout_s: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token if access_token is not None else settings.mapbox_token
        if not self.access_token:
            raise RuntimeError("MAPBOX_TOKEN is not configured")
        self.base_url = base_url or settings.mapbox_geocoding_url
        if not self.base_url.endswith("/"):
            self.base_url += "/"
        self.timeout = timeout_s or settings.http_timeout_seconds
        self._transport = transport

    async def _get_features(self, query: str, label: str) -> list:
        url = f"{self.base_url}{quote(query, safe=',')}.json"
        params = {
            "access_token": self.access_token,
            "limit": 1,
            "types": "address,place",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(url, params=params)
        except httpx.DecodingError as e:
            raise GeocodingError("Failed to decode API response") from e
        except httpx.RequestError as e:
            raise ProviderTransportError(f"{label} request failed: {e!r}") from e

        if r.status_code != 200:
            raise GeocodingError(f"{label} API returned error code: {r.status_code}", status_code=r.status_code)

        try:
            data = r.json()
        except ValueError as e:
            raise GeocodingError("Failed to decode API response") from e

        features = data.get("features") if isinstance(data, dict) else None
        if not features:
            return []
        if not isinstance(features, list) or not isinstance(features[0], dict):
            raise GeocodingError(f"{label} API returned an unexpected response")
        return features

    async def geocode(self, address: str) -> Dict[str, Any]:
        """
        Resolve an address to its best-matching coordinates.

        Returns:
            `{"coordinates": {"lat": ..., "lng": ...}, "formatted_address": ...}`
        """
        features = await self._get_features(address, "Geocoding")
        if not features:
            raise GeocodingNoResultsError("No results found for this address")

        location = features[0]
        center = location.get("center")
        try:
            # Mapbox orders coordinates as (longitude, latitude)
            lng, lat = (float(v) for v in center)
        except (TypeError, ValueError) as e:
            raise GeocodingError("Geocoding result has no coordinates") from e

        return {
            "coordinates": {"lat": lat, "lng": lng},
            "formatted_address": _text(location.get("place_name")),
        }

    async def reverse_geocode(self, lat: float, lng: float) -> Dict[str, Any]:
        features = await self._get_features(f"{lng},{lat}", "Reverse geocoding")
        if not features:
            raise GeocodingNoResultsError("No results found for these coordinates")

        location = features[0]
        context = location.get("context")
        return {
            "address": _text(location.get("place_name")),
            "context": [
                {
                    "id": _text(ctx.get("id")),
                    "text": _text(ctx.get("text")),
                    "type": (_text(ctx.get("id")) or "").split(".")[0],
                }
                for ctx in (context if isinstance(context, list) else [])
                if isinstance(ctx, dict)
            ],
        }


def _text(v: Any) -> Optional[str]:
    return v if isinstance(v, str) else None
