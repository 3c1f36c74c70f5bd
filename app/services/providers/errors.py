from __future__ import annotations

from typing import Optional


class ProviderError(Exception):
    """
    Base class for failures talking to an upstream data provider.

    `kind` is a stable identifier used in refresh outcomes and logs.
    """

    kind = "provider"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ProviderTransportError(ProviderError):
    """Network, DNS or timeout failure; the next scheduled run retries."""

    kind = "transport"


class ProviderUpstreamStatusError(ProviderError):
    """Upstream answered with a non-200 status code."""

    kind = "upstream_status"

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(
            message or f"Upstream API returned error code: {status_code}",
            status_code=status_code,
        )


class ProviderMalformedError(ProviderError):
    """Response body does not have the expected structure."""

    kind = "malformed"


# ---------------------------------------------------------------------
# Geocoding
# ---------------------------------------------------------------------


class GeocodingError(ProviderError):
    kind = "geocoding"


class GeocodingNoResultsError(GeocodingError):
    kind = "no_results"
