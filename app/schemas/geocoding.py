from typing import Optional

from pydantic import BaseModel, Field


class Coordinates(BaseModel):
    lat: float
    lng: float


class GeocodeResponse(BaseModel):
    """
    Best match for an address lookup.
    """

    coordinates: Coordinates
    formatted_address: Optional[str] = None


class AddressContext(BaseModel):
    id: Optional[str] = None
    text: Optional[str] = None
    type: str = Field(..., examples=["postcode", "place", "region", "country"])


class ReverseGeocodeResponse(BaseModel):
    """
    Address found for a coordinate pair, with its administrative context.
    """

    address: Optional[str] = None
    context: list[AddressContext] = Field(default_factory=list)
