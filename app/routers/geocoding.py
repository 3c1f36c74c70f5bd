from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.deps import get_geocoding_client
from app.schemas.geocoding import GeocodeResponse, ReverseGeocodeResponse
from app.services.providers.errors import ProviderError
from app.services.providers.geocoding_client import MapboxGeocodingClient

router = APIRouter(tags=["Geocoding"])


@router.get(
    "/geocode",
    response_model=GeocodeResponse,
    summary="Address to coordinates",
    description="Resolves an address with Mapbox and returns the best match.",
)
async def geocode(
    address: str = Query(..., min_length=1),
    client: MapboxGeocodingClient = Depends(get_geocoding_client),
):
    try:
        return await client.geocode(address)
    except ProviderError as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.get(
    "/reverse-geocode",
    response_model=ReverseGeocodeResponse,
    summary="Coordinates to address",
)
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    client: MapboxGeocodingClient = Depends(get_geocoding_client),
):
    try:
        return await client.reverse_geocode(lat, lng)
    except ProviderError as e:
        raise HTTPException(status_code=400, detail=e.message)
