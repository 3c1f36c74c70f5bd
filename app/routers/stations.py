from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.core.deps import get_optional_geocoding_client, get_station_repository
from app.models.station import Station
from app.repositories.station_repository import StationRepository
from app.schemas.stations import (
    StationCreate,
    StationListResponse,
    StationLocationUpdate,
    StationOut,
)
from app.services.providers.errors import ProviderError
from app.services.providers.geocoding_client import MapboxGeocodingClient

router = APIRouter(prefix="/stations", tags=["Stations"])


async def load_station(station_id: int, repo: StationRepository) -> Station:
    station = await repo.get_by_id(station_id)
    if not station:
        raise HTTPException(status_code=404, detail="Station not found")
    return station


@router.get(
    "",
    response_model=StationListResponse,
    summary="List stations",
    description="Returns registered stations. Optionally filter by visibility status.",
)
async def list_stations(
    status: Optional[Literal["publish", "draft"]] = Query(default=None, description="Filter by status: 'publish' or 'draft'"),
    limit: int = Query(default=200, ge=1, le=5000),
    offset: int = Query(default=0, ge=0),
    repo: StationRepository = Depends(get_station_repository),
) -> StationListResponse:
    """
    List stored stations.

    This endpoint is useful to:
    - feed the station list of the map
    - check which stations still lack coordinates or weather data
    """
    items, total = await repo.list_stations(status=status, limit=limit, offset=offset)
    return StationListResponse(
        items=[StationOut.model_validate(x) for x in items],
        total=total,
    )


@router.post(
    "",
    response_model=StationOut,
    status_code=201,
    summary="Register a station",
)
async def create_station(
    payload: StationCreate,
    repo: StationRepository = Depends(get_station_repository),
) -> StationOut:
    station = await repo.create(
        name=payload.name,
        address=payload.address,
        latitude=payload.latitude,
        longitude=payload.longitude,
        status=payload.status,
    )
    return StationOut.model_validate(station)


@router.get("/{station_id}", response_model=StationOut, summary="Get a station")
async def get_station(
    station_id: int,
    repo: StationRepository = Depends(get_station_repository),
) -> StationOut:
    return StationOut.model_validate(await load_station(station_id, repo))


@router.patch(
    "/{station_id}/location",
    response_model=StationOut,
    summary="Update a station's location",
    description=(
        "Sets the address and coordinates of a station.\n\n"
        "- If latitude and longitude are both provided they are stored as is.\n"
        "- If both are omitted and an address is given, the address is geocoded.\n"
        "- The cached weather is kept until the next due refresh."
    ),
)
async def update_station_location(
    station_id: int,
    payload: StationLocationUpdate,
    repo: StationRepository = Depends(get_station_repository),
    geocoder: Optional[MapboxGeocodingClient] = Depends(get_optional_geocoding_client),
) -> StationOut:
    station = await load_station(station_id, repo)

    address = payload.address
    lat, lon = payload.latitude, payload.longitude
    if (lat is None) != (lon is None):
        raise HTTPException(status_code=400, detail="Provide both latitude and longitude, or neither")

    if lat is None and address:
        if geocoder is None:
            raise HTTPException(status_code=503, detail="MAPBOX_TOKEN is not configured")
        try:
            result = await geocoder.geocode(address)
        except ProviderError as e:
            raise HTTPException(status_code=400, detail=e.message)
        lat = result["coordinates"]["lat"]
        lon = result["coordinates"]["lng"]
        address = result["formatted_address"] or address

    station = await repo.update_location(station, address=address, latitude=lat, longitude=lon)
    return StationOut.model_validate(station)


@router.delete("/{station_id}", status_code=204, summary="Delete a station")
async def delete_station(
    station_id: int,
    repo: StationRepository = Depends(get_station_repository),
) -> Response:
    station = await load_station(station_id, repo)
    await repo.delete(station)
    return Response(status_code=204)
