"""Airport endpoints.

GET    /airports/nearby        - airports within a radius, nearest first
GET    /airports/popular       - most visited airports (Top-10)
GET    /airports               - all airports
GET    /airports/{identifier}  - one airport; counts a visit
POST   /airports               - create
PUT    /airports/{identifier}  - partial update; re-indexes position
DELETE /airports/{identifier}  - delete

Routers are thin: validation of query semantics and all store access live
in the services.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from airport_radar.routes.deps import get_coordinator, get_queries
from airport_radar.schemas import (
    AirportCreate,
    AirportPatch,
    AirportRecord,
    DeleteResponse,
    NearbyAirport,
    PopularAirport,
)
from airport_radar.services.coordinator import IndexCoordinator
from airport_radar.services.queries import QueryService

router = APIRouter()

IdentifierParam = Annotated[
    str,
    Path(description="IATA or ICAO code", min_length=1, max_length=10, examples=["EZE", "SAEZ"]),
]


@router.get("/nearby", response_model=list[NearbyAirport])
async def get_nearby(
    lat: float = Query(description="Latitude of the search center", examples=[-34.8]),
    lng: float = Query(description="Longitude of the search center", examples=[-58.5]),
    radius: float = Query(description="Search radius in km", examples=[50]),
    queries: QueryService = Depends(get_queries),
) -> list[NearbyAirport]:
    """Find airports within `radius` km of (lat, lng), ascending by distance."""
    return await queries.proximity_search(longitude=lng, latitude=lat, radius_km=radius)


@router.get("/popular", response_model=list[PopularAirport])
async def get_popular(queries: QueryService = Depends(get_queries)) -> list[PopularAirport]:
    """Most visited airports during the current popularity window."""
    return await queries.popular_airports()


@router.get("", response_model=list[AirportRecord])
async def list_airports(queries: QueryService = Depends(get_queries)) -> list[AirportRecord]:
    return await queries.list_airports()


@router.get("/{identifier}", response_model=AirportRecord)
async def get_airport(
    identifier: IdentifierParam,
    queries: QueryService = Depends(get_queries),
) -> AirportRecord:
    """Get an airport by IATA or ICAO code and count the visit."""
    return await queries.record_access(identifier)


@router.post("", response_model=AirportRecord, status_code=201)
async def create_airport(
    body: AirportCreate,
    coordinator: IndexCoordinator = Depends(get_coordinator),
) -> AirportRecord:
    """Create an airport. At least one of iata_code / icao is required."""
    return await coordinator.create(body)


@router.put("/{identifier}", response_model=AirportRecord)
async def update_airport(
    identifier: IdentifierParam,
    body: AirportPatch,
    coordinator: IndexCoordinator = Depends(get_coordinator),
) -> AirportRecord:
    """Update an airport. New coordinates replace its geo index entry."""
    return await coordinator.update(identifier, body)


@router.delete("/{identifier}", response_model=DeleteResponse)
async def delete_airport(
    identifier: IdentifierParam,
    coordinator: IndexCoordinator = Depends(get_coordinator),
) -> DeleteResponse:
    await coordinator.delete(identifier)
    return DeleteResponse(message="Airport deleted")
