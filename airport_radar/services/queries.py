"""Composite reads: query an index, then join hits against the record store.

The join is the only self-healing step: an index hit with no matching record
(deleted airport whose index removal failed) is dropped and logged, never
surfaced as an error and never repaired here.
"""

import logging

from airport_radar.errors import TransientIndexError
from airport_radar.schemas import AirportRecord, NearbyAirport, PopularAirport
from airport_radar.services.geo import validate_point, validate_radius
from airport_radar.stores.popularity_index import PopularityIndex
from airport_radar.stores.record_store import RecordStore
from airport_radar.stores.spatial_index import SpatialIndex

logger = logging.getLogger("uvicorn.error")

UNKNOWN_NAME = "Unknown"


class QueryService:
    """Proximity search, popularity ranking and access recording."""

    def __init__(
        self,
        records: RecordStore,
        spatial: SpatialIndex,
        popularity: PopularityIndex,
        popular_limit: int = 10,
    ) -> None:
        self._records = records
        self._spatial = spatial
        self._popularity = popularity
        self._popular_limit = popular_limit

    async def proximity_search(self, longitude: float, latitude: float, radius_km: float) -> list[NearbyAirport]:
        """Airports within `radius_km` of a point, nearest first.

        Raises:
            InvalidInput: Non-finite or out-of-range parameters.
            TransientIndexError: Geo index unavailable.
        """
        validate_point(longitude, latitude)
        validate_radius(radius_km)

        hits = await self._spatial.query_radius(longitude, latitude, radius_km)
        found = await self._records.get_many(hit.identifier for hit in hits)

        results: list[NearbyAirport] = []
        for hit in hits:
            record = found.get(hit.identifier)
            if record is None:
                logger.warning(f"Dropping stale geo index entry: {hit.identifier}")
                continue
            results.append(
                NearbyAirport(
                    identifier=hit.identifier,
                    iata_code=record.iata_code,
                    icao=record.icao,
                    name=record.name or UNKNOWN_NAME,
                    distance=hit.distance_km,
                    longitude=hit.longitude,
                    latitude=hit.latitude,
                )
            )
        logger.info(f"Nearby search ({latitude}, {longitude}, {radius_km}km): {len(results)} airports")
        return results

    async def popular_airports(self, k: int | None = None) -> list[PopularAirport]:
        """Most visited airports, highest count first (ties by identifier)."""
        hits = await self._popularity.top_k(k if k is not None else self._popular_limit)
        found = await self._records.get_many(hit.identifier for hit in hits)

        results: list[PopularAirport] = []
        for hit in hits:
            record = found.get(hit.identifier)
            if record is None:
                logger.warning(f"Dropping stale popularity entry: {hit.identifier}")
                continue
            results.append(
                PopularAirport(
                    identifier=hit.identifier,
                    iata_code=record.iata_code,
                    icao=record.icao,
                    name=record.name or UNKNOWN_NAME,
                    visits=hit.score,
                )
            )
        return results

    async def record_access(self, identifier: str) -> AirportRecord:
        """Fetch an airport and count the visit.

        The visit also restarts the shared expiry window of the whole ranking.
        Counting is best-effort: if the ranking is unavailable the airport is
        still returned.

        Raises:
            NotFound: No matching airport.
        """
        record = await self._records.get(identifier)
        try:
            await self._popularity.increment(record.identifier, 1)
        except TransientIndexError as e:
            logger.warning(f"Visit to {record.identifier} not counted: {e}")
        return record

    async def list_airports(self) -> list[AirportRecord]:
        return await self._records.list()
