"""Spatial index of airport positions.

`SpatialIndex` is the interface; `RedisSpatialIndex` keeps one GEO set (a
sorted set of geohash-encoded positions) under a single key. Distances are
great-circle distances computed by Redis.

Redis GEO accepts latitudes only within +/-85.05112878 degrees. Positions
closer to the poles live in a hash beside the GEO set (`<key>:polar`,
identifier -> "lon,lat") and are matched by a local great-circle scan. A
query centered beyond the band runs GEORADIUS from the nearest in-band point
with the radius widened by the offset, then filters by true distance.
"""

import math
from typing import NamedTuple, Protocol

import redis.asyncio as redis

from airport_radar.services.geo import great_circle_km, validate_point, validate_radius
from airport_radar.stores.redis import DEFAULT_TIMEOUT, KEY_GEO_INDEX, bounded

GEO_LAT_LIMIT = 85.05112878


class SpatialHit(NamedTuple):
    identifier: str
    distance_km: float
    longitude: float
    latitude: float


class SpatialIndex(Protocol):
    """Point upsert/remove and radius queries keyed by identifier."""

    async def upsert(self, identifier: str, longitude: float, latitude: float) -> None: ...

    async def remove(self, identifier: str) -> None: ...

    async def query_radius(self, longitude: float, latitude: float, radius_km: float) -> list[SpatialHit]: ...

    async def clear(self) -> None: ...


class RedisSpatialIndex:
    """SpatialIndex backed by a Redis GEO set plus a hash for polar positions."""

    def __init__(
        self,
        client: redis.Redis,
        key: str = KEY_GEO_INDEX,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._redis = client
        self._key = key
        self._polar_key = f"{key}:polar"
        self._timeout = timeout

    async def upsert(self, identifier: str, longitude: float, latitude: float) -> None:
        """Add or move an airport's position.

        Raises:
            InvalidInput: If the coordinates are out of range.
            TransientIndexError: If Redis is unavailable or rejects the position.
        """
        validate_point(longitude, latitude)

        # An airport lives in exactly one of the two structures.
        async def _upsert() -> None:
            async with self._redis.pipeline(transaction=True) as pipe:
                if abs(latitude) <= GEO_LAT_LIMIT:
                    pipe.geoadd(self._key, (longitude, latitude, identifier))
                    pipe.hdel(self._polar_key, identifier)
                else:
                    pipe.hset(self._polar_key, identifier, f"{longitude!r},{latitude!r}")
                    pipe.zrem(self._key, identifier)
                await pipe.execute()

        await bounded(_upsert(), timeout=self._timeout, operation=f"GEOADD {identifier}")

    async def remove(self, identifier: str) -> None:
        # GEO sets are sorted sets; ZREM removes a member.
        async def _remove() -> None:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.zrem(self._key, identifier)
                pipe.hdel(self._polar_key, identifier)
                await pipe.execute()

        await bounded(_remove(), timeout=self._timeout, operation=f"ZREM {identifier}")

    async def query_radius(self, longitude: float, latitude: float, radius_km: float) -> list[SpatialHit]:
        """Find airports within `radius_km` of a point, nearest first.

        Args:
            longitude: Query point longitude in [-180, 180].
            latitude: Query point latitude in [-90, 90].
            radius_km: Search radius in km, > 0.

        Returns:
            Hits ordered by ascending distance. Empty if nothing is indexed.

        Raises:
            InvalidInput: On out-of-range parameters.
            TransientIndexError: If Redis is unavailable.
        """
        validate_point(longitude, latitude)
        validate_radius(radius_km)

        in_band = abs(latitude) <= GEO_LAT_LIMIT
        center_lat = latitude if in_band else math.copysign(GEO_LAT_LIMIT, latitude)
        # Anything within radius_km of the real center is within this of the proxy.
        search_km = radius_km + great_circle_km(longitude, latitude, longitude, center_lat)

        # GEORADIUS returns [member, distance, (lon, lat)] per result.
        raw = await bounded(
            self._redis.georadius(
                self._key,
                longitude,
                center_lat,
                search_km,
                unit="km",
                withdist=True,
                withcoord=True,
                sort="ASC",
            ),
            timeout=self._timeout,
            operation="GEORADIUS",
        )
        polar = await bounded(
            self._redis.hgetall(self._polar_key),
            timeout=self._timeout,
            operation="HGETALL polar",
        )

        hits: list[SpatialHit] = []
        for member, distance, coords in raw:
            lon, lat = float(coords[0]), float(coords[1])
            distance_km = float(distance) if in_band else great_circle_km(longitude, latitude, lon, lat)
            if distance_km <= radius_km:
                hits.append(SpatialHit(member, distance_km, lon, lat))

        for member, position in polar.items():
            lon_text, lat_text = position.split(",")
            lon, lat = float(lon_text), float(lat_text)
            distance_km = great_circle_km(longitude, latitude, lon, lat)
            if distance_km <= radius_km:
                hits.append(SpatialHit(member, distance_km, lon, lat))

        hits.sort(key=lambda hit: hit.distance_km)
        return hits

    async def clear(self) -> None:
        await bounded(
            self._redis.delete(self._key, self._polar_key),
            timeout=self._timeout,
            operation="DEL geo index",
        )
