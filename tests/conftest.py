"""Shared fixtures.

Redis indexes run against fakeredis (one private server per test); the record
store runs against an in-memory SQLite database.
"""

import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from airport_radar.errors import TransientIndexError
from airport_radar.main import create_app
from airport_radar.schemas import AirportCreate
from airport_radar.services.coordinator import IndexCoordinator
from airport_radar.services.queries import QueryService
from airport_radar.stores.popularity_index import RedisPopularityIndex
from airport_radar.stores.postgres import Database
from airport_radar.stores.record_store import SqlRecordStore
from airport_radar.stores.spatial_index import RedisSpatialIndex


EZE = AirportCreate(
    iata_code="EZE",
    icao="SAEZ",
    name="Ministro Pistarini",
    city="Buenos Aires",
    latitude=-34.82,
    longitude=-58.54,
    altitude=67,
    timezone="America/Buenos_Aires",
)
AEP = AirportCreate(iata_code="AEP", icao="SABE", name="Jorge Newbery", city="Buenos Aires", latitude=-34.559, longitude=-58.416)
MVD = AirportCreate(iata_code="MVD", icao="SUMU", name="Carrasco", city="Montevideo", latitude=-34.838, longitude=-56.031)
SADF = AirportCreate(icao="SADF", name="San Fernando", city="San Fernando", latitude=-34.453, longitude=-58.589)


@pytest.fixture
async def database():
    db = Database.from_url(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
def record_store(database: Database) -> SqlRecordStore:
    return SqlRecordStore(database, timeout=5.0)


@pytest.fixture
async def redis_client():
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def spatial_index(redis_client) -> RedisSpatialIndex:
    return RedisSpatialIndex(redis_client, key="airports_geo")


@pytest.fixture
def popularity_index(redis_client) -> RedisPopularityIndex:
    return RedisPopularityIndex(redis_client, key="airport_popularity", window_seconds=86400)


@pytest.fixture
def coordinator(record_store, spatial_index, popularity_index) -> IndexCoordinator:
    return IndexCoordinator(record_store, spatial_index, popularity_index)


@pytest.fixture
def queries(record_store, spatial_index, popularity_index) -> QueryService:
    return QueryService(record_store, spatial_index, popularity_index, popular_limit=10)


@pytest.fixture
def app(coordinator: IndexCoordinator, queries: QueryService):
    """Application wired to the fixture stores (lifespan is not run)."""
    application = create_app()
    application.state.coordinator = coordinator
    application.state.queries = queries
    return application


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


class UnavailableIndex:
    """Index double whose every call fails like an unreachable Redis."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def _fail(self, name: str):
        self.calls.append(name)
        raise TransientIndexError(f"{name} timed out after 5.0s")

    async def upsert(self, identifier, longitude, latitude):
        await self._fail("upsert")

    async def remove(self, identifier):
        await self._fail("remove")

    async def query_radius(self, longitude, latitude, radius_km):
        await self._fail("query_radius")

    async def increment(self, identifier, amount=1):
        await self._fail("increment")

    async def top_k(self, k):
        await self._fail("top_k")

    async def clear(self):
        await self._fail("clear")
