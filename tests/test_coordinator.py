"""Tests for write propagation across the record store and both indexes."""

import pytest

from airport_radar.errors import DuplicateIdentifier, InvalidRecord, NotFound
from airport_radar.schemas import AirportCreate, AirportPatch
from airport_radar.services.coordinator import IndexCoordinator
from tests.conftest import AEP, EZE, MVD, SADF, UnavailableIndex


@pytest.mark.asyncio
async def test_create_stores_and_indexes(coordinator: IndexCoordinator, record_store, spatial_index):
    record = await coordinator.create(EZE)

    assert record.identifier == "EZE"
    assert (await record_store.get("EZE")).name == "Ministro Pistarini"
    hits = await spatial_index.query_radius(-58.50, -34.80, 10)
    assert [h.identifier for h in hits] == ["EZE"]


@pytest.mark.asyncio
async def test_create_uses_icao_when_no_iata(coordinator: IndexCoordinator, spatial_index):
    record = await coordinator.create(SADF)

    assert record.identifier == "SADF"
    assert [h.identifier for h in await spatial_index.query_radius(-58.589, -34.453, 5)] == ["SADF"]


@pytest.mark.asyncio
async def test_create_without_codes_leaves_store_unchanged(coordinator: IndexCoordinator, record_store):
    with pytest.raises(InvalidRecord):
        await coordinator.create(AirportCreate(name="Unnamed Strip", latitude=0, longitude=0))

    assert await record_store.list() == []


@pytest.mark.asyncio
async def test_second_create_with_same_code_fails(coordinator: IndexCoordinator, record_store):
    await coordinator.create(EZE)

    with pytest.raises(DuplicateIdentifier):
        await coordinator.create(AirportCreate(iata_code="EZE", name="Impostor"))

    records = await record_store.list()
    assert len(records) == 1
    assert records[0].name == "Ministro Pistarini"


@pytest.mark.asyncio
async def test_create_without_coordinates_skips_geo_index(coordinator: IndexCoordinator, redis_client):
    record = await coordinator.create(AirportCreate(iata_code="XXX", name="Nowhere"))

    assert not record.has_coordinates
    assert await redis_client.exists("airports_geo") == 0


@pytest.mark.asyncio
async def test_create_succeeds_when_geo_index_is_down(record_store, popularity_index):
    spatial = UnavailableIndex()
    coordinator = IndexCoordinator(record_store, spatial, popularity_index)

    record = await coordinator.create(EZE)

    assert record.identifier == "EZE"
    assert spatial.calls == ["upsert"]
    assert (await record_store.get("EZE")).identifier == "EZE"


@pytest.mark.asyncio
async def test_update_with_new_coordinates_moves_geo_entry(coordinator: IndexCoordinator, spatial_index):
    await coordinator.create(EZE)

    record = await coordinator.update("EZE", AirportPatch(latitude=40.640, longitude=-73.779))

    assert record.latitude == 40.640
    assert await spatial_index.query_radius(-58.50, -34.80, 10) == []
    assert [h.identifier for h in await spatial_index.query_radius(-73.78, 40.64, 5)] == ["EZE"]


@pytest.mark.asyncio
async def test_update_without_coordinates_keeps_geo_entry(coordinator: IndexCoordinator, spatial_index):
    await coordinator.create(EZE)

    record = await coordinator.update("SAEZ", AirportPatch(name="Ezeiza"))

    assert record.name == "Ezeiza"
    assert [h.identifier for h in await spatial_index.query_radius(-58.50, -34.80, 10)] == ["EZE"]


@pytest.mark.asyncio
async def test_update_clearing_coordinates_drops_geo_entry(coordinator: IndexCoordinator, spatial_index):
    await coordinator.create(EZE)

    record = await coordinator.update("EZE", AirportPatch(latitude=None, longitude=None))

    assert not record.has_coordinates
    assert await spatial_index.query_radius(-58.50, -34.80, 10) == []


@pytest.mark.asyncio
async def test_update_missing_airport(coordinator: IndexCoordinator):
    with pytest.raises(NotFound):
        await coordinator.update("XXX", AirportPatch(name="nope"))


@pytest.mark.asyncio
async def test_delete_cascades_to_both_indexes(coordinator: IndexCoordinator, spatial_index, popularity_index):
    await coordinator.create(EZE)
    await popularity_index.increment("EZE", 3)

    deleted = await coordinator.delete("SAEZ")

    assert deleted.identifier == "EZE"
    assert await spatial_index.query_radius(-58.50, -34.80, 10) == []
    assert await popularity_index.top_k(10) == []


@pytest.mark.asyncio
async def test_delete_tolerates_index_failures(record_store, spatial_index):
    popularity = UnavailableIndex()
    coordinator = IndexCoordinator(record_store, spatial_index, popularity)
    await coordinator.create(EZE)

    await coordinator.delete("EZE")

    assert popularity.calls == ["remove"]
    with pytest.raises(NotFound):
        await record_store.get("EZE")


@pytest.mark.asyncio
async def test_delete_missing_airport(coordinator: IndexCoordinator):
    with pytest.raises(NotFound):
        await coordinator.delete("XXX")


@pytest.mark.asyncio
async def test_bulk_load_counts_and_continues(coordinator: IndexCoordinator, record_store, spatial_index, popularity_index):
    await coordinator.create(MVD)
    await popularity_index.increment("MVD")

    result = await coordinator.bulk_load(
        [
            EZE,
            AEP,
            AirportCreate(iata_code="EZE", name="Duplicate"),
            AirportCreate(name="No codes"),
            AirportCreate(icao="SAZZ", name="No coordinates"),
            SADF,
        ]
    )

    assert result.total == 6
    assert result.stored == 4
    assert result.indexed == 3
    assert result.duplicates == 1
    assert result.invalid == 1
    assert result.failed == 0

    # Previous contents are gone from the store and both indexes.
    assert {r.identifier for r in await record_store.list()} == {"EZE", "AEP", "SAZZ", "SADF"}
    assert await spatial_index.query_radius(-56.031, -34.838, 5) == []
    assert await popularity_index.top_k(10) == []


@pytest.mark.asyncio
async def test_bulk_load_with_geo_index_down_still_stores(record_store, popularity_index):
    coordinator = IndexCoordinator(record_store, UnavailableIndex(), popularity_index)

    result = await coordinator.bulk_load([EZE, AEP])

    assert result.stored == 2
    assert result.indexed == 0
