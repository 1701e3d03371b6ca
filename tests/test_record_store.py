"""Tests for the SQL record store."""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from airport_radar.errors import DuplicateIdentifier, InvalidInput, NotFound, StoreUnavailable
from airport_radar.schemas import AirportRecord
from airport_radar.stores.postgres import Database
from airport_radar.stores.record_store import SqlRecordStore


def _record(identifier: str, iata: str | None = None, icao: str | None = None, **fields) -> AirportRecord:
    return AirportRecord(identifier=identifier, iata_code=iata, icao=icao, **fields)


@pytest.mark.asyncio
async def test_put_then_get(record_store: SqlRecordStore):
    stored = await record_store.put(_record("EZE", "EZE", "SAEZ", name="Ministro Pistarini", latitude=-34.82, longitude=-58.54))

    assert stored.identifier == "EZE"
    fetched = await record_store.get("EZE")
    assert fetched == stored
    assert fetched.has_coordinates


@pytest.mark.asyncio
async def test_get_resolves_either_code(record_store: SqlRecordStore):
    await record_store.put(_record("EZE", "EZE", "SAEZ"))

    assert (await record_store.get("SAEZ")).identifier == "EZE"


@pytest.mark.asyncio
async def test_get_is_case_sensitive(record_store: SqlRecordStore):
    await record_store.put(_record("EZE", "EZE"))

    with pytest.raises(NotFound):
        await record_store.get("eze")


@pytest.mark.asyncio
async def test_get_missing_raises_not_found(record_store: SqlRecordStore):
    with pytest.raises(NotFound) as exc_info:
        await record_store.get("XXX")
    assert exc_info.value.identifier == "XXX"


@pytest.mark.asyncio
async def test_duplicate_identifier_rejected(record_store: SqlRecordStore):
    await record_store.put(_record("EZE", "EZE", "SAEZ", name="first"))

    with pytest.raises(DuplicateIdentifier):
        await record_store.put(_record("EZE", "EZE", None, name="second"))

    records = await record_store.list()
    assert [r.name for r in records] == ["first"]


@pytest.mark.asyncio
async def test_duplicate_icao_rejected(record_store: SqlRecordStore):
    await record_store.put(_record("EZE", "EZE", "SAEZ"))

    with pytest.raises(DuplicateIdentifier):
        await record_store.put(_record("XEZ", "XEZ", "SAEZ"))


@pytest.mark.asyncio
async def test_records_without_one_code_coexist(record_store: SqlRecordStore):
    await record_store.put(_record("SADF", None, "SADF"))
    await record_store.put(_record("SADL", None, "SADL"))

    assert len(await record_store.list()) == 2


@pytest.mark.asyncio
async def test_concurrent_creates_yield_one_winner(tmp_path):
    database = Database.from_url(f"sqlite+aiosqlite:///{tmp_path / 'airports.db'}")
    await database.create_tables()
    store = SqlRecordStore(database, timeout=10.0)
    try:
        results = await asyncio.gather(
            store.put(_record("EZE", "EZE", name="a")),
            store.put(_record("EZE", "EZE", name="b")),
            return_exceptions=True,
        )
        assert sum(isinstance(r, AirportRecord) for r in results) == 1
        assert sum(isinstance(r, DuplicateIdentifier) for r in results) == 1
        assert len(await store.list()) == 1
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_update_applies_patch(record_store: SqlRecordStore):
    await record_store.put(_record("EZE", "EZE", "SAEZ", name="old", latitude=-34.82, longitude=-58.54))

    updated = await record_store.update("SAEZ", {"name": "Ezeiza", "latitude": -34.9})

    assert updated.name == "Ezeiza"
    assert updated.latitude == -34.9
    assert updated.longitude == -58.54
    assert (await record_store.get("EZE")).name == "Ezeiza"


@pytest.mark.asyncio
async def test_update_missing_raises_not_found(record_store: SqlRecordStore):
    with pytest.raises(NotFound):
        await record_store.update("XXX", {"name": "nope"})


@pytest.mark.asyncio
async def test_update_rejects_code_changes(record_store: SqlRecordStore):
    await record_store.put(_record("EZE", "EZE"))

    with pytest.raises(ValueError):
        await record_store.update("EZE", {"iata_code": "ZZZ"})


@pytest.mark.asyncio
async def test_delete_returns_removed_record(record_store: SqlRecordStore):
    await record_store.put(_record("EZE", "EZE", "SAEZ"))

    deleted = await record_store.delete("SAEZ")

    assert deleted.identifier == "EZE"
    with pytest.raises(NotFound):
        await record_store.get("EZE")
    with pytest.raises(NotFound):
        await record_store.delete("EZE")


@pytest.mark.asyncio
async def test_get_many_skips_missing(record_store: SqlRecordStore):
    await record_store.put(_record("EZE", "EZE"))
    await record_store.put(_record("AEP", "AEP"))

    found = await record_store.get_many(["EZE", "GONE", "AEP"])

    assert set(found) == {"EZE", "AEP"}
    assert await record_store.get_many([]) == {}


@pytest.mark.asyncio
async def test_clear_removes_everything(record_store: SqlRecordStore):
    await record_store.put(_record("EZE", "EZE"))
    await record_store.put(_record("AEP", "AEP"))

    await record_store.clear()

    assert await record_store.list() == []


@pytest.mark.asyncio
async def test_update_cannot_leave_half_a_coordinate_pair(record_store: SqlRecordStore):
    await record_store.put(_record("EZE", "EZE", latitude=-34.82, longitude=-58.54))

    with pytest.raises(InvalidInput):
        await record_store.update("EZE", {"longitude": None})

    stored = await record_store.get("EZE")
    assert (stored.latitude, stored.longitude) == (-34.82, -58.54)


@pytest.mark.asyncio
async def test_slow_call_times_out_as_store_unavailable(database: Database):
    store = SqlRecordStore(database, timeout=0.05)

    with pytest.raises(StoreUnavailable, match="timed out"):
        await store._bounded(asyncio.Event().wait())


@pytest.mark.asyncio
async def test_database_error_surfaces_as_store_unavailable(record_store: SqlRecordStore):
    async def _broken():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    with pytest.raises(StoreUnavailable):
        await record_store._bounded(_broken())
