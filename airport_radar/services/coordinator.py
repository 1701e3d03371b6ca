"""Write coordinator: record store first, derived indexes best-effort.

Every write lands in the record store (authoritative) and is then propagated
to the geo and popularity indexes. Propagation is not transactional with the
record write:
- An index failure is logged and swallowed; the write still succeeds.
- A failed propagation is never retried. The stale entry stays until the
  read-time join drops it, or a bulk load rebuilds everything.

Staleness window: from the record write until the index call lands, and
forever if that call fails.
"""

from collections.abc import Awaitable, Iterable
import logging

from airport_radar.errors import (
    AirportRadarError,
    DuplicateIdentifier,
    InvalidInput,
    InvalidRecord,
    TransientIndexError,
)
from airport_radar.schemas import AirportCreate, AirportPatch, AirportRecord, BulkLoadResult
from airport_radar.services.identifiers import identifier_of
from airport_radar.stores.popularity_index import PopularityIndex
from airport_radar.stores.record_store import RecordStore
from airport_radar.stores.spatial_index import SpatialIndex

logger = logging.getLogger("uvicorn.error")

# Errors a best-effort index write absorbs
PROPAGATION_ERRORS = (TransientIndexError, InvalidInput)


class IndexCoordinator:
    """Orchestrates writes across the record store and both indexes."""

    def __init__(
        self,
        records: RecordStore,
        spatial: SpatialIndex,
        popularity: PopularityIndex,
    ) -> None:
        self._records = records
        self._spatial = spatial
        self._popularity = popularity

    async def create(self, data: AirportCreate) -> AirportRecord:
        """Store a new airport and index its position.

        Raises:
            InvalidRecord: Neither iata_code nor icao given. Nothing is stored.
            DuplicateIdentifier: Identifier or a code already exists.
        """
        record, _ = await self._create(data)
        return record

    async def update(self, identifier: str, patch: AirportPatch) -> AirportRecord:
        """Apply a partial update; re-index the position if it was touched.

        Raises:
            NotFound: No matching airport.
        """
        changes = patch.model_dump(exclude_unset=True)
        record = await self._records.update(identifier, changes)

        if "latitude" in changes or "longitude" in changes:
            # The index is keyed by identifier, so the old point goes first.
            await self._propagate(f"remove {record.identifier} from geo index", self._spatial.remove(record.identifier))
            if record.has_coordinates:
                await self._index_position(record)
        return record

    async def delete(self, identifier: str) -> AirportRecord:
        """Delete an airport and drop it from both indexes.

        Raises:
            NotFound: No matching airport.
        """
        record = await self._records.delete(identifier)
        await self._propagate(f"remove {record.identifier} from geo index", self._spatial.remove(record.identifier))
        await self._propagate(
            f"remove {record.identifier} from popularity ranking",
            self._popularity.remove(record.identifier),
        )
        return record

    async def bulk_load(self, records: Iterable[AirportCreate]) -> BulkLoadResult:
        """Replace everything with `records`.

        Clears the record store (failure aborts the load) and both indexes
        (best-effort), then creates each airport independently. A bad record
        is counted and skipped; it never aborts the batch.
        """
        await self._records.clear()
        await self._propagate("clear geo index", self._spatial.clear())
        await self._propagate("clear popularity ranking", self._popularity.clear())

        result = BulkLoadResult()
        for data in records:
            result.total += 1
            label = data.iata_code or data.icao
            try:
                _, indexed = await self._create(data)
            except InvalidRecord:
                result.invalid += 1
                logger.warning(f"Skipping airport without iata_code or icao: {data.name!r}")
                continue
            except DuplicateIdentifier:
                result.duplicates += 1
                logger.warning(f"Skipping duplicate airport: {label}")
                continue
            except AirportRadarError as e:
                result.failed += 1
                logger.error(f"Error inserting airport {label}: {e}")
                continue
            result.stored += 1
            if indexed:
                result.indexed += 1

        logger.info(
            f"Bulk load done: {result.stored}/{result.total} stored, {result.indexed} geo-indexed, "
            f"{result.duplicates} duplicates, {result.invalid} invalid, {result.failed} failed"
        )
        return result

    async def _create(self, data: AirportCreate) -> tuple[AirportRecord, bool]:
        identifier = identifier_of(data)
        record = await self._records.put(AirportRecord(identifier=identifier, **data.model_dump()))

        if not record.has_coordinates:
            logger.warning(f"Skipping geo index for {identifier}: no coordinates")
            return record, False
        return record, await self._index_position(record)

    async def _index_position(self, record: AirportRecord) -> bool:
        return await self._propagate(
            f"add {record.identifier} to geo index",
            self._spatial.upsert(record.identifier, record.longitude, record.latitude),
        )

    @staticmethod
    async def _propagate(action: str, call: Awaitable[object]) -> bool:
        """Await a best-effort index write. Returns False if it failed."""
        try:
            await call
        except PROPAGATION_ERRORS as e:
            logger.warning(f"Index propagation failed ({action}); index left stale: {e}")
            return False
        return True
