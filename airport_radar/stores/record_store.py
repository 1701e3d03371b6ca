"""Authoritative airport record store.

`RecordStore` is the interface the coordinator and query service depend on;
`SqlRecordStore` implements it on async SQLAlchemy.

Uniqueness of identifier / IATA / ICAO is enforced by the database unique
constraints, never by a read-then-write check, so concurrent creates of the
same airport end with exactly one row and one DuplicateIdentifier.
"""

import asyncio
from collections.abc import Awaitable, Iterable
from typing import Any, Protocol, TypeVar

from sqlalchemy import case, delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from airport_radar.errors import DuplicateIdentifier, InvalidInput, NotFound, StoreUnavailable
from airport_radar.models import Airport
from airport_radar.schemas import AirportRecord
from airport_radar.stores.postgres import Database

T = TypeVar("T")

# Columns a patch may touch
PATCHABLE_FIELDS = frozenset({"name", "city", "latitude", "longitude", "altitude", "timezone"})


class RecordStore(Protocol):
    """CRUD over airport records keyed by identifier."""

    async def put(self, record: AirportRecord) -> AirportRecord: ...

    async def get(self, identifier: str) -> AirportRecord: ...

    async def get_many(self, identifiers: Iterable[str]) -> dict[str, AirportRecord]: ...

    async def update(self, identifier: str, patch: dict[str, Any]) -> AirportRecord: ...

    async def delete(self, identifier: str) -> AirportRecord: ...

    async def list(self) -> list[AirportRecord]: ...

    async def clear(self) -> None: ...


class SqlRecordStore:
    """RecordStore backed by the `airports` table."""

    def __init__(self, database: Database, timeout: float = 5.0) -> None:
        self._db = database
        self._timeout = timeout

    async def put(self, record: AirportRecord) -> AirportRecord:
        """Insert a new airport.

        Raises:
            DuplicateIdentifier: If the identifier or either code is taken.
        """

        async def _put() -> AirportRecord:
            async with self._db.session() as session:
                row = Airport(**record.model_dump())
                session.add(row)
                await session.flush()
                return AirportRecord.model_validate(row)

        try:
            return await self._bounded(_put())
        except IntegrityError as exc:
            raise DuplicateIdentifier(record.identifier) from exc

    async def get(self, identifier: str) -> AirportRecord:
        """Find an airport by identifier, falling back to IATA or ICAO code.

        Raises:
            NotFound: If nothing matches.
        """

        async def _get() -> AirportRecord | None:
            async with self._db.session() as session:
                row = await self._find(session, identifier)
                return AirportRecord.model_validate(row) if row else None

        record = await self._bounded(_get())
        if record is None:
            raise NotFound(identifier)
        return record

    async def get_many(self, identifiers: Iterable[str]) -> dict[str, AirportRecord]:
        """Batch lookup by exact identifier. Missing identifiers are absent from the result."""
        wanted = set(identifiers)
        if not wanted:
            return {}

        async def _get_many() -> dict[str, AirportRecord]:
            async with self._db.session() as session:
                result = await session.execute(select(Airport).where(Airport.identifier.in_(wanted)))
                return {row.identifier: AirportRecord.model_validate(row) for row in result.scalars()}

        return await self._bounded(_get_many())

    async def update(self, identifier: str, patch: dict[str, Any]) -> AirportRecord:
        """Apply a partial update.

        Raises:
            NotFound: If nothing matches.
            InvalidInput: If the result would hold only one of latitude/longitude.
        """
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not patchable: {sorted(unknown)}")

        async def _update() -> AirportRecord | None:
            async with self._db.session() as session:
                row = await self._find(session, identifier)
                if row is None:
                    return None
                for field, value in patch.items():
                    setattr(row, field, value)
                if (row.latitude is None) != (row.longitude is None):
                    # Raised inside the session, so nothing is written.
                    raise InvalidInput(
                        "latitude and longitude must be set or cleared together",
                        {"identifier": row.identifier},
                    )
                await session.flush()
                return AirportRecord.model_validate(row)

        record = await self._bounded(_update())
        if record is None:
            raise NotFound(identifier)
        return record

    async def delete(self, identifier: str) -> AirportRecord:
        """Delete an airport and return what was removed.

        Raises:
            NotFound: If nothing matches.
        """

        async def _delete() -> AirportRecord | None:
            async with self._db.session() as session:
                row = await self._find(session, identifier)
                if row is None:
                    return None
                record = AirportRecord.model_validate(row)
                await session.delete(row)
                return record

        record = await self._bounded(_delete())
        if record is None:
            raise NotFound(identifier)
        return record

    async def list(self) -> list[AirportRecord]:
        async def _list() -> list[AirportRecord]:
            async with self._db.session() as session:
                result = await session.execute(select(Airport).order_by(Airport.id))
                return [AirportRecord.model_validate(row) for row in result.scalars()]

        return await self._bounded(_list())

    async def clear(self) -> None:
        async def _clear() -> None:
            async with self._db.session() as session:
                await session.execute(delete(Airport))

        await self._bounded(_clear())

    @staticmethod
    async def _find(session: AsyncSession, identifier: str) -> Airport | None:
        # An exact identifier match wins over a code match on another row.
        result = await session.execute(
            select(Airport)
            .where(
                or_(
                    Airport.identifier == identifier,
                    Airport.iata_code == identifier,
                    Airport.icao == identifier,
                )
            )
            .order_by(case((Airport.identifier == identifier, 0), else_=1), Airport.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, self._timeout)
        except asyncio.TimeoutError as exc:
            raise StoreUnavailable(f"Record store timed out after {self._timeout}s") from exc
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Record store unavailable: {exc}") from exc
