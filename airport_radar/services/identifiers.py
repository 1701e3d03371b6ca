"""Identifier derivation.

The identifier keys the record store, the geo index and the popularity
ranking: the IATA code when present, otherwise the ICAO code. Codes are used
exactly as given (no case folding).
"""

from typing import Any

from airport_radar.errors import InvalidRecord


def _code(value: Any) -> str | None:
    if value is None:
        return None
    code = str(value)
    return code if code.strip() else None


def identifier_of(record: Any) -> str:
    """Derive the identifier of a record-like object (model or mapping).

    Raises:
        InvalidRecord: If neither iata_code nor icao is present.
    """
    if isinstance(record, dict):
        iata, icao = record.get("iata_code"), record.get("icao")
    else:
        iata, icao = getattr(record, "iata_code", None), getattr(record, "icao", None)

    identifier = _code(iata) or _code(icao)
    if identifier is None:
        raise InvalidRecord("Either iata_code or icao is required")
    return identifier
