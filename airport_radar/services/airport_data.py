"""Bulk-load input parsing.

Reads the raw airport dump (JSON array, OpenFlights-style fields) and maps
each row to `AirportCreate`:

    {"iata_faa": "EZE", "icao": "SAEZ", "name": "Ministro Pistarini",
     "city": "Buenos Aires, Argentina", "lat": -34.8222, "lng": -58.5358,
     "alt": 67, "tz": "America/Buenos_Aires"}

Rows without an IATA/ICAO code, and rows that fail validation, are dropped
here and never reach the coordinator.
"""

from collections.abc import Iterable
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from airport_radar.schemas import AirportCreate

logger = logging.getLogger("uvicorn.error")


def _first_city_part(city: Any) -> str | None:
    """Keep only the part before the first comma ("Goroka, Papua New Guinea" -> "Goroka")."""
    if city is None:
        return None
    return str(city).split(",")[0].strip() or None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _number(value: Any) -> Any:
    # Empty strings mean "unknown"; anything else is left to validation.
    if isinstance(value, str) and not value.strip():
        return None
    return value


def parse_raw_airports(rows: Iterable[dict[str, Any]]) -> list[AirportCreate]:
    """Convert raw dump rows to validated create payloads.

    Args:
        rows: Raw rows with keys iata_faa, icao, name, city, lat, lng, alt, tz.

    Returns:
        Payloads for rows that carry at least one code and pass validation.
    """
    airports: list[AirportCreate] = []
    no_code = 0
    rejected = 0

    for row in rows:
        iata = _text(row.get("iata_faa"))
        icao = _text(row.get("icao"))
        if not iata and not icao:
            no_code += 1
            continue

        try:
            airports.append(
                AirportCreate(
                    iata_code=iata,
                    icao=icao,
                    name=_text(row.get("name")),
                    city=_first_city_part(row.get("city")),
                    latitude=_number(row.get("lat")),
                    longitude=_number(row.get("lng")),
                    altitude=_number(row.get("alt")),
                    timezone=_text(row.get("tz")),
                )
            )
        except ValidationError as e:
            rejected += 1
            logger.warning(f"Skipping invalid airport row {iata or icao}: {e.error_count()} errors")

    if no_code or rejected:
        logger.info(f"Airport data: dropped {no_code} rows without codes, {rejected} invalid rows")
    return airports


def load_airports_file(path: str | Path) -> list[AirportCreate]:
    """Read and parse a JSON airport dump.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file is not a JSON array.
    """
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON array of airports")
    return parse_raw_airports(raw)
