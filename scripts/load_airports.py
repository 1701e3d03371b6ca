#!/usr/bin/env python3
"""Bulk-load airports into the record store and both Redis indexes.

Clears the airports table, the geo index and the popularity ranking, then
inserts every airport from the JSON dump one by one. Bad rows are counted
and skipped.

Usage:
    python -m scripts.load_airports                     # uses AIRPORTS_DATA_PATH
    python -m scripts.load_airports data/airports.json

Env vars: DATABASE_URL, REDIS_URL (or REDIS_GEO_URL / REDIS_POP_URL).
"""

import asyncio
import os
import sys

# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv  # noqa: E402

from airport_radar.main import build_services, open_stores  # noqa: E402
from airport_radar.services.airport_data import load_airports_file  # noqa: E402
from airport_radar.settings import get_settings  # noqa: E402

load_dotenv()


async def main(path: str) -> int:
    settings = get_settings()
    airports = load_airports_file(path)
    print(f"Parsed {len(airports)} airports from {path}")

    stores = open_stores(settings)
    try:
        await stores.database.create_tables()
        coordinator, _ = build_services(stores, settings)
        result = await coordinator.bulk_load(airports)
    finally:
        await stores.close()

    print(
        f"Stored {result.stored}/{result.total} airports, {result.indexed} in geo index "
        f"({result.duplicates} duplicates, {result.invalid} invalid, {result.failed} failed)"
    )
    return 0 if result.stored else 1


if __name__ == "__main__":
    data_path = sys.argv[1] if len(sys.argv) > 1 else get_settings().airports_data_path
    if not data_path:
        print("Usage: python -m scripts.load_airports <airports.json> (or set AIRPORTS_DATA_PATH)")
        sys.exit(2)
    sys.exit(asyncio.run(main(data_path)))
