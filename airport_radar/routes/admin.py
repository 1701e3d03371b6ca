"""Admin endpoints.

POST /admin/reload - rebuild the record store and both indexes from the
configured airport data file.

In production, consider adding authentication (API key or admin token).
"""

from fastapi import APIRouter, Depends

from airport_radar.errors import InvalidInput
from airport_radar.routes.deps import get_coordinator
from airport_radar.schemas import BulkLoadResult
from airport_radar.services.airport_data import load_airports_file
from airport_radar.services.coordinator import IndexCoordinator
from airport_radar.settings import Settings, get_settings

router = APIRouter()


@router.post("/reload", response_model=BulkLoadResult)
async def reload_airports(
    settings: Settings = Depends(get_settings),
    coordinator: IndexCoordinator = Depends(get_coordinator),
) -> BulkLoadResult:
    """Clear everything and bulk-load AIRPORTS_DATA_PATH.

    Popularity counters are wiped along with the records.
    """
    if not settings.airports_data_path:
        raise InvalidInput("AIRPORTS_DATA_PATH is not configured")
    try:
        airports = load_airports_file(settings.airports_data_path)
    except (OSError, ValueError) as e:
        raise InvalidInput(f"Cannot read airport data: {e}") from e
    return await coordinator.bulk_load(airports)
