"""Route dependencies.

The coordinator and query service are built once per application (see
`airport_radar.main.lifespan`) and kept on `app.state`.
"""

from fastapi import Request

from airport_radar.errors import StoreUnavailable
from airport_radar.services.coordinator import IndexCoordinator
from airport_radar.services.queries import QueryService


def get_coordinator(request: Request) -> IndexCoordinator:
    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise StoreUnavailable("Stores not initialized")
    return coordinator


def get_queries(request: Request) -> QueryService:
    queries = getattr(request.app.state, "queries", None)
    if queries is None:
        raise StoreUnavailable("Stores not initialized")
    return queries
