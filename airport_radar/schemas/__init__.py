"""Pydantic schemas for API request/response validation."""

from airport_radar.schemas.airport import (
    AirportCreate,
    AirportPatch,
    AirportRecord,
    BulkLoadResult,
    DeleteResponse,
    NearbyAirport,
    PopularAirport,
)
from airport_radar.schemas.common import ErrorDetail, ErrorResponse

__all__ = [
    "AirportCreate",
    "AirportPatch",
    "AirportRecord",
    "BulkLoadResult",
    "DeleteResponse",
    "ErrorDetail",
    "ErrorResponse",
    "NearbyAirport",
    "PopularAirport",
]
