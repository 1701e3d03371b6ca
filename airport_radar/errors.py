"""Domain errors.

Each error carries a stable code and the HTTP status the API renders it with.
Routes never catch these; the exception handler in `airport_radar.main` turns
them into the structured `{"error": {...}}` payload.
"""

from typing import Any


class AirportRadarError(Exception):
    """Base class for all domain errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class InvalidInput(AirportRadarError):
    """Malformed or out-of-range query parameters. Rejected before touching state."""

    code = "INVALID_INPUT"
    status_code = 400


class InvalidRecord(AirportRadarError):
    """Record has neither IATA nor ICAO code and can never be stored."""

    code = "INVALID_RECORD"
    status_code = 400


class NotFound(AirportRadarError):
    code = "AIRPORT_NOT_FOUND"
    status_code = 404

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Airport {identifier} not found", {"identifier": identifier})
        self.identifier = identifier


class DuplicateIdentifier(AirportRadarError):
    code = "DUPLICATE_IDENTIFIER"
    status_code = 400

    def __init__(self, identifier: str) -> None:
        super().__init__(
            f"Airport {identifier} already exists (IATA and ICAO codes must be unique)",
            {"identifier": identifier},
        )
        self.identifier = identifier


class TransientIndexError(AirportRadarError):
    """Spatial/popularity index unreachable, timed out or rejected the command."""

    code = "INDEX_UNAVAILABLE"
    status_code = 503


class StoreUnavailable(AirportRadarError):
    """Record store unreachable or timed out."""

    code = "STORE_UNAVAILABLE"
    status_code = 503
