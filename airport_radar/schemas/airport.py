"""Schemas for airport records and the composite query results."""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AirportFields(BaseModel):
    """Descriptive and location fields shared by create/update payloads."""

    name: str | None = Field(default=None, max_length=200)
    city: str | None = Field(default=None, max_length=200)
    latitude: float | None = Field(default=None, ge=-90, le=90, allow_inf_nan=False)
    longitude: float | None = Field(default=None, ge=-180, le=180, allow_inf_nan=False)
    altitude: float | None = Field(default=None, allow_inf_nan=False)
    timezone: str | None = Field(default=None, max_length=64)


class AirportCreate(AirportFields):
    """Request body for POST /airports.

    At least one of iata_code / icao is required; that rule is enforced by
    `identifier_of` so it surfaces as INVALID_RECORD rather than a generic
    validation error.
    """

    iata_code: str | None = Field(default=None, max_length=10)
    icao: str | None = Field(default=None, max_length=10)

    @field_validator("iata_code", "icao", mode="before")
    @classmethod
    def _blank_code_is_absent(cls, v: object) -> object:
        """Blank codes count as absent so they never collide on the unique columns."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _coordinates_come_in_pairs(self) -> "AirportCreate":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self


class AirportPatch(AirportFields):
    """Request body for PUT /airports/{identifier}.

    Only fields present in the body are applied. Identifying codes are not
    patchable: a record keeps its identifier for life.
    """


class AirportRecord(BaseModel):
    """A stored airport."""

    model_config = ConfigDict(from_attributes=True)

    identifier: str
    iata_code: str | None = None
    icao: str | None = None
    name: str | None = None
    city: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None
    timezone: str | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class NearbyAirport(BaseModel):
    """A proximity search hit enriched from the record store.

    distance/longitude/latitude are the geo index's view of the airport.
    """

    identifier: str
    iata_code: str | None
    icao: str | None
    name: str
    distance: float = Field(description="Great-circle distance in km")
    longitude: float
    latitude: float


class PopularAirport(BaseModel):
    """A popularity ranking entry enriched from the record store."""

    identifier: str
    iata_code: str | None
    icao: str | None
    name: str
    visits: int = Field(ge=0)


class DeleteResponse(BaseModel):
    message: str


class BulkLoadResult(BaseModel):
    """Counts from a bulk load run."""

    total: int = 0
    stored: int = 0
    indexed: int = Field(default=0, description="Records added to the geo index")
    duplicates: int = 0
    invalid: int = 0
    failed: int = 0
