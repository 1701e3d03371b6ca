"""Airport model.

The authoritative airport record. `identifier` is derived once at creation
(IATA code if present, else ICAO) and keys both Redis indexes.

Each code is unique on its own; NULLs don't collide, so airports with only
one of the two codes coexist freely.
"""

from datetime import datetime

from sqlalchemy import DateTime, Float, String, func
from sqlalchemy.orm import Mapped, mapped_column

from airport_radar.stores.postgres import Base


class Airport(Base):
    """Airport record - source of truth for the geo and popularity indexes."""

    __tablename__ = "airports"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Identification
    identifier: Mapped[str] = mapped_column(String(10), unique=True, index=True)
    iata_code: Mapped[str | None] = mapped_column(String(10), unique=True)
    icao: Mapped[str | None] = mapped_column(String(10), unique=True)

    # Descriptive
    name: Mapped[str | None] = mapped_column(String(200))
    city: Mapped[str | None] = mapped_column(String(200))

    # Location
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    altitude: Mapped[float | None] = mapped_column(Float)  # feet
    timezone: Mapped[str | None] = mapped_column(String(64))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Airport {self.identifier}>"
