"""SQLAlchemy ORM models.

Models represent database tables:
- airports: Authoritative airport records
"""

from airport_radar.models.airport import Airport

__all__ = ["Airport"]
