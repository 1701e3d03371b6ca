"""Data stores for persistence and derived indexes.

Stores handle:
- SQL (PostgreSQL): authoritative airport records
- Redis GEO: spatial index for radius queries
- Redis sorted set: popularity ranking with a shared TTL

No business logic in stores - propagation and joins belong in services.
"""
