"""Redis connections for the derived indexes.

Handles:
- Client creation with socket timeouts
- Bounding every index command with a deadline
- Mapping Redis failures to TransientIndexError

Key layout (one well-known key per index):
- GEO set of airport positions: airports_geo
- Sorted set of airport visits: airport_popularity (whole-key TTL, 1 day)
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

from airport_radar.errors import TransientIndexError

# Default keys
KEY_GEO_INDEX = "airports_geo"
KEY_POPULARITY = "airport_popularity"

# TTL constants (in seconds)
TTL_POPULARITY = 86400  # 1 day, shared by every entry of the ranking

DEFAULT_TIMEOUT = 5.0

T = TypeVar("T")

def create_redis(url: str, timeout: float = DEFAULT_TIMEOUT) -> redis.Redis:
    """Create a Redis client. Connections are opened lazily on first command."""
    return redis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=timeout,
        socket_timeout=timeout,
    )

async def close_redis(client: redis.Redis) -> None:
    """Close Redis connection."""
    await client.aclose()

async def bounded(awaitable: Awaitable[T], *, timeout: float, operation: str) -> T:
    """Await a Redis command with a deadline.

    Args:
        awaitable: The pending Redis call.
        timeout: Deadline in seconds.
        operation: Short description used in the error message.

    Raises:
        TransientIndexError: On timeout or any Redis error.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as exc:
        raise TransientIndexError(f"{operation} timed out after {timeout}s") from exc
    except RedisError as exc:
        raise TransientIndexError(f"{operation} failed: {exc}") from exc
