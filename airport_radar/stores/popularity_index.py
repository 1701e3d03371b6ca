"""Popularity ranking of airports.

`PopularityIndex` is the interface; `RedisPopularityIndex` keeps one sorted
set of visit counters under a single key.

Expiry is per ranking, not per entry: every increment resets the TTL of the
whole key, and when it lapses the entire ranking is gone. Any traffic at all
keeps every counter alive; a quiet window wipes them all.

Ranking order: score descending, ties broken by identifier ascending.
"""

from typing import NamedTuple, Protocol

import redis.asyncio as redis

from airport_radar.errors import InvalidInput
from airport_radar.stores.redis import DEFAULT_TIMEOUT, KEY_POPULARITY, TTL_POPULARITY, bounded


class PopularityHit(NamedTuple):
    identifier: str
    score: int


class PopularityIndex(Protocol):
    """Ranked counters keyed by identifier with one shared expiry window."""

    async def increment(self, identifier: str, amount: int = 1) -> int: ...

    async def top_k(self, k: int) -> list[PopularityHit]: ...

    async def remove(self, identifier: str) -> None: ...

    async def clear(self) -> None: ...


class RedisPopularityIndex:
    """PopularityIndex backed by a Redis sorted set with a whole-key TTL."""

    def __init__(
        self,
        client: redis.Redis,
        key: str = KEY_POPULARITY,
        window_seconds: int = TTL_POPULARITY,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._redis = client
        self._key = key
        self._window = window_seconds
        self._timeout = timeout

    async def increment(self, identifier: str, amount: int = 1) -> int:
        """Add `amount` visits and restart the ranking's expiry window.

        ZINCRBY and EXPIRE run in one MULTI/EXEC, so concurrent increments
        are never lost and the TTL always follows the latest increment.

        Returns:
            The new score of `identifier`.
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
            raise InvalidInput("Increment amount must be a positive integer", {"amount": str(amount)})

        async def _increment() -> int:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.zincrby(self._key, amount, identifier)
                pipe.expire(self._key, self._window)
                score, _ = await pipe.execute()
            return int(score)

        return await bounded(_increment(), timeout=self._timeout, operation=f"ZINCRBY {identifier}")

    async def top_k(self, k: int) -> list[PopularityHit]:
        """Return up to `k` entries, highest score first.

        ZREVRANGE orders equal scores by reverse member name. Entries above
        the k-th score are all in the head and are re-sorted locally; the
        slots left at the k-th score are refilled with ZRANGEBYSCORE ... LIMIT,
        which returns tied members in ascending name order.
        """
        if k <= 0:
            return []

        head = await bounded(
            self._redis.zrevrange(self._key, 0, k - 1, withscores=True),
            timeout=self._timeout,
            operation="ZREVRANGE",
        )
        if not head:
            return []

        cutoff = head[-1][1]
        above = sorted((item for item in head if item[1] > cutoff), key=lambda item: (-item[1], item[0]))
        tied = await bounded(
            self._redis.zrangebyscore(
                self._key, cutoff, cutoff, start=0, num=len(head) - len(above), withscores=True
            ),
            timeout=self._timeout,
            operation="ZRANGEBYSCORE",
        )
        return [PopularityHit(identifier=member, score=int(score)) for member, score in above + tied]

    async def remove(self, identifier: str) -> None:
        await bounded(
            self._redis.zrem(self._key, identifier),
            timeout=self._timeout,
            operation=f"ZREM {identifier}",
        )

    async def clear(self) -> None:
        await bounded(self._redis.delete(self._key), timeout=self._timeout, operation="DEL popularity")

