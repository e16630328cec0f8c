"""Redis implementation of BreakerStore.

Lets a fleet of relay instances share one breaker per provider. The prefix
scopes the breaker, so each guarded provider needs its own prefix:
- Failures: sorted set ``{prefix}:failures`` (score = timestamp in ms)
- Open-until timestamp: string ``{prefix}:openUntil``
- Open transitions: counter ``{prefix}:openedCount``

The transition into open is a WATCH/MULTI compare-and-set on
``{prefix}:openUntil``, so concurrent instances record one transition.
"""

import logging
import uuid

import redis.asyncio as redis
from redis.exceptions import WatchError

from chat_relay.config import get_redis_client, settings
from chat_relay.entities import BreakerState
from chat_relay.utils import Clock, now_ms

logger = logging.getLogger(__name__)


class RedisBreakerStore:
    """Redis-backed breaker state.

    This class satisfies the BreakerStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        provider: str = "openai",
        prefix: str | None = None,
        clock: Clock = now_ms,
    ) -> None:
        """Initialize the Redis breaker store.

        Args:
            redis_client: Async Redis client. If None, creates default.
            provider: Name of the guarded provider.
            prefix: Key namespace. Defaults to settings.
            clock: Millisecond clock (injectable for tests).
        """
        self._client = redis_client or get_redis_client()
        self._provider = provider
        self._prefix = prefix or settings.redis_cb_prefix
        self._clock = clock

        self._failures_key = f"{self._prefix}:failures"
        self._open_until_key = f"{self._prefix}:openUntil"
        self._opened_count_key = f"{self._prefix}:openedCount"

    @classmethod
    def create(
        cls,
        redis_url: str | None = None,
        provider: str = "openai",
        prefix: str | None = None,
        password: str | None = None,
    ) -> "RedisBreakerStore":
        """Factory method to create RedisBreakerStore from a connection string.

        Args:
            redis_url: Redis URL. If None, uses settings.
            provider: Name of the guarded provider.
            prefix: Key namespace. If None, uses settings.
            password: Redis password. If None, uses settings.

        Returns:
            Configured RedisBreakerStore

        Raises:
            ValueError: If the URL cannot be parsed
        """
        client = redis.from_url(
            redis_url or settings.redis_url,
            password=password or settings.redis_password,
            decode_responses=True,
        )
        return cls(redis_client=client, provider=provider, prefix=prefix)

    @property
    def provider(self) -> str:
        return self._provider

    async def is_open(self) -> bool:
        open_until = int(await self._client.get(self._open_until_key) or 0)
        return self._clock() < open_until

    async def record_failure(
        self,
        now: int,
        window_ms: int,
        threshold: int,
        cooldown_ms: int,
    ) -> BreakerState:
        # Unique member so two failures in the same millisecond both count
        member = f"{now}:{uuid.uuid4().hex[:8]}"

        async with self._client.pipeline(transaction=True) as pipe:
            pipe.zadd(self._failures_key, {member: now})
            pipe.zremrangebyscore(self._failures_key, "-inf", f"({now - window_ms}")
            pipe.zcard(self._failures_key)
            _, _, count = await pipe.execute()

        if count >= threshold and await self._open(now, cooldown_ms):
            logger.warning(
                "%s circuit opened (redis), failures=%d",
                self._provider,
                count,
            )

        return await self.get_state()

    async def _open(self, now: int, cooldown_ms: int) -> bool:
        """Transition into open unless another writer already did.

        Returns:
            True if this call performed the transition
        """
        async with self._client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(self._open_until_key)
                    open_until = int(await pipe.get(self._open_until_key) or 0)
                    if now < open_until:
                        await pipe.unwatch()
                        return False

                    pipe.multi()
                    pipe.set(self._open_until_key, now + cooldown_ms)
                    pipe.incr(self._opened_count_key)
                    await pipe.execute()
                    return True
                except WatchError:
                    # Another instance touched openUntil; re-read and decide again
                    continue

    async def prune(self, window_ms: int) -> int:
        now = self._clock()
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(self._failures_key, "-inf", f"({now - window_ms}")
            pipe.zcard(self._failures_key)
            _, count = await pipe.execute()
        return count

    async def get_state(self) -> BreakerState:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.zrange(self._failures_key, 0, -1, withscores=True)
            pipe.get(self._open_until_key)
            pipe.get(self._opened_count_key)
            failures, open_until, opened_count = await pipe.execute()

        return BreakerState(
            failures=tuple(int(score) for _, score in failures),
            open_until=int(open_until or 0),
            opened_count=int(opened_count or 0),
        )

    async def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(await self._client.ping())
        except Exception as e:
            logger.warning("Redis breaker store ping failed: %s", e)
            return False

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
