"""
Shared fixtures and test doubles for the chat relay tests.
"""

import asyncio

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from chat_relay.entities import BreakerPolicy
from chat_relay.errors import AdapterError
from chat_relay.metrics import RelayMetrics
from chat_relay.repositories import DisabledProvider, MemoryBreakerStore
from chat_relay.result_cache import ResultCache
from chat_relay.services import ResponseRouter


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class StubProvider:
    """ResponseProvider double that records calls and fails on demand."""

    def __init__(
        self,
        name: str = "stub",
        model: str = "test-model",
        fail_times: int = 0,
        always_fail: bool = False,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.model = model
        self.fail_times = fail_times
        self.always_fail = always_fail
        self.delay = delay
        self.calls: list[str] = []
        self.closed = False

    def is_available(self) -> bool:
        return True

    async def respond(self, message: str) -> str:
        self.calls.append(message)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.always_fail or len(self.calls) <= self.fail_times:
            raise AdapterError("simulated failure", provider=self.name)
        return f"OK:{message}"

    async def close(self) -> None:
        self.closed = True


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis``.

    Covers the strings, counters, sorted sets and WATCH/MULTI pipelines the
    breaker store uses. Set ``down = True`` to make every command fail.
    """

    def __init__(self) -> None:
        self.kv: dict[str, str] = {}
        self.sorted: dict[str, dict[str, float]] = {}
        self.down = False
        self.closed = False

    def _check(self) -> None:
        if self.down:
            raise RedisConnectionError("redis is down")

    async def ping(self) -> bool:
        self._check()
        return True

    async def get(self, key: str) -> str | None:
        self._check()
        return self.kv.get(key)

    async def set(self, key: str, value) -> bool:
        self._check()
        self.kv[key] = str(value)
        return True

    async def incr(self, key: str) -> int:
        self._check()
        value = int(self.kv.get(key, "0")) + 1
        self.kv[key] = str(value)
        return value

    async def zadd(self, key: str, mapping: dict[str, float]) -> int:
        self._check()
        members = self.sorted.setdefault(key, {})
        added = sum(1 for member in mapping if member not in members)
        members.update({member: float(score) for member, score in mapping.items()})
        return added

    async def zremrangebyscore(self, key: str, min_score, max_score) -> int:
        self._check()
        members = self.sorted.get(key, {})
        doomed = [m for m, score in members.items() if _in_range(score, min_score, max_score)]
        for member in doomed:
            del members[member]
        return len(doomed)

    async def zcard(self, key: str) -> int:
        self._check()
        return len(self.sorted.get(key, {}))

    async def zrange(self, key: str, start: int, end: int, withscores: bool = False):
        self._check()
        ordered = sorted(self.sorted.get(key, {}).items(), key=lambda item: item[1])
        ordered = ordered[start:] if end == -1 else ordered[start : end + 1]
        if withscores:
            return ordered
        return [member for member, _ in ordered]

    def pipeline(self, transaction: bool = True) -> "FakePipeline":
        return FakePipeline(self)

    async def aclose(self) -> None:
        self.closed = True


def _bound(value) -> tuple[float, bool]:
    text = str(value)
    if text.startswith("("):
        return float(text[1:]), True
    return float(text), False


def _in_range(score: float, min_score, max_score) -> bool:
    low, low_exclusive = _bound(min_score)
    high, high_exclusive = _bound(max_score)
    above = score > low if low_exclusive else score >= low
    below = score < high if high_exclusive else score <= high
    return above and below


class FakePipeline:
    """Buffers commands until ``execute``; runs them immediately while watching."""

    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._queue: list = []
        self._immediate = False

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self._queue.clear()
        self._immediate = False

    async def watch(self, *keys: str) -> bool:
        self._redis._check()
        self._immediate = True
        return True

    async def unwatch(self) -> bool:
        self._immediate = False
        return True

    def multi(self) -> None:
        self._immediate = False

    def __getattr__(self, name: str):
        command = getattr(self._redis, name)
        if self._immediate:
            return command

        def queue(*args, **kwargs):
            self._queue.append((command, args, kwargs))
            return self

        return queue

    async def execute(self) -> list:
        queued, self._queue = self._queue, []
        self._immediate = False
        return [await command(*args, **kwargs) for command, args, kwargs in queued]


@pytest.fixture
def clock() -> FakeClock:
    """A frozen millisecond clock."""
    return FakeClock()


@pytest.fixture
def fake_redis() -> FakeRedis:
    """An in-memory async redis double."""
    return FakeRedis()


@pytest.fixture
def metrics() -> RelayMetrics:
    """Metrics on a private registry."""
    return RelayMetrics()


@pytest.fixture
def make_router(clock, metrics):
    """Factory for routers wired with stub providers.

    Providers default to disabled variants; pass StubProvider instances for
    the tiers a test exercises.
    """

    def _make(
        primary=None,
        secondary=None,
        default=None,
        task=None,
        breaker_store=None,
        use_primary: bool = False,
        use_secondary: bool = False,
        policy: BreakerPolicy | None = None,
        cache: ResultCache | None = None,
        timeout_ms: int = 1000,
        fallback_breaker_store=None,
    ) -> ResponseRouter:
        primary = primary or DisabledProvider("openai")
        return ResponseRouter(
            breaker_store=breaker_store or MemoryBreakerStore(primary.name, clock=clock),
            task_provider=task or DisabledProvider("copilot"),
            primary_provider=primary,
            secondary_provider=secondary or DisabledProvider("huggingface"),
            default_provider=default or DisabledProvider("claude"),
            cache=cache if cache is not None else ResultCache(ttl_ms=30_000, max_entries=100, clock=clock),
            metrics=metrics,
            policy=policy or BreakerPolicy(threshold=2, window_ms=10_000, cooldown_ms=5_000),
            use_primary=use_primary,
            use_secondary=use_secondary,
            timeout_ms=timeout_ms,
            fallback_breaker_store=fallback_breaker_store,
            clock=clock,
        )

    return _make
