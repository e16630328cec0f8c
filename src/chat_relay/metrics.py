"""Prometheus metrics for the relay.

Each app owns its own CollectorRegistry, so several apps (or tests) can live
in one process without duplicate-registration errors.
"""

import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Gauge, Histogram, generate_latest

from chat_relay.entities import BreakerState
from chat_relay.utils import now_ms

__all__ = ["CONTENT_TYPE_LATEST", "RelayMetrics"]


class RelayMetrics:
    """Counters, gauges and histograms exposed on ``GET /metrics``.

    Breaker gauges are labeled by provider; adapter metrics by adapter and
    model identity.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self._started_at = time.monotonic()

        # -- Process --
        self.uptime = Gauge(
            "chat_relay_uptime_seconds",
            "Seconds since the relay started",
            registry=self.registry,
        )
        self.uptime.set_function(lambda: time.monotonic() - self._started_at)
        self.requests = Counter(
            "chat_relay_requests",
            "Total HTTP requests received",
            registry=self.registry,
        )

        # -- Circuit breaker --
        self.breaker_open = Gauge(
            "chat_relay_breaker_open",
            "1 if the provider circuit is open, 0 otherwise",
            ["provider"],
            registry=self.registry,
        )
        self.breaker_failures = Gauge(
            "chat_relay_breaker_failures",
            "Number of failures in the sliding window",
            ["provider"],
            registry=self.registry,
        )
        self.breaker_opened_count = Gauge(
            "chat_relay_breaker_opened_count",
            "Number of times the circuit opened",
            ["provider"],
            registry=self.registry,
        )
        self.breaker_last_opened = Gauge(
            "chat_relay_breaker_last_opened_timestamp_seconds",
            "Last time the circuit opened (unix seconds)",
            ["provider"],
            registry=self.registry,
        )

        # -- Adapters --
        self.adapter_latency = Histogram(
            "nlp_adapter_latency_seconds",
            "Latency of NLP adapter calls in seconds",
            ["adapter", "model"],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self.registry,
        )
        self.adapter_errors = Counter(
            "nlp_adapter_errors",
            "Total errors from NLP adapters",
            ["adapter", "model"],
            registry=self.registry,
        )

    def record_request(self) -> None:
        self.requests.inc()

    @contextmanager
    def time_adapter(self, adapter: str, model: str) -> Iterator[None]:
        """Observe the latency of one adapter call, successful or not."""
        with self.adapter_latency.labels(adapter=adapter, model=model).time():
            yield

    def record_adapter_error(self, adapter: str, model: str) -> None:
        self.adapter_errors.labels(adapter=adapter, model=model).inc()

    def update_breaker(
        self,
        provider: str,
        state: BreakerState,
        cooldown_ms: int,
        now: int | None = None,
    ) -> None:
        """Mirror a breaker snapshot into the gauges.

        Args:
            provider: Guarded provider name
            state: Snapshot from the breaker store
            cooldown_ms: Cooldown used to derive the last-opened time
            now: Current time in ms. Defaults to the wall clock.
        """
        now = now_ms() if now is None else now
        self.breaker_open.labels(provider=provider).set(1 if state.is_open(now) else 0)
        self.breaker_failures.labels(provider=provider).set(state.failure_count)
        self.breaker_opened_count.labels(provider=provider).set(state.opened_count)
        self.breaker_last_opened.labels(provider=provider).set(state.opened_at(cooldown_ms) // 1000)

    def render(self) -> bytes:
        """Render the registry in the Prometheus text exposition format."""
        return generate_latest(self.registry)

    def sample(self, name: str, labels: dict[str, str] | None = None) -> float | None:
        """Read one sample value from the registry."""
        return self.registry.get_sample_value(name, labels or {})
