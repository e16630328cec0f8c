"""Response router: picks a provider tier and degrades to the deterministic responder.

Tiers, tried in order for each message:

1. Task-class: messages mentioning "book" or "calculate" go to the task
   provider. Failures propagate to the safety net.
2. Primary (``USE_OPENAI``): guarded by the circuit breaker. Failures are
   recorded on the breaker and answered with the deterministic reply.
3. Secondary (``USE_HUGGINGFACE``): no breaker. Failures propagate.
4. Default: result cache first, then the default provider. Its failure caches
   the deterministic reply and propagates.
5. Safety net: anything escaping 1-4 becomes the deterministic reply.

Only the coroutine awaiting a provider call records its outcome, so a call
abandoned by the timeout wrapper can never touch the breaker, the cache or
the metrics afterwards.
"""

import logging

from chat_relay.config import Settings, settings
from chat_relay.entities import BreakerPolicy, BreakerState
from chat_relay.errors import AdapterError
from chat_relay.metrics import RelayMetrics
from chat_relay.protocols import BreakerStore, ResponseProvider
from chat_relay.repositories import (
    ClaudeProvider,
    CopilotProvider,
    HuggingFaceProvider,
    MemoryBreakerStore,
    OpenAIProvider,
)
from chat_relay.responder import compute_response
from chat_relay.result_cache import ResultCache, cache_key
from chat_relay.timeout import call_with_timeout
from chat_relay.utils import Clock, now_ms

logger = logging.getLogger(__name__)

TASK_KEYWORDS = ("book", "calculate")


class ResponseRouter:
    """Core routing and resilience service.

    The router depends on PROTOCOLS, not concrete implementations:
    - BreakerStore: in-process memory or Redis
    - ResponseProvider: OpenAI, Hugging Face, Claude, Copilot, or a stub

    Example:
        ```python
        router = ResponseRouter.create(breaker_store=MemoryBreakerStore("openai"))
        reply = await router.get_bot_response("hello")
        ```
    """

    def __init__(
        self,
        breaker_store: BreakerStore,
        task_provider: ResponseProvider,
        primary_provider: ResponseProvider,
        secondary_provider: ResponseProvider,
        default_provider: ResponseProvider,
        cache: ResultCache | None = None,
        metrics: RelayMetrics | None = None,
        policy: BreakerPolicy | None = None,
        use_primary: bool = False,
        use_secondary: bool = False,
        timeout_ms: int | None = None,
        fallback_breaker_store: BreakerStore | None = None,
        clock: Clock = now_ms,
    ) -> None:
        """Initialize the router.

        Args:
            breaker_store: Breaker state for the primary provider (required).
            task_provider: Provider for task-class messages.
            primary_provider: Breaker-guarded provider.
            secondary_provider: Unguarded provider.
            default_provider: Cached provider used when no other tier applies.
            cache: Result cache for the default tier. Defaults to a new cache.
            metrics: Metrics sink. Defaults to a private registry.
            policy: Breaker thresholds. Defaults to settings.
            use_primary: Enable the primary tier.
            use_secondary: Enable the secondary tier.
            timeout_ms: Per-call deadline. Defaults to settings.
            fallback_breaker_store: Used when the breaker store itself errors.
                Defaults to the breaker store if it is in-process, otherwise
                a new in-process store.
            clock: Millisecond clock (injectable for tests).
        """
        self._breaker = breaker_store
        self._task = task_provider
        self._primary = primary_provider
        self._secondary = secondary_provider
        self._default = default_provider
        self._cache = cache if cache is not None else ResultCache()
        self._metrics = metrics or RelayMetrics()
        self._policy = policy or BreakerPolicy(
            threshold=settings.breaker_threshold,
            window_ms=settings.breaker_window_ms,
            cooldown_ms=settings.breaker_cooldown_ms,
        )
        self._use_primary = use_primary
        self._use_secondary = use_secondary
        self._timeout_ms = settings.adapter_timeout_ms if timeout_ms is None else timeout_ms
        self._clock = clock

        if fallback_breaker_store is None:
            if isinstance(breaker_store, MemoryBreakerStore):
                fallback_breaker_store = breaker_store
            else:
                fallback_breaker_store = MemoryBreakerStore(primary_provider.name, clock=clock)
        self._fallback_breaker = fallback_breaker_store

    @classmethod
    def create(
        cls,
        breaker_store: BreakerStore,
        metrics: RelayMetrics | None = None,
        config: Settings | None = None,
    ) -> "ResponseRouter":
        """Factory method wiring the configured providers.

        Providers without credentials come back as disabled variants; a
        tier whose provider is disabled is skipped even if its flag is set.

        Args:
            breaker_store: Breaker state for the primary provider (required).
            metrics: Metrics sink. If None, uses a private registry.
            config: Settings to read. If None, uses the global settings.

        Returns:
            Configured ResponseRouter
        """
        config = config or settings
        return cls(
            breaker_store=breaker_store,
            task_provider=CopilotProvider.create(config),
            primary_provider=OpenAIProvider.create(config),
            secondary_provider=HuggingFaceProvider.create(config),
            default_provider=ClaudeProvider.create(config),
            cache=ResultCache(ttl_ms=config.cache_ttl_ms, max_entries=config.cache_max_entries),
            metrics=metrics,
            policy=BreakerPolicy(
                threshold=config.breaker_threshold,
                window_ms=config.breaker_window_ms,
                cooldown_ms=config.breaker_cooldown_ms,
            ),
            use_primary=config.use_openai,
            use_secondary=config.use_huggingface,
            timeout_ms=config.adapter_timeout_ms,
        )

    def get_response(self, message: str) -> str:
        """Synchronous deterministic reply (no providers involved)."""
        return compute_response(message)

    async def get_bot_response(self, message: str) -> str:
        """Route a message to a provider tier.

        Never raises: any failure that escapes the tiers is logged and
        answered with the deterministic reply.

        Args:
            message: The (already validated) user message

        Returns:
            The reply text
        """
        try:
            return await self._route(message)
        except Exception:
            logger.exception("Error routing message, falling back to deterministic reply")
            return compute_response(message)

    async def _route(self, message: str) -> str:
        text = message.lower()

        if any(keyword in text for keyword in TASK_KEYWORDS):
            return await self._call(self._task, message)

        if self.primary_enabled:
            return await self._route_primary(message)

        if self.secondary_enabled:
            return await self._call(self._secondary, message)

        return await self._route_default(message)

    async def _route_primary(self, message: str) -> str:
        provider = self._primary

        if await self._breaker_is_open():
            logger.warning("%s circuit is open; falling back to deterministic reply", provider.name)
            return compute_response(message)

        try:
            reply = await self._call(provider, message)
        except Exception as e:
            await self._record_failure()
            logger.warning("%s adapter error, falling back: %s", provider.name, e)
            return compute_response(message)

        await self._prune_failures()
        return reply

    async def _route_default(self, message: str) -> str:
        key = cache_key(message)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            reply = await self._call(self._default, message)
        except Exception:
            self._remember(key, compute_response(message))
            raise

        self._remember(key, reply)
        return reply

    async def _call(self, provider: ResponseProvider, message: str) -> str:
        """Call a provider under the deadline, timing it and counting errors."""
        with self._metrics.time_adapter(provider.name, provider.model):
            try:
                reply = await call_with_timeout(lambda: provider.respond(message), self._timeout_ms)
                if not isinstance(reply, str):
                    raise AdapterError(
                        f"{provider.name} returned a non-string reply ({type(reply).__name__})",
                        provider=provider.name,
                    )
            except Exception:
                self._metrics.record_adapter_error(provider.name, provider.model)
                raise
        return reply

    def _remember(self, key: str, value: str) -> None:
        self._cache.purge_expired()
        self._cache.set(key, value)

    async def _breaker_is_open(self) -> bool:
        try:
            if await self._breaker.is_open():
                return True
        except Exception as e:
            logger.warning("Breaker store unavailable, using in-process state: %s", e)
        return await self._fallback_breaker.is_open()

    async def _record_failure(self) -> None:
        now = self._clock()
        policy = self._policy
        try:
            state = await self._breaker.record_failure(now, policy.window_ms, policy.threshold, policy.cooldown_ms)
        except Exception as e:
            logger.warning("Breaker store failed to record failure, using in-process state: %s", e)
            state = await self._fallback_breaker.record_failure(
                now, policy.window_ms, policy.threshold, policy.cooldown_ms
            )
        self._publish(state, now)

    async def _prune_failures(self) -> None:
        try:
            await self._breaker.prune(self._policy.window_ms)
        except Exception as e:
            logger.warning("Breaker store failed to prune failures: %s", e)
        if self._fallback_breaker is not self._breaker:
            await self._fallback_breaker.prune(self._policy.window_ms)

    def _publish(self, state: BreakerState, now: int) -> None:
        self._metrics.update_breaker(self._primary.name, state, self._policy.cooldown_ms, now)

    async def breaker_state(self) -> BreakerState:
        """Return the primary breaker state and refresh its gauges.

        Failures outside the window are pruned first, so the failure gauge
        only counts the current window.
        """
        window_ms = self._policy.window_ms
        try:
            await self._breaker.prune(window_ms)
            state = await self._breaker.get_state()
        except Exception as e:
            logger.warning("Breaker store unavailable, reporting in-process state: %s", e)
            await self._fallback_breaker.prune(window_ms)
            state = await self._fallback_breaker.get_state()
        self._publish(state, self._clock())
        return state

    async def close(self) -> None:
        """Release provider network resources."""
        for provider in (self._task, self._primary, self._secondary, self._default):
            await provider.close()

    @property
    def primary_enabled(self) -> bool:
        return self._use_primary and self._primary.is_available()

    @property
    def secondary_enabled(self) -> bool:
        return self._use_secondary and self._secondary.is_available()

    @property
    def breaker_store(self) -> BreakerStore:
        """Get the breaker store (for readiness checks and testing)."""
        return self._breaker

    @property
    def cache(self) -> ResultCache:
        """Get the result cache (for testing)."""
        return self._cache

    @property
    def metrics(self) -> RelayMetrics:
        return self._metrics

    @property
    def policy(self) -> BreakerPolicy:
        return self._policy
