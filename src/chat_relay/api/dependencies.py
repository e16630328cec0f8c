"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Settings and metrics stored in app.state by the app factory
    - Breaker store, router and handler stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - No ambient global lookup of the breaker state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from chat_relay.config import Settings
from chat_relay.handlers import ChatHandler
from chat_relay.metrics import RelayMetrics
from chat_relay.protocols import BreakerStore
from chat_relay.repositories import MemoryBreakerStore, RedisBreakerStore
from chat_relay.services import ResponseRouter

logger = logging.getLogger(__name__)


def build_breaker_store(config: Settings, provider: str = "openai") -> BreakerStore:
    """Select the breaker backend once, at startup.

    Redis is used when ``REDIS_URL`` is set. If the client cannot be built,
    the in-process store is used instead of failing startup.

    Args:
        config: Application settings
        provider: Name of the guarded provider

    Returns:
        A BreakerStore implementation
    """
    if not config.uses_shared_breaker:
        logger.info("Using in-memory circuit store")
        return MemoryBreakerStore(provider)

    try:
        store = RedisBreakerStore.create(
            redis_url=config.redis_url,
            provider=provider,
            prefix=config.redis_cb_prefix,
            password=config.redis_password,
        )
    except Exception as e:
        logger.warning("Failed to initialize Redis client, falling back to in-memory circuit: %s", e)
        return MemoryBreakerStore(provider)

    logger.info("Using Redis-backed circuit store")
    return store


def get_handler(request: Request) -> ChatHandler:
    """Dependency injection for ChatHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The ChatHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "chat_handler", None)
    if handler is None:
        raise RuntimeError("ChatHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Breaker store (data access) - redis or in-memory
    2. Router (business logic) - stored in app.state.router
    3. Handler (HTTP endpoints) - stored in app.state.chat_handler

    Args:
        app: The FastAPI application instance

    Yields:
        None

    Cleanup:
        Closes provider clients and the redis connection, then removes
        services from app.state
    """
    config: Settings = app.state.settings
    metrics: RelayMetrics = app.state.metrics

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    breaker_store = build_breaker_store(config)
    router = ResponseRouter.create(breaker_store=breaker_store, metrics=metrics, config=config)

    app.state.breaker_store = breaker_store
    app.state.router = router
    app.state.chat_handler = ChatHandler(router=router, max_message_length=config.max_message_length)

    # Publish the current (possibly shared) breaker state before the first request
    await router.breaker_state()

    logger.info(
        "Chat relay started: primary=%s secondary=%s timeout=%dms cache_ttl=%dms",
        "on" if router.primary_enabled else "off",
        "on" if router.secondary_enabled else "off",
        config.adapter_timeout_ms,
        config.cache_ttl_ms,
    )
    if config.use_openai and not router.primary_enabled:
        logger.warning("USE_OPENAI is set but OPENAI_API_KEY is missing; primary tier disabled")
    if config.use_huggingface and not router.secondary_enabled:
        logger.warning("USE_HUGGINGFACE is set but HUGGINGFACE_API_KEY is missing; secondary tier disabled")

    yield

    await router.close()
    close = getattr(breaker_store, "close", None)
    if close is not None:
        await close()

    del app.state.chat_handler
    del app.state.router
    del app.state.breaker_store
    logger.info("Chat relay shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[ChatHandler, Depends(get_handler)]
