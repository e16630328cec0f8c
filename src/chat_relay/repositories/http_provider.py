"""Shared plumbing for HTTP-based response providers.

Concrete providers only build the request and parse the reply; this base
class owns the async client, status handling and retry with exponential
backoff (``base × 2^attempt``).
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from chat_relay.errors import AdapterError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HTTPProvider(ABC):
    """Base class for providers reached over HTTP.

    Subclasses set ``name`` and implement :meth:`_request`.
    """

    name: str = "http"

    DEFAULT_TIMEOUT = 15.0

    def __init__(
        self,
        model: str,
        attempts: int = 3,
        backoff_base_ms: int = 250,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            model: Model identity sent upstream and used in metric labels.
            attempts: Total attempts per message (first call plus retries).
            backoff_base_ms: Base delay; the wait after attempt n is base × 2^n.
            timeout: Per-request HTTP timeout in seconds.
            client: Shared httpx client. If None, one is created lazily.
        """
        self._model = model
        self._attempts = max(1, attempts)
        self._backoff_base_ms = backoff_base_ms
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @property
    def model(self) -> str:
        return self._model

    def is_available(self) -> bool:
        return True

    async def respond(self, message: str) -> str:
        """Generate a reply, retrying transient failures with backoff.

        Raises:
            AdapterError: If every attempt fails
        """
        return await self._with_retries(self._request, message)

    async def _with_retries(self, call: Callable[..., Awaitable[T]], *args: Any) -> T:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(AdapterError),
            stop=stop_after_attempt(self._attempts),
            # tenacity's first wait is multiplier × 2^0, so double the base
            wait=wait_exponential(multiplier=2 * self._backoff_base_ms / 1000, exp_base=2),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await call(*args)
        raise AdapterError(f"{self.name} adapter failed", provider=self.name)  # pragma: no cover

    @abstractmethod
    async def _request(self, message: str) -> str:
        """Send one request upstream and parse the reply."""

    async def _post_json(self, url: str, payload: dict[str, Any], headers: dict[str, str]) -> Any:
        """POST a JSON payload and decode the JSON reply.

        Raises:
            AdapterError: On transport errors, non-2xx status or a non-JSON body
        """
        try:
            response = await self.client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise AdapterError(f"{self.name} request failed: {e}", provider=self.name) from e

        if response.is_error:
            raise AdapterError(
                f"{self.name} API error {response.status_code}: {response.text[:200]}",
                provider=self.name,
            )

        try:
            return response.json()
        except ValueError as e:
            raise AdapterError(f"{self.name} returned a non-JSON body", provider=self.name) from e

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
