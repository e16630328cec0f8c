"""Copilot task provider (bookings, calculations and other structured tasks).

Posts ``{"task": message}`` to ``COPILOT_API_URL`` and reads ``result``.
"""

import httpx

from chat_relay.config import Settings, settings
from chat_relay.errors import AdapterError
from chat_relay.protocols import ResponseProvider

from .disabled_provider import DisabledProvider
from .http_provider import HTTPProvider


class CopilotProvider(HTTPProvider):
    """Copilot implementation of ResponseProvider."""

    name = "copilot"

    def __init__(
        self,
        api_url: str,
        api_key: str | None = None,
        model: str | None = None,
        retries: int = 2,
        backoff_base_ms: int = 250,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            model=model or settings.copilot_model,
            attempts=retries + 1,
            backoff_base_ms=backoff_base_ms,
            client=client,
        )
        self._api_url = api_url
        self._api_key = api_key

    @classmethod
    def create(cls, config: Settings | None = None) -> ResponseProvider:
        """Factory method returning a live or disabled provider."""
        config = config or settings
        if not config.copilot_api_url:
            return DisabledProvider(cls.name, config.copilot_model, "COPILOT_API_URL not set")
        return cls(
            api_url=config.copilot_api_url,
            api_key=config.copilot_api_key,
            model=config.copilot_model,
            retries=config.provider_retries,
        )

    async def _request(self, message: str) -> str:
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        data = await self._post_json(self._api_url, payload={"task": message, "model": self._model}, headers=headers)

        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, str) or not result:
            raise AdapterError("copilot returned no result", provider=self.name)
        return result
