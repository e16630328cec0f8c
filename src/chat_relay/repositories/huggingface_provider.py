"""Hugging Face Inference API provider (secondary tier).

Requires ``HUGGINGFACE_API_KEY``. Without it, :meth:`HuggingFaceProvider.create`
returns a disabled provider instead.

Models answer in several shapes, all accepted:
- ``[{"generated_text": "..."}]`` (text2text / conversational models)
- ``["...", "..."]``
- ``{"generated_text": "..."}``
- ``"..."``
"""

import json
from typing import Any

import httpx

from chat_relay.config import Settings, settings
from chat_relay.errors import AdapterError
from chat_relay.protocols import ResponseProvider

from .disabled_provider import DisabledProvider
from .http_provider import HTTPProvider


class HuggingFaceProvider(HTTPProvider):
    """Hugging Face implementation of ResponseProvider."""

    name = "huggingface"

    API_URL = "https://api-inference.huggingface.co/models"

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        attempts: int | None = None,
        max_new_tokens: int | None = None,
        backoff_base_ms: int = 200,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Hugging Face provider.

        Args:
            api_key: Hugging Face API token.
            model: Model id. Defaults to settings.huggingface_model.
            attempts: Total attempts. Defaults to settings.huggingface_retries.
            max_new_tokens: Optional generation limit.
            backoff_base_ms: Base backoff delay in milliseconds.
            client: Shared httpx client.
        """
        super().__init__(
            model=model or settings.huggingface_model,
            attempts=settings.huggingface_retries if attempts is None else attempts,
            backoff_base_ms=backoff_base_ms,
            client=client,
        )
        self._api_key = api_key
        self._max_new_tokens = max_new_tokens

    @classmethod
    def create(cls, config: Settings | None = None) -> ResponseProvider:
        """Factory method returning a live or disabled provider."""
        config = config or settings
        if not config.huggingface_api_key:
            return DisabledProvider(cls.name, config.huggingface_model, "HUGGINGFACE_API_KEY not set")
        return cls(
            api_key=config.huggingface_api_key,
            model=config.huggingface_model,
            attempts=config.huggingface_retries,
        )

    async def _request(self, message: str) -> str:
        payload: dict[str, Any] = {"inputs": message}
        if self._max_new_tokens is not None:
            payload["parameters"] = {"max_new_tokens": self._max_new_tokens}

        data = await self._post_json(
            f"{self.API_URL}/{self._model}",
            payload=payload,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        return parse_generation(data)


def parse_generation(data: Any) -> str:
    """Extract generated text from an inference API body.

    Raises:
        AdapterError: If the body carries an ``error`` field
    """
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    if isinstance(data, list) and data:
        first = data[0]
        if isinstance(first, dict) and isinstance(first.get("generated_text"), str):
            return first["generated_text"]
        if isinstance(first, str):
            return "\n".join(str(item) for item in data)
    if isinstance(data, dict):
        if isinstance(data.get("generated_text"), str):
            return data["generated_text"]
        if data.get("error"):
            raise AdapterError(f"Hugging Face error: {data['error']}", provider=HuggingFaceProvider.name)
    return json.dumps(data)
