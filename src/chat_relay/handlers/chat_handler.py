"""HTTP handlers for chat operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes and error envelopes.
"""

import logging

from fastapi import HTTPException, status

from chat_relay.config import settings
from chat_relay.dto import ChatRequest, ChatResponse, ReadyResponse
from chat_relay.services import ResponseRouter

logger = logging.getLogger(__name__)


class ChatHandler:
    """HTTP handlers for chat operations.

    This handler delegates routing to ResponseRouter and handles
    HTTP-specific concerns like:
    - Converting replies to DTOs
    - Mapping router defects to a generic 500
    - Readiness and metrics rendering

    Example:
        ```python
        router = ResponseRouter.create(breaker_store=MemoryBreakerStore("openai"))
        handler = ChatHandler(router=router)

        @app.post("/api/chat", response_model=ChatResponse)
        async def chat(request: ChatRequest):
            return await handler.chat(request)
        ```
    """

    def __init__(self, router: ResponseRouter, max_message_length: int | None = None) -> None:
        """Initialize the chat handler.

        Args:
            router: The response router for business logic (required).
            max_message_length: Longest accepted message after trimming.
                Defaults to settings.
        """
        self._router = router
        self._max_message_length = settings.max_message_length if max_message_length is None else max_message_length

    def _check_length(self, message: str) -> None:
        if len(message) > self._max_message_length:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="message is too long")

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Handle POST /api/chat requests.

        Raises:
            HTTPException: 400 if the message is too long, 500 with a generic
                message if the router itself fails
        """
        self._check_length(request.message)
        try:
            reply = await self._router.get_bot_response(request.message)
            response = ChatResponse(reply=reply)
        except Exception as e:
            logger.exception("Chat handler error")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to process chat",
            ) from e
        return response

    async def message(self, request: ChatRequest) -> ChatResponse:
        """Handle POST /api/message requests (deterministic replies only)."""
        self._check_length(request.message)
        try:
            reply = self._router.get_response(request.message)
            response = ChatResponse(reply=reply)
        except Exception as e:
            logger.exception("Message handler error")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to process message",
            ) from e
        return response

    async def ready(self) -> ReadyResponse:
        """Handle GET /ready requests.

        Raises:
            HTTPException: 503 if the breaker store is unreachable
        """
        if not await self._router.breaker_store.health_check():
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Breaker store unavailable",
            )
        return ReadyResponse(ready=True)

    async def metrics(self) -> bytes:
        """Handle GET /metrics requests.

        Refreshes the breaker gauges before rendering.
        """
        await self._router.breaker_state()
        return self._router.metrics.render()
