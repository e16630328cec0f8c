from typing import Any

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chat_relay.api.dependencies import HandlerDep, lifespan
from chat_relay.config import Settings, settings
from chat_relay.dto import ChatRequest, ChatResponse, ErrorResponse, HealthCheckResponse, ReadyResponse
from chat_relay.metrics import CONTENT_TYPE_LATEST, RelayMetrics

VERSION = "0.1.0"


def validation_reason(exc: RequestValidationError) -> str:
    """Turn the first validation error into a short, user-facing reason."""
    errors = exc.errors()
    if not errors:
        return "invalid request"

    error = errors[0]
    if error["type"] == "missing":
        return "message is required"
    if error["type"] == "string_type":
        return "message must be a string"
    if error["type"] == "value_error":
        return str(error["ctx"]["error"])
    return error["msg"]


def create_app(config: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Settings for this app instance. Defaults to the global settings.

    Returns:
        The configured FastAPI app
    """
    app = FastAPI(
        title="Chat Relay API",
        description="Chat relay with provider routing, circuit breaking and deterministic fallback",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = config or settings
    app.state.metrics = RelayMetrics()

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def count_requests(request: Request, call_next):
        request.app.state.metrics.record_request()
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": validation_reason(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = "Not found" if exc.status_code == status.HTTP_404_NOT_FOUND else exc.detail
        return JSONResponse(status_code=exc.status_code, content={"error": detail}, headers=exc.headers)

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Chat Relay API",
            "version": VERSION,
            "endpoints": {
                "chat": "/api/chat",
                "message": "/api/message",
                "health": "/api/health",
                "ready": "/ready",
                "metrics": "/metrics",
                "docs": "/docs",
            },
        }

    @app.get("/api/health", response_model=HealthCheckResponse)
    async def health() -> HealthCheckResponse:
        """Liveness check."""
        return HealthCheckResponse(status="ok")

    @app.post(
        "/api/chat",
        response_model=ChatResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def chat(request: ChatRequest, handler: HandlerDep) -> ChatResponse:
        """Route a message through the provider tiers and return the reply."""
        return await handler.chat(request)

    @app.post(
        "/api/message",
        response_model=ChatResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def message(request: ChatRequest, handler: HandlerDep) -> ChatResponse:
        """Reply with the deterministic responder only."""
        return await handler.message(request)

    @app.get("/ready", response_model=ReadyResponse, responses={503: {"model": ErrorResponse}})
    async def ready(handler: HandlerDep) -> ReadyResponse:
        """Readiness check; pings the shared breaker store when configured."""
        return await handler.ready()

    @app.get("/metrics")
    async def metrics(handler: HandlerDep) -> Response:
        """Prometheus metrics."""
        return Response(content=await handler.metrics(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "chat_relay.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
