"""
Bedrock Relay - FastAPI application.

Browser clients POST a chat turn plus their running history to /api/chat.
The relay builds an InvokeModel request, sends it to Bedrock with the
configured bearer token and hands back whatever Bedrock returned.

Every response, including errors and CORS preflights, carries the same
CORS headers so the browser can read all outcomes.
"""
import json
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .exceptions import ClientInputError, NotFoundError, RelayError
from .invoker import UpstreamInvoker
from .models import ChatRequest, ChatResponse, ErrorResponse, HealthResponse
from .translator import build_headers, endpoint_url, translate

logger = logging.getLogger(__name__)


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Settings) -> logging.Logger:
    """
    Route relay logs to stdout, and to LOG_PATH when one is set.

    httpx logs every request line at INFO, which would put each Bedrock
    URL in the log twice; it is held at WARNING unless the relay itself
    runs at DEBUG.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_path = Path(settings.log_path) if settings.log_path else None
    file_error = None
    if log_path is not None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path))
        except OSError as e:
            log_path, file_error = None, e

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING)

    relay_logger = logging.getLogger("bedrock_relay")
    if file_error is not None:
        relay_logger.error("Failed to open relay log file %s: %s", settings.log_path, file_error)
    relay_logger.info(
        "Relay logging at %s%s",
        logging.getLevelName(log_level),
        f", file {log_path}" if log_path else "",
    )
    return relay_logger


def cors_headers(settings: Settings) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.allow_origin,
        "Access-Control-Allow-Headers": "content-type",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
    }


def error_response(error: RelayError) -> JSONResponse:
    return JSONResponse(
        status_code=error.http_status,
        content=ErrorResponse(error=error.message).model_dump(),
    )


def _as_text(value: Any) -> str:
    """
    Coerce a JSON value to text the way a browser's String() would.

    null becomes "", whole floats lose their ".0", arrays join their items
    with commas and objects become "[object Object]".
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return ",".join(_as_text(item) for item in value)
    return "[object Object]"


def parse_chat_request(raw: bytes) -> ChatRequest:
    """
    Validate an inbound chat body.

    An empty body counts as {}. A history that is not a JSON array is
    dropped rather than rejected; only the message itself is required.

    Raises:
        ClientInputError: The body is not JSON, or the message is blank
    """
    try:
        parsed = json.loads(raw) if raw.strip() else {}
    except ValueError as e:
        raise ClientInputError(f"Invalid JSON body: {e}") from e

    if not isinstance(parsed, dict):
        parsed = {}

    message = _as_text(parsed.get("message"))
    history = parsed.get("conversationHistory")
    if not isinstance(history, list):
        history = []

    if not message.strip():
        raise ClientInputError("message is required")

    return ChatRequest(message=message, conversation_history=tuple(history))


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Create the relay application.

    Args:
        settings: Configuration snapshot; defaults to get_settings()
        client: HTTP client for Bedrock calls; one is created when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    invoker = UpstreamInvoker(settings, client)
    headers_for_cors = cors_headers(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Bedrock relay starting up")
        logger.info("Region: %s", settings.region)
        logger.info("Model: %s", settings.model_id)
        logger.info("Allowed origin: %s", settings.allow_origin)
        if not settings.has_credentials:
            logger.warning("AWS_BEARER_TOKEN_BEDROCK not set; chat requests will fail until it is")

        yield

        logger.info("Bedrock relay shutting down")
        await invoker.aclose()

    app = FastAPI(
        title="Bedrock Relay",
        description="Forwards chat turns to Amazon Bedrock",
        version="1.0.0",
        lifespan=lifespan,
    )
    # /api/chat/ and /health/ are unknown routes, not redirects
    app.router.redirect_slashes = False
    app.state.settings = settings
    app.state.invoker = invoker

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        # Preflights never reach routing
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=headers_for_cors)

        response = await call_next(request)
        response.headers.update(headers_for_cors)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Unknown paths and known paths with the wrong method look the same
        if exc.status_code in (404, 405):
            return error_response(NotFoundError())
        return error_response(RelayError(str(exc.detail), exc.status_code))

    @app.get("/health", response_model=HealthResponse)
    async def health():
        """Liveness check; does not depend on credentials."""
        return HealthResponse(ok=True)

    @app.post("/api/chat", response_model=ChatResponse)
    async def chat(request: Request):
        """Relay one chat turn to Bedrock."""
        try:
            chat_request = parse_chat_request(await request.body())

            payload = translate(chat_request.message, chat_request.conversation_history)
            result = await invoker.invoke(payload, build_headers(settings), endpoint_url(settings))

            return JSONResponse(content=ChatResponse(response=result).model_dump())

        except RelayError as e:
            if e.http_status < 500:
                logger.warning("Chat request rejected (%d): %s", e.http_status, e.message)
            else:
                logger.error("Chat request failed (%d): %s", e.http_status, e.message)
            return error_response(e)
        except Exception as e:
            logger.error("Chat error: %s", e, exc_info=True)
            return error_response(RelayError(str(e) or "Unknown error"))

    return app


def run():
    """Run the relay with uvicorn."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings)
    logger.info("Bedrock relay listening on http://%s:%d", settings.host, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
