"""
FastAPI server bridging telephony meeting calls to a conversational AI agent.

This module initializes and configures the FastAPI application. A call is started
through ``/initiate-call``; the telephony provider then fetches ``/call-instructions``
and opens the ``/media-stream`` WebSocket, whose audio is relayed to and from the
agent platform until either side hangs up.

The session registry is created when the application starts and torn down when it
stops; the HTTP handlers and the media-stream manager receive it through ``app.state``.
"""

import os
from contextlib import asynccontextmanager
from pathlib import Path

import dotenv
from fastapi import FastAPI, WebSocket
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from voice_bridge.config.constants import (
    DEFAULT_OUTBOUND_QUEUE_SIZE,
    DEFAULT_SESSION_TTL_SECONDS,
    MEDIA_STREAM_PATH,
)
from voice_bridge.config.logging_config import configure_logging
from voice_bridge.errors import BridgeError, InvalidRequest
from voice_bridge.handlers.call_handlers import router as call_router
from voice_bridge.models.api_schemas import ErrorResponse, HealthResponse
from voice_bridge.models.session import SessionRegistry
from voice_bridge.websocket_manager import WebSocketManager

# Load environment variables from .env file if it exists
env_path = Path(".") / ".env"
if env_path.exists():
    dotenv.load_dotenv(env_path)

# Configure logging
logger = configure_logging()

# Get configuration from environment variables
PORT = int(os.getenv("PORT", "3000"))
HOST = os.getenv("HOST", "0.0.0.0")
SESSION_TTL_SECONDS = float(os.getenv("SESSION_TTL_SECONDS", DEFAULT_SESSION_TTL_SECONDS))
OUTBOUND_QUEUE_SIZE = int(os.getenv("OUTBOUND_QUEUE_SIZE", DEFAULT_OUTBOUND_QUEUE_SIZE))
STATIC_DIR = Path(os.getenv("STATIC_DIR", Path(__file__).resolve().parent.parent / "public"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the session registry for the lifetime of the application."""
    registry = SessionRegistry(ttl_seconds=SESSION_TTL_SECONDS)
    app.state.session_registry = registry
    app.state.websocket_manager = WebSocketManager(registry, queue_size=OUTBOUND_QUEUE_SIZE)
    logger.info(f"Session registry started (TTL: {SESSION_TTL_SECONDS:.0f}s)")
    yield
    await app.state.websocket_manager.close_all()
    registry.close()


# Create FastAPI application
app = FastAPI(
    title="Meeting Voice Bridge",
    description="Connects telephony meeting dial-ins to a conversational AI agent",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(BridgeError)
async def bridge_error_handler(request, exc: BridgeError):
    body = ErrorResponse(error=exc.detail)
    if isinstance(exc, InvalidRequest) and exc.missing_fields:
        body.missingFields = exc.missing_fields
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request, exc: RequestValidationError):
    """Malformed bodies get the same 400 shape as requests with missing fields."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    logger.warning(f"Rejected malformed request to {request.url.path}: {problems}")
    body = ErrorResponse(
        error="Malformed request body",
        details="; ".join(problems),
    )
    return JSONResponse(status_code=InvalidRequest.status_code, content=body.model_dump(exclude_none=True))


app.include_router(call_router)


@app.websocket(MEDIA_STREAM_PATH)
async def media_stream_endpoint(websocket: WebSocket):
    """Media-stream WebSocket opened by the telephony provider.

    The ``sessionId`` query parameter selects the session whose agent credentials
    are used for the agent side of the bridge. Unknown or expired sessions are closed
    immediately.
    """
    await websocket.app.state.websocket_manager.handle_websocket(websocket)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint for monitoring system status."""
    registry = getattr(app.state, "session_registry", None)
    return HealthResponse(
        message="Meeting Voice Bridge is running",
        active_sessions=len(registry) if registry is not None else 0,
    )


# Operator UI; mounted last so the API routes above take precedence
if STATIC_DIR.is_dir():
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on http://{HOST}:{PORT}")
    uvicorn.run(
        app,
        host=HOST,
        port=PORT,
        ws_ping_interval=20,
        ws_max_size=16777216,  # 16MB - large enough for audio chunks
        http="h11",
    )
