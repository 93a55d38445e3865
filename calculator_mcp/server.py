"""
MCP HTTP Server

FastAPI application exposing the calculator capabilities over MCP's
streamable HTTP transport, with one session per connected client.

Routes:
- POST /mcp    create a session (initialize) or continue one
- GET /mcp     open the server-initiated SSE stream of a session
- DELETE /mcp  terminate a session
- GET /health  liveness check

Protocol framing is handled by the SDK transport each session owns. These
routes only decide admission and hand the exchange over.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from mcp.server.streamable_http import StreamableHTTPServerTransport

from .config import MCP_ENDPOINT_PATH, MCP_SESSION_HEADER, SERVER_NAME, SERVER_VERSION, Settings
from .errors import InvalidInitialization, SessionAdmissionError
from .models import CapabilityIndex, ErrorCode, HealthStatus, make_error_response
from .registry import CapabilityRegistry, create_default_registry
from .transport import HttpSessionManager, TransportResponse

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Application Lifecycle
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Run the session manager for as long as the app is up."""
    sessions: HttpSessionManager = app.state.sessions
    async with sessions.run():
        yield


# -----------------------------------------------------------------------------
# Error Responses
# -----------------------------------------------------------------------------


def error_envelope(
    status_code: int,
    code: ErrorCode,
    message: str,
    request_id: int | str | None = None,
) -> JSONResponse:
    """JSON-RPC error envelope, with a null id unless the request's id is known."""
    error = make_error_response(request_id, code, message)
    return JSONResponse(content=error.model_dump(), status_code=status_code)


def internal_error() -> JSONResponse:
    return error_envelope(500, ErrorCode.INTERNAL_ERROR, "Internal server error")


def invalid_session() -> PlainTextResponse:
    return PlainTextResponse("Bad Request: Invalid or missing session ID", status_code=400)


# -----------------------------------------------------------------------------
# MCP Routes
# -----------------------------------------------------------------------------

router = APIRouter()


def _sessions(request: Request) -> HttpSessionManager:
    return request.app.state.sessions


@router.post(MCP_ENDPOINT_PATH)
async def mcp_post(
    request: Request,
    mcp_session_id: str | None = Header(default=None),
) -> Response:
    """
    Main MCP endpoint accepting JSON-RPC messages.

    An initialize request without a session id opens a new session; the
    transport answers with the new id in the mcp-session-id header. If the
    transport rejects that first exchange, the new session is torn down
    again. Every other message must carry the id of a live session.
    """
    sessions = _sessions(request)
    try:
        body = await request.body()
        try:
            payload = json.loads(body) if body else None
        except ValueError:
            # The transport reports parse errors for admitted sessions
            payload = None
        transport = await sessions.admit(mcp_session_id, payload)
    except InvalidInitialization as e:
        logger.warning(f"Rejected initialize request {e.request_id!r}: {e}")
        return error_envelope(400, ErrorCode.INVALID_PARAMS, str(e), e.request_id)
    except SessionAdmissionError as e:
        logger.warning(f"Rejected POST for session {e.session_id!r}: {e}")
        return error_envelope(400, ErrorCode.NO_VALID_SESSION, str(e))
    except Exception:
        logger.exception("Error handling POST request")
        return internal_error()

    if mcp_session_id is not None:
        return TransportResponse(transport, body, on_error=internal_error)

    async def discard_if_rejected(opened: StreamableHTTPServerTransport, status_code: int | None) -> None:
        if status_code is None or status_code >= 400:
            logger.warning(f"Initialize rejected with status {status_code}, discarding session")
            await sessions.terminate(opened.mcp_session_id)

    return TransportResponse(transport, body, on_complete=discard_if_rejected, on_error=internal_error)


@router.get(MCP_ENDPOINT_PATH)
async def mcp_get(
    request: Request,
    mcp_session_id: str | None = Header(default=None),
) -> Response:
    """
    Open the server-to-client notification stream of a session.

    The session counts as active for as long as the stream stays open.
    """
    sessions = _sessions(request)
    try:
        transport = sessions.resolve(mcp_session_id)
    except Exception:
        logger.exception("Error handling GET request")
        return internal_error()

    if transport is None or mcp_session_id is None:
        return invalid_session()

    sessions.sessions.stream_opened(mcp_session_id)

    async def stream_closed(closed: StreamableHTTPServerTransport, status_code: int | None) -> None:
        sessions.sessions.stream_closed(mcp_session_id)

    return TransportResponse(transport, on_complete=stream_closed, on_error=internal_error)


@router.delete(MCP_ENDPOINT_PATH)
async def mcp_delete(
    request: Request,
    mcp_session_id: str | None = Header(default=None),
) -> Response:
    """Terminate a session. The session is gone before the response completes."""
    sessions = _sessions(request)
    try:
        transport = sessions.resolve(mcp_session_id)
    except Exception:
        logger.exception("Error handling DELETE request")
        return internal_error()

    if transport is None or mcp_session_id is None:
        return invalid_session()

    async def drop_terminated(closed: StreamableHTTPServerTransport, status_code: int | None) -> None:
        if closed.is_terminated:
            sessions.sessions.remove(mcp_session_id)

    return TransportResponse(transport, on_complete=drop_terminated, on_error=internal_error)


@router.get("/health")
async def health(request: Request) -> HealthStatus:
    """Health check endpoint."""
    return HealthStatus(activeSessions=_sessions(request).sessions.count())


@router.get("/capabilities")
async def list_capabilities(request: Request) -> CapabilityIndex:
    """
    Convenience endpoint listing registered capability names.

    Not part of MCP - just useful for debugging and exploration.
    In production, use the tools/list, resources/list and prompts/list methods.
    """
    registry: CapabilityRegistry = request.app.state.registry
    return registry.index()


# -----------------------------------------------------------------------------
# FastAPI Application
# -----------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    registry: CapabilityRegistry | None = None,
) -> FastAPI:
    """Build the HTTP application around one session manager."""
    settings = settings or Settings()
    registry = registry or create_default_registry()

    app = FastAPI(
        title="Calculator MCP Server",
        description=(
            "Calculator tools, project resources and prompt templates "
            "served over the Model Context Protocol."
        ),
        version=SERVER_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.sessions = HttpSessionManager(
        registry,
        json_response=settings.json_response,
        idle_timeout=settings.session_idle_timeout,
        sweep_interval=settings.session_sweep_interval,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
        expose_headers=[MCP_SESSION_HEADER],
    )
    app.include_router(router)

    logger.debug(f"{SERVER_NAME} HTTP application created")
    return app
