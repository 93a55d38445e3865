"""
Streamable HTTP Session Layer

Multiplexes many MCP sessions over one HTTP endpoint.

Every session owns one SDK StreamableHTTPServerTransport and one protocol
server, both running inside this manager's task group. The FastAPI routes
in server.py decide admission through this manager and then hand the raw
ASGI exchange to the session's transport via TransportResponse.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import anyio
import mcp.types as types
from anyio.abc import TaskGroup, TaskStatus
from mcp.server.streamable_http import StreamableHTTPServerTransport
from pydantic import ValidationError
from starlette.responses import Response
from starlette.types import Message, Receive, Scope, Send

from .config import SESSION_IDLE_TIMEOUT_SECONDS, SESSION_SWEEP_INTERVAL_SECONDS
from .errors import InvalidInitialization, SessionAdmissionError, TransportFailure
from .protocol import build_server
from .registry import CapabilityRegistry
from .sessions import SessionRegistry

logger = logging.getLogger(__name__)


def is_initialize_request(payload: Any) -> bool:
    """True if payload is a single JSON-RPC initialize request."""
    return (
        isinstance(payload, dict)
        and payload.get("jsonrpc") == "2.0"
        and payload.get("method") == "initialize"
        and "id" in payload
    )


def initialize_params_valid(payload: dict[str, Any]) -> bool:
    """True if an initialize request's params match the SDK's schema."""
    try:
        types.InitializeRequestParams.model_validate(payload.get("params"))
    except ValidationError:
        return False
    return True


class HttpSessionManager:
    """
    Owns the session registry and the tasks serving each session.

    Must be entered with run() (the FastAPI lifespan does this) before any
    session can be opened.
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        *,
        json_response: bool = False,
        idle_timeout: float | None = SESSION_IDLE_TIMEOUT_SECONDS,
        sweep_interval: float = SESSION_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.registry = registry
        self.json_response = json_response
        self.sweep_interval = sweep_interval
        self.sessions: SessionRegistry[StreamableHTTPServerTransport] = SessionRegistry(
            self._new_transport,
            idle_timeout=idle_timeout,
            clock=clock or time.monotonic,
        )
        self._task_group: TaskGroup | None = None

    def _new_transport(self, session_id: str) -> StreamableHTTPServerTransport:
        return StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=self.json_response,
        )

    @property
    def running(self) -> bool:
        return self._task_group is not None

    @asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """Serve sessions and sweep idle ones until the context exits."""
        if self._task_group is not None:
            raise TransportFailure("Session manager is already running")

        async with anyio.create_task_group() as tg:
            self._task_group = tg
            tg.start_soon(self._sweep_periodically)
            logger.info("MCP HTTP session manager started")
            try:
                yield
            finally:
                logger.info(f"Stopping MCP HTTP session manager, closing {self.sessions.count()} sessions")
                tg.cancel_scope.cancel()
                self._task_group = None

        self.sessions.clear()

    # -------------------------------------------------------------------------
    # Admission
    # -------------------------------------------------------------------------

    def resolve(self, session_id: str | None) -> StreamableHTTPServerTransport | None:
        """Live transport for session_id, or None. Terminated transports are dropped."""
        if not session_id:
            return None
        transport = self.sessions.lookup(session_id)
        if transport is None:
            return None
        if transport.is_terminated:
            self.sessions.remove(session_id)
            return None
        logger.debug(f"Reusing transport for session: {session_id}")
        return transport

    async def admit(self, session_id: str | None, payload: Any) -> StreamableHTTPServerTransport:
        """
        Apply the admission policy to a POST.

        Known session id -> its transport. No id and an initialize payload ->
        a brand-new session. An initialize payload with malformed params ->
        InvalidInitialization, before any session exists. Anything else ->
        SessionAdmissionError.
        """
        transport = self.resolve(session_id)
        if transport is not None:
            return transport
        if session_id is None and is_initialize_request(payload):
            if not initialize_params_valid(payload):
                raise InvalidInitialization(
                    "Invalid params for initialize",
                    request_id=payload["id"],
                )
            _, transport = await self.open_session()
            return transport
        raise SessionAdmissionError(
            "Bad Request: No valid session ID provided",
            session_id=session_id,
        )

    # -------------------------------------------------------------------------
    # Session Lifecycle
    # -------------------------------------------------------------------------

    async def open_session(self) -> tuple[str, StreamableHTTPServerTransport]:
        """Create a session and start its protocol server."""
        if self._task_group is None:
            raise TransportFailure("Session manager is not running")

        session_id, transport = self.sessions.create()
        try:
            await self._task_group.start(self._serve_session, session_id, transport)
        except BaseException:
            self.sessions.remove(session_id)
            raise
        logger.info("MCP server connected with new transport")
        return session_id, transport

    async def _serve_session(
        self,
        session_id: str,
        transport: StreamableHTTPServerTransport,
        *,
        task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        server = build_server(self.registry)
        try:
            async with transport.connect() as (read_stream, write_stream):
                task_status.started()
                await server.run(
                    read_stream,
                    write_stream,
                    server.create_initialization_options(),
                    stateless=False,
                )
        except Exception:
            logger.exception(f"Session {session_id} crashed")
        finally:
            self.sessions.remove(session_id)

    async def terminate(self, session_id: str) -> bool:
        """Close a session's transport and drop it from the registry."""
        session = self.sessions.get(session_id)
        if session is None:
            return False
        self.sessions.remove(session_id)
        await session.transport.terminate()
        return True

    async def sweep(self) -> int:
        """Terminate idle sessions. Returns the number of live sessions left."""
        for session in self.sessions.sweep():
            await session.transport.terminate()
        active = self.sessions.count()
        logger.debug(f"Active MCP HTTP sessions: {active}")
        return active

    async def _sweep_periodically(self) -> None:
        while True:
            await anyio.sleep(self.sweep_interval)
            await self.sweep()


# -----------------------------------------------------------------------------
# ASGI Hand-off
# -----------------------------------------------------------------------------


def _replay_body(body: bytes, receive: Receive) -> Receive:
    """Receive callable yielding an already-read body once, then the real channel."""
    replayed = False

    async def replay() -> Message:
        nonlocal replayed
        if not replayed:
            replayed = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


CompletionHook = Callable[[StreamableHTTPServerTransport, int | None], Awaitable[None]]


class TransportResponse(Response):
    """
    Response that delegates the whole exchange to a session transport.

    The route has already consumed the request body to make its admission
    decision, so the body is replayed to the transport. on_complete runs
    after the exchange with the HTTP status that was sent (None if nothing
    was), shielded from cancellation.
    """

    def __init__(
        self,
        transport: StreamableHTTPServerTransport,
        body: bytes = b"",
        *,
        on_complete: CompletionHook | None = None,
        on_error: Callable[[], Response] | None = None,
    ) -> None:
        super().__init__()
        self.transport = transport
        self.request_body = body
        self.on_complete = on_complete
        self.on_error = on_error

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        sent_status: int | None = None

        async def tracked_send(message: Message) -> None:
            nonlocal sent_status
            if message["type"] == "http.response.start":
                sent_status = message["status"]
            await send(message)

        try:
            await self.transport.handle_request(
                scope, _replay_body(self.request_body, receive), tracked_send
            )
        except Exception:
            logger.exception("Transport failed while handling request")
            if sent_status is None and self.on_error is not None:
                await self.on_error()(scope, receive, tracked_send)
        finally:
            if self.on_complete is not None:
                with anyio.CancelScope(shield=True):
                    await self.on_complete(self.transport, sent_status)
