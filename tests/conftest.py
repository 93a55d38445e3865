"""
Shared test fixtures for the calculator MCP server tests.

Provides fake transports and clocks for session tests, registries, and an
in-process MCP-over-HTTP client for the FastAPI app.
"""

from __future__ import annotations

import copy
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

import anyio
import httpx
import pytest
from fastapi import FastAPI
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from calculator_mcp.config import MCP_ENDPOINT_PATH, MCP_SESSION_HEADER, Settings
from calculator_mcp.registry import CapabilityRegistry, create_default_registry
from calculator_mcp.server import create_app, lifespan
from calculator_mcp.sessions import SessionRegistry

# -----------------------------------------------------------------------------
# Test Data
# -----------------------------------------------------------------------------

PROTOCOL_VERSION = "2025-03-26"

INITIALIZE_REQUEST: dict[str, Any] = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "initialize",
    "params": {
        "protocolVersion": PROTOCOL_VERSION,
        "capabilities": {},
        "clientInfo": {"name": "test-client", "version": "1.0.0"},
    },
}

INITIALIZED_NOTIFICATION: dict[str, Any] = {
    "jsonrpc": "2.0",
    "method": "notifications/initialized",
}

MCP_HEADERS = {
    "Accept": "application/json, text/event-stream",
    "Content-Type": "application/json",
}


# -----------------------------------------------------------------------------
# Fakes
# -----------------------------------------------------------------------------


class FakeTransport:
    """Stands in for an SDK transport in registry tests."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.terminated = False

    @property
    def is_terminated(self) -> bool:
        return self.terminated

    async def terminate(self) -> None:
        self.terminated = True


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class McpHttpClient:
    """Speaks MCP to the in-process app through httpx."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http
        self._next_id = 100

    async def send_initialize(self, session_id: str | None = None) -> httpx.Response:
        return await self.post(INITIALIZE_REQUEST, session_id)

    async def initialize(self) -> str:
        """Run the initialize handshake and return the new session id."""
        response = await self.send_initialize()
        assert response.status_code == 200, response.text
        session_id = response.headers[MCP_SESSION_HEADER]

        notified = await self.post(INITIALIZED_NOTIFICATION, session_id)
        assert notified.status_code == 202, notified.text
        return session_id

    async def post(
        self,
        payload: Any,
        session_id: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        headers = {**MCP_HEADERS, **(headers or {})}
        if session_id is not None:
            headers[MCP_SESSION_HEADER] = session_id
        return await self.http.post("/mcp", json=payload, headers=headers)

    async def request(
        self, session_id: str, method: str, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        self._next_id += 1
        payload: dict[str, Any] = {"jsonrpc": "2.0", "id": self._next_id, "method": method}
        if params is not None:
            payload["params"] = params
        return await self.post(payload, session_id)

    async def delete(self, session_id: str | None) -> httpx.Response:
        headers = {MCP_SESSION_HEADER: session_id} if session_id is not None else {}
        return await self.http.delete("/mcp", headers=headers)


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def registry() -> CapabilityRegistry:
    """Registry with every built-in domain."""
    return create_default_registry()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_session_registry(clock: FakeClock) -> Callable[..., SessionRegistry[FakeTransport]]:
    """Factory for session registries over fake transports and the shared clock."""

    def make(**kwargs: Any) -> SessionRegistry[FakeTransport]:
        kwargs.setdefault("clock", clock)
        return SessionRegistry(FakeTransport, **kwargs)

    return make


@pytest.fixture
def session_registry(make_session_registry) -> SessionRegistry[FakeTransport]:
    """Session registry expiring sessions after 60 idle seconds."""
    return make_session_registry(idle_timeout=60)


@pytest.fixture
def initialize_request() -> dict[str, Any]:
    """A fresh copy of a valid initialize request, safe to mutate."""
    return copy.deepcopy(INITIALIZE_REQUEST)


@pytest.fixture
def json_app(registry: CapabilityRegistry) -> FastAPI:
    """HTTP app answering POSTs with plain JSON instead of SSE."""
    return create_app(Settings(json_response=True), registry)


@pytest.fixture
def sse_app(registry: CapabilityRegistry) -> FastAPI:
    """HTTP app with default settings, answering POSTs as SSE streams."""
    return create_app(Settings(), registry)


def _watch_stream_start(app: ASGIApp, started: anyio.Event) -> ASGIApp:
    """
    Wrap an app so that started is set once a GET /mcp response begins.

    httpx's ASGITransport only returns after the whole response, so tests
    holding a stream open need this to know the stream is established.
    """

    async def watched(scope: Scope, receive: Receive, send: Send) -> None:
        async def watch(message: Message) -> None:
            await send(message)
            if (
                message["type"] == "http.response.start"
                and scope.get("method") == "GET"
                and scope.get("path") == MCP_ENDPOINT_PATH
            ):
                started.set()

        await app(scope, receive, watch)

    return watched


@pytest.fixture
def watch_stream_start() -> Callable[[ASGIApp, anyio.Event], ASGIApp]:
    return _watch_stream_start


@pytest.fixture
def mcp_http() -> Callable[..., AbstractAsyncContextManager[McpHttpClient]]:
    """
    Factory running an app in-process: ``async with mcp_http(app) as mcp``.

    The lifespan is entered inside the test itself so the session manager's
    task group starts and stops in the same task. ``wrap`` may decorate the
    ASGI app the client talks to.
    """

    @asynccontextmanager
    async def connect(
        app: FastAPI, wrap: Callable[[ASGIApp], ASGIApp] | None = None
    ) -> AsyncIterator[McpHttpClient]:
        async with lifespan(app):
            transport = httpx.ASGITransport(app=wrap(app) if wrap else app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
                yield McpHttpClient(http)

    return connect
