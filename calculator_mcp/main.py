"""
Entry point for the calculator MCP server.

Selects the transport (stdio, HTTP or both), configures logging and runs
until a signal, end of input (stdio) or a fatal error.

Exit status is 0 on graceful shutdown and 1 on startup failure or any
uncaught error.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from collections.abc import Sequence

import anyio
import uvicorn
from dotenv import load_dotenv
from mcp.server.stdio import stdio_server

from .config import LOG_FORMAT, MCP_ENDPOINT_PATH, Settings, TransportMode
from .errors import ConfigurationError
from .protocol import build_server
from .registry import CapabilityRegistry, create_default_registry
from .server import create_app

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Log to stderr only; stdout carries the stdio protocol stream."""
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="calculator-mcp-server",
        description="Calculator MCP server over stdio and streamable HTTP",
    )
    parser.add_argument("--stdio", action="store_true", help="force the stdio transport")
    parser.add_argument(
        "--transport",
        choices=[mode.value for mode in TransportMode],
        help="transport to serve (default: $MCP_TRANSPORT or http)",
    )
    parser.add_argument("--host", help="HTTP bind address (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="HTTP port (default: $PORT or 3000)")
    return parser.parse_args(argv)


def load_settings(argv: Sequence[str] | None = None) -> Settings:
    """Environment first, then command-line overrides."""
    args = parse_args(argv)
    return Settings.from_env().with_overrides(
        transport=args.transport,
        host=args.host,
        port=args.port,
        force_stdio=args.stdio,
    )


# -----------------------------------------------------------------------------
# Transports
# -----------------------------------------------------------------------------


async def run_stdio(registry: CapabilityRegistry) -> None:
    """Serve one implicit session over stdin/stdout until input ends."""
    server = build_server(registry)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("MCP stdio server started")
        await server.run(read_stream, write_stream, server.create_initialization_options())


async def run_http(settings: Settings, registry: CapabilityRegistry) -> None:
    """Serve the HTTP app. uvicorn owns signal handling while it runs."""
    app = create_app(settings, registry)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.effective_log_level.lower(),
        log_config=None,
    )
    logger.info(f"MCP HTTP endpoint: http://{settings.host}:{settings.port}{MCP_ENDPOINT_PATH}")
    logger.info("Endpoints: GET /health, POST /mcp, GET /mcp (SSE), DELETE /mcp")
    await uvicorn.Server(config).serve()


async def _cancel_on_signal(scope: anyio.CancelScope) -> None:
    with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
        async for signum in signals:
            logger.info(f"Received {signal.Signals(signum).name}, shutting down")
            scope.cancel()
            return


async def serve(settings: Settings) -> None:
    registry = create_default_registry()
    logger.info(f"Starting in {settings.transport.value} mode")

    async with anyio.create_task_group() as tg:
        if settings.transport is TransportMode.STDIO:
            tg.start_soon(_cancel_on_signal, tg.cancel_scope)
            await run_stdio(registry)
        else:
            if settings.transport.uses_stdio:
                tg.start_soon(run_stdio, registry)
            await run_http(settings, registry)
        tg.cancel_scope.cancel()


def _interrupted(error: BaseException) -> bool:
    """True if error is a Ctrl+C/SIGTERM, possibly wrapped by task groups."""
    if isinstance(error, BaseExceptionGroup):
        return all(_interrupted(inner) for inner in error.exceptions)
    return isinstance(error, KeyboardInterrupt)


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    try:
        settings = load_settings(argv)
    except ConfigurationError as e:
        setup_logging("ERROR")
        logger.error(f"Error starting application: {e}")
        return 1

    setup_logging(settings.effective_log_level)
    # uvicorn re-raises the signals it captured; make SIGTERM end like Ctrl+C
    signal.signal(signal.SIGTERM, signal.default_int_handler)

    try:
        anyio.run(serve, settings)
    except (KeyboardInterrupt, BaseExceptionGroup) as e:
        if not _interrupted(e):
            logger.exception("Fatal error, exiting")
            return 1
    except Exception:
        logger.exception("Fatal error, exiting")
        return 1

    logger.info("Application shut down cleanly")
    return 0
