"""
Centralized configuration for the calculator MCP server.

All magic values and server constants in one place.
Runtime settings are read from environment variables (optionally loaded
from a .env file by the entry point) and can be overridden from the CLI.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum

from .errors import ConfigurationError

# -----------------------------------------------------------------------------
# Server Identity
# -----------------------------------------------------------------------------

SERVER_NAME = "calculator-server"
SERVER_VERSION = "1.0.0"

# -----------------------------------------------------------------------------
# HTTP Transport
# -----------------------------------------------------------------------------

MCP_ENDPOINT_PATH = "/mcp"
MCP_SESSION_HEADER = "mcp-session-id"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000

# -----------------------------------------------------------------------------
# Session Lifecycle
# -----------------------------------------------------------------------------

SESSION_SWEEP_INTERVAL_SECONDS = 5 * 60
SESSION_IDLE_TIMEOUT_SECONDS = 30 * 60

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class TransportMode(str, Enum):
    """Transports the server can be started with."""

    STDIO = "stdio"
    HTTP = "http"
    BOTH = "both"

    @property
    def uses_stdio(self) -> bool:
        return self in (TransportMode.STDIO, TransportMode.BOTH)

    @property
    def uses_http(self) -> bool:
        return self in (TransportMode.HTTP, TransportMode.BOTH)


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for one server process.

    Defaults mirror the module constants above. Use from_env() to build
    from environment variables and with_overrides() to apply CLI flags.
    """

    transport: TransportMode = TransportMode.HTTP
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    json_response: bool = False
    session_idle_timeout: float = SESSION_IDLE_TIMEOUT_SECONDS
    session_sweep_interval: float = SESSION_SWEEP_INTERVAL_SECONDS
    log_level: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables, failing on bad values."""
        env = os.environ if environ is None else environ

        return cls(
            transport=_parse_transport(env.get("MCP_TRANSPORT", TransportMode.HTTP.value)),
            host=env.get("HOST", DEFAULT_HOST),
            port=_parse_port(env.get("PORT", str(DEFAULT_PORT))),
            json_response=_parse_bool("MCP_JSON_RESPONSE", env.get("MCP_JSON_RESPONSE", "false")),
            session_idle_timeout=_parse_seconds(
                "MCP_SESSION_IDLE_TIMEOUT",
                env.get("MCP_SESSION_IDLE_TIMEOUT", str(SESSION_IDLE_TIMEOUT_SECONDS)),
            ),
            session_sweep_interval=_parse_seconds(
                "MCP_SESSION_SWEEP_INTERVAL",
                env.get("MCP_SESSION_SWEEP_INTERVAL", str(SESSION_SWEEP_INTERVAL_SECONDS)),
                allow_zero=False,
            ),
            log_level=env.get("LOG_LEVEL") or None,
        )

    def with_overrides(
        self,
        *,
        transport: str | None = None,
        host: str | None = None,
        port: int | None = None,
        force_stdio: bool = False,
    ) -> Settings:
        """Return a copy with command-line overrides applied."""
        changes: dict[str, object] = {}
        if transport is not None:
            changes["transport"] = _parse_transport(transport)
        if force_stdio:
            changes["transport"] = TransportMode.STDIO
        if host is not None:
            changes["host"] = host
        if port is not None:
            changes["port"] = _parse_port(str(port))
        return replace(self, **changes)

    @property
    def effective_log_level(self) -> str:
        """Explicit level if set; stdio-only mode stays quiet by default."""
        if self.log_level:
            return self.log_level.upper()
        return "WARNING" if self.transport is TransportMode.STDIO else "INFO"


# -----------------------------------------------------------------------------
# Parsing Helpers
# -----------------------------------------------------------------------------


def _parse_transport(value: str) -> TransportMode:
    try:
        return TransportMode(value.strip().lower())
    except ValueError:
        allowed = ", ".join(mode.value for mode in TransportMode)
        raise ConfigurationError(
            f"Invalid MCP_TRANSPORT {value!r}: expected one of {allowed}"
        ) from None


def _parse_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise ConfigurationError(f"Invalid PORT {value!r}: not an integer") from None
    if not 0 < port < 65536:
        raise ConfigurationError(f"Invalid PORT {port}: must be between 1 and 65535")
    return port


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid {name} {value!r}: expected true or false")


def _parse_seconds(name: str, value: str, *, allow_zero: bool = True) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise ConfigurationError(f"Invalid {name} {value!r}: not a number") from None
    if seconds < 0 or (seconds == 0 and not allow_zero):
        raise ConfigurationError(f"Invalid {name} {value!r}: must be positive")
    return seconds
