"""
Server Models

Pydantic schemas for the payloads this server produces itself: calculator
results, resource contents and the JSON-RPC error envelope returned by the
HTTP router. Everything else on the wire is built by the MCP SDK.

Reference: https://modelcontextprotocol.io/specification
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

# -----------------------------------------------------------------------------
# Calculator Types
# -----------------------------------------------------------------------------


class CalculatorResult(BaseModel):
    """
    Outcome of one arithmetic operation.

    Successful operations carry result and formula. Failed ones (division
    by zero) carry only error. Unset fields are dropped when serialized.
    """

    operation: str
    result: float | int | None = None
    formula: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


# -----------------------------------------------------------------------------
# Resource Types
# -----------------------------------------------------------------------------


class ResourceContent(BaseModel):
    """Text contents of a resource read."""

    uri: str
    mimeType: str = "text/plain"  # noqa: N815 (MCP spec uses camelCase)
    text: str
    isError: bool = False  # noqa: N815


# -----------------------------------------------------------------------------
# JSON-RPC Error Envelope
# -----------------------------------------------------------------------------


class JsonRpcErrorData(BaseModel):
    """Structured error information."""

    code: int
    message: str


class JsonRpcErrorResponse(BaseModel):
    """JSON-RPC 2.0 error response."""

    jsonrpc: Literal["2.0"] = "2.0"
    error: JsonRpcErrorData
    id: int | str | None = None


class ErrorCode(int, Enum):
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    # Implementation-defined server error range
    NO_VALID_SESSION = -32000


# -----------------------------------------------------------------------------
# Observability
# -----------------------------------------------------------------------------


class HealthStatus(BaseModel):
    """Response of the liveness check."""

    status: Literal["healthy"] = "healthy"
    activeSessions: int = 0  # noqa: N815


class CapabilityIndex(BaseModel):
    """Names of everything the server exposes, per namespace."""

    tools: list[str] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    prompts: list[str] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------


def make_error_response(
    request_id: int | str | None,
    code: ErrorCode,
    message: str,
) -> JsonRpcErrorResponse:
    """Construct a JSON-RPC error response."""
    return JsonRpcErrorResponse(
        id=request_id,
        error=JsonRpcErrorData(code=code.value, message=message),
    )
