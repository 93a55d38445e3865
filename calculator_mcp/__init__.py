"""Calculator MCP server package."""

from .capabilities import (
    ParamSpec,
    ParamType,
    PromptArgument,
    PromptSpec,
    ResourceSpec,
    ToolSpec,
    translate_input_schema,
)
from .config import (
    MCP_ENDPOINT_PATH,
    MCP_SESSION_HEADER,
    SERVER_NAME,
    SERVER_VERSION,
    SESSION_IDLE_TIMEOUT_SECONDS,
    SESSION_SWEEP_INTERVAL_SECONDS,
    Settings,
    TransportMode,
)
from .errors import (
    CapabilityFailure,
    ConfigurationError,
    ContractViolation,
    MissingParameter,
    ServerFailure,
    SessionAdmissionError,
    TransportFailure,
    UnknownCapability,
)
from .models import (
    CalculatorResult,
    ErrorCode,
    JsonRpcErrorResponse,
    ResourceContent,
    make_error_response,
)
from .protocol import build_server
from .registry import CapabilityRegistry, create_default_registry
from .server import create_app
from .sessions import Session, SessionRegistry
from .transport import HttpSessionManager

__all__ = [
    # Capabilities
    "ParamSpec",
    "ParamType",
    "ToolSpec",
    "ResourceSpec",
    "PromptArgument",
    "PromptSpec",
    "translate_input_schema",
    "CapabilityRegistry",
    "create_default_registry",
    # Sessions and transport
    "Session",
    "SessionRegistry",
    "HttpSessionManager",
    "build_server",
    "create_app",
    # Config
    "Settings",
    "TransportMode",
    "SERVER_NAME",
    "SERVER_VERSION",
    "MCP_ENDPOINT_PATH",
    "MCP_SESSION_HEADER",
    "SESSION_IDLE_TIMEOUT_SECONDS",
    "SESSION_SWEEP_INTERVAL_SECONDS",
    # Errors
    "ServerFailure",
    "ContractViolation",
    "SessionAdmissionError",
    "UnknownCapability",
    "MissingParameter",
    "CapabilityFailure",
    "TransportFailure",
    "ConfigurationError",
    # Models
    "CalculatorResult",
    "ResourceContent",
    "ErrorCode",
    "JsonRpcErrorResponse",
    "make_error_response",
]
