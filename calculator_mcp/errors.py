"""
Server Failure Types

Canonical failure taxonomy for the calculator MCP server.
Every failure raised by this package is an instance of these types.
"""

from __future__ import annotations


class ServerFailure(Exception):
    """Base class for all server failures."""

    failure_category: str = "unknown"

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ContractViolation(ServerFailure):
    """
    The request violates an MCP protocol rule or an admission rule.

    - Fatality: Fatal to the request, never to the session or process.
    - MCP Representation: HTTP 400 envelope, protocol error, or an
      error-flagged content block, depending on where it is raised.
    """

    failure_category = "contract_violation"


class SessionAdmissionError(ContractViolation):
    """A request carried an unknown session id, or none on a non-init message."""

    def __init__(self, message: str, *, session_id: str | None = None) -> None:
        super().__init__(message)
        self.session_id = session_id


class InvalidInitialization(ContractViolation):
    """An initialize request without a session id carried malformed params."""

    def __init__(self, message: str, *, request_id: int | str | None = None) -> None:
        super().__init__(message)
        self.request_id = request_id


class UnknownCapability(ContractViolation):
    """A tool, resource or prompt was requested that is not registered."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"Unknown {kind}: {name}")
        self.kind = kind
        self.name = name


class MissingParameter(ContractViolation):
    """A declared tool parameter or required prompt argument was absent or null."""

    def __init__(self, parameter: str) -> None:
        super().__init__(f"Missing parameter: {parameter}")
        self.parameter = parameter


class CapabilityFailure(ServerFailure):
    """
    A capability handler could not produce a value.

    - Fatality: Non-fatal. The session stays alive.
    - MCP Representation: error-flagged content returned as a normal response.
    """

    failure_category = "capability_failure"


class ResourceUnavailable(CapabilityFailure):
    """A resource reader could not load its backing data."""


class EmptyResult(CapabilityFailure):
    """A tool handler returned None."""


class TransportFailure(ServerFailure):
    """
    The session layer cannot serve the request.

    - Fatality: Fatal to the request.
    - MCP Representation: HTTP 500 with the internal error envelope.
    """

    failure_category = "transport_failure"


class ConfigurationError(ServerFailure):
    """
    The server is misconfigured and cannot start.

    - Fatality: Fatal. The process exits with status 1.
    - MCP Representation: Not applicable (startup failure).
    """

    failure_category = "configuration_error"
