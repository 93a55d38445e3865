"""
Capability definitions for the calculator MCP server.

This module contains:
- Core types: ParamType, ParamSpec, ToolSpec, ResourceSpec, PromptArgument, PromptSpec
- The schema translator turning flat parameter maps into JSON Schema

Domain services live in the domains/ package. Each one exposes its
capabilities as an explicit table of these specs, with handlers bound to
the service instance. Nothing is discovered by reflection.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import mcp.types as types


class ParamType(str, Enum):
    """Primitive parameter kinds understood by the schema translator."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"


@dataclass(frozen=True)
class ParamSpec:
    """
    One entry of a tool's flat parameter schema.

    type is kept as a plain string so that kinds outside ParamType can be
    declared; the translator maps those to an unconstrained schema.
    """

    type: str
    description: str = ""


# -----------------------------------------------------------------------------
# Schema Translator
# -----------------------------------------------------------------------------


def param_to_json_schema(param: ParamSpec) -> dict[str, Any]:
    """Translate a single parameter entry into its JSON Schema fragment."""
    match param.type:
        case ParamType.STRING.value:
            schema: dict[str, Any] = {"type": "string"}
        case ParamType.NUMBER.value:
            schema = {"type": "number"}
        case ParamType.BOOLEAN.value:
            schema = {"type": "boolean"}
        case ParamType.ARRAY.value:
            schema = {"type": "array", "items": {}}
        case _:
            schema = {}

    if param.description:
        schema["description"] = param.description
    return schema


def translate_input_schema(params: Mapping[str, ParamSpec]) -> dict[str, Any]:
    """
    Convert a flat {name: ParamSpec} map into a tool inputSchema.

    Every declared parameter is required; declaration order is preserved
    in both properties and required.
    """
    return {
        "type": "object",
        "properties": {name: param_to_json_schema(spec) for name, spec in params.items()},
        "required": list(params),
    }


# -----------------------------------------------------------------------------
# Capability Specs
# -----------------------------------------------------------------------------

ToolHandler = Callable[..., Any]
ResourceReader = Callable[[], Awaitable[str]]
PromptHandler = Callable[[dict[str, str]], Awaitable[list[types.PromptMessage]]]
Completer = Callable[[str, Mapping[str, str]], list[str]]


@dataclass
class ToolSpec:
    """
    A callable exposed as an MCP tool.

    The handler is invoked positionally, in the order params were declared.
    """

    name: str
    title: str
    description: str
    params: dict[str, ParamSpec]
    handler: ToolHandler | None

    def to_mcp_tool(self) -> types.Tool:
        """Convert this spec to the SDK's Tool definition."""
        return types.Tool(
            name=self.name,
            title=self.title,
            description=self.description,
            inputSchema=translate_input_schema(self.params),
        )


@dataclass
class ResourceSpec:
    """An async reader exposed as an MCP resource under a fixed URI."""

    name: str
    uri: str
    title: str
    description: str
    reader: ResourceReader | None
    mime_type: str = "text/plain"

    def to_mcp_resource(self) -> types.Resource:
        return types.Resource(
            name=self.name,
            uri=self.uri,
            title=self.title,
            description=self.description,
            mimeType=self.mime_type,
        )


@dataclass(frozen=True)
class PromptArgument:
    """A prompt argument, optionally with a completer for its values."""

    name: str
    description: str
    required: bool = True
    complete: Completer | None = None


@dataclass
class PromptSpec:
    """An async message generator exposed as an MCP prompt."""

    name: str
    title: str
    description: str
    handler: PromptHandler | None
    arguments: list[PromptArgument] = field(default_factory=list)

    def to_mcp_prompt(self) -> types.Prompt:
        return types.Prompt(
            name=self.name,
            title=self.title,
            description=self.description,
            arguments=[
                types.PromptArgument(
                    name=arg.name,
                    description=arg.description,
                    required=arg.required,
                )
                for arg in self.arguments
            ],
        )

    def argument(self, name: str) -> PromptArgument | None:
        for arg in self.arguments:
            if arg.name == name:
                return arg
        return None


# -----------------------------------------------------------------------------
# Completion Helpers
# -----------------------------------------------------------------------------


def prefix_completer(options: list[str]) -> Completer:
    """Suggest options starting with the typed value, case-insensitively."""

    def complete(value: str, context: Mapping[str, str]) -> list[str]:
        needle = value.lower()
        return [option for option in options if option.lower().startswith(needle)]

    return complete


def substring_completer(options: list[str]) -> Completer:
    """Suggest options containing the typed value, case-insensitively."""

    def complete(value: str, context: Mapping[str, str]) -> list[str]:
        needle = value.lower()
        return [option for option in options if needle in option.lower()]

    return complete
