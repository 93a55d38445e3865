"""
Protocol Server Factory

Wires a CapabilityRegistry into the MCP SDK's low-level Server. The SDK owns
the wire protocol (JSON-RPC framing, initialization handshake, capability
negotiation); this module only supplies the handlers.

Each HTTP session gets its own Server built here. The stdio transport
builds exactly one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.shared.exceptions import McpError
from pydantic import AnyUrl

from .config import SERVER_NAME, SERVER_VERSION
from .errors import UnknownCapability
from .registry import CapabilityRegistry

logger = logging.getLogger(__name__)


def _not_found(error: UnknownCapability) -> McpError:
    return McpError(types.ErrorData(code=types.INVALID_PARAMS, message=str(error)))


def build_server(
    registry: CapabilityRegistry,
    *,
    name: str = SERVER_NAME,
    version: str = SERVER_VERSION,
) -> Server[Any, Any]:
    """Create a protocol server exposing everything in the registry."""
    server: Server[Any, Any] = Server(name, version=version)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return registry.list_tools()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
        return await registry.call_tool(name, arguments)

    @server.list_resources()
    async def list_resources() -> list[types.Resource]:
        return registry.list_resources()

    @server.read_resource()
    async def read_resource(uri: AnyUrl) -> Iterable[ReadResourceContents]:
        try:
            content = await registry.read_resource(str(uri))
        except UnknownCapability as e:
            raise _not_found(e) from e
        return [ReadResourceContents(content=content.text, mime_type=content.mimeType)]

    @server.list_prompts()
    async def list_prompts() -> list[types.Prompt]:
        return registry.list_prompts()

    @server.get_prompt()
    async def get_prompt(name: str, arguments: dict[str, str] | None) -> types.GetPromptResult:
        try:
            return await registry.get_prompt(name, arguments)
        except UnknownCapability as e:
            raise _not_found(e) from e

    @server.completion()
    async def complete(
        ref: types.PromptReference | types.ResourceTemplateReference,
        argument: types.CompletionArgument,
        context: types.CompletionContext | None,
    ) -> types.Completion | None:
        # Resource templates are not exposed, so only prompt references complete
        if not isinstance(ref, types.PromptReference):
            return None
        known = context.arguments if context and context.arguments else {}
        values = registry.complete_prompt_argument(ref.name, argument.name, argument.value, known)
        return types.Completion(values=values[:100], total=len(values), hasMore=len(values) > 100)

    logger.debug(f"Protocol server built with {len(registry.tools)} tools")
    return server
