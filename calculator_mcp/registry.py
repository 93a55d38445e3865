"""
Capability Registry

Holds every tool, resource and prompt the server exposes and invokes them
on behalf of the protocol server.

The registry:
1. Keeps three independent namespaces keyed by name (resources by URI)
2. Lists capabilities in the SDK's types, with tool schemas translated
3. Invokes handlers and turns every failure into data, so a broken
   capability never takes its session down
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

import mcp.types as types
from pydantic import BaseModel

from .capabilities import PromptSpec, ResourceSpec, ToolSpec
from .domains import CalculatorTools, DevelopmentPrompts, ProjectResources
from .errors import EmptyResult, MissingParameter, UnknownCapability
from .models import CapabilityIndex, ResourceContent

logger = logging.getLogger(__name__)


def _to_text(value: Any) -> str:
    """Strings pass through; anything else becomes indented JSON."""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", exclude_none=True)
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _error_result(text: str) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=True,
    )


class CapabilityRegistry:
    """
    Registry of capabilities, populated once at startup.

    Duplicate names overwrite the earlier entry (a warning is logged).
    Entries without a name or handler are skipped.
    """

    def __init__(
        self,
        tools: Iterable[ToolSpec] = (),
        resources: Iterable[ResourceSpec] = (),
        prompts: Iterable[PromptSpec] = (),
    ) -> None:
        self.tools: dict[str, ToolSpec] = {}
        self.resources: dict[str, ResourceSpec] = {}
        self.prompts: dict[str, PromptSpec] = {}

        for tool in tools:
            self.register_tool(tool)
        for resource in resources:
            self.register_resource(resource)
        for prompt in prompts:
            self.register_prompt(prompt)

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register_tool(self, spec: ToolSpec) -> bool:
        """Register a tool. Returns False if the spec was skipped."""
        if not spec.name or spec.handler is None:
            logger.debug(f"Skipping tool without metadata: {spec!r}")
            return False
        if spec.name in self.tools:
            logger.warning(f"Tool {spec.name!r} registered twice; keeping the latest")
        self.tools[spec.name] = spec
        logger.debug(f"Registered tool: {spec.name}")
        return True

    def register_resource(self, spec: ResourceSpec) -> bool:
        """Register a resource under its URI. Returns False if skipped."""
        if not spec.name or not spec.uri or spec.reader is None:
            logger.debug(f"Skipping resource without metadata: {spec!r}")
            return False
        if spec.uri in self.resources:
            logger.warning(f"Resource {spec.uri!r} registered twice; keeping the latest")
        self.resources[spec.uri] = spec
        logger.debug(f"Registered resource: {spec.name} ({spec.uri})")
        return True

    def register_prompt(self, spec: PromptSpec) -> bool:
        """Register a prompt. Returns False if skipped."""
        if not spec.name or spec.handler is None:
            logger.debug(f"Skipping prompt without metadata: {spec!r}")
            return False
        if spec.name in self.prompts:
            logger.warning(f"Prompt {spec.name!r} registered twice; keeping the latest")
        self.prompts[spec.name] = spec
        logger.debug(f"Registered prompt: {spec.name}")
        return True

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    def list_tools(self) -> list[types.Tool]:
        return [spec.to_mcp_tool() for spec in self.tools.values()]

    def list_resources(self) -> list[types.Resource]:
        return [spec.to_mcp_resource() for spec in self.resources.values()]

    def list_prompts(self) -> list[types.Prompt]:
        return [spec.to_mcp_prompt() for spec in self.prompts.values()]

    def index(self) -> CapabilityIndex:
        return CapabilityIndex(
            tools=list(self.tools),
            resources=list(self.resources),
            prompts=list(self.prompts),
        )

    # -------------------------------------------------------------------------
    # Invocation
    # -------------------------------------------------------------------------

    async def call_tool(self, name: str, arguments: Mapping[str, Any] | None) -> types.CallToolResult:
        """
        Execute a tool and wrap its value as a single text block.

        Flow:
        1. Look up the tool (unknown -> error result)
        2. Pull arguments by declared name, in declared order
        3. Reject missing or null values
        4. Call the handler positionally, awaiting it if needed
        5. Stringify the value

        Never raises; every failure is an error-flagged result.
        """
        spec = self.tools.get(name)
        if spec is None or spec.handler is None:
            return _error_result(f"Unknown tool: {name}")

        arguments = arguments or {}
        try:
            logger.debug(f"Executing {name} with: {dict(arguments)}")
            ordered = []
            for param in spec.params:
                value = arguments.get(param)
                if value is None:
                    raise MissingParameter(param)
                ordered.append(value)

            result = spec.handler(*ordered)
            if inspect.isawaitable(result):
                result = await result
            if result is None:
                raise EmptyResult(f"Tool {name} returned no value")

            return types.CallToolResult(
                content=[types.TextContent(type="text", text=_to_text(result))],
            )
        except Exception as e:
            logger.error(f"Error in tool {name}: {e}", exc_info=not isinstance(e, MissingParameter))
            return _error_result(f"Error executing {name}: {e}")

    async def read_resource(self, uri: str) -> ResourceContent:
        """
        Read a resource by URI.

        Raises UnknownCapability for unregistered URIs. Reader failures are
        returned as error-flagged text/plain content.
        """
        spec = self.resources.get(uri)
        if spec is None or spec.reader is None:
            raise UnknownCapability("resource", uri)

        try:
            logger.debug(f"Reading resource {spec.name} at URI: {uri}")
            text = await spec.reader()
        except Exception as e:
            logger.error(f"Error reading resource {spec.name}: {e}")
            return ResourceContent(
                uri=uri,
                mimeType="text/plain",
                text=f"Error reading resource: {e}",
                isError=True,
            )

        return ResourceContent(uri=uri, mimeType=spec.mime_type or "text/plain", text=text)

    async def get_prompt(self, name: str, arguments: Mapping[str, str] | None) -> types.GetPromptResult:
        """
        Render a prompt.

        Raises UnknownCapability for unregistered names. Missing required
        arguments and handler failures become a single assistant message.
        """
        spec = self.prompts.get(name)
        if spec is None or spec.handler is None:
            raise UnknownCapability("prompt", name)

        arguments = dict(arguments or {})
        try:
            logger.debug(f"Executing prompt {name} with: {arguments}")
            for arg in spec.arguments:
                if arg.required and arguments.get(arg.name) is None:
                    raise MissingParameter(arg.name)
            messages = await spec.handler(arguments)
        except Exception as e:
            logger.error(f"Error in prompt {name}: {e}")
            return types.GetPromptResult(
                description=spec.description,
                messages=[
                    types.PromptMessage(
                        role="assistant",
                        content=types.TextContent(
                            type="text",
                            text=f"Error executing prompt {name}: {e}",
                        ),
                    )
                ],
            )

        return types.GetPromptResult(description=spec.description, messages=messages)

    def complete_prompt_argument(
        self,
        prompt_name: str,
        argument_name: str,
        value: str,
        context: Mapping[str, str] | None = None,
    ) -> list[str]:
        """Suggest values for a prompt argument; empty if it has no completer."""
        spec = self.prompts.get(prompt_name)
        if spec is None:
            return []
        arg = spec.argument(argument_name)
        if arg is None or arg.complete is None:
            return []
        return arg.complete(value, context or {})


# -----------------------------------------------------------------------------
# Factory Functions
# -----------------------------------------------------------------------------


def create_default_registry() -> CapabilityRegistry:
    """Create a registry with every built-in domain registered."""
    tools = CalculatorTools()
    resources = ProjectResources()
    prompts = DevelopmentPrompts()

    registry = CapabilityRegistry(
        tools=tools.tools(),
        resources=resources.resources(),
        prompts=prompts.prompts(),
    )
    logger.info(
        f"Capability registry ready: {len(registry.tools)} tools, "
        f"{len(registry.resources)} resources, {len(registry.prompts)} prompts"
    )
    return registry
