"""
Protocol tests for the MCP server factory.

A real SDK client session is connected to the server over in-memory
streams, so these exercise the full JSON-RPC round trip without HTTP.
"""

import json
from pathlib import Path

import mcp.types as types
import pytest
from mcp.shared.exceptions import McpError
from mcp.shared.memory import create_connected_server_and_client_session
from pydantic import AnyUrl

from calculator_mcp.capabilities import ParamSpec, ToolSpec
from calculator_mcp.config import SERVER_NAME
from calculator_mcp.domains import CalculatorTools, DevelopmentPrompts, ProjectResources
from calculator_mcp.protocol import build_server
from calculator_mcp.registry import CapabilityRegistry


@pytest.fixture
def project_registry(tmp_path: Path) -> CapabilityRegistry:
    """Default domains, with file resources rooted in a temp directory."""
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\n')
    return CapabilityRegistry(
        tools=CalculatorTools().tools(),
        resources=ProjectResources(root=tmp_path).resources(),
        prompts=DevelopmentPrompts().prompts(),
    )


class TestInitialization:
    @pytest.mark.asyncio
    async def test_server_identity_and_capabilities(self, registry):
        server = build_server(registry)
        options = server.create_initialization_options()

        assert options.server_name == SERVER_NAME
        assert options.capabilities.tools is not None
        assert options.capabilities.resources is not None
        assert options.capabilities.prompts is not None


class TestTools:
    @pytest.mark.asyncio
    async def test_list_tools(self, project_registry):
        async with create_connected_server_and_client_session(build_server(project_registry)) as client:
            result = await client.list_tools()

        tools = {tool.name: tool for tool in result.tools}
        assert list(tools) == ["add", "subtract", "multiply", "divide"]
        schema = tools["divide"].inputSchema
        assert schema["required"] == ["a", "b"]
        assert schema["properties"]["b"] == {"type": "number", "description": "Divisor"}

    @pytest.mark.asyncio
    async def test_call_tool(self, project_registry):
        async with create_connected_server_and_client_session(build_server(project_registry)) as client:
            result = await client.call_tool("multiply", {"a": 6, "b": 7})

        assert not result.isError
        assert json.loads(result.content[0].text) == {
            "operation": "multiplication",
            "result": 42,
            "formula": "6 × 7 = 42",
        }

    @pytest.mark.asyncio
    async def test_unknown_tool_is_error_result(self, project_registry):
        async with create_connected_server_and_client_session(build_server(project_registry)) as client:
            result = await client.call_tool("modulo", {"a": 1, "b": 2})

        assert result.isError

    @pytest.mark.asyncio
    async def test_failing_tool_keeps_session_usable(self):
        def explode(text):
            raise RuntimeError("boom")

        registry = CapabilityRegistry(
            tools=[
                ToolSpec(
                    name="explode",
                    title="Explode",
                    description="Always fails",
                    params={"text": ParamSpec(type="string")},
                    handler=explode,
                ),
                ToolSpec(
                    name="echo",
                    title="Echo",
                    description="Echo text",
                    params={"text": ParamSpec(type="string")},
                    handler=lambda text: text,
                ),
            ]
        )

        async with create_connected_server_and_client_session(build_server(registry)) as client:
            failed = await client.call_tool("explode", {"text": "x"})
            echoed = await client.call_tool("echo", {"text": "still here"})

        assert failed.isError
        assert failed.content[0].text == "Error executing explode: boom"
        assert echoed.content[0].text == "still here"


class TestResources:
    @pytest.mark.asyncio
    async def test_list_resources(self, project_registry):
        async with create_connected_server_and_client_session(build_server(project_registry)) as client:
            result = await client.list_resources()

        assert sorted(str(resource.uri) for resource in result.resources) == [
            "data://users/list",
            "file://logs/app.log",
            "file://read/pyproject.toml",
        ]

    @pytest.mark.asyncio
    async def test_read_manifest(self, project_registry):
        async with create_connected_server_and_client_session(build_server(project_registry)) as client:
            result = await client.read_resource(AnyUrl("file://read/pyproject.toml"))

        content = result.contents[0]
        assert content.mimeType == "application/toml"
        assert 'name = "demo"' in content.text

    @pytest.mark.asyncio
    async def test_unreadable_resource_returns_error_text(self, project_registry):
        async with create_connected_server_and_client_session(build_server(project_registry)) as client:
            result = await client.read_resource(AnyUrl("file://logs/app.log"))

        content = result.contents[0]
        assert content.mimeType == "text/plain"
        assert content.text.startswith("Error reading resource:")

    @pytest.mark.asyncio
    async def test_unknown_resource_is_protocol_error(self, project_registry):
        async with create_connected_server_and_client_session(build_server(project_registry)) as client:
            with pytest.raises(McpError) as exc_info:
                await client.read_resource(AnyUrl("data://nothing/here"))

        assert exc_info.value.error.code == types.INVALID_PARAMS
        assert "Unknown resource" in exc_info.value.error.message


class TestPrompts:
    @pytest.mark.asyncio
    async def test_list_prompts(self, project_registry):
        async with create_connected_server_and_client_session(build_server(project_registry)) as client:
            result = await client.list_prompts()

        prompts = {prompt.name: prompt for prompt in result.prompts}
        assert len(prompts) == 6
        refactor_args = {arg.name: arg.required for arg in prompts["refactor-code"].arguments}
        assert refactor_args == {"focus": True, "code": True, "constraints": False}

    @pytest.mark.asyncio
    async def test_get_prompt(self, project_registry):
        async with create_connected_server_and_client_session(build_server(project_registry)) as client:
            result = await client.get_prompt(
                "generate-tests",
                {"framework": "PyTest", "code": "def f(): ...", "coverage": "Basic"},
            )

        assert len(result.messages) == 1
        assert result.messages[0].role == "user"
        assert "basic unit tests using PyTest" in result.messages[0].content.text

    @pytest.mark.asyncio
    async def test_unknown_prompt_is_protocol_error(self, project_registry):
        async with create_connected_server_and_client_session(build_server(project_registry)) as client:
            with pytest.raises(McpError):
                await client.get_prompt("write-poem", {})

    @pytest.mark.asyncio
    async def test_complete_department(self, project_registry):
        async with create_connected_server_and_client_session(build_server(project_registry)) as client:
            result = await client.complete(
                types.PromptReference(type="ref/prompt", name="team-greeting"),
                {"name": "department", "value": "eng"},
            )

        assert result.completion.values == ["engineering"]
        assert result.completion.hasMore is False

    @pytest.mark.asyncio
    async def test_complete_name_uses_context(self, project_registry):
        async with create_connected_server_and_client_session(build_server(project_registry)) as client:
            result = await client.complete(
                types.PromptReference(type="ref/prompt", name="team-greeting"),
                {"name": "name", "value": "r"},
                context_arguments={"department": "design"},
            )

        assert result.completion.values == ["Rachel"]
