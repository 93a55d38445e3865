"""
Tests for capability specs and the schema translator.
"""

import pytest

from calculator_mcp.capabilities import (
    ParamSpec,
    PromptArgument,
    PromptSpec,
    ResourceSpec,
    ToolSpec,
    param_to_json_schema,
    prefix_completer,
    substring_completer,
    translate_input_schema,
)


async def _noop_prompt(arguments):
    return []


# -----------------------------------------------------------------------------
# Schema Translator
# -----------------------------------------------------------------------------


class TestParamToJsonSchema:
    @pytest.mark.parametrize(
        ("kind", "expected"),
        [
            ("string", {"type": "string"}),
            ("number", {"type": "number"}),
            ("boolean", {"type": "boolean"}),
            ("array", {"type": "array", "items": {}}),
        ],
    )
    def test_known_kinds(self, kind, expected):
        schema = param_to_json_schema(ParamSpec(type=kind, description="d"))
        assert schema == {**expected, "description": "d"}

    @pytest.mark.parametrize("kind", ["object", "integer", "", "NUMBER"])
    def test_unknown_kind_is_unconstrained(self, kind):
        schema = param_to_json_schema(ParamSpec(type=kind, description="anything"))
        assert schema == {"description": "anything"}

    def test_empty_description_omitted(self):
        assert param_to_json_schema(ParamSpec(type="string")) == {"type": "string"}


class TestTranslateInputSchema:
    def test_object_schema_with_all_required(self):
        schema = translate_input_schema(
            {
                "a": ParamSpec(type="number", description="First"),
                "flags": ParamSpec(type="array", description="Flags"),
            }
        )

        assert schema["type"] == "object"
        assert schema["required"] == ["a", "flags"]
        assert schema["properties"]["a"] == {"type": "number", "description": "First"}
        assert schema["properties"]["flags"]["items"] == {}

    def test_declaration_order_preserved(self):
        params = {name: ParamSpec(type="string") for name in ["z", "a", "m"]}
        schema = translate_input_schema(params)

        assert list(schema["properties"]) == ["z", "a", "m"]
        assert schema["required"] == ["z", "a", "m"]

    def test_no_params(self):
        assert translate_input_schema({}) == {"type": "object", "properties": {}, "required": []}


# -----------------------------------------------------------------------------
# Spec Conversion
# -----------------------------------------------------------------------------


class TestSpecConversion:
    def test_tool_to_mcp_tool(self):
        spec = ToolSpec(
            name="echo",
            title="Echo",
            description="Echo text",
            params={"text": ParamSpec(type="string", description="Text")},
            handler=lambda text: text,
        )
        tool = spec.to_mcp_tool()

        assert tool.name == "echo"
        assert tool.title == "Echo"
        assert tool.inputSchema["required"] == ["text"]

    def test_resource_to_mcp_resource(self):
        spec = ResourceSpec(
            name="users",
            uri="data://users/list",
            title="Users",
            description="Users",
            mime_type="application/json",
            reader=None,
        )
        resource = spec.to_mcp_resource()

        assert str(resource.uri) == "data://users/list"
        assert resource.mimeType == "application/json"

    def test_prompt_to_mcp_prompt(self):
        spec = PromptSpec(
            name="refactor",
            title="Refactor",
            description="Refactor code",
            handler=_noop_prompt,
            arguments=[
                PromptArgument("code", "Code"),
                PromptArgument("constraints", "Constraints", required=False),
            ],
        )
        prompt = spec.to_mcp_prompt()

        assert [(arg.name, arg.required) for arg in prompt.arguments] == [
            ("code", True),
            ("constraints", False),
        ]
        assert spec.argument("code").description == "Code"
        assert spec.argument("missing") is None


# -----------------------------------------------------------------------------
# Completers
# -----------------------------------------------------------------------------


class TestCompleters:
    def test_prefix_is_case_insensitive(self):
        complete = prefix_completer(["engineering", "sales", "support"])
        assert complete("S", {}) == ["sales", "support"]

    def test_prefix_empty_value_returns_all(self):
        complete = prefix_completer(["a", "b"])
        assert complete("", {}) == ["a", "b"]

    def test_substring_matches_anywhere(self):
        complete = substring_completer(["Web Application", "API Server", "Background Job"])
        assert complete("ap", {}) == ["Web Application", "API Server"]
