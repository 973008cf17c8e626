"""Tests for the tool registry and dispatcher."""

import json
from typing import Any, List, Optional

import pytest
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND, ErrorData
from pydantic import BaseModel, ConfigDict, Field

from twentyi_mcp.errors import RegistryError, UnknownToolError, UpstreamApiError, ValidationError
from twentyi_mcp.registry import ModuleDefinition, ToolModule, ToolRegistry


class EchoInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    text: str = Field(..., description="Text to echo", min_length=1)
    times: int = Field(default=1, description="Repeat count", ge=1, le=5)
    tags: Optional[List[str]] = Field(default=None, description="Optional tags")


def make_module(name: str = "echo", calls: Optional[list] = None) -> ModuleDefinition:
    module = ToolModule(name)
    seen = calls if calls is not None else []

    @module.tool(name=f"{name}_echo", title="Echo", read_only=True)
    async def echo(params: EchoInput) -> Any:
        """Echo text back."""
        seen.append(params)
        return {"echo": [params.text] * params.times}

    @module.tool(name=f"{name}_ping", title="Ping", read_only=True)
    async def ping() -> Any:
        return "pong"

    @module.tool(name=f"{name}_fail", title="Fail")
    async def fail() -> Any:
        raise UpstreamApiError(500, "backend exploded", "GET", "/boom")

    @module.tool(name=f"{name}_crash", title="Crash")
    async def crash() -> Any:
        raise RuntimeError("unexpected state")

    return module.definition()


def constant_module(name: str, results: dict) -> ModuleDefinition:
    module = ToolModule(name)

    def returning(result: Any):
        async def handler() -> Any:
            return result

        return handler

    for tool_name, result in results.items():
        module.tool(name=tool_name, title=tool_name, read_only=True)(returning(result))
    return module.definition()


def payload(content) -> Any:
    assert len(content) == 1
    assert content[0].type == "text"
    return json.loads(content[0].text)


# ─────────────────────────────────────────────────────────────────────────────
# Registration
# ─────────────────────────────────────────────────────────────────────────────


class TestRegistration:
    def test_register_adds_every_tool(self):
        registry = ToolRegistry()
        registry.register(make_module("a"))
        before = len(registry.list_tools())
        registry.register(make_module("b"))
        assert len(registry.list_tools()) == before + 4
        assert "b_echo" in registry

    @pytest.mark.asyncio
    async def test_every_registered_name_is_dispatchable(self):
        registry = ToolRegistry()
        registry.register(make_module("a"))
        before = {tool.name for tool in registry.list_tools()}
        results = {"b_one": 1, "b_two": [2], "b_three": {"n": 3}}
        registry.register(constant_module("b", results))

        added = [tool.name for tool in registry.list_tools() if tool.name not in before]
        assert sorted(added) == sorted(results)
        for tool_name in added:
            assert payload(await registry.dispatch(tool_name, {})) == results[tool_name]

    def test_descriptor_carries_schema_and_annotations(self):
        registry = ToolRegistry()
        registry.register(make_module())
        tool = next(t for t in registry.list_tools() if t.name == "echo_echo")
        assert tool.description == "Echo text back."
        assert tool.inputSchema["required"] == ["text"]
        assert tool.inputSchema["properties"]["times"]["type"] == "integer"
        assert tool.annotations.readOnlyHint is True

    def test_tool_without_docstring_uses_title(self):
        registry = ToolRegistry()
        registry.register(make_module())
        tool = next(t for t in registry.list_tools() if t.name == "echo_ping")
        assert tool.description == "Ping"

    def test_duplicate_name_across_modules_is_rejected(self):
        registry = ToolRegistry()
        registry.register(make_module("dup"))
        with pytest.raises(RegistryError, match="dup_echo"):
            registry.register(make_module("dup"))
        assert len(registry) == 4

    def test_duplicate_name_within_module_is_rejected(self):
        module = ToolModule("twice")

        @module.tool(name="same", title="Same")
        async def first() -> Any:
            return None

        with pytest.raises(RegistryError):
            @module.tool(name="same", title="Same")
            async def second() -> Any:
                return None

    def test_module_definition_requires_matching_handlers(self):
        definition = make_module()
        with pytest.raises(RegistryError, match="echo_ping"):
            ModuleDefinition(
                name="broken",
                tools=definition.tools,
                handlers={k: v for k, v in definition.handlers.items() if k != "echo_ping"},
            )

    def test_handler_argument_must_be_a_model(self):
        module = ToolModule("untyped")
        with pytest.raises(RegistryError):
            @module.tool(name="untyped", title="Untyped")
            async def untyped(args: dict) -> Any:
                return args


# ─────────────────────────────────────────────────────────────────────────────
# Dispatch
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def calls() -> list:
    return []


@pytest.fixture
def registry(calls) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(make_module(calls=calls))
    return registry


class TestDispatch:
    @pytest.mark.asyncio
    async def test_success_wraps_json_payload(self, registry):
        content = await registry.dispatch("echo_echo", {"text": " hi ", "times": 2})
        assert payload(content) == {"echo": ["hi", "hi"]}

    @pytest.mark.asyncio
    async def test_no_argument_tool(self, registry):
        assert payload(await registry.dispatch("echo_ping", {})) == "pong"

    @pytest.mark.asyncio
    async def test_missing_argument_bag(self, registry):
        with pytest.raises(McpError) as exc_info:
            await registry.dispatch("echo_ping", None)
        assert exc_info.value.error.code == INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry):
        with pytest.raises(McpError) as exc_info:
            await registry.dispatch("no_such_tool", {})
        assert exc_info.value.error.code == METHOD_NOT_FOUND
        assert "no_such_tool" in exc_info.value.error.message

    @pytest.mark.asyncio
    async def test_missing_required_argument_names_field(self, registry, calls):
        with pytest.raises(McpError) as exc_info:
            await registry.dispatch("echo_echo", {"times": 2})
        assert exc_info.value.error.code == INVALID_PARAMS
        assert "text" in exc_info.value.error.message
        assert calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "arguments, field",
        [
            ({"text": 5}, "text"),
            ({"text": "a", "times": "2"}, "times"),
            ({"text": "a", "times": True}, "times"),
            ({"text": "a", "tags": "x"}, "tags"),
        ],
    )
    async def test_wrong_primitive_type_names_field(self, registry, calls, arguments, field):
        with pytest.raises(McpError) as exc_info:
            await registry.dispatch("echo_echo", arguments)
        assert exc_info.value.error.code == INVALID_PARAMS
        assert f"'{field}'" in exc_info.value.error.message
        assert calls == []

    @pytest.mark.asyncio
    async def test_model_constraints_are_validation_errors(self, registry):
        with pytest.raises(McpError) as exc_info:
            await registry.dispatch("echo_echo", {"text": "a", "times": 9})
        assert exc_info.value.error.code == INVALID_PARAMS
        assert "times" in exc_info.value.error.message

    @pytest.mark.asyncio
    async def test_unexpected_argument_is_rejected(self, registry):
        with pytest.raises(McpError) as exc_info:
            await registry.dispatch("echo_echo", {"text": "a", "colour": "red"})
        assert exc_info.value.error.code == INVALID_PARAMS
        assert "colour" in exc_info.value.error.message

    @pytest.mark.asyncio
    async def test_handler_error_becomes_internal_error(self, registry):
        with pytest.raises(McpError) as exc_info:
            await registry.dispatch("echo_fail", {})
        error = exc_info.value.error
        assert error.code == INTERNAL_ERROR
        assert "backend exploded" in error.message
        assert error.data == {"status": 500}

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_internal_error(self, registry):
        with pytest.raises(McpError) as exc_info:
            await registry.dispatch("echo_crash", {})
        assert exc_info.value.error.code == INTERNAL_ERROR
        assert "unexpected state" in exc_info.value.error.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ValidationError("domain", "rejected by the backend"),
            UnknownToolError("nested_tool"),
            McpError(ErrorData(code=INVALID_PARAMS, message="raised inside the handler")),
        ],
    )
    async def test_request_errors_raised_by_handler_are_internal(self, error):
        module = ToolModule("raising")

        @module.tool(name="raising_tool", title="Raising")
        async def raising() -> Any:
            raise error

        registry = ToolRegistry()
        registry.register(module.definition())
        with pytest.raises(McpError) as exc_info:
            await registry.dispatch("raising_tool", {})
        assert exc_info.value.error.code == INTERNAL_ERROR
        assert "raising_tool" in exc_info.value.error.message
