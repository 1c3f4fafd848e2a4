"""Tests for ToolRegistry and create_tool_registry."""

from typing import Any, ClassVar

import pytest

from turnloop.conversation.domain.error import ErrorCode
from turnloop.tools.domain.errors import (
    DuplicateToolError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
)
from turnloop.tools.domain.schema import ToolSchema
from turnloop.tools.domain.task_store import InMemoryTaskStateStore
from turnloop.tools.domain.tool import ToolContext
from turnloop.tools.infrastructure.registry import ToolRegistry, create_tool_registry

from tests.tools.fake_observer import FakeToolObserver


class _EchoTool:
    schema: ClassVar[ToolSchema] = ToolSchema(name="echo", description="Echo the text.")

    async def invoke(self, args: dict[str, Any], context: ToolContext) -> str:
        return str(args.get("text", ""))


class _BrokenTool:
    schema: ClassVar[ToolSchema] = ToolSchema(name="broken", description="Always fails.")

    async def invoke(self, args: dict[str, Any], context: ToolContext) -> str:
        raise KeyError("missing_field")


class _RejectingTool:
    schema: ClassVar[ToolSchema] = ToolSchema(name="rejecting", description="Rejects.")

    async def invoke(self, args: dict[str, Any], context: ToolContext) -> str:
        raise ToolError(tool_name="rejecting", code="BAD_INPUT", reason="nope")


def _registry(*tools: Any, observer: FakeToolObserver | None = None) -> ToolRegistry:
    return ToolRegistry(
        tools=list(tools),
        task_store=InMemoryTaskStateStore(),
        observer=observer or FakeToolObserver(),
    )


class TestToolRegistryExecute:
    async def test_executes_named_tool(self) -> None:
        observer = FakeToolObserver()
        registry = _registry(_EchoTool(), observer=observer)

        assert await registry.execute("echo", {"text": "hello"}) == "hello"
        assert observer.started == ["echo"]
        assert observer.completed[0]["tool_name"] == "echo"

    async def test_unknown_name_raises_tool_not_found(self) -> None:
        observer = FakeToolObserver()
        registry = _registry(_EchoTool(), observer=observer)

        with pytest.raises(ToolNotFoundError) as exc_info:
            await registry.execute("missing", {})

        assert exc_info.value.error_code == ErrorCode.TOOL_NOT_FOUND
        assert str(exc_info.value).startswith("Failed to ")
        assert observer.failed[0]["code"] == "TOOL_NOT_FOUND"

    async def test_tool_error_propagates_unchanged(self) -> None:
        registry = _registry(_RejectingTool())

        with pytest.raises(ToolError) as exc_info:
            await registry.execute("rejecting", {})

        assert type(exc_info.value) is ToolError
        assert exc_info.value.code == "BAD_INPUT"

    async def test_other_exceptions_are_wrapped_with_cause(self) -> None:
        observer = FakeToolObserver()
        registry = _registry(_BrokenTool(), observer=observer)

        with pytest.raises(ToolExecutionError) as exc_info:
            await registry.execute("broken", {})

        assert isinstance(exc_info.value.cause, KeyError)
        assert exc_info.value.error_code == ErrorCode.TOOL_EXECUTION_FAILED
        assert observer.failed[0]["code"] == "EXECUTION_FAILED"


class TestToolRegistryConstruction:
    def test_duplicate_names_are_rejected(self) -> None:
        with pytest.raises(DuplicateToolError, match="echo"):
            _registry(_EchoTool(), _EchoTool())

    def test_exposes_names_and_schemas(self) -> None:
        registry = _registry(_EchoTool(), _BrokenTool())

        assert registry.names == ["echo", "broken"]
        assert [schema.name for schema in registry.schemas()] == ["echo", "broken"]


class TestCreateToolRegistry:
    def test_builds_builtin_tools(self) -> None:
        registry = create_tool_registry(
            names=["calculator", "long_running_task"],
            task_store=InMemoryTaskStateStore(),
            observer=FakeToolObserver(),
        )
        assert registry.names == ["calculator", "long_running_task"]

    def test_unknown_builtin_raises(self) -> None:
        with pytest.raises(ToolNotFoundError, match="web_search"):
            create_tool_registry(
                names=["web_search"],
                task_store=InMemoryTaskStateStore(),
                observer=FakeToolObserver(),
            )
