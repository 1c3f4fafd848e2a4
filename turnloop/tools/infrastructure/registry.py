"""ToolRegistry: resolves tool names to capabilities and executes them."""

import time
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from turnloop.tools.domain.errors import (
    DuplicateToolError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
)
from turnloop.tools.domain.observer import ToolObserver
from turnloop.tools.domain.schema import ToolSchema
from turnloop.tools.domain.task_store import TaskStateStore
from turnloop.tools.domain.tool import Tool, ToolContext
from turnloop.tools.infrastructure.builtin.calculator import CalculatorTool
from turnloop.tools.infrastructure.builtin.long_running_task import (
    LongRunningTaskTool,
)

_BUILTIN_TOOLS: Mapping[str, Callable[[], Tool]] = {
    CalculatorTool.schema.name: CalculatorTool,
    LongRunningTaskTool.schema.name: LongRunningTaskTool,
}


class ToolRegistry:
    """Name-keyed mapping of tools, resolved once and read-only afterwards.

    Satisfies the ToolExecutor protocol structurally. Every failure leaves
    ``execute`` as a ToolError: unknown names raise ToolNotFoundError, a tool's
    own ToolError propagates unchanged, anything else is wrapped in
    ToolExecutionError.
    """

    def __init__(
        self,
        tools: list[Tool],
        task_store: TaskStateStore,
        observer: ToolObserver,
    ) -> None:
        resolved: dict[str, Tool] = {}
        for tool in tools:
            name = tool.schema.name
            if name in resolved:
                raise DuplicateToolError(tool_name=name)
            resolved[name] = tool
        self._tools: Mapping[str, Tool] = MappingProxyType(resolved)
        self._context = ToolContext(task_store=task_store)
        self._observer = observer

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def schemas(self) -> list[ToolSchema]:
        return [tool.schema for tool in self._tools.values()]

    async def execute(self, name: str, args: dict[str, Any]) -> str:
        """Invoke the named tool and return its string result.

        Raises:
            ToolNotFoundError: if no tool is registered under name.
            ToolError: if the tool fails; non-ToolError failures are wrapped
                in ToolExecutionError with the original exception as cause.
        """
        tool = self._tools.get(name)
        if tool is None:
            error = ToolNotFoundError(tool_name=name)
            self._observer.tool_execution_failed(
                tool_name=name, code=error.code, reason=error.reason
            )
            raise error

        self._observer.tool_execution_started(tool_name=name)
        start = time.monotonic()
        try:
            result = await tool.invoke(args, self._context)
        except ToolError as exc:
            self._observer.tool_execution_failed(
                tool_name=name, code=exc.code, reason=exc.reason
            )
            raise
        except Exception as exc:
            wrapped = ToolExecutionError(tool_name=name, cause=exc)
            self._observer.tool_execution_failed(
                tool_name=name, code=wrapped.code, reason=wrapped.reason
            )
            raise wrapped from exc

        self._observer.tool_execution_completed(
            tool_name=name, duration_ms=int((time.monotonic() - start) * 1000)
        )
        return result


def create_tool_registry(
    names: list[str], task_store: TaskStateStore, observer: ToolObserver
) -> ToolRegistry:
    """Return a ToolRegistry holding the named builtin tools.

    Raises:
        ToolNotFoundError: if a name is not a known builtin tool.
    """
    tools: list[Tool] = []
    for name in names:
        tool_cls = _BUILTIN_TOOLS.get(name)
        if tool_cls is None:
            raise ToolNotFoundError(tool_name=name)
        tools.append(tool_cls())
    return ToolRegistry(tools=tools, task_store=task_store, observer=observer)
