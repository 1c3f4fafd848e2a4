"""Tool and ToolExecutor Protocols: structural interfaces for tool capabilities."""

from dataclasses import dataclass
from typing import Any, Protocol

from turnloop.tools.domain.schema import ToolSchema
from turnloop.tools.domain.task_store import TaskStateStore


@dataclass(frozen=True)
class ToolContext:
    """Resources a tool may use beyond its arguments."""

    task_store: TaskStateStore


class Tool(Protocol):
    """One named capability the model can invoke.

    ``invoke`` returns the string result or raises a ToolError.
    """

    @property
    def schema(self) -> ToolSchema: ...

    async def invoke(self, args: dict[str, Any], context: ToolContext) -> str: ...


class ToolExecutor(Protocol):
    """Executes a tool by name. Failures are raised as typed ToolErrors.

    The turn loop never retries an execution; retrying is the caller's call.
    """

    async def execute(self, name: str, args: dict[str, Any]) -> str: ...
