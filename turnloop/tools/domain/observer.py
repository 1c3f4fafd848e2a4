"""ToolObserver port: domain events emitted while executing tools."""

from typing import Protocol


class ToolObserver(Protocol):
    """Observer port for tool domain events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def tool_execution_started(self, tool_name: str) -> None: ...

    def tool_execution_completed(self, tool_name: str, duration_ms: int) -> None: ...

    def tool_execution_failed(self, tool_name: str, code: str, reason: str) -> None: ...
