"""Error types raised by tool execution."""

from turnloop.conversation.domain.error import ErrorCode
from turnloop.core.errors import TurnLoopError


class ToolError(TurnLoopError):
    """Typed failure of one tool invocation.

    ``code`` is the tool-specific failure code (e.g. ``MALFORMED_EXPRESSION``);
    ``reason`` is the human-readable message fed back to the model.
    """

    error_code = ErrorCode.TOOL_EXECUTION_FAILED

    def __init__(
        self,
        tool_name: str,
        code: str,
        reason: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(f"Failed to execute tool '{tool_name}': {reason}")
        self.tool_name = tool_name
        self.code = code
        self.reason = reason
        self.cause = cause


class ToolNotFoundError(ToolError):
    """Raised when no registered tool has the requested name."""

    error_code = ErrorCode.TOOL_NOT_FOUND

    def __init__(self, tool_name: str) -> None:
        super().__init__(
            tool_name=tool_name,
            code="TOOL_NOT_FOUND",
            reason=f"tool '{tool_name}' is not registered",
        )


class ToolExecutionError(ToolError):
    """Raised when a tool fails with an exception that is not a ToolError."""

    def __init__(self, tool_name: str, cause: BaseException) -> None:
        super().__init__(
            tool_name=tool_name,
            code="EXECUTION_FAILED",
            reason=str(cause) or type(cause).__name__,
            cause=cause,
        )


class DuplicateToolError(TurnLoopError):
    """Raised when two tools are registered under the same name."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(
            f"Failed to build tool registry: tool '{tool_name}' registered twice"
        )
