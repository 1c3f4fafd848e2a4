"""MessageError value object and the closed error taxonomy surfaced to callers."""

from collections.abc import Callable
from enum import StrEnum

from pydantic import BaseModel


class ErrorCode(StrEnum):
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    API_ERROR = "API_ERROR"
    CONTENT_BLOCKED = "CONTENT_BLOCKED"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    NETWORK_ERROR = "NETWORK_ERROR"
    USER_DENIED_EXECUTION = "USER_DENIED_EXECUTION"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    TOOL_EXECUTION_FAILED = "TOOL_EXECUTION_FAILED"


# Transport faults recovered locally by the bounded retry; everything else is fatal.
RETRYABLE_CODES: frozenset[ErrorCode] = frozenset(
    {ErrorCode.RATE_LIMIT_EXCEEDED, ErrorCode.API_ERROR}
)


class MessageError(BaseModel, frozen=True):
    """Structured failure attached to an exchange that terminated with an error."""

    code: ErrorCode
    message: str
    details: str | None = None


type ErrorClassifier = Callable[[BaseException], MessageError]
