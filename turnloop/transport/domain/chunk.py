"""ResponseChunk value object: one partial response read from the model stream."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from turnloop.conversation.domain.tool_event import ToolCallRequest


class FinishReason(StrEnum):
    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"
    OTHER = "other"


class ResponseChunk(BaseModel, frozen=True):
    """A text delta, completed tool calls and/or a terminal finish reason."""

    text: str | None = None
    tool_calls: list[ToolCallRequest] = []
    finish_reason: FinishReason | None = None
    metadata: dict[str, Any] | None = None
