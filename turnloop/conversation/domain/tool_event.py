"""ToolCallRequest and ToolCallEvent value objects: tool invocations seen in a turn."""

import time
import uuid
from typing import Any

from pydantic import BaseModel, Field

from turnloop.core.errors import TurnLoopError


class ToolEventAlreadySettledError(TurnLoopError):
    """Raised when a result is recorded twice for the same tool call event."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            f"Failed to settle tool call event: '{event_id}' already has a result"
        )


class ToolCallRequest(BaseModel, frozen=True):
    """A tool invocation emitted by the model: a name and its arguments."""

    name: str = Field(min_length=1)
    args: dict[str, Any] = {}
    call_id: str = ""


class ToolCallEvent(BaseModel, frozen=True):
    """One tool invocation tracked from the moment it is observed until it settles.

    ``result`` and ``end_time`` are set exactly once, through ``settle``.
    Timestamps are wall-clock seconds (``time.time()``).
    """

    id: str = Field(min_length=1)
    call: ToolCallRequest
    result: str | None = None
    start_time: float | None = None
    end_time: float | None = None

    @classmethod
    def begin(cls, call: ToolCallRequest) -> "ToolCallEvent":
        """Create an unsettled event for a freshly observed tool call."""
        return cls(
            id=f"{call.name}-{uuid.uuid4().hex[:7]}",
            call=call,
            start_time=time.time(),
        )

    @property
    def settled(self) -> bool:
        return self.result is not None

    def settle(self, result: str, end_time: float | None = None) -> "ToolCallEvent":
        """Return a copy carrying the tool's result.

        Raises:
            ToolEventAlreadySettledError: if this event already has a result.
        """
        if self.settled:
            raise ToolEventAlreadySettledError(event_id=self.id)
        return self.model_copy(
            update={
                "result": result,
                "end_time": end_time if end_time is not None else time.time(),
            }
        )
