"""ExchangeResult value object: the outcome of one full exchange."""

from typing import Any, Literal

from pydantic import BaseModel

from turnloop.conversation.domain.error import MessageError
from turnloop.conversation.domain.history import HistoryEntry
from turnloop.conversation.domain.tool_event import ToolCallEvent

type ExchangeStatus = Literal["complete", "error", "cancelled"]


class ExchangeResult(BaseModel, frozen=True):
    status: ExchangeStatus
    text: str
    metadata: dict[str, Any] | None = None
    error: MessageError | None = None
    history: list[HistoryEntry]
    tool_events: list[ToolCallEvent]
