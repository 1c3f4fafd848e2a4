"""Settled outcomes of one turn of the loop."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from turnloop.conversation.domain.error import MessageError
from turnloop.conversation.domain.history import HistoryEntry


class NextAction(StrEnum):
    CONTINUE_WITH_TOOLS = "continue_with_tools"
    CONTINUE_GENERATION = "continue_generation"
    CONTINUE_WITH_EDITED_PLAN = "continue_with_edited_plan"


class TurnComplete(BaseModel, frozen=True):
    """The model produced its final answer; the exchange is over."""

    text: str
    metadata: dict[str, Any] | None = None


class TurnRunning(BaseModel, frozen=True):
    """The exchange continues with another turn.

    ``history_patch`` is appended to the history before the next request;
    ``text`` is the cumulative exchange text after this turn.
    """

    next_action: NextAction
    history_patch: list[HistoryEntry]
    text: str
    plan_approved: bool


class TurnFailed(BaseModel, frozen=True):
    error: MessageError


class TurnAborted(BaseModel, frozen=True):
    """The exchange was cancelled mid-turn; no history patch was produced."""


type SettledTurn = TurnComplete | TurnRunning | TurnFailed | TurnAborted
