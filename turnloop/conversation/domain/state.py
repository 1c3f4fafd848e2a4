"""LoopState: the mutable state of one exchange, owned by its orchestrator."""

from dataclasses import dataclass, field

from turnloop.conversation.domain.history import HistoryEntry
from turnloop.conversation.domain.tool_event import ToolCallEvent
from turnloop.conversation.domain.turn import TurnRunning


@dataclass
class LoopState:
    """History, cumulative text and tool events of the exchange in progress.

    ``accumulated_text`` only grows by appending, except when the caller
    replaces the plan with an edited one. Tool events are kept in call order.
    """

    history: list[HistoryEntry]
    accumulated_text: str = ""
    plan_approved: bool = False
    completed: bool = False
    turn_count: int = 0
    _events: dict[str, ToolCallEvent] = field(default_factory=dict)

    @property
    def tool_events(self) -> list[ToolCallEvent]:
        return list(self._events.values())

    def record(self, events: list[ToolCallEvent]) -> None:
        for event in events:
            self._events[event.id] = event

    def settle(self, event_id: str, result: str) -> None:
        event = self._events.get(event_id)
        if event is not None:
            self._events[event_id] = event.settle(result)

    def advance(self, turn: TurnRunning) -> None:
        """Apply a running turn: extend history and adopt its cumulative text."""
        self.history = [*self.history, *turn.history_patch]
        self.accumulated_text = turn.text
        self.plan_approved = turn.plan_approved
