"""ConversationOrchestrator: drives turns until an exchange settles."""

from typing import Any

from turnloop.conversation.application.turn_loop import TurnLoop
from turnloop.conversation.domain.callbacks import ConversationCallbacks
from turnloop.conversation.domain.cancellation import CancellationToken
from turnloop.conversation.domain.error import ErrorClassifier, MessageError
from turnloop.conversation.domain.history import HistoryEntry
from turnloop.conversation.domain.observer import ConversationObserver
from turnloop.conversation.domain.result import ExchangeResult, ExchangeStatus
from turnloop.conversation.domain.state import LoopState
from turnloop.conversation.domain.turn import (
    TurnAborted,
    TurnComplete,
    TurnFailed,
    TurnRunning,
)
from turnloop.workflow.application.parser import parse_workflow
from turnloop.workflow.domain.node import ParsedWorkflow


class ConversationOrchestrator:
    """Runs one exchange: turns are executed in a loop until one settles terminally.

    An orchestrator serves a single exchange at a time; every ``run`` starts
    from a fresh LoopState. Exactly one of ``on_complete``, ``on_error`` or
    ``on_cancel`` reaches the callbacks per run.
    """

    def __init__(
        self,
        turn_loop: TurnLoop,
        callbacks: ConversationCallbacks,
        observer: ConversationObserver,
        classify: ErrorClassifier,
    ) -> None:
        self._turn_loop = turn_loop
        self._callbacks = callbacks
        self._observer = observer
        self._classify = classify
        self._state = LoopState(history=[])
        self._error: MessageError | None = None

    async def run(
        self, history: list[HistoryEntry], token: CancellationToken | None = None
    ) -> ExchangeResult:
        token = token or CancellationToken()
        self._state = LoopState(history=list(history))
        self._error = None
        self._observer.exchange_started(
            history_length=len(history), plan_gating=self._turn_loop.plan_gating
        )

        while True:
            self._observer.turn_started(turn_index=self._state.turn_count)
            try:
                turn = await self._turn_loop.execute_turn(self._state, token)
            except Exception as exc:
                turn = TurnFailed(error=self._classify(exc))
            self._state.turn_count += 1

            match turn:
                case TurnRunning():
                    # A cancelled exchange takes no further history.
                    if token.cancelled:
                        return self._cancel()
                    self._state.advance(turn)
                case TurnComplete(text=text, metadata=metadata):
                    return self._complete(text=text, metadata=metadata)
                case TurnFailed(error=error):
                    return self._fail(error=error)
                case TurnAborted():
                    return self._cancel()

    def workflow(self) -> ParsedWorkflow:
        """Project the exchange so far into its plan and execution log."""
        return parse_workflow(
            self._state.accumulated_text,
            self._state.tool_events,
            self._state.completed,
            self._error,
        )

    def _complete(self, text: str, metadata: dict[str, Any] | None) -> ExchangeResult:
        self._state.completed = True
        self._observer.exchange_completed(
            turn_count=self._state.turn_count, text_length=len(text)
        )
        self._callbacks.on_complete(text, metadata)
        return self._result(status="complete", text=text, metadata=metadata)

    def _fail(self, error: MessageError) -> ExchangeResult:
        self._error = error
        self._observer.exchange_failed(
            turn_count=self._state.turn_count, code=error.code, reason=error.message
        )
        self._callbacks.on_error(error)
        return self._result(status="error", text=self._state.accumulated_text)

    def _cancel(self) -> ExchangeResult:
        self._observer.exchange_cancelled(turn_count=self._state.turn_count)
        self._callbacks.on_cancel()
        return self._result(status="cancelled", text=self._state.accumulated_text)

    def _result(
        self, status: ExchangeStatus, text: str, metadata: dict[str, Any] | None = None
    ) -> ExchangeResult:
        return ExchangeResult(
            status=status,
            text=text,
            metadata=metadata,
            error=self._error,
            history=self._state.history,
            tool_events=self._state.tool_events,
        )
