"""TurnLoop: executes one model turn: request, stream, plan gate, tools, continuation."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any

from turnloop.config.domain.conversation import ConversationConfig
from turnloop.config.domain.execution import RetryConfig
from turnloop.conversation.application.tool_dispatch import ToolDispatcher
from turnloop.conversation.domain.callbacks import ConversationCallbacks
from turnloop.conversation.domain.cancellation import (
    CancellationToken,
    ExchangeCancelledError,
)
from turnloop.conversation.domain.error import (
    RETRYABLE_CODES,
    ErrorClassifier,
    ErrorCode,
    MessageError,
)
from turnloop.conversation.domain.history import (
    HistoryEntry,
    Part,
    TextPart,
    ToolCallPart,
    model_text,
    user_text,
)
from turnloop.conversation.domain.observer import ConversationObserver
from turnloop.conversation.domain.state import LoopState
from turnloop.conversation.domain.tool_event import ToolCallEvent, ToolCallRequest
from turnloop.conversation.domain.turn import (
    NextAction,
    SettledTurn,
    TurnAborted,
    TurnComplete,
    TurnFailed,
    TurnRunning,
)
from turnloop.tools.domain.schema import ToolSchema
from turnloop.transport.domain.chunk import FinishReason, ResponseChunk
from turnloop.transport.domain.request import GenerationSettings, TransportRequest
from turnloop.transport.domain.transport import ModelTransport
from turnloop.workflow.application.parser import extract_plan, parse_workflow
from turnloop.workflow.domain.markers import (
    APPROVAL_SENTINEL,
    CONTINUE_PROMPT,
    CONTINUE_SENTINEL,
    PLAN_APPROVED_PROMPT,
    strip_continue_sentinels,
)


@dataclass
class _TurnProgress:
    """What one turn has read from the stream so far."""

    prior_text: str
    plan_approved: bool
    turn_text: str = ""
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    finish_reason: FinishReason | None = None
    metadata: dict[str, Any] | None = None

    @property
    def cumulative_text(self) -> str:
        return self.prior_text + self.turn_text


async def _next_chunk(
    stream: AsyncGenerator[ResponseChunk, None],
) -> ResponseChunk | None:
    return await anext(stream, None)


class TurnLoop:
    """Executes single turns of an exchange and settles each into one outcome.

    The loop publishes streamed text and tool events on the state it is
    given but never its history: a running turn carries the history patch
    the orchestrator applies before the next turn. A cancelled
    turn settles as TurnAborted and leaves no patch behind.
    """

    def __init__(
        self,
        transport: ModelTransport,
        dispatcher: ToolDispatcher,
        tool_schemas: list[ToolSchema],
        generation: GenerationSettings,
        conversation: ConversationConfig,
        retry: RetryConfig,
        callbacks: ConversationCallbacks,
        observer: ConversationObserver,
        classify: ErrorClassifier,
    ) -> None:
        self._transport = transport
        self._dispatcher = dispatcher
        self._tool_schemas = tool_schemas
        self._generation = generation
        self._conversation = conversation
        self._retry = retry
        self._callbacks = callbacks
        self._observer = observer
        self._classify = classify

    @property
    def plan_gating(self) -> bool:
        return self._conversation.plan_gating

    async def execute_turn(
        self, state: LoopState, token: CancellationToken
    ) -> SettledTurn:
        try:
            return await self._execute(state=state, token=token)
        except ExchangeCancelledError:
            return TurnAborted()

    async def _execute(self, state: LoopState, token: CancellationToken) -> SettledTurn:
        token.raise_if_cancelled()
        request = TransportRequest(
            history=state.history,
            system_instruction=self._conversation.effective_system_instruction(),
            tool_schemas=self._tool_schemas,
            generation=self._generation,
        )
        opened = await self._open_stream(request=request, token=token)
        if isinstance(opened, TurnFailed):
            return opened

        progress = _TurnProgress(
            prior_text=state.accumulated_text, plan_approved=state.plan_approved
        )
        async with aclosing(opened) as stream:
            outcome = await self._consume(
                stream=stream, state=state, progress=progress, token=token
            )
        if outcome is not None:
            return outcome

        if progress.tool_calls:
            return await self._run_tools(state=state, progress=progress, token=token)
        if (
            progress.turn_text.rstrip().endswith(CONTINUE_SENTINEL)
            or progress.finish_reason is FinishReason.LENGTH
        ):
            return self._continue_generation(state=state, progress=progress)
        return TurnComplete(
            text=strip_continue_sentinels(progress.cumulative_text),
            metadata=progress.metadata,
        )

    async def _open_stream(
        self, request: TransportRequest, token: CancellationToken
    ) -> AsyncGenerator[ResponseChunk, None] | TurnFailed:
        """Open the model stream, retrying retryable failures with exponential backoff."""
        max_attempts = self._retry.max_attempts
        backoff = float(self._retry.initial_backoff_seconds)

        attempt = 0
        while True:
            attempt += 1
            try:
                return await token.guard(self._transport.open_stream(request))
            except ExchangeCancelledError:
                raise
            except Exception as exc:
                error = self._classify(exc)

            if error.code not in RETRYABLE_CODES or attempt == max_attempts:
                self._observer.transport_failed(
                    attempt=attempt, code=error.code, reason=error.message
                )
                return TurnFailed(error=error)

            self._observer.transport_retry(
                attempt=attempt,
                max_attempts=max_attempts,
                code=error.code,
                reason=error.message,
                backoff_seconds=backoff,
            )
            await token.guard(asyncio.sleep(backoff))
            backoff *= self._retry.backoff_multiplier

    async def _consume(
        self,
        stream: AsyncGenerator[ResponseChunk, None],
        state: LoopState,
        progress: _TurnProgress,
        token: CancellationToken,
    ) -> SettledTurn | None:
        """Read the stream to its end. Returns an outcome only when the turn ends early."""
        while True:
            token.raise_if_cancelled()
            try:
                chunk = await token.guard(_next_chunk(stream))
            except ExchangeCancelledError:
                raise
            except Exception as exc:
                return TurnFailed(error=self._classify(exc))
            if chunk is None:
                return None

            if chunk.metadata is not None:
                progress.metadata = chunk.metadata
            if chunk.finish_reason is not None:
                progress.finish_reason = chunk.finish_reason
            if chunk.finish_reason is FinishReason.CONTENT_FILTER:
                return TurnFailed(
                    error=MessageError(
                        code=ErrorCode.CONTENT_BLOCKED,
                        message="The response was blocked by the provider's safety filters.",
                    )
                )
            progress.tool_calls.extend(chunk.tool_calls)

            if chunk.text:
                progress.turn_text += chunk.text
                self._publish(state, progress.cumulative_text)
                if self._awaits_approval(progress):
                    outcome = await self._gate_plan(
                        state=state, progress=progress, token=token
                    )
                    if outcome is not None:
                        return outcome

    def _awaits_approval(self, progress: _TurnProgress) -> bool:
        return (
            self._conversation.plan_gating
            and not progress.plan_approved
            and APPROVAL_SENTINEL in progress.cumulative_text
        )

    async def _gate_plan(
        self, state: LoopState, progress: _TurnProgress, token: CancellationToken
    ) -> SettledTurn | None:
        """Suspend until the caller resolves the plan; None means keep streaming."""
        parsed = parse_workflow(progress.cumulative_text, [], False)
        self._observer.plan_awaiting_approval(plan_length=len(parsed.plan))
        decision = await token.guard(self._callbacks.on_plan_ready(parsed))

        if decision is True:
            self._observer.plan_resolved(decision="approved")
            progress.plan_approved = True
            return None
        if decision is False:
            self._observer.plan_resolved(decision="denied")
            return TurnFailed(
                error=MessageError(
                    code=ErrorCode.USER_DENIED_EXECUTION,
                    message="The plan was denied; execution did not proceed.",
                    details=extract_plan(progress.cumulative_text) or None,
                )
            )

        self._observer.plan_resolved(decision="edited")
        edited = str(decision)
        cumulative = progress.prior_text + edited
        self._publish(state, cumulative)
        return TurnRunning(
            next_action=NextAction.CONTINUE_WITH_EDITED_PLAN,
            history_patch=[model_text(edited), user_text(PLAN_APPROVED_PROMPT)],
            text=cumulative,
            plan_approved=True,
        )

    async def _run_tools(
        self, state: LoopState, progress: _TurnProgress, token: CancellationToken
    ) -> SettledTurn:
        calls = [
            call if call.call_id else call.model_copy(update={"call_id": f"call-{index}"})
            for index, call in enumerate(progress.tool_calls)
        ]
        events: list[ToolCallEvent] = self._callbacks.on_new_tool_calls(calls)
        state.record(events)
        self._observer.tool_batch_started(tool_names=[call.name for call in calls])

        def report(event_id: str, result: str) -> None:
            state.settle(event_id, result)
            self._callbacks.on_tool_result(event_id, result)

        dispatched = await token.guard(self._dispatcher.dispatch(events, report))
        token.raise_if_cancelled()
        self._observer.tool_batch_completed(
            tool_count=len(dispatched),
            failed_count=sum(1 for outcome in dispatched if outcome.failed),
        )

        model_parts: list[Part] = []
        if progress.turn_text:
            model_parts.append(TextPart(text=progress.turn_text))
        model_parts.extend(
            ToolCallPart(call_id=event.call.call_id, name=event.call.name, args=event.call.args)
            for event in events
        )
        result_parts = [part for outcome in dispatched for part in outcome.parts]
        return TurnRunning(
            next_action=NextAction.CONTINUE_WITH_TOOLS,
            history_patch=[
                HistoryEntry(role="model", parts=model_parts),
                HistoryEntry(role="user", parts=result_parts),
            ],
            text=progress.cumulative_text,
            plan_approved=progress.plan_approved,
        )

    def _continue_generation(
        self, state: LoopState, progress: _TurnProgress
    ) -> TurnRunning:
        turn_text = progress.turn_text
        if not turn_text.rstrip().endswith(CONTINUE_SENTINEL):
            turn_text = f"{turn_text} {CONTINUE_SENTINEL}"
            progress.turn_text = turn_text
            self._publish(state, progress.cumulative_text)
        return TurnRunning(
            next_action=NextAction.CONTINUE_GENERATION,
            history_patch=[model_text(turn_text), user_text(CONTINUE_PROMPT)],
            text=progress.cumulative_text,
            plan_approved=progress.plan_approved,
        )

    def _publish(self, state: LoopState, text: str) -> None:
        state.accumulated_text = text
        self._callbacks.on_text_chunk(text)
