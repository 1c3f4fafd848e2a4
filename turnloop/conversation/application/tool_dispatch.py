"""ToolDispatcher: runs one batch of tool calls concurrently and shapes their results."""

import asyncio
from collections.abc import Callable

from pydantic import BaseModel

from turnloop.conversation.domain.history import InlineMediaPart, Part, ToolResultPart
from turnloop.conversation.domain.tool_event import ToolCallEvent
from turnloop.tools.domain.errors import ToolError
from turnloop.tools.domain.tool import ToolExecutor
from turnloop.workflow.domain.markers import TOOL_FAILURE_PREFIX

_SCREENSHOT_ACK = "Screenshot captured."

type ResultReporter = Callable[[str, str], None]


class DispatchedTool(BaseModel, frozen=True):
    """The settled outcome of one tool call: its reported result and history parts."""

    event_id: str
    result: str
    failed: bool
    parts: list[Part]


class ToolDispatcher:
    """Executes every tool call of a turn concurrently.

    A failing tool never fails the batch: its error becomes a
    ``Tool execution failed`` result the model can react to. Results are
    reported as each call settles; the returned list keeps call order.
    """

    def __init__(
        self, executor: ToolExecutor, visual_capture_tools: frozenset[str]
    ) -> None:
        self._executor = executor
        self._visual_capture_tools = visual_capture_tools

    async def dispatch(
        self, events: list[ToolCallEvent], report: ResultReporter
    ) -> list[DispatchedTool]:
        return list(
            await asyncio.gather(*(self._run_one(event, report) for event in events))
        )

    async def _run_one(
        self, event: ToolCallEvent, report: ResultReporter
    ) -> DispatchedTool:
        call = event.call
        try:
            result = await self._executor.execute(call.name, call.args)
        except ToolError as exc:
            failure = f"{TOOL_FAILURE_PREFIX}. Code: {exc.code}. Reason: {exc.reason}"
            report(event.id, failure)
            return _failed(event, failure)
        except Exception as exc:
            failure = f"{TOOL_FAILURE_PREFIX}. Reason: {str(exc) or type(exc).__name__}"
            report(event.id, failure)
            return _failed(event, failure)

        report(event.id, result)
        if call.name in self._visual_capture_tools:
            parts: list[Part] = [
                InlineMediaPart(mime_type="image/png", data=result),
                ToolResultPart(call_id=call.call_id, name=call.name, result=_SCREENSHOT_ACK),
            ]
        else:
            parts = [ToolResultPart(call_id=call.call_id, name=call.name, result=result)]
        return DispatchedTool(event_id=event.id, result=result, failed=False, parts=parts)


def _failed(event: ToolCallEvent, failure: str) -> DispatchedTool:
    return DispatchedTool(
        event_id=event.id,
        result=failure,
        failed=True,
        parts=[
            ToolResultPart(
                call_id=event.call.call_id, name=event.call.name, result=failure
            )
        ],
    )
