"""ConversationCallbacks port: how the loop reports progress to its caller."""

from typing import Any, Protocol

from turnloop.conversation.domain.error import MessageError
from turnloop.conversation.domain.tool_event import ToolCallEvent, ToolCallRequest
from turnloop.workflow.domain.node import ParsedWorkflow


class ConversationCallbacks(Protocol):
    """Receives the live view of one exchange.

    ``on_text_chunk`` always carries the cumulative text of the exchange so
    far, never a delta. Exactly one of ``on_complete``, ``on_error`` or
    ``on_cancel`` is invoked, once, at the end of the exchange.

    ``on_plan_ready`` resolves to True (approve), False (deny) or a string
    holding an edited plan that replaces the model's.
    """

    def on_text_chunk(self, text: str) -> None: ...

    def on_new_tool_calls(self, calls: list[ToolCallRequest]) -> list[ToolCallEvent]: ...

    def on_tool_result(self, event_id: str, result: str) -> None: ...

    async def on_plan_ready(self, plan: ParsedWorkflow) -> bool | str: ...

    def on_complete(self, text: str, metadata: dict[str, Any] | None) -> None: ...

    def on_cancel(self) -> None: ...

    def on_error(self, error: MessageError) -> None: ...
