"""LiteLLMTransport: ModelTransport implementation streaming through LiteLLM."""

import json
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any

import litellm

from turnloop.conversation.domain.tool_event import ToolCallRequest
from turnloop.transport.domain.chunk import FinishReason, ResponseChunk
from turnloop.transport.domain.request import TransportRequest
from turnloop.transport.infrastructure.messages import build_messages, build_tools

_FINISH_REASONS: dict[str, FinishReason] = {
    "stop": FinishReason.STOP,
    "length": FinishReason.LENGTH,
    "tool_calls": FinishReason.TOOL_CALLS,
    "function_call": FinishReason.TOOL_CALLS,
    "content_filter": FinishReason.CONTENT_FILTER,
}


@dataclass
class _PendingToolCall:
    """Accumulates one streamed tool call; arguments arrive as JSON fragments."""

    call_id: str = ""
    name: str = ""
    arguments: list[str] = field(default_factory=list)

    def to_request(self) -> ToolCallRequest:
        raw = "".join(self.arguments)
        try:
            args = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError:
            args = {"raw_arguments": raw}
        if not isinstance(args, dict):
            args = {"value": args}
        return ToolCallRequest(name=self.name, args=args, call_id=self.call_id)


class LiteLLMTransport:
    """Streams chat completions from any provider LiteLLM supports.

    Satisfies the ModelTransport protocol structurally. Tool calls are emitted
    whole, on the chunk carrying the finish reason (or at end of stream).
    """

    def __init__(self, api_base: str | None = None, api_key: str | None = None) -> None:
        litellm.suppress_debug_info = True
        self._api_base = api_base
        self._api_key = api_key

    async def open_stream(
        self, request: TransportRequest
    ) -> AsyncGenerator[ResponseChunk, None]:
        """Send the request and return the chunk stream.

        Closing the returned stream closes the provider response.

        Raises:
            Exception: whatever litellm raises when the request is rejected;
                callers classify it with ``classify_error``.
        """
        kwargs: dict[str, Any] = {
            "model": request.generation.model,
            "messages": build_messages(
                history=request.history,
                system_instruction=request.system_instruction,
            ),
            "stream": True,
        }
        if request.tool_schemas:
            kwargs["tools"] = build_tools(request.tool_schemas)
        if request.generation.temperature is not None:
            kwargs["temperature"] = request.generation.temperature
        if request.generation.max_output_tokens is not None:
            kwargs["max_tokens"] = request.generation.max_output_tokens
        if self._api_base is not None:
            kwargs["api_base"] = self._api_base
        if self._api_key is not None:
            kwargs["api_key"] = self._api_key

        response = await litellm.acompletion(**kwargs)
        return self._chunks(response)

    async def _chunks(self, response: Any) -> AsyncGenerator[ResponseChunk, None]:
        # Keyed by the delta's tool-call index, in arrival order.
        pending: dict[int, _PendingToolCall] = {}
        try:
            async for chunk in response:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta

                for tool_delta in getattr(delta, "tool_calls", None) or []:
                    index = tool_delta.index if tool_delta.index is not None else 0
                    call = pending.setdefault(index, _PendingToolCall())
                    if tool_delta.id:
                        call.call_id = tool_delta.id
                    function = tool_delta.function
                    if function is not None:
                        if function.name:
                            call.name = function.name
                        if function.arguments:
                            call.arguments.append(function.arguments)

                finish_reason = _map_finish_reason(choice.finish_reason)
                tool_calls: list[ToolCallRequest] = []
                if finish_reason is not None and pending:
                    tool_calls = [call.to_request() for call in pending.values()]
                    pending.clear()

                text = getattr(delta, "content", None) or None
                if text or tool_calls or finish_reason is not None:
                    yield ResponseChunk(
                        text=text,
                        tool_calls=tool_calls,
                        finish_reason=finish_reason,
                    )

            if pending:
                yield ResponseChunk(
                    tool_calls=[call.to_request() for call in pending.values()]
                )
        finally:
            await _close_response(response)


async def _close_response(response: Any) -> None:
    # Only some litellm stream wrappers expose aclose.
    aclose = getattr(response, "aclose", None)
    if aclose is not None:
        await aclose()


def _map_finish_reason(raw: str | None) -> FinishReason | None:
    if raw is None:
        return None
    return _FINISH_REASONS.get(raw, FinishReason.OTHER)
