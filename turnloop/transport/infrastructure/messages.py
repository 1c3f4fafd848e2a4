"""Converts conversation history and tool schemas to OpenAI-style chat payloads."""

import json
from typing import Any

from turnloop.conversation.domain.history import (
    HistoryEntry,
    InlineMediaPart,
    TextPart,
    ToolCallPart,
    ToolResultPart,
)
from turnloop.tools.domain.schema import ToolSchema

type ChatMessage = dict[str, Any]


def build_messages(
    history: list[HistoryEntry], system_instruction: str | None
) -> list[ChatMessage]:
    """Translate history into the chat message list litellm expects.

    Model entries become assistant messages (with ``tool_calls`` when the
    model invoked tools). Tool results become ``tool`` messages placed directly
    after the assistant message that requested them; any text or media in the
    same user entry follows as a regular user message.
    """
    messages: list[ChatMessage] = []
    if system_instruction:
        messages.append({"role": "system", "content": system_instruction})

    for entry in history:
        if entry.role == "model":
            messages.append(_assistant_message(entry))
        else:
            messages.extend(_user_messages(entry))
    return messages


def build_tools(tool_schemas: list[ToolSchema]) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": schema.name,
                "description": schema.description,
                "parameters": schema.parameters,
            },
        }
        for schema in tool_schemas
    ]


def _assistant_message(entry: HistoryEntry) -> ChatMessage:
    message: ChatMessage = {"role": "assistant", "content": entry.text or None}
    tool_calls = [
        {
            "id": part.call_id,
            "type": "function",
            "function": {"name": part.name, "arguments": json.dumps(part.args)},
        }
        for part in entry.parts
        if isinstance(part, ToolCallPart)
    ]
    if tool_calls:
        message["tool_calls"] = tool_calls
    return message


def _user_messages(entry: HistoryEntry) -> list[ChatMessage]:
    messages: list[ChatMessage] = [
        {"role": "tool", "tool_call_id": part.call_id, "content": part.result}
        for part in entry.parts
        if isinstance(part, ToolResultPart)
    ]

    content: list[dict[str, Any]] = []
    for part in entry.parts:
        if isinstance(part, TextPart):
            content.append({"type": "text", "text": part.text})
        elif isinstance(part, InlineMediaPart):
            content.append(
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{part.mime_type};base64,{part.data}"},
                }
            )

    if len(content) == 1 and content[0]["type"] == "text":
        messages.append({"role": "user", "content": content[0]["text"]})
    elif content:
        messages.append({"role": "user", "content": content})
    return messages
