"""Tests for history-to-chat-message conversion."""

from turnloop.conversation.domain.history import (
    HistoryEntry,
    InlineMediaPart,
    TextPart,
    ToolCallPart,
    ToolResultPart,
    model_text,
    user_text,
)
from turnloop.tools.domain.schema import ToolSchema
from turnloop.transport.infrastructure.messages import build_messages, build_tools


class TestBuildMessages:
    def test_system_instruction_comes_first(self) -> None:
        messages = build_messages([user_text("hi")], system_instruction="Be brief.")

        assert messages == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "hi"},
        ]

    def test_no_system_message_without_instruction(self) -> None:
        messages = build_messages([model_text("hello")], system_instruction=None)

        assert messages == [{"role": "assistant", "content": "hello"}]

    def test_tool_calls_and_results_round_out_an_exchange(self) -> None:
        history = [
            user_text("What is 2 + 2?"),
            HistoryEntry(
                role="model",
                parts=[
                    TextPart(text="Computing."),
                    ToolCallPart(call_id="c1", name="calculator", args={"expression": "2+2"}),
                ],
            ),
            HistoryEntry(
                role="user",
                parts=[ToolResultPart(call_id="c1", name="calculator", result="4")],
            ),
        ]

        messages = build_messages(history, system_instruction=None)

        assert messages[1] == {
            "role": "assistant",
            "content": "Computing.",
            "tool_calls": [
                {
                    "id": "c1",
                    "type": "function",
                    "function": {"name": "calculator", "arguments": '{"expression": "2+2"}'},
                }
            ],
        }
        assert messages[2] == {"role": "tool", "tool_call_id": "c1", "content": "4"}
        assert len(messages) == 3

    def test_assistant_with_only_tool_calls_has_null_content(self) -> None:
        entry = HistoryEntry(
            role="model", parts=[ToolCallPart(call_id="c1", name="noop", args={})]
        )

        (message,) = build_messages([entry], system_instruction=None)

        assert message["content"] is None

    def test_inline_media_follows_tool_results_as_image_content(self) -> None:
        entry = HistoryEntry(
            role="user",
            parts=[
                InlineMediaPart(mime_type="image/png", data="iVBORw0KGgo="),
                ToolResultPart(
                    call_id="c1",
                    name="capture_code_output_screenshot",
                    result="Screenshot captured.",
                ),
            ],
        )

        tool_message, image_message = build_messages([entry], system_instruction=None)

        assert tool_message["role"] == "tool"
        assert image_message == {
            "role": "user",
            "content": [
                {
                    "type": "image_url",
                    "image_url": {"url": "data:image/png;base64,iVBORw0KGgo="},
                }
            ],
        }


class TestBuildTools:
    def test_wraps_schemas_as_functions(self) -> None:
        schema = ToolSchema(
            name="calculator",
            description="Does math.",
            parameters={"type": "object", "properties": {"expression": {"type": "string"}}},
        )

        assert build_tools([schema]) == [
            {
                "type": "function",
                "function": {
                    "name": "calculator",
                    "description": "Does math.",
                    "parameters": schema.parameters,
                },
            }
        ]
