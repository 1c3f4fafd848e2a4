"""Conversation history value objects: the parts a turn is made of."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class TextPart(BaseModel, frozen=True):
    kind: Literal["text"] = "text"
    text: str


class InlineMediaPart(BaseModel, frozen=True):
    """Binary media (base64) sent to the model alongside text, e.g. a screenshot."""

    kind: Literal["inline_media"] = "inline_media"
    mime_type: str
    data: str


class ToolCallPart(BaseModel, frozen=True):
    """A tool invocation the model made during its turn."""

    kind: Literal["tool_call"] = "tool_call"
    call_id: str
    name: str
    args: dict[str, Any]


class ToolResultPart(BaseModel, frozen=True):
    """The environment's reply to one prior tool call."""

    kind: Literal["tool_result"] = "tool_result"
    call_id: str
    name: str
    result: str


Part = Annotated[
    TextPart | InlineMediaPart | ToolCallPart | ToolResultPart,
    Field(discriminator="kind"),
]

Role = Literal["user", "model"]


class HistoryEntry(BaseModel, frozen=True):
    """One entry of the conversation history.

    A model entry may mix text and tool-call parts ("said X, then invoked Y").
    A user entry holding tool-result parts is the environment's reply to the
    tool calls of the preceding model entry.
    """

    role: Role
    parts: list[Part]

    @property
    def text(self) -> str:
        """Concatenated text of every TextPart in this entry."""
        return "".join(part.text for part in self.parts if isinstance(part, TextPart))


def user_text(text: str) -> HistoryEntry:
    return HistoryEntry(role="user", parts=[TextPart(text=text)])


def model_text(text: str) -> HistoryEntry:
    return HistoryEntry(role="model", parts=[TextPart(text=text)])
