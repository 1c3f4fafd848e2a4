"""TransportRequest value object: everything one streaming model call needs."""

from pydantic import BaseModel, Field

from turnloop.conversation.domain.history import HistoryEntry
from turnloop.tools.domain.schema import ToolSchema


class GenerationSettings(BaseModel, frozen=True):
    model: str = Field(min_length=1)
    temperature: float | None = Field(default=None, ge=0.0)
    max_output_tokens: int | None = Field(default=None, ge=1)


class TransportRequest(BaseModel, frozen=True):
    history: list[HistoryEntry]
    system_instruction: str | None
    tool_schemas: list[ToolSchema]
    generation: GenerationSettings
