"""Model configuration model."""

from pydantic import BaseModel, Field


class ModelConfig(BaseModel, frozen=True):
    model: str = Field(min_length=1)
    temperature: float | None = Field(default=None, ge=0.0)
    max_output_tokens: int | None = Field(default=None, ge=1)
    api_base: str | None = None
    api_key: str | None = None
