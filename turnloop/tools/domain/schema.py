"""ToolSchema value object: the declaration a model sees for one tool."""

from typing import Any

from pydantic import BaseModel, Field


class ToolSchema(BaseModel, frozen=True):
    name: str = Field(min_length=1)
    description: str
    parameters: dict[str, Any] = {"type": "object", "properties": {}}
