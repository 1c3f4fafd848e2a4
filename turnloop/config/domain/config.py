"""Top-level AppConfig aggregate: the root configuration object."""

from pydantic import BaseModel, Field

from turnloop.config.domain.conversation import ConversationConfig
from turnloop.config.domain.execution import RetryConfig
from turnloop.config.domain.model import ModelConfig


class AppConfig(BaseModel, frozen=True):
    """Root configuration aggregate for a turnloop conversation."""

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    model: ModelConfig
    conversation: ConversationConfig = ConversationConfig()
    retry: RetryConfig = RetryConfig()
    tools: list[str] = []
