"""Conversation configuration model."""

from pydantic import BaseModel, Field

_MEMORY_HEADER = (
    "// SECTION 0: CONVERSATION MEMORY\n"
    "// Here is a summary of key information from past conversations.\n"
)


class ConversationConfig(BaseModel, frozen=True):
    """Static per-conversation settings for the turn loop.

    ``plan_gating`` suspends the loop for human approval the first time the
    model signals that its plan is ready. Tools named in
    ``visual_capture_tools`` return base64 PNG data that is sent back to the
    model as an image.
    """

    system_instruction: str = ""
    system_prompt: str | None = None
    memory_content: str | None = None
    plan_gating: bool = False
    visual_capture_tools: list[str] = Field(
        default_factory=lambda: ["capture_code_output_screenshot"]
    )

    def effective_system_instruction(self) -> str | None:
        """Combine system prompt, memory section and system instruction."""
        instruction = self.system_instruction
        if self.memory_content:
            instruction = f"{_MEMORY_HEADER}{self.memory_content}\n\n{instruction}"
        if self.system_prompt:
            instruction = f"{self.system_prompt}\n\n{instruction}"
        return instruction.strip() or None
