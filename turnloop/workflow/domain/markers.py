"""In-band sentinel markers used for control signalling in the model's text stream.

These are structural: they drive plan gating, auto-continuation and workflow
parsing, and must never be shown verbatim as user-facing content.
"""

STEP_MARKER = "[STEP]"
PLAN_MARKER = "[STEP] Strategic Plan:"
APPROVAL_SENTINEL = "[USER_APPROVAL_REQUIRED]"
CONTINUE_SENTINEL = "[AUTO_CONTINUE]"

# Prefix of every tool-result string produced for a failed tool execution.
TOOL_FAILURE_PREFIX = "Tool execution failed"

CONTINUE_PROMPT = "Continue"
PLAN_APPROVED_PROMPT = "The plan is approved. Proceed with execution."


def strip_continue_sentinels(text: str) -> str:
    """Remove every continuation sentinel and surrounding whitespace from text."""
    return text.replace(CONTINUE_SENTINEL, "").strip()
