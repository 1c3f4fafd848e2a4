"""WorkflowNode and ParsedWorkflow value objects: the renderable execution log."""

from enum import StrEnum

from pydantic import BaseModel

from turnloop.conversation.domain.error import MessageError
from turnloop.conversation.domain.tool_event import ToolCallEvent


class WorkflowNodeType(StrEnum):
    PLAN = "plan"
    THOUGHT = "thought"
    OBSERVATION = "observation"
    TOOL = "tool"
    HANDOFF = "handoff"
    VALIDATION = "validation"
    CORRECTION = "correction"
    ACT_MARKER = "act_marker"


class WorkflowNodeStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    DONE = "done"
    FAILED = "failed"


class Handoff(BaseModel, frozen=True):
    from_agent: str
    to_agent: str


class WorkflowNode(BaseModel, frozen=True):
    """One step or tool entry of the execution log.

    ``details`` is the step body for text nodes, the ToolCallEvent for tool
    nodes, and the MessageError for the node an exchange failed on.
    ``duration`` is in seconds and only set for settled tool nodes.
    """

    id: str
    type: WorkflowNodeType
    title: str
    status: WorkflowNodeStatus
    details: str | ToolCallEvent | MessageError
    agent_name: str | None = None
    handoff: Handoff | None = None
    duration: float | None = None

    @property
    def in_flight(self) -> bool:
        return self.status in (WorkflowNodeStatus.PENDING, WorkflowNodeStatus.ACTIVE)


class ParsedWorkflow(BaseModel, frozen=True):
    """The Workflow Parser's sole output: the plan text and the ordered log."""

    plan: str
    execution_log: list[WorkflowNode]
