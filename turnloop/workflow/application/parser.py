"""Workflow Parser: projects raw model text plus tool events into an execution log.

The parser is a pure function of its inputs: it keeps no state between calls
and node ids derive only from position (``step-<n>``) or from the tool event
id, so it is safe to call on every streamed text chunk.

Grammar of the execution text (everything after the plan)::

    execution  := step*
    step       := line-start "[STEP]" ws* title ":" ws* body
    line-start := start of the execution text | "\\n"
    title      := any characters except newline, up to the first ":"
    body       := any characters, up to the next line-start "[STEP]" or end of text

A ``[STEP]`` that does not begin a line is body text of the enclosing step.
A marker whose title line has no colon does not start a step; its text is
dropped together with the marker.
"""

import re
from collections import deque

from turnloop.conversation.domain.error import MessageError
from turnloop.conversation.domain.tool_event import ToolCallEvent
from turnloop.workflow.domain.markers import (
    APPROVAL_SENTINEL,
    CONTINUE_SENTINEL,
    PLAN_MARKER,
    STEP_MARKER,
    TOOL_FAILURE_PREFIX,
)
from turnloop.workflow.domain.node import (
    Handoff,
    ParsedWorkflow,
    WorkflowNode,
    WorkflowNodeStatus,
    WorkflowNodeType,
)

_STEP_PATTERN = re.compile(
    r"(?:\A|\n)"
    + re.escape(STEP_MARKER)
    + r"\s*(?P<title>[^\n]*?):\s*(?P<body>.*?)(?=\n"
    + re.escape(STEP_MARKER)
    + r"|\Z)",
    re.DOTALL,
)
_AGENT_PATTERN = re.compile(r"\[AGENT:\s*(?P<name>[^\]]+)\]\s*")
_HANDOFF_BODY_PATTERN = re.compile(
    r"^(?P<from_agent>[^\n]*?)\s*->\s*(?P<to_agent>[^\n:]*?)\s*(?::|\n|$)\s*"
)

_FINAL_ANSWER_TITLE = "final answer"
_THOUGHT_TITLES = frozenset({"think", "adapt"})
_ACTION_TITLES = frozenset({"act", "action", "tool call"})
_PROCEDURAL_TITLES = frozenset({"system"})
_NO_DETAILS = "No details provided."

_IN_FLIGHT = (WorkflowNodeStatus.PENDING, WorkflowNodeStatus.ACTIVE)


def parse_workflow(
    raw_text: str,
    tool_events: list[ToolCallEvent],
    is_complete: bool,
    error: MessageError | None = None,
) -> ParsedWorkflow:
    """Build the plan and the status-annotated execution log for the current text.

    Text steps and tool results arrive on separate channels; tool nodes are
    placed at the "act" steps in the order the tools were called, so the log
    stays chronological whichever tool settled first.
    """
    plan, execution_text = _split(raw_text)
    text_nodes = _scan_steps(execution_text)
    log = _interleave(text_nodes=text_nodes, tool_events=tool_events)
    log = _propagate_statuses(log=log, is_complete=is_complete, error=error)
    return ParsedWorkflow(plan=plan, execution_log=log)


def extract_plan(raw_text: str) -> str:
    """Return the sanitized plan text of raw_text (the parser's plan/execution split)."""
    plan, _ = _split(raw_text)
    return plan


def _split(raw_text: str) -> tuple[str, str]:
    plan_index = raw_text.find(PLAN_MARKER)
    if plan_index != -1:
        plan_start = plan_index + len(PLAN_MARKER)
        next_step = raw_text.find(STEP_MARKER, plan_start)
        if next_step != -1:
            plan, execution = raw_text[plan_start:next_step], raw_text[next_step:]
        else:
            plan, execution = raw_text[plan_start:], ""
    else:
        first_step = raw_text.find(STEP_MARKER)
        if first_step != -1:
            plan, execution = raw_text[:first_step], raw_text[first_step:]
        else:
            plan, execution = raw_text, ""

    plan = _AGENT_PATTERN.sub("", plan, count=1).replace(APPROVAL_SENTINEL, "", 1)
    return plan.strip(), execution.strip()


def _scan_steps(execution_text: str) -> list[WorkflowNode]:
    nodes: list[WorkflowNode] = []
    for match in _STEP_PATTERN.finditer(execution_text):
        title = match.group("title").strip().removesuffix(":").strip()
        details = match.group("body").strip().replace(CONTINUE_SENTINEL, "").strip()
        if title.lower() == _FINAL_ANSWER_TITLE:
            continue

        agent_name: str | None = None
        agent_match = _AGENT_PATTERN.match(details)
        if agent_match:
            agent_name = agent_match.group("name").strip()
            details = details[agent_match.end() :].strip()

        node_type, title, details, handoff = _classify(title=title, details=details)
        nodes.append(
            WorkflowNode(
                id=f"step-{len(nodes)}",
                type=node_type,
                title=title,
                status=WorkflowNodeStatus.PENDING,
                details=details or _NO_DETAILS,
                agent_name=agent_name,
                handoff=handoff,
            )
        )
    return nodes


def _classify(
    title: str, details: str
) -> tuple[WorkflowNodeType, str, str, Handoff | None]:
    """Map a step title onto the closed node-type taxonomy.

    Returns the node type plus the (possibly rewritten) title and details.
    """
    lowered = title.lower()

    if lowered == "handoff":
        handoff_match = _HANDOFF_BODY_PATTERN.match(details)
        if handoff_match:
            handoff = Handoff(
                from_agent=handoff_match.group("from_agent").strip(),
                to_agent=handoff_match.group("to_agent").strip(),
            )
            return (
                WorkflowNodeType.HANDOFF,
                title,
                details[handoff_match.end() :].strip(),
                handoff,
            )
    if lowered.startswith("validate"):
        return WorkflowNodeType.VALIDATION, title, details, None
    if lowered.startswith("corrective action"):
        return WorkflowNodeType.CORRECTION, title, details, None
    if lowered in _THOUGHT_TITLES:
        return WorkflowNodeType.THOUGHT, "Thinking", f"{title}: {details}", None
    if lowered == "observe":
        return WorkflowNodeType.OBSERVATION, "Observation", details, None
    if lowered in _ACTION_TITLES:
        return WorkflowNodeType.ACT_MARKER, title, details, None
    if lowered in _PROCEDURAL_TITLES:
        return WorkflowNodeType.PLAN, "", f"{title}: {details}", None
    return WorkflowNodeType.PLAN, title, details, None


def _tool_node(event: ToolCallEvent) -> WorkflowNode:
    if event.result is None:
        status = WorkflowNodeStatus.ACTIVE
    elif event.result.startswith(TOOL_FAILURE_PREFIX):
        status = WorkflowNodeStatus.FAILED
    else:
        status = WorkflowNodeStatus.DONE

    duration: float | None = None
    if event.start_time is not None and event.end_time is not None:
        duration = event.end_time - event.start_time

    return WorkflowNode(
        id=event.id,
        type=WorkflowNodeType.TOOL,
        title=event.call.name,
        status=status,
        details=event,
        duration=duration,
    )


def _interleave(
    text_nodes: list[WorkflowNode], tool_events: list[ToolCallEvent]
) -> list[WorkflowNode]:
    """Replace each act_marker with the next tool node, FIFO; append leftovers.

    An act_marker with no tool node left to take its place is dropped.
    """
    queue = deque(_tool_node(event) for event in tool_events)
    log: list[WorkflowNode] = []
    last_agent_name: str | None = None

    for node in text_nodes:
        if node.agent_name:
            last_agent_name = node.agent_name
        if node.type is not WorkflowNodeType.ACT_MARKER:
            log.append(node)
        elif queue:
            log.append(queue.popleft().model_copy(update={"agent_name": last_agent_name}))

    log.extend(
        tool_node.model_copy(update={"agent_name": last_agent_name})
        for tool_node in queue
    )
    return log


def _last_in_flight(statuses: list[WorkflowNodeStatus]) -> int | None:
    for index in range(len(statuses) - 1, -1, -1):
        if statuses[index] in _IN_FLIGHT:
            return index
    return None


def _propagate_statuses(
    log: list[WorkflowNode], is_complete: bool, error: MessageError | None
) -> list[WorkflowNode]:
    statuses = [node.status for node in log]
    failed_index: int | None = None

    if error is not None:
        if log:
            # Single-failure model: exactly one node carries the exchange error.
            current = _last_in_flight(statuses)
            failed_index = current if current is not None else len(log) - 1
            statuses[failed_index] = WorkflowNodeStatus.FAILED
            for index in range(failed_index):
                if statuses[index] in _IN_FLIGHT:
                    statuses[index] = WorkflowNodeStatus.DONE
    elif is_complete:
        statuses = [
            WorkflowNodeStatus.DONE if status in _IN_FLIGHT else status
            for status in statuses
        ]
    else:
        current = _last_in_flight(statuses)
        if current is not None:
            statuses[current] = WorkflowNodeStatus.ACTIVE
            for index in range(current):
                if statuses[index] is WorkflowNodeStatus.PENDING:
                    statuses[index] = WorkflowNodeStatus.DONE

    result: list[WorkflowNode] = []
    for index, (node, status) in enumerate(zip(log, statuses)):
        if index == failed_index:
            result.append(node.model_copy(update={"status": status, "details": error}))
        elif status is not node.status:
            result.append(node.model_copy(update={"status": status}))
        else:
            result.append(node)
    return result
