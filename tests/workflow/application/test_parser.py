"""Tests for the workflow parser."""

from turnloop.conversation.domain.error import ErrorCode, MessageError
from turnloop.conversation.domain.tool_event import ToolCallEvent, ToolCallRequest
from turnloop.workflow.application.parser import extract_plan, parse_workflow
from turnloop.workflow.domain.node import (
    Handoff,
    WorkflowNodeStatus,
    WorkflowNodeType,
)

_ERROR = MessageError(code=ErrorCode.API_ERROR, message="upstream failed")


def _event(
    event_id: str,
    name: str = "calculator",
    result: str | None = None,
    start_time: float | None = 100.0,
    end_time: float | None = None,
) -> ToolCallEvent:
    return ToolCallEvent(
        id=event_id,
        call=ToolCallRequest(name=name),
        result=result,
        start_time=start_time,
        end_time=end_time,
    )


def _types(text: str, events: list[ToolCallEvent] | None = None) -> list[WorkflowNodeType]:
    workflow = parse_workflow(text, events or [], is_complete=True)
    return [node.type for node in workflow.execution_log]


class TestPlanSplit:
    def test_plan_marker_separates_plan_from_execution(self) -> None:
        text = (
            "[STEP] Strategic Plan:\n[AGENT: Planner] 1. Gather data\n2. Summarise\n"
            "[USER_APPROVAL_REQUIRED]\n[STEP] Think: starting"
        )

        workflow = parse_workflow(text, [], is_complete=False)

        assert workflow.plan == "1. Gather data\n2. Summarise"
        assert [node.title for node in workflow.execution_log] == ["Thinking"]

    def test_without_plan_marker_text_before_first_step_is_the_plan(self) -> None:
        workflow = parse_workflow("Intro text\n[STEP] Think: go", [], is_complete=False)

        assert workflow.plan == "Intro text"
        assert len(workflow.execution_log) == 1

    def test_without_any_step_everything_is_plan(self) -> None:
        workflow = parse_workflow("Just an answer.", [], is_complete=True)

        assert workflow.plan == "Just an answer."
        assert workflow.execution_log == []

    def test_extract_plan_matches_parse(self) -> None:
        text = "[STEP] Strategic Plan:\nDo it\n[STEP] Act: now"
        assert extract_plan(text) == parse_workflow(text, [], False).plan == "Do it"


class TestStepGrammar:
    def test_classifies_titles(self) -> None:
        text = "\n".join(
            [
                "[STEP] Think: consider",
                "[STEP] Adapt: change course",
                "[STEP] Observe: saw it",
                "[STEP] Validate Output: looks right",
                "[STEP] Corrective Action: retry",
                "[STEP] Handoff: Researcher -> Writer: notes attached",
                "[STEP] System: budget reached",
                "[STEP] Summary: wrap up",
            ]
        )

        assert _types(text) == [
            WorkflowNodeType.THOUGHT,
            WorkflowNodeType.THOUGHT,
            WorkflowNodeType.OBSERVATION,
            WorkflowNodeType.VALIDATION,
            WorkflowNodeType.CORRECTION,
            WorkflowNodeType.HANDOFF,
            WorkflowNodeType.PLAN,
            WorkflowNodeType.PLAN,
        ]

    def test_thought_and_observation_titles_are_normalised(self) -> None:
        log = parse_workflow(
            "[STEP] Think: hmm\n[STEP] Observe: seen", [], True
        ).execution_log

        assert (log[0].title, log[0].details) == ("Thinking", "Think: hmm")
        assert (log[1].title, log[1].details) == ("Observation", "seen")

    def test_procedural_step_has_empty_title(self) -> None:
        (node,) = parse_workflow("[STEP] System: note", [], True).execution_log

        assert node.title == ""
        assert node.details == "System: note"

    def test_handoff_records_agents(self) -> None:
        (node,) = parse_workflow(
            "[STEP] Handoff: Researcher -> Writer: notes attached", [], True
        ).execution_log

        assert node.handoff == Handoff(from_agent="Researcher", to_agent="Writer")
        assert node.details == "notes attached"

    def test_agent_tag_sets_agent_name(self) -> None:
        (node,) = parse_workflow(
            "[STEP] Think: [AGENT: Researcher] digging in", [], True
        ).execution_log

        assert node.agent_name == "Researcher"
        assert node.details == "Think: digging in"

    def test_final_answer_is_not_a_node(self) -> None:
        assert _types("[STEP] Think: x\n[STEP] Final Answer: 42") == [
            WorkflowNodeType.THOUGHT
        ]

    def test_step_marker_inside_a_line_is_body_text(self) -> None:
        (node,) = parse_workflow(
            "[STEP] Think: I will write [STEP] later", [], True
        ).execution_log

        assert node.details == "Think: I will write [STEP] later"

    def test_multiline_bodies_run_to_the_next_step(self) -> None:
        log = parse_workflow(
            "[STEP] Summary: line one\nline two\n[STEP] Think: next", [], True
        ).execution_log

        assert log[0].details == "line one\nline two"

    def test_empty_body_gets_placeholder(self) -> None:
        (node,) = parse_workflow("[STEP] Summary:", [], True).execution_log
        assert node.details == "No details provided."

    def test_continuation_sentinel_is_removed_from_bodies(self) -> None:
        (node,) = parse_workflow(
            "[STEP] Summary: part one [AUTO_CONTINUE]part two", [], True
        ).execution_log

        assert "[AUTO_CONTINUE]" not in node.details

    def test_step_ids_are_positional_and_parsing_is_idempotent(self) -> None:
        text = "[STEP] Think: a\n[STEP] Act: b\n[STEP] Observe: c"
        events = [_event("calculator-1", result="4", end_time=101.0)]

        first = parse_workflow(text, events, is_complete=False)
        second = parse_workflow(text, events, is_complete=False)

        assert first == second
        assert [node.id for node in first.execution_log] == [
            "step-0",
            "calculator-1",
            "step-2",
        ]


class TestToolInterleaving:
    def test_tools_replace_act_markers_in_call_order(self) -> None:
        text = "[STEP] Act: one\n[STEP] Act: two\n[STEP] Observe: seen"
        events = [_event("t1"), _event("t2"), _event("t3")]

        log = parse_workflow(text, events, is_complete=True).execution_log

        assert [node.id for node in log] == ["t1", "t2", "step-2", "t3"]

    def test_surplus_act_markers_are_dropped(self) -> None:
        text = "[STEP] Act: one\n[STEP] Action: two\n[STEP] Tool Call: three"

        log = parse_workflow(text, [_event("t1")], is_complete=True).execution_log

        assert [node.id for node in log] == ["t1"]

    def test_tool_nodes_inherit_latest_agent(self) -> None:
        text = "[STEP] Think: [AGENT: Coder] plan it\n[STEP] Act: run"

        log = parse_workflow(text, [_event("t1"), _event("t2")], True).execution_log

        assert [node.agent_name for node in log] == ["Coder", "Coder", "Coder"]

    def test_tool_node_status_and_duration(self) -> None:
        events = [
            _event("ok", result="4", start_time=100.0, end_time=102.5),
            _event("bad", result="Tool execution failed. Reason: boom", end_time=101.0),
            _event("running"),
        ]

        log = parse_workflow("", events, is_complete=False).execution_log

        assert [node.status for node in log] == [
            WorkflowNodeStatus.DONE,
            WorkflowNodeStatus.FAILED,
            WorkflowNodeStatus.ACTIVE,
        ]
        assert log[0].duration == 2.5
        assert log[2].duration is None
        assert log[0].details == events[0]
        assert log[0].title == "calculator"


class TestStatusPropagation:
    def test_streaming_marks_last_in_flight_active_and_earlier_done(self) -> None:
        log = parse_workflow(
            "[STEP] Think: a\n[STEP] Observe: b\n[STEP] Summary: c", [], False
        ).execution_log

        assert [node.status for node in log] == [
            WorkflowNodeStatus.DONE,
            WorkflowNodeStatus.DONE,
            WorkflowNodeStatus.ACTIVE,
        ]

    def test_completion_marks_all_in_flight_done_and_keeps_failures(self) -> None:
        events = [_event("bad", result="Tool execution failed. Reason: boom")]
        log = parse_workflow("[STEP] Think: a\n[STEP] Act: b", events, True).execution_log

        assert [node.status for node in log] == [
            WorkflowNodeStatus.DONE,
            WorkflowNodeStatus.FAILED,
        ]

    def test_error_fails_the_last_in_flight_node(self) -> None:
        events = [_event("t1")]
        log = parse_workflow(
            "[STEP] Think: a\n[STEP] Act: b", events, False, error=_ERROR
        ).execution_log

        assert [node.status for node in log] == [
            WorkflowNodeStatus.DONE,
            WorkflowNodeStatus.FAILED,
        ]
        assert log[1].details == _ERROR

    def test_error_with_nothing_in_flight_fails_the_last_node(self) -> None:
        events = [_event("t1", result="4", end_time=101.0)]
        log = parse_workflow("[STEP] Act: b", events, False, error=_ERROR).execution_log

        assert log[-1].status == WorkflowNodeStatus.FAILED
        assert log[-1].details == _ERROR

    def test_error_on_empty_log_yields_empty_log(self) -> None:
        assert parse_workflow("no steps", [], False, error=_ERROR).execution_log == []
