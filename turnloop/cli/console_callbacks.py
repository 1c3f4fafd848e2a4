"""ConsoleCallbacks: renders a live exchange to a Rich console."""

import asyncio
from collections.abc import Callable
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from turnloop.conversation.domain.error import MessageError
from turnloop.conversation.domain.tool_event import ToolCallEvent, ToolCallRequest
from turnloop.workflow.domain.node import (
    ParsedWorkflow,
    WorkflowNodeStatus,
    WorkflowNodeType,
)

_STATUS_STYLES: dict[WorkflowNodeStatus, str] = {
    WorkflowNodeStatus.PENDING: "dim",
    WorkflowNodeStatus.ACTIVE: "yellow",
    WorkflowNodeStatus.DONE: "green",
    WorkflowNodeStatus.FAILED: "bold red",
}

type Ask = Callable[..., str]


class ConsoleCallbacks:
    """Streams model text and tool activity to the console and asks for plan approval.

    Satisfies the ConversationCallbacks protocol structurally. Text arrives
    cumulatively; only the unseen suffix is printed. When the text is rewritten
    (an edited plan) the new text is printed in full.
    """

    def __init__(self, console: Console, ask: Ask = Prompt.ask) -> None:
        self._console = console
        self._ask = ask
        self._printed = ""

    def on_text_chunk(self, text: str) -> None:
        if text.startswith(self._printed):
            delta = text[len(self._printed) :]
        else:
            self._console.rule("edited plan", style="dim")
            delta = text
        self._console.print(delta, end="", markup=False, highlight=False)
        self._printed = text

    def on_new_tool_calls(self, calls: list[ToolCallRequest]) -> list[ToolCallEvent]:
        events = [ToolCallEvent.begin(call) for call in calls]
        for event in events:
            name, args = escape(event.call.name), escape(str(event.call.args))
            self._console.print(f"\n[cyan]→ {name}[/cyan] [dim]{args}[/dim]")
        return events

    def on_tool_result(self, event_id: str, result: str) -> None:
        self._console.print(f"[dim]← {escape(event_id)}:[/dim] {escape(result)}")

    async def on_plan_ready(self, plan: ParsedWorkflow) -> bool | str:
        self._console.print()
        panel = Panel(Text(plan.plan or "(empty plan)"), title="Proposed plan")
        self._console.print(panel)
        choice = await asyncio.to_thread(
            self._ask,
            "Execute this plan?",
            choices=["approve", "deny", "edit"],
            default="approve",
        )
        if choice == "approve":
            return True
        if choice == "deny":
            return False
        return await asyncio.to_thread(self._ask, "Edited plan")

    def on_complete(self, text: str, metadata: dict[str, Any] | None) -> None:
        self._console.print()
        self._console.rule("done", style="green")

    def on_cancel(self) -> None:
        self._console.print()
        self._console.print("[yellow]Exchange cancelled.[/yellow]")

    def on_error(self, error: MessageError) -> None:
        self._console.print()
        message = escape(error.message)
        self._console.print(f"[bold red]{error.code}[/bold red]: {message}")
        if error.details:
            self._console.print(error.details, style="dim", markup=False)


def render_workflow(console: Console, workflow: ParsedWorkflow) -> None:
    """Print the execution log as a table, one row per node."""
    if not workflow.execution_log:
        return
    table = Table(title="Execution log", show_lines=False)
    table.add_column("Step")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Agent")
    table.add_column("Duration", justify="right")

    for node in workflow.execution_log:
        title = node.title or "-"
        if node.type is WorkflowNodeType.HANDOFF and node.handoff is not None:
            title = f"{node.handoff.from_agent} → {node.handoff.to_agent}"
        duration = f"{node.duration:.2f}s" if node.duration is not None else ""
        style = _STATUS_STYLES[node.status]
        table.add_row(
            escape(title),
            str(node.type),
            f"[{style}]{node.status}[/{style}]",
            node.agent_name or "",
            duration,
        )
    console.print(table)
