"""LongRunningTaskTool: a multi-call task whose progress lives in the task store."""

import uuid
from typing import Any, ClassVar

from turnloop.tools.domain.errors import ToolError
from turnloop.tools.domain.schema import ToolSchema
from turnloop.tools.domain.tool import ToolContext

_TOOL_NAME = "long_running_task"
_TOTAL_STEPS = 3
_STEP_LABELS = {1: "Data Ingestion", 2: "Data Analysis"}


class LongRunningTaskTool:
    """Starts a checkpointed three-step task, then advances it one step per call."""

    schema: ClassVar[ToolSchema] = ToolSchema(
        name=_TOOL_NAME,
        description=(
            "Initiates or continues a complex, multi-step task. Call without "
            "arguments to start, then call again with the returned task_id to "
            "continue."
        ),
        parameters={
            "type": "object",
            "properties": {
                "task_id": {
                    "type": "string",
                    "description": "The ID of the task to continue. Omit to start a new task.",
                }
            },
        },
    )

    async def invoke(self, args: dict[str, Any], context: ToolContext) -> str:
        store = context.task_store
        task_id = args.get("task_id")

        if not task_id:
            task_id = uuid.uuid4().hex[:7]
            store.put(task_id, {"step": 1, "total_steps": _TOTAL_STEPS})
            return (
                f"Task started with ID {task_id}. Status: Step 1 of {_TOTAL_STEPS} "
                f"({_STEP_LABELS[1]}) is complete. Call this function again with "
                "the task_id to continue to the next step."
            )

        state = store.get(task_id)
        if state is None:
            raise ToolError(
                _TOOL_NAME, "TASK_NOT_FOUND", f'Task with ID "{task_id}" not found.'
            )

        step = int(state["step"]) + 1
        total_steps = int(state["total_steps"])
        if step >= total_steps:
            store.delete(task_id)
            return (
                f"Task {task_id} is complete. Final result: Quarterly analysis "
                "report is ready."
            )

        store.put(task_id, {"step": step, "total_steps": total_steps})
        label = _STEP_LABELS.get(step)
        status = f"Step {step} of {total_steps}" + (f" ({label})" if label else "")
        return (
            f"Task {task_id} is progressing. Status: {status} is complete. Call "
            "this function again with the task_id to continue."
        )
