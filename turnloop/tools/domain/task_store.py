"""TaskStateStore port: keyed checkpoints for long-running, multi-call tools."""

from typing import Any, Protocol


class TaskStateStore(Protocol):
    """Keyed store of task checkpoints, injected into tools via ToolContext."""

    def get(self, task_id: str) -> dict[str, Any] | None: ...

    def put(self, task_id: str, state: dict[str, Any]) -> None: ...

    def delete(self, task_id: str) -> None: ...


class InMemoryTaskStateStore:
    """Process-local TaskStateStore. Satisfies the protocol structurally."""

    def __init__(self, initial: dict[str, dict[str, Any]] | None = None) -> None:
        self._states: dict[str, dict[str, Any]] = dict(initial or {})

    def get(self, task_id: str) -> dict[str, Any] | None:
        state = self._states.get(task_id)
        return dict(state) if state is not None else None

    def put(self, task_id: str, state: dict[str, Any]) -> None:
        self._states[task_id] = dict(state)

    def delete(self, task_id: str) -> None:
        self._states.pop(task_id, None)

    def task_ids(self) -> list[str]:
        return list(self._states)
