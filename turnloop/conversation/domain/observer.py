"""ConversationObserver port: domain events emitted while driving an exchange."""

from typing import Protocol

from turnloop.conversation.domain.error import ErrorCode


class ConversationObserver(Protocol):
    def exchange_started(self, history_length: int, plan_gating: bool) -> None: ...

    def turn_started(self, turn_index: int) -> None: ...

    def transport_retry(
        self,
        attempt: int,
        max_attempts: int,
        code: ErrorCode,
        reason: str,
        backoff_seconds: float,
    ) -> None: ...

    def transport_failed(self, attempt: int, code: ErrorCode, reason: str) -> None: ...

    def plan_awaiting_approval(self, plan_length: int) -> None: ...

    def plan_resolved(self, decision: str) -> None: ...

    def tool_batch_started(self, tool_names: list[str]) -> None: ...

    def tool_batch_completed(self, tool_count: int, failed_count: int) -> None: ...

    def exchange_completed(self, turn_count: int, text_length: int) -> None: ...

    def exchange_failed(self, turn_count: int, code: ErrorCode, reason: str) -> None: ...

    def exchange_cancelled(self, turn_count: int) -> None: ...
