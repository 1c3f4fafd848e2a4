"""StructlogConversationObserver: production observer that delegates to structlog."""

import structlog

from turnloop.conversation.domain.error import ErrorCode


class StructlogConversationObserver:
    """Logs conversation domain events to structlog.

    Does NOT inherit from ConversationObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def exchange_started(self, history_length: int, plan_gating: bool) -> None:
        self._log.info(
            "conversation.exchange_started",
            history_length=history_length,
            plan_gating=plan_gating,
        )

    def turn_started(self, turn_index: int) -> None:
        self._log.debug("conversation.turn_started", turn_index=turn_index)

    def transport_retry(
        self,
        attempt: int,
        max_attempts: int,
        code: ErrorCode,
        reason: str,
        backoff_seconds: float,
    ) -> None:
        self._log.warning(
            "conversation.transport_retry",
            attempt=attempt,
            max_attempts=max_attempts,
            code=str(code),
            reason=reason,
            backoff_seconds=backoff_seconds,
        )

    def transport_failed(self, attempt: int, code: ErrorCode, reason: str) -> None:
        self._log.error(
            "conversation.transport_failed",
            attempt=attempt,
            code=str(code),
            reason=reason,
        )

    def plan_awaiting_approval(self, plan_length: int) -> None:
        self._log.info("conversation.plan_awaiting_approval", plan_length=plan_length)

    def plan_resolved(self, decision: str) -> None:
        self._log.info("conversation.plan_resolved", decision=decision)

    def tool_batch_started(self, tool_names: list[str]) -> None:
        self._log.info("conversation.tool_batch_started", tool_names=tool_names)

    def tool_batch_completed(self, tool_count: int, failed_count: int) -> None:
        self._log.info(
            "conversation.tool_batch_completed",
            tool_count=tool_count,
            failed_count=failed_count,
        )

    def exchange_completed(self, turn_count: int, text_length: int) -> None:
        self._log.info(
            "conversation.exchange_completed",
            turn_count=turn_count,
            text_length=text_length,
        )

    def exchange_failed(self, turn_count: int, code: ErrorCode, reason: str) -> None:
        self._log.error(
            "conversation.exchange_failed",
            turn_count=turn_count,
            code=str(code),
            reason=reason,
        )

    def exchange_cancelled(self, turn_count: int) -> None:
        self._log.warning("conversation.exchange_cancelled", turn_count=turn_count)
