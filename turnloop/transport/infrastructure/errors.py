"""Error types raised by the model transport."""

from turnloop.conversation.domain.error import RETRYABLE_CODES, MessageError
from turnloop.core.errors import TurnLoopError


class TransportError(TurnLoopError):
    """Raised when the model stream cannot be opened or read.

    Carries the classified MessageError; ``retriable`` mirrors whether the
    error code is one the bounded retry recovers from.
    """

    def __init__(self, error: MessageError) -> None:
        super().__init__(
            f"Failed to stream model response: {error.message}",
            retriable=error.code in RETRYABLE_CODES,
        )
        self.error = error
