"""Base exception class for all turnloop-specific errors."""


class TurnLoopError(Exception):
    """Base class for all turnloop errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable
