"""CancellationToken: cooperative cancellation shared by every suspension point of an exchange."""

import asyncio
import inspect
from collections.abc import Awaitable
from typing import Any

from turnloop.core.errors import TurnLoopError


class ExchangeCancelledError(TurnLoopError):
    """Raised at a suspension point once the exchange's token is cancelled."""

    def __init__(self) -> None:
        super().__init__("Failed to continue exchange: cancelled by the caller")


class CancellationToken:
    """One-shot cancellation signal backed by an asyncio.Event.

    Cancelling is idempotent and never blocks; awaiting code observes it at
    the next suspension point through ``raise_if_cancelled`` or ``guard``.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ExchangeCancelledError()

    async def guard[T](self, awaitable: Awaitable[T]) -> T:
        """Await awaitable unless the token is cancelled first.

        On cancellation the losing work is cancelled and drained before
        ExchangeCancelledError is raised, so no orphaned task outlives the
        exchange.
        """
        if self.cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise ExchangeCancelledError()
        work: asyncio.Future[T] = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()

        if work.done():
            return work.result()

        work.add_done_callback(_retrieve_exception)
        work.cancel()
        await asyncio.wait({work})
        raise ExchangeCancelledError()


def _retrieve_exception(future: asyncio.Future[Any]) -> None:
    if not future.cancelled():
        future.exception()
