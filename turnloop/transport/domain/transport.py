"""ModelTransport Protocol: structural interface for streaming model providers."""

from collections.abc import AsyncGenerator
from typing import Protocol

from turnloop.transport.domain.chunk import ResponseChunk
from turnloop.transport.domain.request import TransportRequest


class ModelTransport(Protocol):
    """Issues one streaming request per turn.

    Awaiting ``open_stream`` performs the request; errors raised there are
    candidates for retry. Errors raised while iterating the returned stream
    are not retried. The stream is closed with ``aclose`` as soon as the
    caller stops reading it. Implementations are stateless from the caller's view.
    """

    async def open_stream(
        self, request: TransportRequest
    ) -> AsyncGenerator[ResponseChunk, None]: ...
