"""
MODULE OVERVIEW:
The HTTP side of a reader: one long-lived GET per connection attempt.

WHAT IS HAPPENING HERE:
We use the HTTPX `stream()` context manager to keep the body open for as long as the
server keeps writing. Every decoded chunk is appended to the body received so far
and the *whole* body is reported through `on_progress`, which is the cumulative
contract the reader's parser bookkeeping is written against.

Timeouts are disabled for the request: an event stream is expected to sit idle
between events. Cancelling the task that awaits `stream_text()` is how a reader
aborts the request; HTTPX closes the response on the way out.
"""
from typing import Callable, Protocol, runtime_checkable

import httpx

ProgressCallback = Callable[[str], None]

STREAM_HEADERS = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}

@runtime_checkable
class Transport(Protocol):
    # True when on_progress receives the full body so far, False when it receives deltas
    cumulative: bool

    async def stream_text(self, url: str, on_progress: ProgressCallback) -> None:
        ...

class HttpxTransport:
    cumulative: bool = True

    def __init__(self, client: httpx.AsyncClient | None = None):
        self.owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()

    async def stream_text(self, url: str, on_progress: ProgressCallback) -> None:
        async with self.client.stream("GET", url, headers=STREAM_HEADERS, timeout=None) as response:
            response.raise_for_status()

            received = ""
            async for chunk in response.aiter_text():
                if not chunk:
                    continue
                received += chunk
                on_progress(received)

    async def aclose(self) -> None:
        # A caller-supplied client belongs to the caller
        if self.owns_client:
            await self.client.aclose()
