"""
MODULE OVERVIEW:
The event-stream reader: one logical subscription to a long-lived HTTP endpoint.

WHAT IS HAPPENING HERE:
Each connection attempt is a single asyncio Task that holds the GET open through the
transport. Progress notifications are fed to a fresh `StreamParser`, and every record
it completes is published to "message" listeners. When the request fails for any
reason other than our own cancellation, the failure goes to "error" listeners and a
one-shot retry is scheduled with `loop.call_later`, up to `max_retries` times in a row.
An explicit `connect()` resets the count; `close()` is final.

Everything runs on the event loop thread, driven by the transport's callbacks, so
no locking is needed. Independent readers share nothing.
"""
import asyncio
from typing import Any, AsyncIterator, Callable, Mapping

import httpx
from loguru import logger

from eventstream.client.transport import HttpxTransport, Transport
from eventstream.shared.client_utils import describe_error, make_client_stats, utc_now_iso
from eventstream.shared.events import EventBus
from eventstream.shared.models import Message, ReaderConfig, ReadyState
from eventstream.shared.parser import StreamParser

_CLOSED = object()

def _require_running_loop() -> None:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        raise RuntimeError(
            "auto_connect needs a running event loop; build the reader with "
            "{\"autoConnect\": False} and call connect() from async code"
        ) from None

class EventStreamReader:
    event_kinds: tuple[str, ...] = ("message", "error")

    def __init__(
        self,
        url: str,
        config: ReaderConfig | Mapping[str, Any] | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        transport: Transport | None = None,
    ):
        if not url:
            raise ValueError("URL is required")
        if client is not None and transport is not None:
            raise ValueError("Pass either an httpx client or a transport, not both")

        self.url = url
        self.config = config if isinstance(config, ReaderConfig) else ReaderConfig(**(config or {}))
        if self.config.auto_connect:
            _require_running_loop()

        self._owns_transport = transport is None
        self.transport: Transport = transport if transport is not None else HttpxTransport(client)

        self.stats = make_client_stats()
        self.retry_count = 0

        self._bus = EventBus(self.event_kinds)
        self._task: asyncio.Task | None = None
        self._retry_handle: asyncio.TimerHandle | None = None
        self._queues: set[asyncio.Queue] = set()
        self._closed = False

        if self.config.auto_connect:
            self._start_attempt()

    # ==========================
    # PUBLIC SURFACE
    # ==========================
    @property
    def ready_state(self) -> ReadyState:
        if self._closed:
            return ReadyState.CLOSED
        return ReadyState.OPEN if self._task is not None else ReadyState.IDLE

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def messages_received(self) -> int:
        return self.stats["messages_received"]

    @property
    def reconnect_count(self) -> int:
        return self.stats["reconnect_count"]

    def add_listener(self, kind: str, listener: Callable[[Any], None]) -> None:
        self._bus.subscribe(kind, listener)

    def remove_listener(self, kind: str, listener: Callable[[Any], None]) -> None:
        self._bus.unsubscribe(kind, listener)

    def on(self, kind: str):
        """Decorator form of `add_listener`."""
        def register(listener):
            self.add_listener(kind, listener)
            return listener
        return register

    def connect(self) -> None:
        if self._closed:
            return
        self.retry_count = 0
        self._cancel_pending()
        self._start_attempt()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cancel_pending()
        for queue in self._queues:
            queue.put_nowait(_CLOSED)
        logger.info(f"url={self.url} event=close retries={self.retry_count}")

    async def aclose(self) -> None:
        """Closes the reader, waits for the running attempt to unwind and releases the HTTP client it created."""
        self.close()
        task = self._task
        if task is not None and task is not asyncio.current_task():
            await asyncio.gather(task, return_exceptions=True)
        if self._owns_transport:
            await self.transport.aclose()

    async def __aenter__(self) -> "EventStreamReader":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def messages(self) -> AsyncIterator[Message]:
        """Yields every message published after the call, until the reader is closed."""
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.add(queue)
        self._bus.subscribe("message", queue.put_nowait)
        try:
            while not self._closed or not queue.empty():
                item = await queue.get()
                if item is _CLOSED:
                    break
                yield item
        finally:
            self._bus.unsubscribe("message", queue.put_nowait)
            self._queues.discard(queue)

    # ==========================
    # ATTEMPT LIFECYCLE
    # ==========================
    def _cancel_pending(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def _start_attempt(self) -> None:
        if self._closed:
            return
        self._retry_handle = None
        self._task = asyncio.get_running_loop().create_task(self._run_attempt())

    async def _run_attempt(self) -> None:
        if self._closed:
            return

        # Fresh parser per attempt: the transport replays the body from byte zero
        parser = StreamParser()
        cumulative = getattr(self.transport, "cumulative", True)
        latest = ""

        def on_progress(text: str) -> None:
            nonlocal latest
            if cumulative:
                self.stats["bytes_received"] += max(len(text) - len(latest), 0)
                latest = text
                self._publish(parser.feed(text))
            else:
                self.stats["bytes_received"] += len(text)
                self._publish(parser.parse(text))

        self.stats["connected_at"] = utc_now_iso()
        logger.debug(f"url={self.url} event=connect retry={self.retry_count}")

        try:
            await self.transport.stream_text(self.url, on_progress)
        except asyncio.CancelledError:
            logger.debug(f"url={self.url} event=cancelled")
            return
        except Exception as e:
            if self._closed:
                return
            self._handle_connection_error(e)
            return

        self._publish(parser.feed(latest, final=True) if cumulative else parser.parse("", final=True))
        self.retry_count = 0
        logger.debug(f"url={self.url} event=complete bytes={self.stats['bytes_received']}")

    def _publish(self, messages: list[Message]) -> None:
        attempt = asyncio.current_task()
        for message in messages:
            # A listener may close or reconnect the reader halfway through a batch
            if self._closed or self._task is not attempt:
                return
            self.stats["messages_received"] += 1
            self.stats["last_message_at"] = utc_now_iso()
            self._bus.emit("message", message)

    def _handle_connection_error(self, error: Exception) -> None:
        self.stats["errors"] += 1
        self._bus.emit("error", error)

        if self._closed:
            return

        if self.retry_count < self.config.max_retries:
            self.retry_count += 1
            self.stats["reconnect_count"] += 1
            logger.warning(
                f"url={self.url} event=retry attempt={self.retry_count} "
                f"delay_ms={self.config.reconnect_interval} reason='{describe_error(error)}'"
            )
            self._retry_handle = asyncio.get_running_loop().call_later(
                self.config.reconnect_delay_s, self._start_attempt
            )
        else:
            logger.warning(
                f"url={self.url} event=give_up retries={self.retry_count} "
                f"reason='{describe_error(error)}'"
            )
