"""
MODULE OVERVIEW:
A live Rich terminal dashboard for watching a reader while developing against a stream.

WHAT IS HAPPENING HERE:
The dashboard registers itself as a "message" and "error" listener, then redraws the
layout a few times a second from the reader's stats. Nothing here drives the
connection; it only observes, and closes the reader when the watch period ends.
"""

from rich.live import Live
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from collections import deque
from datetime import datetime
import asyncio

from eventstream.client.reader import EventStreamReader
from eventstream.shared.client_utils import describe_error
from eventstream.shared.models import Message, ReadyState

STAT_LABELS = (
    ("messages_received", "Messages Received"),
    ("errors", "Errors"),
    ("reconnect_count", "Reconnects"),
    ("bytes_received", "Bytes Received"),
)

STATE_COLORS = {
    ReadyState.IDLE: "yellow",
    ReadyState.OPEN: "green",
    ReadyState.CLOSED: "red",
}

class Visualizer:
    def __init__(self, reader: EventStreamReader):
        self.reader = reader
        self.recent_messages = deque(maxlen=10)
        self.timeline = deque(maxlen=5)
        self._last_state: ReadyState | None = None

    def on_message(self, message: Message):
        ts = datetime.now().strftime("%H:%M:%S")
        payload_str = str(message.data)
        if len(payload_str) > 40:
            payload_str = payload_str[:40] + "..."
        self.recent_messages.appendleft((ts, message.event or "message", message.id or "-", payload_str))

    def on_error(self, error: Exception):
        ts = datetime.now().strftime("%H:%M:%S")
        self.timeline.appendleft(f"[{ts}] Error: {describe_error(error)}")

    def track_state(self):
        state = self.reader.ready_state
        if state != self._last_state:
            self._last_state = state
            ts = datetime.now().strftime("%H:%M:%S")
            self.timeline.appendleft(f"[{ts}] State: {state.name}")

    def _feed_panel(self) -> Panel:
        table = Table(title="Live Message Feed", expand=True)
        for name, style in (("Time", "cyan"), ("Event", "magenta"), ("Id", "blue"), ("Data", "green")):
            table.add_column(name, style=style, no_wrap=name == "Time")
        for row in self.recent_messages:
            table.add_row(*row)
        return Panel(table, title="Feed")

    def _stats_panel(self) -> Panel:
        stats = self.reader.stats
        lines = [f"{label}: {stats[key]}" for key, label in STAT_LABELS]
        lines.append(f"Retry budget: {self.reader.retry_count}/{self.reader.config.max_retries}")
        return Panel("\n".join(lines), title="Connection Stats")

    def generate_layout(self) -> Layout:
        self.track_state()
        state = self.reader.ready_state
        color = STATE_COLORS[state]

        header = Layout(Panel(f"[{color} bold]{self.reader.url} | State: {state.name}[/]", style=color), name="header", size=3)
        sidebar = Layout(name="sidebar", ratio=1)
        sidebar.split_column(
            Layout(self._stats_panel(), name="stats"),
            Layout(Panel("\n".join(self.timeline), title="Timeline"), name="timeline"),
        )
        body = Layout(name="body")
        body.split_row(Layout(self._feed_panel(), name="feed", ratio=2), sidebar)

        layout = Layout()
        layout.split_column(header, body)
        return layout

    async def run(self, duration_s: float):
        self.reader.add_listener("message", self.on_message)
        self.reader.add_listener("error", self.on_error)
        if self.reader.ready_state == ReadyState.IDLE:
            self.reader.connect()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration_s
        try:
            with Live(self.generate_layout(), refresh_per_second=4) as live:
                while not self.reader.closed and loop.time() < deadline:
                    live.update(self.generate_layout())
                    await asyncio.sleep(0.25)
        finally:
            self.reader.remove_listener("message", self.on_message)
            self.reader.remove_listener("error", self.on_error)
            await self.reader.aclose()
