"""Tests for the Rich dashboard."""

import pytest
from rich.layout import Layout

from eventstream import EventStreamReader, Message, ReadyState, Visualizer

URL = "http://test/events"


def test_message_rows_are_truncated(scripted):
    reader = EventStreamReader(URL, {"autoConnect": False}, transport=scripted())
    visualizer = Visualizer(reader)
    visualizer.on_message(Message(id="3", event="tick", data="x" * 60))
    ts, event, msg_id, payload = visualizer.recent_messages[0]
    assert (event, msg_id) == ("tick", "3")
    assert payload == "x" * 40 + "..."


def test_layout_records_state_changes(scripted):
    reader = EventStreamReader(URL, {"autoConnect": False}, transport=scripted())
    visualizer = Visualizer(reader)
    assert isinstance(visualizer.generate_layout(), Layout)
    reader.close()
    visualizer.generate_layout()
    assert "State: CLOSED" in visualizer.timeline[0]
    assert "State: IDLE" in visualizer.timeline[1]


@pytest.mark.asyncio
async def test_run_connects_and_closes_reader(scripted, hang):
    transport = scripted(["data: hi\n\n", hang])
    reader = EventStreamReader(URL, {"autoConnect": False}, transport=transport)
    visualizer = Visualizer(reader)
    await visualizer.run(0.1)
    assert transport.calls == 1
    assert reader.ready_state == ReadyState.CLOSED
    assert visualizer.recent_messages[0][3] == "hi"


def test_stats_panel_shows_retry_budget(scripted):
    reader = EventStreamReader(URL, {"autoConnect": False, "maxRetries": 4}, transport=scripted())
    reader.stats["messages_received"] = 12
    panel = Visualizer(reader)._stats_panel()
    assert "Messages Received: 12" in panel.renderable
    assert "Retry budget: 0/4" in panel.renderable
