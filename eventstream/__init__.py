"""
Client-side reader for text/event-stream endpoints over HTTPX, with automatic reconnection.
"""
from eventstream.client.reader import EventStreamReader
from eventstream.client.transport import HttpxTransport, Transport
from eventstream.client.visualizer import Visualizer
from eventstream.shared.config import Settings, configure_logging, settings
from eventstream.shared.models import Message, ReaderConfig, ReadyState
from eventstream.shared.parser import StreamParser

__all__ = [
    "EventStreamReader",
    "HttpxTransport",
    "Message",
    "ReaderConfig",
    "ReadyState",
    "Settings",
    "StreamParser",
    "configure_logging",
    "Transport",
    "Visualizer",
    "settings",
]
