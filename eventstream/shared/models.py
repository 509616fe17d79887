"""
MODULE OVERVIEW:
The typed data structures shared by the parser and the reader, powered by Pydantic v2.

WHAT IS HAPPENING HERE:
`Message` is what subscribers receive for every completed record on the wire.
`ReaderConfig` is the single options object a reader is built from; anything the
caller omits is filled from the environment-backed `settings`.
"""
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from eventstream.shared.config import settings

# WHAT IS HAPPENING HERE:
# One record of the stream. `data` is a dict when the `data:` line held a JSON object,
# otherwise it is the trimmed text exactly as it was sent.
class Message(BaseModel):
    id: str | None = None
    event: str | None = None
    data: Any

# Numeric values match the browser EventSource readyState a caller may already know.
class ReadyState(IntEnum):
    IDLE = 0
    OPEN = 1
    CLOSED = 2

class ReaderConfig(BaseModel):
    # Accepts both `max_retries` and `maxRetries` style keys
    model_config = ConfigDict(frozen=True, extra="forbid", alias_generator=to_camel, populate_by_name=True)

    # Milliseconds to wait before a retry attempt
    reconnect_interval: int = Field(default_factory=lambda: settings.RECONNECT_INTERVAL_MS, ge=0)
    max_retries: int = Field(default_factory=lambda: settings.MAX_RETRIES, ge=0)
    auto_connect: bool = Field(default_factory=lambda: settings.AUTO_CONNECT)

    @property
    def reconnect_delay_s(self) -> float:
        return self.reconnect_interval / 1000.0
