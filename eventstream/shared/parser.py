"""
MODULE OVERVIEW:
The incremental text/event-stream parser.

WHAT IS HAPPENING HERE:
A record on the wire is a handful of `field: value` lines closed by a blank line:

    id: 2
    event: custom
    data: {"message": "world"}

Only `data:`, `id:` and `event:` are understood; anything else is skipped so newer
servers can add fields without breaking us. A record becomes a `Message` only when
its blank line arrives *and* it carried a `data:` line. Whatever has not been
terminated yet stays in the parser until a later chunk finishes it.

The default transport hands us the whole body received so far on every progress
notification, not just the new bytes (the same way XHR `responseText` grows).
`feed()` compensates by remembering how much it has already consumed. A transport
that yields true deltas can call `parse()` directly and skip the bookkeeping.
"""
import json
from typing import Any

from eventstream.shared.models import Message

def decode_json_object(text: str) -> dict[str, Any] | None:
    """Returns the decoded value when `text` is a JSON object, otherwise None."""
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None

def decode_payload(text: str) -> Any:
    # Only a JSON object replaces the raw text
    decoded = decode_json_object(text)
    return text if decoded is None else decoded

class StreamParser:
    """
    Parses one connection attempt's worth of stream text.

    A new attempt always gets a new parser: the offset, a half-received line and a
    half-built record never leak from one connection into the next.
    """

    def __init__(self):
        self.offset = 0
        self._partial_line = ""
        self._fields: dict[str, Any] = {}

    @property
    def has_pending_record(self) -> bool:
        return bool(self._fields)

    def feed(self, received: str, final: bool = False) -> list[Message]:
        """
        Consumes the cumulative text of the current attempt and returns completed messages.

        A repeated notification with no new text is ignored. Whitespace that does not
        finish a line is left unconsumed until the rest of the line arrives.
        `final=True` is used once the response has ended and processes whatever is left.
        """
        delta = received[self.offset:]
        if not final and not delta.strip() and "\n" not in delta:
            return []
        self.offset = len(received)
        return self.parse(delta, final=final)

    def parse(self, chunk: str, final: bool = False) -> list[Message]:
        lines = (self._partial_line + chunk).split("\n")
        tail = lines.pop()
        if final:
            self._partial_line = ""
            if tail:
                lines.append(tail)
        else:
            # The last piece has no newline yet; it may still grow
            self._partial_line = tail

        messages = []
        for line in lines:
            message = self._consume_line(line)
            if message is not None:
                messages.append(message)
        return messages

    def _consume_line(self, line: str) -> Message | None:
        if line.startswith("data:"):
            self._fields["data"] = decode_payload(line[5:].strip())
        elif line.startswith("id:"):
            self._fields["id"] = line[3:].strip()
        elif line.startswith("event:"):
            self._fields["event"] = line[6:].strip()
        elif not line.strip() and "data" in self._fields:
            message = Message(**self._fields)
            self._fields = {}
            return message
        return None
