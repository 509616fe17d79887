"""
MODULE OVERVIEW:
The listener registry each reader uses to publish what it parses.

WHAT IS HAPPENING HERE:
A reader owns one `EventBus`. Listeners subscribe to a named kind ("message" or "error")
and are invoked synchronously, in subscription order, at the moment the reader emits.
A listener that raises is logged and skipped so one bad subscriber cannot starve the rest.
"""

from typing import Any, Callable, Dict, List
from loguru import logger

Listener = Callable[[Any], None]

class EventBus:
    """
    A minimal pub/sub registry keyed by event kind.
    """
    def __init__(self, kinds: tuple[str, ...]):
        self._listeners: Dict[str, List[Listener]] = {kind: [] for kind in kinds}

    def _bucket(self, kind: str) -> List[Listener]:
        try:
            return self._listeners[kind]
        except KeyError:
            raise ValueError(f"Unknown event kind '{kind}', expected one of {sorted(self._listeners)}") from None

    def subscribe(self, kind: str, listener: Listener) -> None:
        self._bucket(kind).append(listener)

    def unsubscribe(self, kind: str, listener: Listener) -> None:
        bucket = self._bucket(kind)
        if listener in bucket:
            bucket.remove(listener)

    def emit(self, kind: str, payload: Any) -> None:
        # Copy so a listener may unsubscribe itself while we iterate
        for listener in list(self._bucket(kind)):
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"Error in '{kind}' listener during emit: {e}")
