from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Optional, Tuple

from neoapi.models import LLMOutput

Batch = Tuple[LLMOutput, ...]


class EventQueue:
    """
    Unbounded, ordered buffer of events waiting for delivery.

    Events come in one at a time and leave all together: `drain()` takes a
    snapshot of everything queued and empties the queue in the same
    critical section, so two overlapping flushes can neither lose nor
    double-send an event.
    """

    def __init__(self) -> None:
        self._events: Deque[LLMOutput] = deque()
        self._lock = threading.Lock()

    def put(self, event: LLMOutput) -> int:
        """Append an event and return the new depth."""
        with self._lock:
            self._events.append(event)
            return len(self._events)

    def drain(self) -> Optional[Batch]:
        """
        Take the whole content as one batch.

        Returns None, not an empty batch, when nothing is queued.
        """
        with self._lock:
            if not self._events:
                return None
            batch = tuple(self._events)
            self._events.clear()
            return batch

    def __len__(self) -> int:
        return len(self._events)
