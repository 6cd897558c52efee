"""Event queue with deterministic ordering.

Events are ordered by ``(timestamp, sequence number)``; the sequence number
keeps same-time events in insertion order.
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass
from typing import List, Tuple, Union

from kvsim.protocol import Message

__all__ = ["TickAll", "Deliver", "Event", "EventQueue"]


@dataclass(frozen=True)
class TickAll:
    """Call ``tick()`` on every actor."""


@dataclass(frozen=True)
class Deliver:
    """Deliver a message to its recipient."""

    message: Message


Event = Union[TickAll, Deliver]


class EventQueue:
    """A priority queue of events, earliest first, FIFO among ties."""

    def __init__(self) -> None:
        self._heap: List[Tuple[int, int, Event]] = []
        self._sequence = itertools.count()

    def insert(self, timestamp: int, event: Event) -> None:
        """Schedule ``event`` at ``timestamp``."""
        heapq.heappush(self._heap, (timestamp, next(self._sequence), event))

    def pop(self) -> Tuple[int, Event]:
        """Remove and return the earliest ``(timestamp, event)``."""
        if not self._heap:
            raise IndexError("pop from an empty event queue")
        timestamp, _, event = heapq.heappop(self._heap)
        return timestamp, event

    def __len__(self) -> int:
        return len(self._heap)