"""Append-only log of simulator execution events.

Unlike the request history, which keeps one entry per completed client
request, the event log keeps every send, delivery and tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Tuple, Union

from kvsim.protocol import Message

__all__ = ["TickAllEntry", "DeliverEntry", "SendEntry", "EventEntry", "EventLog"]


@dataclass(frozen=True)
class TickAllEntry:
    """The simulator asked every actor to tick at ``at``."""

    at: int

    def __str__(self) -> str:
        return f"t={self.at:<4} [TickAll]"


@dataclass(frozen=True)
class DeliverEntry:
    """A queued message reached its recipient at ``at``."""

    at: int
    message: Message

    def __str__(self) -> str:
        m = self.message
        return f"t={self.at:<4} [Deliver] {m.sender} -> {m.recipient}: {m.payload!r}"


@dataclass(frozen=True)
class SendEntry:
    """A message sent at ``at`` and scheduled to arrive at ``deliver_at``."""

    at: int
    deliver_at: int
    message: Message

    def __str__(self) -> str:
        m = self.message
        return (
            f"t={self.at:<4} [Send]    {m.sender} -> {m.recipient}: {m.payload!r}"
            f" (deliver@{self.deliver_at})"
        )


EventEntry = Union[TickAllEntry, DeliverEntry, SendEntry]


class EventLog:
    """An append-only event log."""

    def __init__(self) -> None:
        self._entries: List[EventEntry] = []

    def record(self, entry: EventEntry) -> None:
        """Append one event."""
        self._entries.append(entry)

    def entries(self) -> Tuple[EventEntry, ...]:
        """The recorded events in insertion order."""
        return tuple(self._entries)

    def format(self) -> str:
        """One human-readable line per event."""
        return "\n".join(str(entry) for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[EventEntry]:
        return iter(self._entries)