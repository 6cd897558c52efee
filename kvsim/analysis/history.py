"""Completed client requests with timing information."""

from __future__ import annotations

from dataclasses import dataclass

from kvsim.kv import Request, Response
from kvsim.protocol import ClientID

__all__ = ["HistoryEntry"]


@dataclass(frozen=True)
class HistoryEntry:
    """A completed client request with its invoke and return times."""

    client_id: ClientID
    request: Request
    invoke_time: int
    return_time: int
    response: Response