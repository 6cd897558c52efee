"""Request tracking for simulated clients.

Captures each request/response pair with the time the client sent the
request and the time it received the response.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from kvsim.analysis.history import HistoryEntry
from kvsim.kv import Request, Response
from kvsim.protocol import ClientID, RequestID

__all__ = ["RequestHistory"]


@dataclass(frozen=True)
class _Pending:
    request: Request
    invoke_time: int


class RequestHistory:
    """Records completed client requests for linearizability checking."""

    def __init__(self) -> None:
        self._completed: List[HistoryEntry] = []
        self._pending: Dict[Tuple[ClientID, RequestID], _Pending] = {}

    def record_request(
        self, client_id: ClientID, request_id: RequestID, request: Request, at_time: int
    ) -> None:
        """Record that a client issued a request at ``at_time``."""
        slot = (client_id, request_id)
        if slot in self._pending:
            raise ValueError(f"duplicate request for {client_id} request {request_id}")
        self._pending[slot] = _Pending(request, at_time)

    def record_response(
        self, client_id: ClientID, request_id: RequestID, response: Response, at_time: int
    ) -> None:
        """Record that a client received a response at ``at_time``."""
        try:
            pending = self._pending.pop((client_id, request_id))
        except KeyError:
            raise KeyError(
                f"response without request for {client_id} request {request_id}"
            ) from None
        self._completed.append(
            HistoryEntry(
                client_id=client_id,
                request=pending.request,
                invoke_time=pending.invoke_time,
                return_time=at_time,
                response=response,
            )
        )

    def entries(self) -> Tuple[HistoryEntry, ...]:
        """All completed requests, in order of completion."""
        return tuple(self._completed)

    def all_responded(self) -> bool:
        """True when no request is in flight."""
        return not self._pending