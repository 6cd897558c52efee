"""Database node: holds data and serves requests against it."""

from __future__ import annotations

from typing import Dict, List, Optional

from kvsim.kv import Delete, Get, Put, Request, Response
from kvsim.protocol import ClientRequest, ClientResponse, Message, NodeID, StateMachine

__all__ = ["Node"]


class Node(StateMachine):
    """A single database node backed by an in-memory dictionary."""

    def __init__(self, node_id: NodeID) -> None:
        self.id = node_id
        self._database: Dict[str, str] = {}

    def __repr__(self) -> str:
        return f"Node(id={self.id!r}, keys={sorted(self._database)!r})"

    def value(self, key: str) -> Optional[str]:
        """Return the current value for ``key`` without changing state."""
        return self._database.get(key)

    def apply(self, request: Request) -> Response:
        """Apply a request to the local database."""
        match request:
            case Put(key=key, value=value):
                previous = self._database.get(key)
                self._database[key] = value
                return Response(previous)
            case Get(key=key):
                return Response(self._database.get(key))
            case Delete(key=key):
                return Response(self._database.pop(key, None))
        raise TypeError(f"unsupported request: {request!r}")

    def on_message(self, message: Message, at_time: int) -> List[Message]:
        payload = message.payload
        if not isinstance(payload, ClientRequest):
            return []
        response = self.apply(payload.request)
        return [
            Message(
                sender=self.id,
                recipient=message.sender,
                payload=ClientResponse(payload.request_id, response),
            )
        ]

    def tick(self, at_time: int) -> List[Message]:
        return []