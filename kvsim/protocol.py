"""Identifiers and message types shared by the runtime and simulator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Union

from kvsim.kv import Request, Response

__all__ = [
    "RequestID",
    "NodeID",
    "ClientID",
    "ActorId",
    "ClientRequest",
    "ClientResponse",
    "MessagePayload",
    "Message",
    "StateMachine",
]

RequestID = int
"""Identifier of a request, unique within a single client."""

_MAX_ID = 255


def _check_id(kind: str, value: int) -> None:
    if not 0 <= value <= _MAX_ID:
        raise ValueError(f"{kind} id must be in 0..={_MAX_ID}, got {value}")


@dataclass(frozen=True, order=True)
class NodeID:
    """Identifier for a node."""

    value: int

    def __post_init__(self) -> None:
        _check_id("node", self.value)

    def __str__(self) -> str:
        return f"Node({self.value})"


@dataclass(frozen=True, order=True)
class ClientID:
    """Identifier for a client."""

    value: int

    def __post_init__(self) -> None:
        _check_id("client", self.value)

    def __str__(self) -> str:
        return f"Client({self.value})"


ActorId = Union[NodeID, ClientID]


@dataclass(frozen=True)
class ClientRequest:
    """Request to execute a client request."""

    request_id: RequestID
    request: Request


@dataclass(frozen=True)
class ClientResponse:
    """Response for a completed request."""

    request_id: RequestID
    response: Response


MessagePayload = Union[ClientRequest, ClientResponse]


@dataclass(frozen=True)
class Message:
    """A message in transit between two actors."""

    sender: ActorId
    recipient: ActorId
    payload: MessagePayload


class StateMachine(ABC):
    """A protocol actor driven by the simulator."""

    @abstractmethod
    def on_message(self, message: Message, at_time: int) -> List[Message]:
        """Handle an inbound message and return the messages to send."""

    def tick(self, at_time: int) -> List[Message]:
        """Simulate the passage of time; may produce spontaneous messages."""
        return []