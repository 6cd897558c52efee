"""Discrete-event simulator for the key-value store.

Owns a set of nodes, routes each client request to one randomly chosen node,
and drives every state machine through a priority-queue event loop.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Optional, Tuple

from kvsim.analysis.history import HistoryEntry
from kvsim.analysis.linearizability import CheckResult, check_linearizable
from kvsim.kv import Request
from kvsim.protocol import (
    ActorId,
    ClientID,
    ClientRequest,
    ClientResponse,
    Message,
    NodeID,
    RequestID,
)
from kvsim.runtime.node import Node
from kvsim.simulator.event import Deliver, Event, EventQueue, TickAll
from kvsim.simulator.history import RequestHistory
from kvsim.simulator.log import DeliverEntry, EventLog, SendEntry, TickAllEntry
from kvsim.simulator.rng import ChaCha8Rng

__all__ = ["DEFAULT_NODE_COUNT", "Simulator"]

logger = logging.getLogger(__name__)

DEFAULT_NODE_COUNT = 3
"""Number of nodes in a newly created simulator."""

_MAX_NODES = 255
_MASK32 = 0xFFFFFFFF


def _random_index(rng: ChaCha8Rng, size: int) -> int:
    """A uniform index in ``[0, size)``, drawn from 32 bits when it fits."""
    if size - 1 > _MASK32:
        return rng.random_range(0, size)
    if size == _MASK32 + 1:
        return rng.next_u32()
    product = rng.next_u32() * size
    result, low_order = product >> 32, product & _MASK32
    if low_order > (-size) & _MASK32:
        new_high = (rng.next_u32() * size) >> 32
        if low_order + new_high > _MASK32:
            result += 1
    return result


@dataclass
class _ClientState:
    """Stop-and-wait workload: one request in flight at a time."""

    requests: Deque[Request]
    pending_request: Optional[RequestID] = None
    next_request: RequestID = field(default=0)

    def try_next_request(self) -> Optional[Tuple[RequestID, Request]]:
        if self.pending_request is not None or not self.requests:
            return None
        request = self.requests.popleft()
        request_id = self.next_request
        self.next_request += 1
        self.pending_request = request_id
        return request_id, request

    def complete_request(self, request_id: RequestID) -> None:
        if self.pending_request != request_id:
            raise RuntimeError(
                f"response request_id {request_id} does not match pending "
                f"{self.pending_request}"
            )
        self.pending_request = None

    @property
    def done(self) -> bool:
        return not self.requests and self.pending_request is None


class Simulator:
    """Discrete-event simulator driving the node set and client workloads.

    ``seed`` controls every random choice, request routing and message delays
    alike, so repeated runs with the same inputs are identical. Each message
    is delayed by a value drawn from ``delivery_delay``; an empty range means
    no delay.
    """

    def __init__(
        self, seed: int, delivery_delay: range, node_count: int = DEFAULT_NODE_COUNT
    ) -> None:
        if not 0 < node_count <= _MAX_NODES:
            raise ValueError(f"simulator must own 1..={_MAX_NODES} nodes, got {node_count}")
        if delivery_delay.step != 1 or delivery_delay.start < 0:
            raise ValueError(f"delivery delay must be a non-negative unit-step range")
        self._nodes: Dict[NodeID, Node] = {
            NodeID(i): Node(NodeID(i)) for i in range(node_count)
        }
        self._clients: Dict[ClientID, _ClientState] = {}
        self._routes: Dict[Tuple[ClientID, RequestID], NodeID] = {}
        self._queue = EventQueue()
        self._clock = 0
        self._rng = ChaCha8Rng.seed_from_u64(seed)
        self._delivery_delay = delivery_delay
        self._log = EventLog()
        self._history = RequestHistory()

    @classmethod
    def with_node_count(cls, node_count: int, seed: int, delivery_delay: range) -> "Simulator":
        """Create a simulator with an explicit number of nodes."""
        return cls(seed, delivery_delay, node_count)

    def register_client(self, client_id: ClientID, requests: Iterable[Request]) -> None:
        """Register a client whose requests run in order, one at a time."""
        self._clients[client_id] = _ClientState(deque(requests))

    def schedule_tick_all(self, at_time: int) -> None:
        """Schedule a global tick at ``at_time``."""
        self._queue.insert(at_time, TickAll())

    def _send(self, message: Message) -> None:
        delay = 0
        if self._delivery_delay:
            delay = self._rng.random_range(
                self._delivery_delay.start, self._delivery_delay.stop
            )
        deliver_at = self._clock + delay
        self._log.record(SendEntry(self._clock, deliver_at, message))
        self._queue.insert(deliver_at, Deliver(message))

    def _choose_node(self) -> NodeID:
        node_ids = self.node_ids()
        return node_ids[_random_index(self._rng, len(node_ids))]

    def _try_next_client_request(self, client_id: ClientID) -> Optional[Message]:
        client = self._clients.get(client_id)
        if client is None:
            logger.warning("tried to start a request for unknown client %s", client_id)
            return None
        started = client.try_next_request()
        if started is None:
            return None
        request_id, request = started
        node_id = self._choose_node()
        route = (client_id, request_id)
        if route in self._routes:
            raise RuntimeError(f"duplicate route recorded for {client_id} request {request_id}")
        self._routes[route] = node_id
        self._history.record_request(client_id, request_id, request, self._clock)
        return Message(
            sender=client_id,
            recipient=node_id,
            payload=ClientRequest(request_id, request),
        )

    def _process_response(self, client_id: ClientID, message: Message) -> List[Message]:
        payload = message.payload
        if not isinstance(payload, ClientResponse):
            raise TypeError(f"client received a non-response payload: {payload!r}")
        if message.recipient != client_id:
            raise RuntimeError("response recipient must match the client being completed")
        self._history.record_response(
            client_id, payload.request_id, payload.response, self._clock
        )
        client = self._clients.get(client_id)
        if client is None:
            raise RuntimeError(f"response delivered to unregistered {client_id}")
        client.complete_request(payload.request_id)
        follow_up = self._try_next_client_request(client_id)
        return [follow_up] if follow_up is not None else []

    def _dispatch_tick_all(self) -> List[Message]:
        started = (self._try_next_client_request(cid) for cid in self.client_ids())
        return [message for message in started if message is not None]

    def _dispatch(self, recipient: ActorId, message: Message) -> List[Message]:
        if isinstance(recipient, ClientID):
            return self._process_response(recipient, message)
        node = self._nodes.get(recipient)
        if node is None:
            logger.warning("message delivered to unknown node %s: %r", recipient, message)
            return []
        return node.on_message(message, self._clock)

    def step(self) -> bool:
        """Process one event; return False if the queue was empty."""
        if not self._queue:
            return False
        timestamp, event = self._queue.pop()
        self._clock = timestamp
        outgoing = self._handle(event)
        for message in outgoing:
            self._send(message)
        return True

    def _handle(self, event: Event) -> List[Message]:
        if isinstance(event, TickAll):
            self._log.record(TickAllEntry(self._clock))
            return self._dispatch_tick_all()
        message = event.message
        self._log.record(DeliverEntry(self._clock, message))
        return self._dispatch(message.recipient, message)

    def run(self) -> None:
        """Process events until the queue is empty."""
        while self.step():
            pass

    def all_clients_done(self) -> bool:
        """True when every client has completed its workload."""
        return all(client.done for client in self._clients.values())

    def is_quiescent(self) -> bool:
        """True when no work is queued, pending or in flight."""
        return not self._queue and self.all_clients_done() and self._history.all_responded()

    @property
    def clock(self) -> int:
        """The current simulated time."""
        return self._clock

    def request_history(self) -> RequestHistory:
        """The request history used for correctness checks."""
        return self._history

    def request_entries(self) -> Tuple[HistoryEntry, ...]:
        """Completed requests in completion order."""
        return self._history.entries()

    def check_linearizable(self) -> CheckResult:
        """Check whether the recorded history is linearizable."""
        return check_linearizable(self._history.entries())

    def event_log(self) -> EventLog:
        """The detailed event log of sends, deliveries and ticks."""
        return self._log

    def client_ids(self) -> List[ClientID]:
        """IDs of all registered clients, sorted."""
        return sorted(self._clients)

    def node_ids(self) -> List[NodeID]:
        """IDs of all nodes, sorted."""
        return sorted(self._nodes)

    def routed_node(self, client_id: ClientID, request_id: RequestID) -> Optional[NodeID]:
        """The node chosen for a client request, if it was routed."""
        return self._routes.get((client_id, request_id))

    def node_value(self, node_id: NodeID, key: str) -> Optional[str]:
        """The value stored for ``key`` on one node."""
        node = self._nodes.get(node_id)
        return node.value(key) if node is not None else None

    def format_log(self) -> str:
        """The event log as plain text."""
        return self._log.format()