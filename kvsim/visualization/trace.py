"""Message-flow trace data for the interactive trace viewer.

Turns a simulator's event log into JSON describing the send and delivery of
each message between actors, tagged by request kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

from kvsim.kv import Delete, Get, Put, Request, Response
from kvsim.protocol import ActorId, ClientID, ClientRequest, ClientResponse, Message
from kvsim.simulator.core import Simulator
from kvsim.simulator.log import DeliverEntry, EventEntry, SendEntry

__all__ = ["TraceScenario", "scenario_json", "scenarios_json"]


@dataclass(frozen=True)
class TraceScenario:
    """A named simulation to render in the trace viewer."""

    name: str
    sim: Simulator


def _actor_name(actor: ActorId) -> str:
    kind = "Client" if isinstance(actor, ClientID) else "Node"
    return f"{kind} {actor.value}"


def _client_id_of(message: Message) -> Optional[int]:
    for actor in (message.sender, message.recipient):
        if isinstance(actor, ClientID):
            return actor.value
    return None


def _request_kind(request: Request) -> str:
    if isinstance(request, Put):
        return "Put"
    if isinstance(request, Get):
        return "Get"
    if isinstance(request, Delete):
        return "Delete"
    raise TypeError(f"unsupported request: {request!r}")


def _request_label(request: Request) -> str:
    if isinstance(request, Put):
        return f"Put {request.key}={request.value}"
    if isinstance(request, Get):
        return f"Get {request.key}"
    return f"Del {request.key}"


def _request_detail(request: Request) -> str:
    if isinstance(request, Put):
        return f"Put key={request.key} value={request.value}"
    if isinstance(request, Get):
        return f"Get key={request.key}"
    return f"Delete key={request.key}"


def _response_label(response: Response) -> str:
    return f"\u2192 {'None' if response.value is None else response.value}"


def _response_detail(response: Response) -> str:
    return f"Result: {'None' if response.value is None else response.value}"


def _json_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


_RequestMap = Dict[Tuple[int, int], str]


def _build_request_map(log: Iterable[EventEntry]) -> _RequestMap:
    kinds: _RequestMap = {}
    for entry in log:
        if not isinstance(entry, SendEntry):
            continue
        payload = entry.message.payload
        client_id = _client_id_of(entry.message)
        if isinstance(payload, ClientRequest) and client_id is not None:
            kinds[(client_id, payload.request_id)] = _request_kind(payload.request)
    return kinds


def _payload_fields(message: Message, kinds: _RequestMap) -> Tuple[str, str, int, int, str]:
    client_id = _client_id_of(message)
    if client_id is None:
        raise ValueError("message has no client as sender or recipient")
    payload = message.payload
    if isinstance(payload, ClientRequest):
        return (
            f"{_request_kind(payload.request)}Req",
            _request_label(payload.request),
            payload.request_id,
            client_id,
            _request_detail(payload.request),
        )
    if isinstance(payload, ClientResponse):
        kind = kinds.get((client_id, payload.request_id), "?")
        return (
            f"{kind}Resp",
            _response_label(payload.response),
            payload.request_id,
            client_id,
            _response_detail(payload.response),
        )
    raise TypeError(f"unsupported payload: {payload!r}")


def _entry_json(entry: EventEntry, kinds: _RequestMap) -> Optional[str]:
    if isinstance(entry, SendEntry):
        head = f'"kind":"send","at":{entry.at},"deliver_at":{entry.deliver_at}'
    elif isinstance(entry, DeliverEntry):
        head = f'"kind":"deliver","at":{entry.at}'
    else:
        return None
    message = entry.message
    msg_type, label, request_id, client_id, detail = _payload_fields(message, kinds)
    return (
        "{" + head
        + f',"from":"{_actor_name(message.sender)}","to":"{_actor_name(message.recipient)}"'
        + f',"msgType":"{msg_type}","label":"{_json_escape(label)}"'
        + f',"requestId":{request_id},"clientId":{client_id}'
        + f',"detail":"{_json_escape(detail)}"' + "}"
    )


def scenario_json(name: str, sim: Simulator) -> str:
    """The JSON object describing one finished simulation."""
    log = sim.event_log().entries()
    kinds = _build_request_map(log)
    actors = [f"Client {cid.value}" for cid in sim.client_ids()]
    actors += [f"Node {nid.value}" for nid in sim.node_ids()]
    actor_list = ",".join(f'"{actor}"' for actor in actors)
    entries = [js for js in (_entry_json(e, kinds) for e in log) if js is not None]

    history = sim.request_history().entries()
    summaries = [
        f'{{"id":"Client {cid.value}","requests":'
        f"{sum(1 for e in history if e.client_id == cid)}}}"
        for cid in sim.client_ids()
    ]
    return (
        f'{{"name":"{name}","actors":[{actor_list}],"entries":[{",".join(entries)}],'
        f'"result":{{"total":{len(history)},"clients":[{",".join(summaries)}]}}}}'
    )


def scenarios_json(scenarios: Sequence[TraceScenario]) -> str:
    """A JSON array with one object per scenario."""
    return "[" + ",\n".join(scenario_json(s.name, s.sim) for s in scenarios) + "]"