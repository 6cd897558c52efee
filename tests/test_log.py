from kvsim.kv import Get, Response
from kvsim.protocol import ClientID, ClientRequest, ClientResponse, Message, NodeID
from kvsim.simulator.log import DeliverEntry, EventLog, SendEntry, TickAllEntry

REQUEST = Message(ClientID(0), NodeID(1), ClientRequest(0, Get("x")))
RESPONSE = Message(NodeID(1), ClientID(0), ClientResponse(0, Response(None)))


def test_tick_line():
    assert str(TickAllEntry(0)) == "t=0    [TickAll]"


def test_send_line_mentions_endpoints_and_delivery_time():
    line = str(SendEntry(2, 5, REQUEST))
    assert line.startswith("t=2    [Send]    Client(0) -> Node(1): ")
    assert line.endswith("(deliver@5)")


def test_deliver_line_mentions_endpoints():
    line = str(DeliverEntry(5, RESPONSE))
    assert line.startswith("t=5    [Deliver] Node(1) -> Client(0): ")


def test_empty_log():
    log = EventLog()
    assert len(log) == 0
    assert log.format() == ""
    assert log.entries() == ()


def test_log_keeps_insertion_order_and_formats_lines():
    log = EventLog()
    entries = [TickAllEntry(0), SendEntry(0, 1, REQUEST), DeliverEntry(1, REQUEST)]
    for entry in entries:
        log.record(entry)
    assert list(log.entries()) == entries
    assert list(log) == entries
    assert len(log) == 3
    assert log.format().split("\n") == [str(e) for e in entries]