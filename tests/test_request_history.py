import pytest

from kvsim.analysis.history import HistoryEntry
from kvsim.kv import Get, Put, Response
from kvsim.protocol import ClientID
from kvsim.simulator.history import RequestHistory


def test_new_history_is_empty_and_settled():
    history = RequestHistory()
    assert history.entries() == ()
    assert history.all_responded() is True


def test_request_response_round_trip():
    history = RequestHistory()
    history.record_request(ClientID(0), 0, Put("x", "1"), 2)
    assert history.all_responded() is False
    assert history.entries() == ()
    history.record_response(ClientID(0), 0, Response(None), 5)
    assert history.all_responded() is True
    assert history.entries() == (
        HistoryEntry(ClientID(0), Put("x", "1"), 2, 5, Response(None)),
    )


def test_entries_are_in_completion_order():
    history = RequestHistory()
    history.record_request(ClientID(0), 0, Get("a"), 0)
    history.record_request(ClientID(1), 0, Get("b"), 0)
    history.record_response(ClientID(1), 0, Response("2"), 1)
    history.record_response(ClientID(0), 0, Response("1"), 3)
    assert [e.client_id for e in history.entries()] == [ClientID(1), ClientID(0)]
    assert all(e.invoke_time <= e.return_time for e in history.entries())


def test_same_request_id_for_different_clients_is_allowed():
    history = RequestHistory()
    history.record_request(ClientID(0), 0, Get("a"), 0)
    history.record_request(ClientID(1), 0, Get("a"), 0)
    history.record_response(ClientID(0), 0, Response(None), 1)
    assert history.all_responded() is False


def test_duplicate_request_raises():
    history = RequestHistory()
    history.record_request(ClientID(0), 0, Get("a"), 0)
    with pytest.raises(ValueError):
        history.record_request(ClientID(0), 0, Get("b"), 1)


def test_response_without_request_raises():
    history = RequestHistory()
    with pytest.raises(KeyError):
        history.record_response(ClientID(0), 0, Response(None), 1)


def test_response_cannot_be_recorded_twice():
    history = RequestHistory()
    history.record_request(ClientID(0), 0, Get("a"), 0)
    history.record_response(ClientID(0), 0, Response(None), 1)
    with pytest.raises(KeyError):
        history.record_response(ClientID(0), 0, Response(None), 2)
    assert len(history.entries()) == 1