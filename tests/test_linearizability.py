import pytest

from kvsim.analysis.history import HistoryEntry
from kvsim.analysis.linearizability import (
    FailedCandidate,
    Linearizable,
    Violation,
    apply_to_reference,
    check_linearizable,
)
from kvsim.kv import Delete, Get, Put, Response
from kvsim.protocol import ClientID


def h(client, request, invoke_time, return_time, response):
    return HistoryEntry(
        client_id=ClientID(client),
        request=request,
        invoke_time=invoke_time,
        return_time=return_time,
        response=response,
    )


def indices(result):
    assert isinstance(result, Linearizable)
    return [ie.index for ie in result.linearization]


STALE_READ = [
    h(0, Put("x", "1"), 0, 1, Response(None)),
    h(1, Get("x"), 2, 3, Response(None)),
]


def test_empty_history():
    result = check_linearizable([])
    assert result.is_ok()
    assert result.linearization == ()
    assert str(result) == "Linearizable.\n"


def test_sequential_put_then_get():
    history = [
        h(0, Put("x", "1"), 0, 1, Response(None)),
        h(0, Get("x"), 2, 3, Response("1")),
    ]
    assert indices(check_linearizable(history)) == [0, 1]


def test_concurrent_puts():
    history = [
        h(0, Put("x", "1"), 0, 5, Response(None)),
        h(1, Put("x", "2"), 1, 4, Response("1")),
        h(2, Get("x"), 6, 7, Response("2")),
    ]
    assert indices(check_linearizable(history)) == [0, 1, 2]


def test_concurrent_requests_on_different_keys():
    history = [
        h(0, Put("x", "1"), 0, 3, Response(None)),
        h(1, Get("y"), 1, 2, Response(None)),
    ]
    assert indices(check_linearizable(history)) == [0, 1]


def test_put_get_delete_get_sequential():
    history = [
        h(0, Put("x", "1"), 0, 1, Response(None)),
        h(0, Get("x"), 2, 3, Response("1")),
        h(0, Delete("x"), 4, 5, Response("1")),
        h(0, Get("x"), 6, 7, Response(None)),
    ]
    assert indices(check_linearizable(history)) == [0, 1, 2, 3]


def test_concurrent_order_found_by_backtracking():
    history = [
        h(0, Put("x", "1"), 0, 5, Response("2")),
        h(1, Put("x", "2"), 0, 5, Response(None)),
    ]
    assert indices(check_linearizable(history)) == [1, 0]


def test_stale_read():
    result = check_linearizable(STALE_READ)
    assert result.is_violation()
    assert not result.is_ok()
    assert isinstance(result, Violation)
    assert len(result.linearized_prefix) == 1
    assert len(result.failed_candidates) == 1
    assert result.failed_candidates[0].reference_response == Response("1")
    assert result.state_at_failure == {"x": "1"}


def test_read_sees_value_before_write():
    history = [
        h(0, Get("x"), 0, 1, Response("1")),
        h(1, Put("x", "1"), 2, 3, Response(None)),
    ]
    result = check_linearizable(history)
    assert isinstance(result, Violation)
    assert result.linearized_prefix == ()
    assert result.state_at_failure == {}
    assert result.failed_candidates == (
        FailedCandidate(index=0, entry=history[0], reference_response=Response(None)),
    )


def test_display_stale_read():
    rendered = str(check_linearizable(STALE_READ))
    assert "Linearizability violation detected." in rendered
    assert "Linearized prefix (1 of 2 requests):" in rendered
    assert 'Reference state at failure: {x: "1"}' in rendered
    assert 'history says None, reference says Some("1")' in rendered


def test_display_empty_prefix():
    history = [h(0, Get("x"), 0, 1, Response("1"))]
    rendered = str(check_linearizable(history))
    assert "  (none)" in rendered
    assert "Reference state at failure: {}" in rendered


def test_display_linearizable():
    history = [
        h(0, Put("x", "1"), 0, 1, Response(None)),
        h(0, Get("x"), 2, 3, Response("1")),
    ]
    assert str(check_linearizable(history)) == (
        "Linearizable.\n"
        "\n"
        "Linearization order:\n"
        '  1. Client(0) Put(x, "1") -> None    [t=0..1]\n'
        '  2. Client(0) Get(x) -> Some("1")    [t=2..3]\n'
    )


def test_concurrent_requests_impossible_responses():
    history = [
        h(0, Put("x", "1"), 0, 5, Response(None)),
        h(1, Put("x", "2"), 1, 4, Response("9")),
    ]
    assert check_linearizable(history).is_violation()


def test_check_is_deterministic():
    first = check_linearizable(STALE_READ)
    second = check_linearizable(STALE_READ)
    assert first == second
    assert isinstance(second, Violation)
    assert [ie.index for ie in second.linearized_prefix] == [0]
    assert [fc.index for fc in second.failed_candidates] == [1]


@pytest.mark.parametrize(
    "request_, expected, state_after",
    [
        (Put("x", "2"), Response("1"), {"x": "2"}),
        (Put("y", "2"), Response(None), {"x": "1", "y": "2"}),
        (Get("x"), Response("1"), {"x": "1"}),
        (Get("z"), Response(None), {"x": "1"}),
        (Delete("x"), Response("1"), {}),
        (Delete("z"), Response(None), {"x": "1"}),
    ],
)
def test_apply_to_reference(request_, expected, state_after):
    state = {"x": "1"}
    assert apply_to_reference(state, request_) == expected
    assert state == state_after


def test_apply_to_reference_rejects_unknown_request():
    with pytest.raises(TypeError):
        apply_to_reference({}, "Get(x)")