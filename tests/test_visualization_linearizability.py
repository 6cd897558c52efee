from kvsim.analysis.history import HistoryEntry
from kvsim.analysis.linearizability import check_linearizable
from kvsim.kv import Get, Put, Response
from kvsim.protocol import ClientID
from kvsim.visualization.linearizability import (
    format_state,
    legend_html,
    render_svg,
    summary_html,
)


def h(client, request, invoke, ret, response):
    return HistoryEntry(ClientID(client), request, invoke, ret, response)


def stale_read():
    return [
        h(0, Put("x", "1"), 0, 1, Response(None)),
        h(1, Get("x"), 2, 3, Response(None)),
    ]


def sequential():
    return [
        h(0, Put("x", "1"), 0, 1, Response(None)),
        h(0, Get("x"), 2, 3, Response("1")),
    ]


def test_format_state_empty():
    assert format_state({}) == "{}"


def test_format_state_sorted():
    assert format_state({"b": "2", "a": "1"}) == '{a: "1", b: "2"}'


def test_summary_linearizable():
    history = sequential()
    html = summary_html(check_linearizable(history))
    assert "Result: Linearizable (2 requests)" in html
    assert html.endswith("</pre>\n")


def test_summary_violation():
    html = summary_html(check_linearizable(stale_read()))
    assert "Result: Violation (linearized 1 requests before failure)" in html
    assert 'Reference state at failure: {x: "1"}' in html
    assert "Failed candidates: 1" in html


def test_legend_depends_on_result():
    ok = legend_html(check_linearizable(sequential()))
    bad = legend_html(check_linearizable(stale_read()))
    assert "Failed candidate" not in ok
    assert "Linearization point" in ok
    assert "Failed candidate" in bad
    assert "Not linearized" in bad


def test_svg_shapes_match_result_for_violation():
    history = stale_read()
    result = check_linearizable(history)
    svg = render_svg(history, result)
    assert svg.startswith("<svg ")
    assert svg.endswith("</svg>\n")
    assert svg.count('class="request-rect"') == len(history)
    assert svg.count('class="time-label"') == max(e.return_time for e in history) + 1
    assert svg.count('class="lp-valid"') == len(result.linearized_prefix)
    assert svg.count('class="lp-invalid"') == len(result.failed_candidates)
    assert "(not linearized)" in svg
    assert 'class="lane-label">Client(0)</text>' in svg
    assert 'class="lane-label">Client(1)</text>' in svg


def test_svg_linearizable_has_lines_between_points():
    history = sequential()
    result = check_linearizable(history)
    svg = render_svg(history, result)
    assert svg.count("lp-line") == len(result.linearization) - 1
    assert svg.count('class="lp-valid"') == len(history)
    assert "(not linearized)" not in svg
    assert "Linearization point #2" in svg


def test_svg_tooltip_quotes_escaped():
    history = sequential()
    svg = render_svg(history, check_linearizable(history))
    assert 'State after: {x: &quot;1&quot;}' in svg
    assert 'Put(x, &quot;1&quot;) -> None' in svg


def test_svg_empty_history():
    result = check_linearizable([])
    svg = render_svg([], result)
    assert svg.count('class="time-label">t=0</text>') == 1
    assert "request-rect" not in svg
    assert "lane-label" not in svg