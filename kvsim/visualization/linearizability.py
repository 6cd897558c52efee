"""SVG rendering of linearizability check results.

Draws one swim lane per client with each request as a rectangle spanning its
invoke and return times, markers at linearization points, and tooltips that
show the reference state before and after each linearized request.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from kvsim.analysis.history import HistoryEntry
from kvsim.analysis.linearizability import (
    CheckResult,
    Linearizable,
    Violation,
    apply_to_reference,
)
from kvsim.protocol import ClientID

__all__ = ["format_state", "render_svg", "legend_html", "summary_html"]

LANE_HEIGHT = 50.0
LANE_GAP = 20.0
LANE_LABEL_WIDTH = 80.0
TOP_MARGIN = 40.0
RIGHT_MARGIN = 40.0
REQUEST_HEIGHT = 30.0
MIN_REQUEST_WIDTH = 8.0
TIME_SCALE = 60.0
LP_RADIUS = 5.0
LP_MARKER_OFFSET = 2.0


def _num(x: float) -> str:
    """Shortest decimal form, with no trailing ``.0`` on whole numbers."""
    if float(x).is_integer():
        return str(int(x))
    return repr(float(x))


def format_state(state: Mapping[str, str]) -> str:
    """Render a reference state as ``{k: "v", ...}`` with keys sorted."""
    pairs = ", ".join(f'{key}: "{state[key]}"' for key in sorted(state))
    return "{" + pairs + "}"


def _lane_y(lane_idx: int) -> float:
    return TOP_MARGIN + lane_idx * (LANE_HEIGHT + LANE_GAP)


def _time_to_x(t: int) -> float:
    return LANE_LABEL_WIDTH + t * TIME_SCALE


def _request_center_x(entry: HistoryEntry) -> float:
    x1 = _time_to_x(entry.invoke_time)
    x2 = _time_to_x(entry.return_time)
    return x1 + max(x2 - x1, MIN_REQUEST_WIDTH) / 2.0


def _linearized(result: CheckResult):
    if isinstance(result, Linearizable):
        return result.linearization
    if isinstance(result, Violation):
        return result.linearized_prefix
    raise TypeError(f"unsupported check result: {result!r}")


def _linearization_points(
    entries: Sequence[HistoryEntry], result: CheckResult
) -> Tuple[List[int], List[Dict[str, str]]]:
    """The linearization order as indices and the reference state after each step."""
    order = [ie.index for ie in _linearized(result)]
    states: List[Dict[str, str]] = []
    state: Dict[str, str] = {}
    for idx in order:
        apply_to_reference(state, entries[idx].request)
        states.append(dict(state))
    return order, states


def _time_axis(time_max: int, svg_height: float) -> List[str]:
    parts = []
    for t in range(time_max + 1):
        x = _num(_time_to_x(t))
        parts.append(
            f'<line x1="{x}" y1="{_num(TOP_MARGIN - 5.0)}" x2="{x}" '
            f'y2="{_num(svg_height)}" class="time-line"/>'
        )
        parts.append(
            f'<text x="{x}" y="{_num(TOP_MARGIN - 10.0)}" text-anchor="middle" '
            f'class="time-label">t={t}</text>'
        )
    return parts


def _lane_label(client_id: ClientID, lane_y: float) -> List[str]:
    label_y = lane_y + LANE_HEIGHT / 2.0 + 4.0
    return [
        f'<text x="5" y="{_num(label_y)}" class="lane-label">{client_id}</text>',
        f'<rect x="{_num(LANE_LABEL_WIDTH)}" y="{_num(lane_y)}" width="100%" '
        f'height="{_num(LANE_HEIGHT)}" fill="#f8fafc" rx="3"/>',
    ]


def _request(
    entry: HistoryEntry,
    entry_idx: int,
    lane_y: float,
    lp_pos: Optional[int],
    lp_states: Sequence[Mapping[str, str]],
    result: CheckResult,
) -> List[str]:
    x1 = _time_to_x(entry.invoke_time)
    x2 = _time_to_x(entry.return_time)
    width = max(x2 - x1, MIN_REQUEST_WIDTH)
    y = lane_y + (LANE_HEIGHT - REQUEST_HEIGHT) / 2.0
    center_x = x1 + width / 2.0
    marker_y = y - LP_MARKER_OFFSET

    if lp_pos is not None:
        fill, stroke = "#dbeafe", "#93c5fd"
    else:
        fill, stroke = "#fee2e2", "#fca5a5"

    tooltip = (
        f"{entry.client_id} {entry.request} -> {entry.response}\n"
        f"t={entry.invoke_time}..{entry.return_time}"
    )
    if lp_pos is not None:
        prev_state = format_state(lp_states[lp_pos - 1]) if lp_pos > 0 else "{}"
        new_state = format_state(lp_states[lp_pos])
        tooltip += (
            f"\n\nLinearization point #{lp_pos + 1}\n"
            f"State before: {prev_state}\nState after: {new_state}"
        )
    elif isinstance(result, Violation):
        tooltip += "\n\n(not linearized)"
    tooltip_escaped = tooltip.replace('"', "&quot;")

    parts = [
        f'<rect x="{_num(x1)}" y="{_num(y)}" width="{_num(width)}" '
        f'height="{_num(REQUEST_HEIGHT)}" rx="4" fill="{fill}" stroke="{stroke}" '
        f'stroke-width="1.5" class="request-rect" data-tooltip="{tooltip_escaped}"/>',
        f'<text x="{_num(center_x)}" y="{_num(y + REQUEST_HEIGHT / 2.0 + 4.0)}" '
        f'text-anchor="middle" class="request-label">{entry.request}</text>',
    ]
    if lp_pos is not None:
        parts.append(
            f'<circle cx="{_num(center_x)}" cy="{_num(marker_y)}" '
            f'r="{_num(LP_RADIUS)}" class="lp-valid"/>'
        )
    if isinstance(result, Violation) and any(
        fc.index == entry_idx for fc in result.failed_candidates
    ):
        parts.append(
            f'<circle cx="{_num(center_x)}" cy="{_num(marker_y)}" '
            f'r="{_num(LP_RADIUS)}" class="lp-invalid"/>'
        )
    return parts


def _lp_lines(
    entries: Sequence[HistoryEntry], clients: List[ClientID], lp_order: List[int]
) -> List[str]:
    def marker_y(client_id: ClientID) -> float:
        lane = _lane_y(clients.index(client_id))
        return lane + (LANE_HEIGHT - REQUEST_HEIGHT) / 2.0 - LP_MARKER_OFFSET

    parts = []
    for a, b in zip(lp_order, lp_order[1:]):
        ea, eb = entries[a], entries[b]
        parts.append(
            f'<line x1="{_num(_request_center_x(ea))}" y1="{_num(marker_y(ea.client_id))}" '
            f'x2="{_num(_request_center_x(eb))}" y2="{_num(marker_y(eb.client_id))}" '
            f'class="lp-line lp-valid" stroke-dasharray="4,3" opacity="0.4"/>'
        )
    return parts


def render_svg(entries: Sequence[HistoryEntry], result: CheckResult) -> str:
    """Render the history and check result as a swim-lane SVG document."""
    entries = list(entries)
    clients = sorted({e.client_id for e in entries})
    time_max = max((e.return_time for e in entries), default=0)
    svg_width = LANE_LABEL_WIDTH + time_max * TIME_SCALE + RIGHT_MARGIN
    svg_height = TOP_MARGIN + len(clients) * (LANE_HEIGHT + LANE_GAP)

    lp_order, lp_states = _linearization_points(entries, result)
    lp_position = {idx: pos for pos, idx in enumerate(lp_order)}

    parts = [
        f'<svg width="{_num(svg_width)}" height="{_num(svg_height)}" '
        f'xmlns="http://www.w3.org/2000/svg">'
    ]
    parts.extend(_time_axis(time_max, svg_height))
    for lane_idx, client_id in enumerate(clients):
        lane_y = _lane_y(lane_idx)
        parts.extend(_lane_label(client_id, lane_y))
        for entry_idx, entry in enumerate(entries):
            if entry.client_id == client_id:
                parts.extend(
                    _request(
                        entry,
                        entry_idx,
                        lane_y,
                        lp_position.get(entry_idx),
                        lp_states,
                        result,
                    )
                )
    parts.extend(_lp_lines(entries, clients, lp_order))
    parts.append("</svg>\n")
    return "".join(parts)


def legend_html(result: CheckResult) -> str:
    """The legend explaining the markers and colours used."""
    parts = [
        '<div class="legend">',
        '<span><span class="dot" style="background:#2563eb"></span> Linearization point</span>',
    ]
    if result.is_violation():
        parts.extend(
            [
                '<span><span class="dot" style="background:#dc2626"></span> Failed candidate</span>',
                '<span><span class="dot" style="background:#dbeafe;border:1px solid #93c5fd">'
                "</span> Linearized</span>",
                '<span><span class="dot" style="background:#fee2e2;border:1px solid #fca5a5">'
                "</span> Not linearized</span>",
            ]
        )
    parts.append("</div>\n")
    return "".join(parts)


def summary_html(result: CheckResult) -> str:
    """A short preformatted summary of the check result."""
    if isinstance(result, Linearizable):
        body = f"Result: Linearizable ({len(result.linearization)} requests)"
    elif isinstance(result, Violation):
        body = (
            f"Result: Violation (linearized {len(result.linearized_prefix)} "
            f"requests before failure)\n"
            f"Reference state at failure: {format_state(result.state_at_failure)}\n"
            f"Failed candidates: {len(result.failed_candidates)}"
        )
    else:
        raise TypeError(f"unsupported check result: {result!r}")
    return (
        '<pre style="margin-top:12px;font-size:13px;color:#334155;">'
        + body
        + "</pre>\n"
    )