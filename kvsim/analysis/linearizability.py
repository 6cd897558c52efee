"""Brute-force linearizability checker.

Decides whether a concurrent history of key-value requests is linearizable by
searching, with backtracking, for a valid sequential order. The sequential
reference is a plain mapping from keys to their current values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from kvsim.analysis.history import HistoryEntry
from kvsim.kv import Delete, Get, Put, Request, Response

__all__ = [
    "IndexedEntry",
    "FailedCandidate",
    "CheckResult",
    "Linearizable",
    "Violation",
    "apply_to_reference",
    "check_linearizable",
]


@dataclass(frozen=True)
class IndexedEntry:
    """A history entry paired with its index in the checked history."""

    index: int
    entry: HistoryEntry


@dataclass(frozen=True)
class FailedCandidate:
    """An eligible entry that could not be linearized next.

    ``reference_response`` is what the reference would have answered at the
    point of failure.
    """

    index: int
    entry: HistoryEntry
    reference_response: Response


def _entry_line(position: int, entry: HistoryEntry) -> str:
    return (
        f"  {position}. {entry.client_id} {entry.request} -> {entry.response}"
        f"    [t={entry.invoke_time}..{entry.return_time}]"
    )


def _format_state(state: Dict[str, str]) -> str:
    pairs = ", ".join(f'{key}: "{state[key]}"' for key in sorted(state))
    return "{" + pairs + "}"


class CheckResult:
    """Outcome of a linearizability check."""

    def is_ok(self) -> bool:
        """True when a valid linearization exists."""
        return isinstance(self, Linearizable)

    def is_violation(self) -> bool:
        """True when no valid linearization exists."""
        return isinstance(self, Violation)


@dataclass(frozen=True)
class Linearizable(CheckResult):
    """A valid linearization, in linearization order."""

    linearization: Tuple[IndexedEntry, ...] = ()

    def __str__(self) -> str:
        lines = ["Linearizable."]
        if self.linearization:
            lines.append("")
            lines.append("Linearization order:")
            lines.extend(
                _entry_line(pos, ie.entry)
                for pos, ie in enumerate(self.linearization, start=1)
            )
        return "\n".join(lines) + "\n"


@dataclass(frozen=True)
class Violation(CheckResult):
    """No valid linearization exists.

    ``linearized_prefix`` is the longest sequence that could be linearized,
    ``state_at_failure`` the reference state after it, and
    ``failed_candidates`` the eligible entries whose responses did not match.
    """

    linearized_prefix: Tuple[IndexedEntry, ...] = ()
    state_at_failure: Dict[str, str] = field(default_factory=dict)
    failed_candidates: Tuple[FailedCandidate, ...] = ()

    def __str__(self) -> str:
        total = len(self.linearized_prefix) + len(self.failed_candidates)
        lines = [
            "Linearizability violation detected.",
            "",
            f"Linearized prefix ({len(self.linearized_prefix)} of {total} requests):",
        ]
        if self.linearized_prefix:
            lines.extend(
                _entry_line(pos, ie.entry)
                for pos, ie in enumerate(self.linearized_prefix, start=1)
            )
        else:
            lines.append("  (none)")
        lines.append("")
        lines.append(f"Reference state at failure: {_format_state(self.state_at_failure)}")
        lines.append("")
        lines.append("Could not linearize:")
        for fc in self.failed_candidates:
            e = fc.entry
            lines.append(
                f"  - {e.client_id} {e.request}: history says {e.response},"
                f" reference says {fc.reference_response}"
            )
        return "\n".join(lines) + "\n"


def apply_to_reference(state: Dict[str, str], request: Request) -> Response:
    """Apply ``request`` to the reference state and return its response."""
    match request:
        case Put(key=key, value=value):
            previous = state.get(key)
            state[key] = value
            return Response(previous)
        case Get(key=key):
            return Response(state.get(key))
        case Delete(key=key):
            return Response(state.pop(key, None))
    raise TypeError(f"unsupported request: {request!r}")


def _revert(state: Dict[str, str], request: Request, reference_response: Response) -> None:
    """Undo a request applied earlier, given the response it produced."""
    if isinstance(request, Get):
        return
    previous: Optional[str] = reference_response.value
    if previous is None:
        state.pop(request.key, None)
    else:
        state[request.key] = previous


def _eligible(entries: Sequence[HistoryEntry], linearized: List[bool], i: int) -> bool:
    """No other remaining entry returns strictly before entry ``i`` is invoked."""
    invoke = entries[i].invoke_time
    return not any(
        not done and j != i and other.return_time < invoke
        for j, (other, done) in enumerate(zip(entries, linearized))
    )


class _Search:
    def __init__(self, entries: Sequence[HistoryEntry]) -> None:
        self.entries = entries
        self.linearized = [False] * len(entries)
        self.order: List[int] = []
        self.state: Dict[str, str] = {}
        self.best_order: List[int] = []

    def run(self) -> bool:
        if len(self.order) == len(self.entries):
            return True
        for i, entry in enumerate(self.entries):
            if self.linearized[i] or not _eligible(self.entries, self.linearized, i):
                continue
            reference_response = apply_to_reference(self.state, entry.request)
            if reference_response != entry.response:
                _revert(self.state, entry.request, reference_response)
                continue
            self.linearized[i] = True
            self.order.append(i)
            if len(self.order) > len(self.best_order):
                self.best_order = list(self.order)
            if self.run():
                return True
            self.order.pop()
            self.linearized[i] = False
            _revert(self.state, entry.request, reference_response)
        return False


def _failed_candidates(
    entries: Sequence[HistoryEntry], best_order: List[int], state_at_failure: Dict[str, str]
) -> Tuple[FailedCandidate, ...]:
    linearized = [False] * len(entries)
    for i in best_order:
        linearized[i] = True
    failed = []
    for i, entry in enumerate(entries):
        if linearized[i] or not _eligible(entries, linearized, i):
            continue
        reference_response = apply_to_reference(dict(state_at_failure), entry.request)
        if reference_response != entry.response:
            failed.append(FailedCandidate(i, entry, reference_response))
    return tuple(failed)


def check_linearizable(entries: Sequence[HistoryEntry]) -> CheckResult:
    """Check whether a history is linearizable.

    An entry may be linearized next only if no other remaining entry returned
    strictly before it was invoked.
    """
    entries = list(entries)
    search = _Search(entries)
    if search.run():
        return Linearizable(tuple(IndexedEntry(i, entries[i]) for i in search.order))

    state: Dict[str, str] = {}
    for i in search.best_order:
        apply_to_reference(state, entries[i].request)
    state_at_failure = {key: state[key] for key in sorted(state)}

    return Violation(
        linearized_prefix=tuple(IndexedEntry(i, entries[i]) for i in search.best_order),
        state_at_failure=state_at_failure,
        failed_candidates=_failed_candidates(entries, search.best_order, state_at_failure),
    )