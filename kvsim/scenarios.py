"""Pre-built, already-executed simulation scenarios for the trace viewer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from kvsim.kv import Delete, Get, Put
from kvsim.protocol import ClientID
from kvsim.simulator.core import Simulator

__all__ = ["Scenario", "all_scenarios"]


@dataclass(frozen=True)
class Scenario:
    """A named simulation that has run to completion."""

    name: str
    sim: Simulator


def _finish(name: str, sim: Simulator) -> Scenario:
    sim.schedule_tick_all(0)
    sim.run()
    return Scenario(name, sim)


def _single_client_misses_own_write() -> Scenario:
    """A client writes then reads back; the read may hit another node."""
    sim = Simulator(42, range(1, 3))
    sim.register_client(ClientID(0), [Put("x", "1"), Get("x"), Delete("x")])
    return _finish("Single client - routed across nodes", sim)


def _two_clients_diverge() -> Scenario:
    """Two clients race on the same key, each request routed independently."""
    sim = Simulator(42, range(1, 3))
    sim.register_client(ClientID(0), [Put("x", "1"), Get("x"), Delete("x")])
    sim.register_client(ClientID(1), [Put("x", "2"), Get("x")])
    return _finish("Two clients - divergent node views", sim)


def _five_clients_concurrent() -> Scenario:
    """Five clients, one key each: many actor lanes."""
    sim = Simulator(7, range(1, 5))
    for i, key in enumerate(["a", "b", "c", "d", "e"]):
        sim.register_client(ClientID(i), [Put(key, str(i + 1)), Get(key)])
    return _finish("Five clients - concurrent workload", sim)


def _sequential_fixed_delay() -> Scenario:
    """One client, five requests, a fixed one-tick delay."""
    sim = Simulator(1, range(1, 2))
    sim.register_client(
        ClientID(0),
        [Put("a", "1"), Put("a", "2"), Get("a"), Delete("a"), Get("a")],
    )
    return _finish("Sequential - fixed 1-tick delay", sim)


def _routed_stale_read() -> Scenario:
    """A write to ``x`` and a warm-up read of ``y`` followed by a read of ``x``."""
    sim = Simulator(1, range(1, 4))
    sim.register_client(ClientID(0), [Put("x", "1")])
    sim.register_client(ClientID(1), [Get("y"), Get("x")])
    return _finish("Seeded stale read from routed nodes", sim)


def all_scenarios() -> List[Scenario]:
    """All demonstration scenarios, in display order."""
    return [
        _routed_stale_read(),
        _single_client_misses_own_write(),
        _two_clients_diverge(),
        _five_clients_concurrent(),
        _sequential_fixed_delay(),
    ]