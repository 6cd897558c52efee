# kvsim

`kvsim` simulates a small key-value store spread over several nodes and checks
whether what its clients observed could have come from a single, correct store.

It has four parts:

- **Data model** (`kvsim.kv`, `kvsim.protocol`): `Put`, `Get` and `Delete`
  requests, `Response` values, actor identifiers (`NodeID`, `ClientID`, each
  0 to 255), the `ClientRequest` / `ClientResponse` payloads, the `Message`
  type exchanged between actors and the `StateMachine` base class.
- **Runtime** (`kvsim.runtime.node`): `Node`, an in-memory key-value state
  machine. `Node.apply(request)` returns the previous value for `Put` and
  `Delete` and the current value for `Get`.
- **Simulator** (`kvsim.simulator`): `Simulator` in `kvsim.simulator.core`, a
  seeded discrete-event loop built on `EventQueue` (`kvsim.simulator.event`),
  `EventLog` (`kvsim.simulator.log`), `RequestHistory`
  (`kvsim.simulator.history`) and the `ChaCha8Rng` generator
  (`kvsim.simulator.rng`). Each client request is routed to a randomly chosen
  node and every message gets a random delivery delay. The same seed always
  yields the same execution.
- **Analysis and visualization** (`kvsim.analysis.linearizability`,
  `kvsim.visualization`): a brute-force linearizability checker, an SVG
  swim-lane renderer and a JSON trace builder.

Nodes never talk to each other, so a client can miss writes that were applied
on a different node. The simulator exists to expose exactly that kind of
anomaly.

## Running a simulation

```python
from kvsim.kv import Delete, Get, Put
from kvsim.protocol import ClientID
from kvsim.simulator.core import Simulator

sim = Simulator(seed=42, delivery_delay=range(1, 3))
sim.register_client(ClientID(0), [Put("x", "1"), Get("x"), Delete("x")])
sim.register_client(ClientID(1), [Put("x", "2"), Get("x")])
sim.schedule_tick_all(0)
sim.run()

assert sim.all_clients_done()
assert sim.request_history().all_responded()
print(sim.format_log())
```

Clients work stop-and-wait: each sends one request, waits for its response and
sends the next one as soon as it arrives. `delivery_delay` is a unit-step
`range`; each message's delay is drawn from it, and an empty range means no
delay. The default is three nodes; `Simulator.with_node_count(node_count,
seed, delivery_delay)` picks another number (1 to 255). `step()` processes a
single event and returns `False` once the queue is empty.

After a run you can inspect:

- `sim.clock`: the current simulated time
- `sim.request_entries()`: completed requests (`HistoryEntry`) with invoke and
  return times, in completion order
- `sim.routed_node(client_id, request_id)`: which node served a request
- `sim.node_value(node_id, key)`: what a given node currently stores
- `sim.event_log()`: every send, delivery and tick, in order
- `sim.is_quiescent()`: nothing queued, pending or in flight

## Checking linearizability

```python
result = sim.check_linearizable()
if result.is_violation():
    print(result)
```

`check_linearizable` in `kvsim.analysis.linearizability` also accepts any
sequence of `HistoryEntry` records, so hand-written histories can be checked
too. The result is either `Linearizable`, carrying one valid order as
`IndexedEntry` records, or `Violation`, carrying the longest prefix that could
be ordered, the reference state after it and the `FailedCandidate` requests
whose responses could not be explained at that point.

## Visualizing

`kvsim.visualization.linearizability.render_svg(entries, result)` returns an
SVG document with one swim lane per client, requests drawn over their time
intervals, linearization points marked and tooltips showing the reference
state before and after each step. `legend_html(result)` and
`summary_html(result)` return matching HTML fragments, and `format_state`
prints a state as `{k: "v", ...}`.

`kvsim.visualization.trace.scenario_json(name, sim)` describes one finished
simulation as JSON: its actors, every send and delivery with request kind and
labels, and a per-client request count. `scenarios_json` joins several
`TraceScenario` records into a JSON array.

`kvsim.scenarios.all_scenarios()` returns five ready-made, already-run
`Scenario` records, including a seeded stale read.

## What it does not do

- There is no command-line tool; everything is used from Python.
- The renderers return SVG, HTML fragments and JSON strings. They do not build
  a complete HTML page, include a trace viewer, write files or open a browser;
  embedding the output is up to you.
- Nodes do not replicate or coordinate, and there is no persistent storage.
</br>