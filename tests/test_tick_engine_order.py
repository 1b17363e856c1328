from __future__ import annotations

import json

import pytest

from routesim.backends.emu import EmuBackend
from routesim.core.engine_tick import TickEngine
from routesim.core.eventlog import JsonlLogger
from routesim.core.session import SimulationSession
from routesim.core.topology import Topology
from routesim.core.types import ExternalEvent


def build_cfg(tmp_path):
    return {
        "name": "deterministic_order",
        "seed": 123,
        "algorithm": "dijkstra",
        "start_node": "n0",
        "target_node": "n3",
        "topology": {"type": "ring", "n_nodes": 6, "default_weight": 1},
        "engine": {"duration": 12.0, "frame_interval": 0.1, "step_interval": 0.5},
        "traffic": {"initial_packets": 8, "speed_range": [0.5, 1.0]},
        "output_dir": str(tmp_path),
        "events": [
            {"time": 3.0, "action": "set_link_active", "link": "n1-n2", "active": False},
            {"time": 3.0, "action": "spawn", "count": 6},
            {"time": 6.0, "action": "set_link_active", "link": "n1-n2", "active": True},
            {"time": 6.0, "action": "set_algorithm", "algorithm": "bellman_ford"},
        ],
    }


def test_tick_engine_deterministic_order(tmp_path):
    backend = EmuBackend()
    cfg = build_cfg(tmp_path)

    run1 = backend.run(cfg)
    run2 = backend.run(cfg)

    assert run1["trace_digests"] == run2["trace_digests"]
    assert run1["routing_table"] == run2["routing_table"]
    for key in ("packets_spawned", "packets_delivered", "packets_lost", "packets_in_flight"):
        assert run1[key] == run2[key]
    assert run1["events_applied"] == 4
    assert run1["frames"] == 120


def test_step_clock_is_independent_of_frames():
    session = SimulationSession(Topology.classic())
    engine = TickEngine(session, duration=5.0, frame_interval=0.1, step_interval=1.0)

    result = engine.run()

    assert result.frames == 50
    assert result.final_step_index == 5
    assert result.trace_length == 16


def test_step_clock_stops_at_last_step():
    session = SimulationSession(Topology.classic())
    result = TickEngine(session, duration=10.0, frame_interval=0.5, step_interval=0.1).run()
    assert result.final_step_index == result.trace_length - 1


def test_events_apply_between_frames_in_time_order():
    session = SimulationSession(Topology.classic(), target_node="F")
    log = JsonlLogger(path=None, keep=True)
    events = [
        ExternalEvent(time=2.0, action="set_link_active", params={"link": "EF", "active": True}),
        ExternalEvent(time=1.0, action="set_link_active", params={"link": "EF", "active": False}),
        ExternalEvent(time=50.0, action="spawn", params={"count": 3}),
    ]

    result = TickEngine(session, duration=3.0, frame_interval=0.5, events=events, logger=log).run()

    applied = log.events("event_applied")
    assert [(r["time"], r["params"]["active"]) for r in applied] == [(1.0, False), (2.0, True)]
    assert result.events_applied == 2
    assert len(result.trace_digests) == 3
    assert result.trace_digests[0] == result.trace_digests[2]
    assert len(log.events("frame")) == result.frames == 6


def test_unknown_action_is_rejected_up_front():
    session = SimulationSession(Topology.classic())
    with pytest.raises(ValueError):
        TickEngine(session, duration=1.0, events=[ExternalEvent(time=0.0, action="explode")])
    with pytest.raises(ValueError):
        TickEngine(session, duration=1.0, frame_interval=0.0)


def test_emu_backend_writes_artifacts(tmp_path):
    result = EmuBackend().run(build_cfg(tmp_path))

    run_dir = tmp_path / result["run_id"]
    assert (run_dir / "result.json").exists()
    assert (run_dir / "config.effective.json").exists()
    rows = [json.loads(line) for line in (run_dir / "events.jsonl").read_text(encoding="utf-8").splitlines()]
    kinds = {r["event"] for r in rows}
    assert {"frame", "event_applied", "packet_spawned"} <= kinds
    assert sum(1 for r in rows if r["event"] == "frame") == result["frames"]
    assert result["algorithm"] == "dijkstra"
    assert result["shortest_path"]["reachable"]
    assert result["shortest_path"]["cost"] == 3
    assert result["packets_spawned"] >= 8
