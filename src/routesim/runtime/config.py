from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from routesim.core.eventlog import JsonlLogger
from routesim.core.session import SimulationSession
from routesim.core.types import AlgorithmType, ExternalEvent
from routesim.core.validation import build_topology
from routesim.utils.io import load_yaml


@dataclass(frozen=True)
class EngineConfig:
    duration: float = 10.0
    frame_interval: float = 0.1
    step_interval: float = 1.0


@dataclass(frozen=True)
class TrafficConfig:
    initial_packets: int = 0
    speed_range: Tuple[float, float] = (0.5, 1.0)
    memoize_routes: bool = True


@dataclass(frozen=True)
class SimulationConfig:
    name: str
    seed: int
    algorithm: AlgorithmType
    start_node: Optional[str]
    target_node: Optional[str]
    topology: Dict[str, Any]
    engine: EngineConfig
    traffic: TrafficConfig
    events: List[ExternalEvent] = field(default_factory=list)
    output_dir: str = "results/runs"


def parse_events(events_cfg: List[Dict[str, Any]]) -> List[ExternalEvent]:
    """Rows of ``{time, action, **params}`` to events, ordered by time (stable)."""
    events = []
    for row in events_cfg or []:
        t = float(row["time"])
        action = str(row["action"])
        params = {k: v for k, v in row.items() if k not in {"time", "action"}}
        events.append(ExternalEvent(time=t, action=action, params=params))
    return sorted(events, key=lambda e: e.time)


def simulation_config_from_dict(raw: Dict[str, Any]) -> SimulationConfig:
    engine_raw = dict(raw.get("engine", {}))
    traffic_raw = dict(raw.get("traffic", {}))
    speed = traffic_raw.get("speed_range", (0.5, 1.0))

    start = raw.get("start_node")
    target = raw.get("target_node")
    return SimulationConfig(
        name=str(raw.get("name", "run")),
        seed=int(raw.get("seed", 42)),
        algorithm=AlgorithmType.parse(raw.get("algorithm", "dijkstra")),
        start_node=None if start is None else str(start),
        target_node=None if target is None else str(target),
        topology=dict(raw.get("topology", {})),
        engine=EngineConfig(
            duration=float(engine_raw.get("duration", 10.0)),
            frame_interval=float(engine_raw.get("frame_interval", 0.1)),
            step_interval=float(engine_raw.get("step_interval", 1.0)),
        ),
        traffic=TrafficConfig(
            initial_packets=int(traffic_raw.get("initial_packets", 0)),
            speed_range=(float(speed[0]), float(speed[1])),
            memoize_routes=bool(traffic_raw.get("memoize_routes", True)),
        ),
        events=parse_events(raw.get("events", [])),
        output_dir=str(raw.get("output_dir", "results/runs")),
    )


def load_simulation_config(path: str | Path) -> SimulationConfig:
    return simulation_config_from_dict(load_yaml(path))


def build_session(config: SimulationConfig, event_log: JsonlLogger | None = None) -> SimulationSession:
    """Topology, session and initial packets for a config; start defaults to the first node."""
    topology = build_topology(config.topology, seed=config.seed)
    session = SimulationSession(
        topology,
        algorithm=config.algorithm,
        start_node=config.start_node,
        target_node=config.target_node,
        speed_range=config.traffic.speed_range,
        seed=config.seed,
        memoize_routes=config.traffic.memoize_routes,
        event_log=event_log,
    )
    if config.traffic.initial_packets:
        session.spawn(config.traffic.initial_packets)
    return session
