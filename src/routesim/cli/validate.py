from __future__ import annotations

from typing import Any, Dict

from routesim.algorithms.registry import available_algorithms
from routesim.core.types import AlgorithmType
from routesim.core.validation import build_topology, validate_topology

_EVENT_ACTIONS = {
    "set_node_active": ("node",),
    "set_link_active": ("link",),
    "set_link_weight": ("link", "weight"),
    "spawn": (),
    "set_start_node": ("node",),
    "set_target_node": (),
    "set_algorithm": ("algorithm",),
}

_TOPOLOGY_TYPES = {"classic", "line", "ring", "star", "fullmesh", "grid", "er"}


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def validate_config(cfg: Dict[str, Any]) -> list[str]:
    errors: list[str] = []

    if "topology" not in cfg:
        errors.append("Missing 'topology' config")

    try:
        AlgorithmType.parse(cfg.get("algorithm", "dijkstra"))
    except KeyError:
        errors.append(
            f"Unknown algorithm '{cfg.get('algorithm')}'. Available: {available_algorithms()}"
        )

    topo = cfg.get("topology", {})
    if not isinstance(topo, dict):
        errors.append("'topology' must be a dict")
    elif "nodes" in topo:
        errors.extend(f"topology: {e}" for e in validate_topology(topo))
    elif topo.get("type", "classic") not in _TOPOLOGY_TYPES:
        errors.append(f"topology.type must be one of {sorted(_TOPOLOGY_TYPES)}")
    if not errors:
        errors.extend(_check_endpoints(cfg))

    engine = cfg.get("engine", {})
    if not isinstance(engine, dict):
        errors.append("'engine' must be a dict")
    else:
        duration = _number(engine.get("duration", 1))
        if duration is None or duration < 0:
            errors.append("engine.duration must be >= 0")
        for key in ("frame_interval", "step_interval"):
            value = _number(engine.get(key, 1))
            if value is None or value <= 0:
                errors.append(f"engine.{key} must be > 0")

    traffic = cfg.get("traffic", {})
    if not isinstance(traffic, dict):
        errors.append("'traffic' must be a dict")
    else:
        initial = traffic.get("initial_packets", 0)
        if isinstance(initial, bool) or not isinstance(initial, int) or initial < 0:
            errors.append("traffic.initial_packets must be an integer >= 0")
        speed = traffic.get("speed_range", [0.5, 1.0])
        bounds = [_number(s) for s in speed] if isinstance(speed, (list, tuple)) else []
        if len(bounds) != 2 or None in bounds or bounds[0] <= 0 or bounds[1] < bounds[0]:
            errors.append("traffic.speed_range must be [low, high] with 0 < low <= high")

    events = cfg.get("events", [])
    if not isinstance(events, list):
        errors.append("'events' must be a list")
        events = []
    for idx, row in enumerate(events):
        if not isinstance(row, dict):
            errors.append(f"events[{idx}] must be a mapping")
            continue
        t = _number(row.get("time"))
        if t is None or t < 0:
            errors.append(f"events[{idx}].time must be a number >= 0")
        action = row.get("action")
        if action not in _EVENT_ACTIONS:
            errors.append(f"events[{idx}].action '{action}' is not one of {sorted(_EVENT_ACTIONS)}")
            continue
        for key in _EVENT_ACTIONS[action]:
            if key not in row:
                errors.append(f"events[{idx}] ({action}) is missing '{key}'")

    return errors


def _check_endpoints(cfg: Dict[str, Any]) -> list[str]:
    try:
        topology = build_topology(cfg.get("topology", {}), seed=int(cfg.get("seed", 42)))
    except ValueError as exc:
        return [f"topology: {exc}"]
    errors = []
    for key in ("start_node", "target_node"):
        node = cfg.get(key)
        if node is not None and not topology.has_node(str(node)):
            errors.append(f"{key} '{node}' is not a node of the topology")
    return errors
