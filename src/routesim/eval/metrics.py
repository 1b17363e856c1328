from __future__ import annotations

from typing import Dict


def compute_metrics(run: Dict) -> Dict:
    spawned = int(run.get("packets_spawned", 0))
    delivered = int(run.get("packets_delivered", 0))
    lost = int(run.get("packets_lost", 0))
    digests = run.get("trace_digests", [])
    path = run.get("shortest_path") or {}
    return {
        "run_id": run.get("run_id"),
        "name": run.get("name"),
        "algorithm": run.get("algorithm"),
        "seed": run.get("seed"),
        "trace_length": run.get("trace_length", 0),
        "events_applied": run.get("events_applied", 0),
        "packets_spawned": spawned,
        "packets_delivered": delivered,
        "packets_lost": lost,
        "delivery_ratio": _ratio(delivered, spawned),
        "loss_ratio": _ratio(lost, spawned),
        "trace_changes": max(0, len(digests) - 1),
        "path_cost": path.get("cost"),
        "final_digest": run.get("final_digest"),
    }


def _ratio(part: int, whole: int) -> float | None:
    if whole <= 0:
        return None
    return part / whole
