from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, Sequence

from routesim.core.types import SimulationStep


def _normalize(step: SimulationStep) -> Dict[str, Any]:
    return {
        "distances": {str(k): int(v) for k, v in sorted(step.distances.items())},
        "previous": {str(k): v for k, v in sorted(step.previous.items())},
    }


def hash_step(step: SimulationStep) -> str:
    """Digest of a step's distances and predecessors, independent of dict order."""
    payload = json.dumps(_normalize(step), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def hash_trace(steps: Sequence[SimulationStep]) -> str:
    """Digest of a whole trace, including each step's description and active sets."""
    rows = []
    for step in steps:
        row = _normalize(step)
        row["index"] = step.step_index
        row["description"] = step.description
        row["active_nodes"] = list(step.active_nodes)
        row["active_links"] = list(step.active_links)
        row["visited_nodes"] = list(step.visited_nodes)
        rows.append(row)
    payload = json.dumps(rows, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
