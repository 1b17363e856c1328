#!/usr/bin/env python3
from __future__ import annotations

import argparse
import random
from typing import Any, Dict, List

from routesim.cli.run_emu import load_effective_config
from routesim.core.topology import Topology
from routesim.core.validation import build_topology
from routesim.utils.io import dump_yaml


def generate_events(
    topology: Topology,
    n_events: int,
    max_time: float,
    seed: int = 42,
    spawn_count: int = 3,
) -> List[Dict[str, Any]]:
    """Random link/node failures and repairs, each followed by a traffic burst."""
    rng = random.Random(seed)
    link_ids = [l.id for l in topology.links()]
    node_ids = topology.node_ids()
    events: List[Dict[str, Any]] = []
    down_links: set[str] = set()
    for _ in range(n_events):
        t = round(rng.uniform(0.0, max_time), 1)
        action = rng.choice(["set_link_active", "set_link_active", "set_node_active", "set_link_weight"])
        if action == "set_link_active" and link_ids:
            link = rng.choice(link_ids)
            active = link in down_links
            if active:
                down_links.discard(link)
            else:
                down_links.add(link)
            events.append({"time": t, "action": action, "link": link, "active": active})
        elif action == "set_node_active" and node_ids:
            node = rng.choice(node_ids)
            repair = round(min(max_time, t + max_time / 4), 1)
            events.append({"time": t, "action": action, "node": node, "active": False})
            events.append({"time": repair, "action": action, "node": node, "active": True})
        elif link_ids:
            link = rng.choice(link_ids)
            events.append({"time": t, "action": "set_link_weight", "link": link, "weight": rng.randint(1, 10)})
        events.append({"time": t, "action": "spawn", "count": spawn_count})

    events.sort(key=lambda e: e["time"])
    return events


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate random failure schedule")
    parser.add_argument("--config", required=True, help="Experiment config whose topology is used")
    parser.add_argument("--n-events", type=int, default=5)
    parser.add_argument("--max-time", type=float, default=20.0)
    parser.add_argument("--spawn-count", type=int, default=3)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--out", required=True, help="YAML file receiving {events: [...]}")
    args = parser.parse_args()

    cfg = load_effective_config(args.config)
    topology = build_topology(cfg.get("topology", {}), seed=int(cfg.get("seed", args.seed)))
    events = generate_events(topology, args.n_events, args.max_time, args.seed, args.spawn_count)
    dump_yaml(args.out, {"events": events})


if __name__ == "__main__":
    main()
