from __future__ import annotations

import random
from typing import Dict, List

import pytest

from routesim.algorithms import run_algorithm
from routesim.core.digest import hash_step, hash_trace
from routesim.core.paths import reconstruct_path
from routesim.core.topology import Topology
from routesim.core.types import UNREACHABLE


def random_topology(seed: int, n_nodes: int = 6, p: float = 0.45) -> Topology:
    rng = random.Random(seed)
    topology = Topology()
    names = [f"v{i}" for i in range(n_nodes)]
    for name in names:
        topology.add_node(name, active=rng.random() > 0.15)
    for i in range(n_nodes):
        for j in range(i + 1, n_nodes):
            if rng.random() < p:
                topology.add_link(
                    names[i], names[j], rng.randint(1, 9), active=rng.random() > 0.1
                )
    # An occasional parallel link exercises multigraph handling.
    links = topology.links()
    if links and rng.random() < 0.5:
        first = links[0]
        topology.add_link(first.source, first.target, rng.randint(1, 9), link_id="parallel")
    return topology


def brute_force(topology: Topology, start: str) -> Dict[str, int]:
    snap = topology.snapshot()
    best = {n: UNREACHABLE for n in snap.node_ids()}
    if not snap.is_node_active(start):
        return best
    adjacency: Dict[str, List] = {}
    for link in snap.active_links():
        if snap.is_node_active(link.source) and snap.is_node_active(link.target):
            adjacency.setdefault(link.source, []).append((link.target, link.weight))
            adjacency.setdefault(link.target, []).append((link.source, link.weight))

    def walk(node: str, cost: int, seen: set) -> None:
        if cost < best[node]:
            best[node] = cost
        for nxt, w in adjacency.get(node, []):
            if nxt not in seen:
                walk(nxt, cost + w, seen | {nxt})

    walk(start, 0, {start})
    return best


@pytest.mark.parametrize("seed", range(25))
@pytest.mark.parametrize("algorithm", ["dijkstra", "bellman_ford"])
def test_final_distances_match_brute_force(seed, algorithm):
    topology = random_topology(seed)
    for start in topology.node_ids():
        final = run_algorithm(algorithm, topology, start)[-1]
        assert final.distances == brute_force(topology, start)


@pytest.mark.parametrize("seed", range(25))
def test_algorithms_agree_and_paths_sum_to_cost(seed):
    topology = random_topology(seed, n_nodes=7)
    snap = topology.snapshot()
    for start in topology.node_ids():
        dj = run_algorithm("dijkstra", topology, start)[-1]
        bf = run_algorithm("bellman_ford", topology, start)[-1]
        assert dj.distances == bf.distances

        for target in topology.node_ids():
            for step in (dj, bf):
                path = reconstruct_path(step, start, target, topology)
                assert path.reachable == (step.distances[target] < UNREACHABLE)
                if not path.reachable:
                    continue
                assert not path.stale
                assert path.node_path[0] == start and path.node_path[-1] == target
                assert len(path.link_path) == len(path.node_path) - 1
                assert sum(snap.link(l).weight for l in path.link_path) == path.cost


@pytest.mark.parametrize("algorithm", ["dijkstra", "bellman_ford"])
def test_rerun_on_unchanged_topology_is_identical(algorithm):
    topology = random_topology(3, n_nodes=7)
    start = topology.node_ids()[0]
    topology.set_node_active(start, True)

    first = run_algorithm(algorithm, topology, start)
    second = run_algorithm(algorithm, topology, start)

    assert first == second
    assert hash_trace(first) == hash_trace(second)
    assert hash_step(first[-1]) == hash_step(second[-1])


def test_run_does_not_mutate_topology():
    topology = random_topology(11)
    before = (topology.version, topology.to_dict())
    for start in topology.node_ids():
        run_algorithm("dijkstra", topology, start)
        run_algorithm("bellman_ford", topology, start)
    assert (topology.version, topology.to_dict()) == before
