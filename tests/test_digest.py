from __future__ import annotations

from routesim.algorithms import run_algorithm
from routesim.core.digest import hash_step, hash_trace
from routesim.core.topology import Topology
from routesim.core.types import SimulationStep


def test_step_digest_stable_against_dict_order():
    a = SimulationStep(0, "x", distances={"A": 0, "B": 3}, previous={"A": None, "B": "A"})
    b = SimulationStep(7, "y", distances={"B": 3, "A": 0}, previous={"B": "A", "A": None})
    assert hash_step(a) == hash_step(b)


def test_trace_digest_tracks_topology_changes():
    topology = Topology.classic()
    before = hash_trace(run_algorithm("dijkstra", topology, "A"))
    topology.set_link_weight("EF", 4)
    after = hash_trace(run_algorithm("dijkstra", topology, "A"))
    topology.set_link_weight("EF", 3)
    restored = hash_trace(run_algorithm("dijkstra", topology, "A"))

    assert before != after
    assert before == restored
