from __future__ import annotations

from routesim.algorithms.base import ShortestPathAlgorithm, StepRecorder
from routesim.core.topology import TopologySnapshot
from routesim.core.types import UNREACHABLE, NodeId


class BellmanFordAlgorithm(ShortestPathAlgorithm):
    """Centralized distance-vector relaxation.

    Runs at most |V|-1 rounds over the active links, relaxing each link in both
    directions, and stops early after the first round without a change. No
    negative-cycle pass: link weights are positive by construction.
    """

    @property
    def name(self) -> str:
        return "bellman_ford"

    def _trace(self, snapshot: TopologySnapshot, start: NodeId, recorder: StepRecorder) -> None:
        active_set = set(snapshot.active_node_ids())
        links = [
            l for l in snapshot.active_links() if l.source in active_set and l.target in active_set
        ]
        distances = recorder.distances

        recorder.record("Initialized distances.", active_nodes=[start])

        for i in range(len(active_set) - 1):
            changed = False
            for link in links:
                for frm, to in ((link.source, link.target), (link.target, link.source)):
                    if distances[frm] == UNREACHABLE:
                        continue
                    candidate = distances[frm] + link.weight
                    if candidate < distances[to]:
                        distances[to] = candidate
                        recorder.previous[to] = frm
                        changed = True
                        recorder.record(
                            f"Iteration {i + 1}: Relaxing {frm}->{to}. New dist: {candidate}.",
                            active_nodes=[frm, to],
                            active_links=[link.id],
                        )
            if not changed:
                recorder.record(f"Iteration {i + 1}: No changes. Converged.")
                break

        recorder.record("Bellman-Ford algorithm complete.")
