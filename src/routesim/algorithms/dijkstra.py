from __future__ import annotations

from typing import List, Optional, Set

from routesim.algorithms.base import ShortestPathAlgorithm, StepRecorder
from routesim.core.topology import TopologySnapshot
from routesim.core.types import UNREACHABLE, NodeId


class DijkstraAlgorithm(ShortestPathAlgorithm):
    """Link-state style Dijkstra over the active part of the topology.

    Minimum selection scans unvisited nodes in topology order and keeps the
    first node with the strictly smallest distance, so ties go to the node
    inserted first. Relaxation uses strict ``<``: an equal-cost alternative
    never replaces an existing predecessor.
    """

    @property
    def name(self) -> str:
        return "dijkstra"

    def _trace(self, snapshot: TopologySnapshot, start: NodeId, recorder: StepRecorder) -> None:
        active_nodes = snapshot.active_node_ids()
        active_set = set(active_nodes)
        links = snapshot.active_links()
        distances = recorder.distances
        unvisited: List[NodeId] = list(active_nodes)
        visited: Set[NodeId] = set()

        recorder.record(
            f"Initialized distances. Start node {start} is 0.",
            active_nodes=[start],
        )

        while unvisited:
            current: Optional[NodeId] = None
            min_dist = UNREACHABLE
            for node_id in unvisited:
                if distances[node_id] < min_dist:
                    min_dist = distances[node_id]
                    current = node_id
            if current is None:
                break

            unvisited.remove(current)
            visited.add(current)
            recorder.visited.append(current)
            recorder.record(
                f"Selected node {current} with minimum distance {min_dist}.",
                active_nodes=[current],
            )

            for link in links:
                if not link.touches(current):
                    continue
                neighbor = link.other(current)
                if neighbor not in active_set or neighbor in visited:
                    continue
                alt = distances[current] + link.weight
                if alt < distances[neighbor]:
                    distances[neighbor] = alt
                    recorder.previous[neighbor] = current
                    recorder.record(
                        f"Relaxing edge {current}-{neighbor}: "
                        f"Updated distance to {neighbor} to {alt}.",
                        active_nodes=[current, neighbor],
                        active_links=[link.id],
                    )

        recorder.record("Dijkstra algorithm complete.")
