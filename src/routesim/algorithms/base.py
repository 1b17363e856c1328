from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence, Union

from routesim.core.topology import Topology, TopologySnapshot
from routesim.core.types import UNREACHABLE, Distance, NodeId, SimulationStep

TopologyLike = Union[Topology, TopologySnapshot]


class StepRecorder:
    """Working state of one run plus the append-only list of steps taken from it."""

    def __init__(self, node_ids: Iterable[NodeId], start: NodeId, start_active: bool) -> None:
        self.distances: Dict[NodeId, Distance] = {}
        self.previous: Dict[NodeId, Optional[NodeId]] = {}
        for node_id in node_ids:
            self.distances[node_id] = 0 if (node_id == start and start_active) else UNREACHABLE
            self.previous[node_id] = None
        self.visited: List[NodeId] = []
        self.steps: List[SimulationStep] = []

    def record(
        self,
        description: str,
        active_nodes: Sequence[NodeId] = (),
        active_links: Sequence[str] = (),
    ) -> SimulationStep:
        step = SimulationStep(
            step_index=len(self.steps),
            description=description,
            distances=dict(self.distances),
            previous=dict(self.previous),
            active_nodes=tuple(active_nodes),
            active_links=tuple(active_links),
            visited_nodes=tuple(self.visited),
        )
        self.steps.append(step)
        return step


class ShortestPathAlgorithm(ABC):
    """Single-source shortest-path engine that emits a replayable trace.

    Each ``run`` is a fresh computation over one topology snapshot; nothing is
    kept between calls. Inactive nodes and links are excluded from traversal
    but every node of the topology appears in every step.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    def run(self, topology: TopologyLike, start_node_id: NodeId) -> List[SimulationStep]:
        snapshot = topology.snapshot() if isinstance(topology, Topology) else topology
        start_active = snapshot.is_node_active(start_node_id)
        recorder = StepRecorder(snapshot.node_ids(), start_node_id, start_active)

        if not start_active:
            reason = "inactive/failed" if snapshot.has_node(start_node_id) else "unknown"
            recorder.record(f"Start node {start_node_id} is {reason}. Cannot route.")
            return recorder.steps

        self._trace(snapshot, start_node_id, recorder)
        return recorder.steps

    @abstractmethod
    def _trace(self, snapshot: TopologySnapshot, start: NodeId, recorder: StepRecorder) -> None:
        raise NotImplementedError


def final_step(steps: Sequence[SimulationStep]) -> SimulationStep:
    if not steps:
        raise ValueError("Empty trace")
    return steps[-1]


def is_failed_trace(steps: Sequence[SimulationStep]) -> bool:
    """True for the one-step trace returned when the start node cannot route."""
    if len(steps) != 1:
        return False
    step = steps[0]
    return not step.active_nodes and not step.active_links and not step.visited_nodes
