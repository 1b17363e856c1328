"""Path reconstruction from a converged step.

This is the one implementation shared by path highlighting, packet spawning
and packet re-routing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from routesim.core.topology import Topology, TopologySnapshot
from routesim.core.types import (
    UNREACHABLE,
    Distance,
    Link,
    LinkId,
    NodeId,
    RoutingTableEntry,
    SimulationStep,
    is_reachable,
)


@dataclass(frozen=True)
class PathResult:
    """Route from start to target.

    ``stale`` marks a route whose predecessor chain no longer matches the
    topology: some hop has no active link, or only links whose weight changed
    since the step was computed. Such a ``link_path`` may be shorter than the
    hop count.
    """

    reachable: bool
    cost: Distance
    node_path: Tuple[NodeId, ...] = ()
    link_path: Tuple[LinkId, ...] = ()
    stale: bool = False

    @classmethod
    def unreachable(cls) -> "PathResult":
        return cls(reachable=False, cost=UNREACHABLE)

    @property
    def next_hop(self) -> Optional[NodeId]:
        return next_hop(self.node_path)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "reachable": self.reachable,
            "cost": self.cost if self.reachable else None,
            "node_path": list(self.node_path),
            "link_path": list(self.link_path),
            "stale": self.stale,
        }


def _snapshot(topology: Union[Topology, TopologySnapshot]) -> TopologySnapshot:
    return topology.snapshot() if isinstance(topology, Topology) else topology


def _hop_link(
    snapshot: TopologySnapshot,
    prev: NodeId,
    curr: NodeId,
    hop_cost: Distance,
) -> Tuple[Optional[Link], bool]:
    candidates = [l for l in snapshot.links_between(prev, curr) if l.active]
    for link in candidates:
        if link.weight == hop_cost:
            return link, False
    if candidates:
        return candidates[0], True
    return None, True


def reconstruct_path(
    step: SimulationStep,
    start_node_id: NodeId,
    target_node_id: NodeId,
    topology: Union[Topology, TopologySnapshot],
) -> PathResult:
    cost = step.distances.get(target_node_id, UNREACHABLE)
    if not is_reachable(cost):
        return PathResult.unreachable()

    snapshot = _snapshot(topology)
    bound = max(len(step.distances), len(snapshot.nodes))
    nodes: List[NodeId] = [target_node_id]
    links: List[LinkId] = []
    stale = False
    curr = target_node_id
    hops = 0

    while curr != start_node_id:
        if hops >= bound:
            return PathResult.unreachable()
        prev = step.previous.get(curr)
        if prev is None:
            return PathResult.unreachable()
        hop_cost = step.distance(curr) - step.distance(prev)
        link, mismatch = _hop_link(snapshot, prev, curr, hop_cost)
        if link is not None:
            links.append(link.id)
        stale = stale or mismatch
        nodes.append(prev)
        curr = prev
        hops += 1

    nodes.reverse()
    links.reverse()
    return PathResult(
        reachable=True,
        cost=cost,
        node_path=tuple(nodes),
        link_path=tuple(links),
        stale=stale,
    )


def next_hop(node_path: Sequence[NodeId]) -> Optional[NodeId]:
    return node_path[1] if len(node_path) > 1 else None


def routing_table(
    step: SimulationStep,
    topology: Union[Topology, TopologySnapshot],
) -> List[RoutingTableEntry]:
    """Per-node view of one step, sorted by node id; inactive nodes read as unreachable."""
    snapshot = _snapshot(topology)
    entries = []
    for node_id in sorted(snapshot.node_ids()):
        distance = step.distance(node_id)
        if not snapshot.is_node_active(node_id):
            distance = UNREACHABLE
        entries.append(
            RoutingTableEntry(node_id=node_id, distance=distance, previous=step.previous.get(node_id))
        )
    return entries
