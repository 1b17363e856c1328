from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

NodeId = str
LinkId = str
Distance = int

# Finite "no path" distance. A distance d is reachable iff d < UNREACHABLE.
UNREACHABLE: Distance = 9999


def is_reachable(distance: float) -> bool:
    return distance < UNREACHABLE


@dataclass(frozen=True)
class Node:
    id: NodeId
    active: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "active": self.active}


@dataclass(frozen=True)
class Link:
    """Undirected weighted link. Either endpoint may act as the source."""

    id: LinkId
    source: NodeId
    target: NodeId
    weight: int
    active: bool = True

    def touches(self, node_id: NodeId) -> bool:
        return node_id == self.source or node_id == self.target

    def other(self, node_id: NodeId) -> NodeId:
        return self.target if node_id == self.source else self.source

    def connects(self, a: NodeId, b: NodeId) -> bool:
        return (self.source == a and self.target == b) or (self.source == b and self.target == a)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "weight": self.weight,
            "active": self.active,
        }


class AlgorithmType(str, Enum):
    DIJKSTRA = "dijkstra"
    BELLMAN_FORD = "bellman_ford"

    @classmethod
    def parse(cls, value: "str | AlgorithmType") -> "AlgorithmType":
        if isinstance(value, AlgorithmType):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            raise KeyError(
                f"Unknown algorithm: {value}. Available: {sorted(a.value for a in cls)}"
            ) from None

    @property
    def display_name(self) -> str:
        return "Dijkstra" if self is AlgorithmType.DIJKSTRA else "Bellman-Ford"


@dataclass(frozen=True)
class SimulationStep:
    """One immutable snapshot of an algorithm run.

    ``distances`` and ``previous`` hold an entry for every node of the topology
    the run was started on, active or not. Both are read-only views.
    """

    step_index: int
    description: str
    distances: Mapping[NodeId, Distance]
    previous: Mapping[NodeId, Optional[NodeId]]
    active_nodes: Tuple[NodeId, ...] = ()
    active_links: Tuple[LinkId, ...] = ()
    visited_nodes: Tuple[NodeId, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "distances", MappingProxyType(dict(self.distances)))
        object.__setattr__(self, "previous", MappingProxyType(dict(self.previous)))

    def distance(self, node_id: NodeId) -> Distance:
        return self.distances.get(node_id, UNREACHABLE)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "step_index": self.step_index,
            "description": self.description,
            "distances": dict(self.distances),
            "previous": dict(self.previous),
            "active_nodes": list(self.active_nodes),
            "active_links": list(self.active_links),
            "visited_nodes": list(self.visited_nodes),
        }


@dataclass(frozen=True)
class RoutingTableEntry:
    node_id: NodeId
    distance: Distance
    previous: Optional[NodeId]

    @property
    def reachable(self) -> bool:
        return is_reachable(self.distance)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "distance": self.distance if self.reachable else None,
            "previous": self.previous,
        }


class PacketStatus(str, Enum):
    MOVING = "moving"
    DELIVERED = "delivered"
    LOST = "lost"


@dataclass
class Packet:
    id: str
    source_id: NodeId
    target_id: NodeId
    current_edge_id: Optional[LinkId]
    current_node_id: NodeId
    next_hop_id: Optional[NodeId]
    progress: float = 0.0
    speed: float = 1.0
    status: PacketStatus = PacketStatus.MOVING
    hops: int = 0

    @property
    def terminal(self) -> bool:
        return self.status is not PacketStatus.MOVING

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source_id": self.source_id,
            "target_id": self.target_id,
            "current_edge_id": self.current_edge_id,
            "current_node_id": self.current_node_id,
            "next_hop_id": self.next_hop_id,
            "progress": self.progress,
            "speed": self.speed,
            "status": self.status.value,
            "hops": self.hops,
        }


@dataclass(frozen=True)
class ExternalEvent:
    time: float
    action: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RunResult:
    frames: int
    simulated_time: float
    final_step_index: int
    trace_length: int
    trace_digests: List[str]
    events_applied: int
    packets_spawned: int
    packets_delivered: int
    packets_lost: int
    packets_in_flight: int
