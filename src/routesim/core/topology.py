from __future__ import annotations

import random
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from routesim.core.types import UNREACHABLE, Link, LinkId, Node, NodeId


def _node_name(idx: int) -> NodeId:
    return f"n{idx}"


@dataclass(frozen=True)
class TopologySnapshot:
    """Immutable copy of a topology taken at one instant.

    Node and link order is the insertion order of the topology it was taken
    from; algorithms iterate in that order.
    """

    version: int
    nodes: Tuple[Node, ...]
    links: Tuple[Link, ...]
    _node_index: Dict[NodeId, Node] = field(init=False, repr=False, compare=False)
    _link_index: Dict[LinkId, Link] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_node_index", {n.id: n for n in self.nodes})
        object.__setattr__(self, "_link_index", {l.id: l for l in self.links})

    def node(self, node_id: NodeId) -> Optional[Node]:
        return self._node_index.get(node_id)

    def link(self, link_id: LinkId) -> Optional[Link]:
        return self._link_index.get(link_id)

    def has_node(self, node_id: NodeId) -> bool:
        return node_id in self._node_index

    def is_node_active(self, node_id: NodeId) -> bool:
        node = self._node_index.get(node_id)
        return node is not None and node.active

    def node_ids(self) -> List[NodeId]:
        return [n.id for n in self.nodes]

    def active_node_ids(self) -> List[NodeId]:
        return [n.id for n in self.nodes if n.active]

    def active_links(self) -> List[Link]:
        return [l for l in self.links if l.active]

    def links_between(self, a: NodeId, b: NodeId) -> List[Link]:
        return [l for l in self.links if l.connects(a, b)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.as_dict() for n in self.nodes],
            "links": [l.as_dict() for l in self.links],
        }


class Topology:
    """Authoritative, mutable, versioned network graph.

    All mutations and snapshots go through one re-entrant lock, so an algorithm
    run working on a snapshot never observes a half-applied change.
    """

    def __init__(self, nodes: Iterable[Node] = (), links: Iterable[Link] = ()) -> None:
        self._lock = threading.RLock()
        self._nodes: Dict[NodeId, Node] = {}
        self._links: Dict[LinkId, Link] = {}
        self._version = 0
        for node in nodes:
            self.add_node(node.id, active=node.active)
        for link in links:
            self.add_link(link.source, link.target, link.weight, link_id=link.id, active=link.active)

    @property
    def version(self) -> int:
        return self._version

    @contextmanager
    def exclusive(self) -> Iterator["Topology"]:
        """Hold the topology lock across several mutations."""
        with self._lock:
            yield self

    def snapshot(self) -> TopologySnapshot:
        with self._lock:
            return TopologySnapshot(
                version=self._version,
                nodes=tuple(self._nodes.values()),
                links=tuple(self._links.values()),
            )

    def nodes(self) -> List[Node]:
        with self._lock:
            return list(self._nodes.values())

    def links(self) -> List[Link]:
        with self._lock:
            return list(self._links.values())

    def node_ids(self) -> List[NodeId]:
        with self._lock:
            return list(self._nodes.keys())

    def node(self, node_id: NodeId) -> Node:
        with self._lock:
            if node_id not in self._nodes:
                raise KeyError(f"Unknown node: {node_id}")
            return self._nodes[node_id]

    def link(self, link_id: LinkId) -> Link:
        with self._lock:
            if link_id not in self._links:
                raise KeyError(f"Unknown link: {link_id}")
            return self._links[link_id]

    def has_node(self, node_id: NodeId) -> bool:
        with self._lock:
            return node_id in self._nodes

    def add_node(self, node_id: NodeId, active: bool = True) -> None:
        with self._lock:
            if node_id in self._nodes:
                return
            self._nodes[node_id] = Node(id=str(node_id), active=bool(active))
            self._version += 1

    def add_link(
        self,
        u: NodeId,
        v: NodeId,
        weight: int = 1,
        link_id: Optional[LinkId] = None,
        active: bool = True,
    ) -> Link:
        link_id = link_id or f"{u}-{v}"
        with self._lock:
            if link_id in self._links:
                raise ValueError(f"Duplicate link id: {link_id}")
            self._check_weight(weight, extra=weight)
            self.add_node(u)
            self.add_node(v)
            link = Link(id=link_id, source=u, target=v, weight=weight, active=bool(active))
            self._links[link_id] = link
            self._version += 1
            return link

    def set_node_active(self, node_id: NodeId, active: bool) -> bool:
        with self._lock:
            node = self.node(node_id)
            if node.active == bool(active):
                return False
            self._nodes[node_id] = Node(id=node.id, active=bool(active))
            self._version += 1
            return True

    def set_link_active(self, link_id: LinkId, active: bool) -> bool:
        with self._lock:
            link = self.link(link_id)
            if link.active == bool(active):
                return False
            self._links[link_id] = Link(link.id, link.source, link.target, link.weight, bool(active))
            self._version += 1
            return True

    def set_link_weight(self, link_id: LinkId, weight: int) -> bool:
        with self._lock:
            link = self.link(link_id)
            self._check_weight(weight, extra=weight - link.weight)
            if link.weight == weight:
                return False
            self._links[link_id] = Link(link.id, link.source, link.target, int(weight), link.active)
            self._version += 1
            return True

    def replace(self, other: "Topology | TopologySnapshot") -> None:
        source = other.snapshot() if isinstance(other, Topology) else other
        with self._lock:
            self._nodes = {n.id: n for n in source.nodes}
            self._links = {l.id: l for l in source.links}
            self._version += 1

    def randomize_weights(self, low: int, high: int, seed: int = 0) -> None:
        if low < 1 or high < low:
            raise ValueError(f"Invalid weight range: [{low}, {high}]")
        rng = random.Random(seed)
        with self._lock:
            reweighted = {
                lid: Link(l.id, l.source, l.target, rng.randint(low, high), l.active)
                for lid, l in self._links.items()
            }
            if sum(l.weight for l in reweighted.values()) >= UNREACHABLE:
                raise ValueError("Total link weight would reach the unreachable sentinel")
            self._links = reweighted
            self._version += 1

    def to_dict(self) -> Dict[str, Any]:
        return self.snapshot().to_dict()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Topology":
        """Inverse of ``to_dict``; the document goes through the validation boundary."""
        from routesim.core.validation import parse_topology

        return parse_topology(raw)

    def _check_weight(self, weight: Any, extra: int) -> None:
        if isinstance(weight, bool) or not isinstance(weight, int) or weight <= 0:
            raise ValueError(f"Link weight must be a positive integer, got {weight!r}")
        total = sum(l.weight for l in self._links.values()) + extra
        if total >= UNREACHABLE:
            raise ValueError(
                f"Total link weight {total} would reach the unreachable sentinel {UNREACHABLE}"
            )

    @classmethod
    def classic(cls) -> "Topology":
        t = cls()
        for node_id in "ABCDEF":
            t.add_node(node_id)
        for u, v, w in [
            ("A", "B", 4),
            ("A", "C", 2),
            ("B", "C", 1),
            ("B", "D", 5),
            ("C", "E", 8),
            ("C", "D", 10),
            ("D", "E", 2),
            ("D", "F", 6),
            ("E", "F", 3),
        ]:
            t.add_link(u, v, w, link_id=u + v)
        return t

    @classmethod
    def line(cls, n_nodes: int, weight: int = 1) -> "Topology":
        t = cls()
        for i in range(max(0, n_nodes)):
            t.add_node(_node_name(i))
        for i in range(n_nodes - 1):
            t.add_link(_node_name(i), _node_name(i + 1), weight)
        return t

    @classmethod
    def ring(cls, n_nodes: int, weight: int = 1) -> "Topology":
        t = cls.line(n_nodes, weight)
        if n_nodes > 2:
            t.add_link(_node_name(n_nodes - 1), _node_name(0), weight)
        return t

    @classmethod
    def star(cls, n_nodes: int, weight: int = 1, center: int = 0) -> "Topology":
        t = cls()
        if n_nodes <= 0:
            return t
        center = max(0, min(center, n_nodes - 1))
        for i in range(n_nodes):
            t.add_node(_node_name(i))
        for i in range(n_nodes):
            if i == center:
                continue
            t.add_link(_node_name(center), _node_name(i), weight)
        return t

    @classmethod
    def fullmesh(cls, n_nodes: int, weight: int = 1) -> "Topology":
        t = cls()
        for i in range(max(0, n_nodes)):
            t.add_node(_node_name(i))
        for u in range(n_nodes):
            for v in range(u + 1, n_nodes):
                t.add_link(_node_name(u), _node_name(v), weight)
        return t

    @classmethod
    def grid(cls, rows: int, cols: int, weight: int = 1) -> "Topology":
        t = cls()

        def name(r: int, c: int) -> NodeId:
            return _node_name(r * cols + c)

        for r in range(rows):
            for c in range(cols):
                t.add_node(name(r, c))
        for r in range(rows):
            for c in range(cols):
                if c + 1 < cols:
                    t.add_link(name(r, c), name(r, c + 1), weight)
                if r + 1 < rows:
                    t.add_link(name(r, c), name(r + 1, c), weight)
        return t

    @classmethod
    def er(cls, n_nodes: int, p: float, weight: int = 1, seed: int = 0) -> "Topology":
        rng = random.Random(seed)
        t = cls()
        for n in range(n_nodes):
            t.add_node(_node_name(n))
        for u in range(n_nodes):
            for v in range(u + 1, n_nodes):
                if rng.random() <= p:
                    t.add_link(_node_name(u), _node_name(v), weight)
        degree = {n: 0 for n in t.node_ids()}
        for link in t.links():
            degree[link.source] += 1
            degree[link.target] += 1
        for u in range(1, n_nodes):
            if degree[_node_name(u)] == 0:
                v = rng.randrange(0, u)
                t.add_link(_node_name(u), _node_name(v), weight)
                degree[_node_name(u)] += 1
                degree[_node_name(v)] += 1
        return t

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], seed: int = 0) -> "Topology":
        tp = cfg.get("type", "classic")
        weight = int(cfg.get("default_weight", 1))
        if tp == "classic":
            t = cls.classic()
        elif tp == "line":
            t = cls.line(int(cfg.get("n_nodes", 6)), weight)
        elif tp == "ring":
            t = cls.ring(int(cfg.get("n_nodes", 6)), weight)
        elif tp == "star":
            t = cls.star(int(cfg.get("n_nodes", 6)), weight, int(cfg.get("center", 0)))
        elif tp == "fullmesh":
            t = cls.fullmesh(int(cfg.get("n_nodes", 6)), weight)
        elif tp == "grid":
            t = cls.grid(int(cfg.get("rows", 3)), int(cfg.get("cols", 3)), weight)
        elif tp == "er":
            t = cls.er(int(cfg.get("n_nodes", 12)), float(cfg.get("p", 0.2)), weight, seed=seed)
        else:
            raise ValueError(f"Unsupported topology type: {tp}")

        weight_range = cfg.get("weight_range")
        if weight_range:
            low, high = (int(w) for w in weight_range)
            t.randomize_weights(low, high, seed=seed)
        return t
