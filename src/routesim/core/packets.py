from __future__ import annotations

import dataclasses
import itertools
import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from routesim.algorithms.base import final_step
from routesim.algorithms.registry import load_algorithm
from routesim.core.eventlog import JsonlLogger
from routesim.core.paths import PathResult, reconstruct_path
from routesim.core.topology import Topology, TopologySnapshot
from routesim.core.types import AlgorithmType, Link, NodeId, Packet, PacketStatus, SimulationStep


@dataclass
class TickReport:
    elapsed: float
    advanced: int = 0
    arrivals: int = 0
    rerouted: int = 0
    routing_runs: int = 0
    removed: int = 0
    delivered: List[str] = field(default_factory=list)
    lost: List[str] = field(default_factory=list)


class PacketSimulator:
    """Data plane: moves packets along links and routes them hop by hop.

    Every arrival re-runs the routing algorithm from the arrival node against
    the topology as it is at that tick, so failures are picked up without any
    routing-table maintenance. Within a single tick one run per distinct
    arrival node is shared; nothing is cached across ticks.

    Packets that become delivered or lost keep their terminal status for one
    observable tick and are dropped at the start of the following ``tick``.
    A packet whose current link (or the node it is heading to) goes down is
    lost when its progress crosses 1, not earlier.
    """

    def __init__(
        self,
        topology: Topology,
        algorithm: Union[str, AlgorithmType] = AlgorithmType.DIJKSTRA,
        speed_range: Tuple[float, float] = (0.5, 1.0),
        seed: Optional[int] = None,
        memoize_routes: bool = True,
        logger: logging.Logger | None = None,
        event_log: JsonlLogger | None = None,
    ) -> None:
        low, high = (float(s) for s in speed_range)
        if low <= 0 or high < low:
            raise ValueError(f"Invalid speed range: ({low}, {high})")
        self.topology = topology
        self.speed_range = (low, high)
        self.memoize_routes = bool(memoize_routes)
        self.rng = random.Random(seed)
        self._log = logger or logging.getLogger("routesim.packets")
        self._events = event_log or JsonlLogger(path=None)
        self._packets: List[Packet] = []
        self._ids = itertools.count(1)
        self._now = 0.0
        self.spawned = 0
        self.delivered = 0
        self.lost = 0
        self.routing_runs = 0
        self.set_algorithm(algorithm)

    def set_algorithm(self, algorithm: Union[str, AlgorithmType]) -> None:
        self.algorithm = AlgorithmType.parse(algorithm)
        self._engine = load_algorithm(self.algorithm)

    @property
    def packets(self) -> Tuple[Packet, ...]:
        return tuple(dataclasses.replace(p) for p in self._packets)

    @property
    def in_flight(self) -> int:
        return sum(1 for p in self._packets if p.status is PacketStatus.MOVING)

    @property
    def stats(self) -> Dict[str, int]:
        return {
            "spawned": self.spawned,
            "delivered": self.delivered,
            "lost": self.lost,
            "in_flight": self.in_flight,
        }

    def clear(self) -> None:
        self._packets = []

    def spawn(self, count: int) -> List[Packet]:
        """Make ``count`` attempts at launching a packet between two random active nodes.

        Attempts whose target is unreachable are discarded, so fewer packets than
        requested may be created.
        """
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        snapshot = self.topology.snapshot()
        active = snapshot.active_node_ids()
        if len(active) < 2:
            self._log.info("spawn skipped: %d active node(s)", len(active))
            return []

        cache: Optional[Dict[NodeId, SimulationStep]] = {} if self.memoize_routes else None
        created: List[Packet] = []
        for _ in range(count):
            src, dst = self.rng.sample(active, 2)
            path = self._route(snapshot, src, dst, cache)
            link = self._first_hop_link(snapshot, path) if path.reachable else None
            if link is None:
                self._log.debug("spawn attempt %s->%s discarded: unreachable", src, dst)
                continue
            packet = Packet(
                id=f"pkt-{next(self._ids)}",
                source_id=src,
                target_id=dst,
                current_edge_id=link.id,
                current_node_id=src,
                next_hop_id=path.next_hop,
                progress=0.0,
                speed=self.rng.uniform(*self.speed_range),
            )
            self._packets.append(packet)
            created.append(dataclasses.replace(packet))
            self.spawned += 1
            self._events.log(
                "packet_spawned",
                time=self._now,
                packet=packet.id,
                source=src,
                target=dst,
                cost=path.cost,
            )
        return created

    def tick(self, elapsed: float) -> TickReport:
        if elapsed < 0:
            raise ValueError(f"elapsed must be >= 0, got {elapsed}")
        report = TickReport(elapsed=float(elapsed))
        self._now += float(elapsed)

        before = len(self._packets)
        self._packets = [p for p in self._packets if not p.terminal]
        report.removed = before - len(self._packets)

        snapshot = self.topology.snapshot()
        runs_before = self.routing_runs
        cache: Optional[Dict[NodeId, SimulationStep]] = {} if self.memoize_routes else None
        for packet in self._packets:
            packet.progress += packet.speed * elapsed
            report.advanced += 1
            if packet.progress < 1.0:
                continue
            report.arrivals += 1
            self._arrive(packet, snapshot, cache, report)
        report.routing_runs = self.routing_runs - runs_before
        return report

    def _arrive(
        self,
        packet: Packet,
        snapshot: TopologySnapshot,
        cache: Optional[Dict[NodeId, SimulationStep]],
        report: TickReport,
    ) -> None:
        arrived = packet.next_hop_id
        edge = snapshot.link(packet.current_edge_id) if packet.current_edge_id else None
        if arrived is None or edge is None or not edge.active:
            self._lose(packet, report, "link down in transit")
            return
        if not snapshot.is_node_active(arrived):
            self._lose(packet, report, f"node {arrived} down")
            return

        packet.hops += 1
        packet.current_node_id = arrived
        if arrived == packet.target_id:
            packet.status = PacketStatus.DELIVERED
            packet.progress = 1.0
            packet.current_edge_id = None
            self.delivered += 1
            report.delivered.append(packet.id)
            self._events.log("packet_delivered", time=self._now, packet=packet.id, hops=packet.hops)
            return

        path = self._route(snapshot, arrived, packet.target_id, cache)
        if not path.reachable:
            self._lose(packet, report, f"{packet.target_id} unreachable from {arrived}")
            return
        link = self._first_hop_link(snapshot, path)
        if link is None:
            self._lose(packet, report, f"no active link {arrived}->{path.next_hop}")
            return

        self._log.debug("%s at %s -> %s via %s", packet.id, arrived, path.next_hop, link.id)
        packet.next_hop_id = path.next_hop
        packet.current_edge_id = link.id
        packet.progress = 0.0
        report.rerouted += 1

    def _lose(self, packet: Packet, report: TickReport, reason: str) -> None:
        packet.status = PacketStatus.LOST
        packet.progress = min(packet.progress, 1.0)
        self.lost += 1
        report.lost.append(packet.id)
        self._log.info("%s lost: %s", packet.id, reason)
        self._events.log("packet_lost", time=self._now, packet=packet.id, reason=reason)

    def _route(
        self,
        snapshot: TopologySnapshot,
        src: NodeId,
        dst: NodeId,
        cache: Optional[Dict[NodeId, SimulationStep]],
    ) -> PathResult:
        step = cache.get(src) if cache is not None else None
        if step is None:
            step = final_step(self._engine.run(snapshot, src))
            self.routing_runs += 1
            if cache is not None:
                cache[src] = step
        return reconstruct_path(step, src, dst, snapshot)

    @staticmethod
    def _first_hop_link(snapshot: TopologySnapshot, path: PathResult) -> Optional[Link]:
        if path.next_hop is None or not path.link_path:
            return None
        link = snapshot.link(path.link_path[0])
        if link is None or not link.active or not link.connects(path.node_path[0], path.next_hop):
            return None
        return link
