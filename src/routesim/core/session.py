from __future__ import annotations

import logging
import time
from typing import Any, List, Mapping, Optional, Tuple, Union

from routesim.algorithms.registry import run_algorithm
from routesim.core.eventlog import JsonlLogger
from routesim.core.packets import PacketSimulator, TickReport
from routesim.core.paths import PathResult, reconstruct_path, routing_table
from routesim.core.topology import Topology
from routesim.core.types import AlgorithmType, NodeId, Packet, RoutingTableEntry, SimulationStep
from routesim.core.validation import parse_topology


class SimulationSession:
    """Application-side owner of the topology, the current trace and the packets.

    The trace is recomputed wholesale whenever the topology, the algorithm or
    the start node changes, including mutations made directly on the
    ``Topology`` object (detected through its version). Playback only moves an
    index over the trace.
    """

    def __init__(
        self,
        topology: Topology,
        algorithm: Union[str, AlgorithmType] = AlgorithmType.DIJKSTRA,
        start_node: Optional[NodeId] = None,
        target_node: Optional[NodeId] = None,
        speed_range: Tuple[float, float] = (0.5, 1.0),
        seed: Optional[int] = None,
        memoize_routes: bool = True,
        logger: logging.Logger | None = None,
        event_log: JsonlLogger | None = None,
    ) -> None:
        self.topology = topology
        self.algorithm = AlgorithmType.parse(algorithm)
        self._log = logger or logging.getLogger("routesim.session")
        self.packet_sim = PacketSimulator(
            topology,
            algorithm=self.algorithm,
            speed_range=speed_range,
            seed=seed,
            memoize_routes=memoize_routes,
            event_log=event_log,
        )
        node_ids = topology.node_ids()
        if start_node is not None and not topology.has_node(start_node):
            raise KeyError(f"Unknown node: {start_node}")
        self.start_node: Optional[NodeId] = start_node or (node_ids[0] if node_ids else None)
        self.target_node: Optional[NodeId] = None
        if target_node is not None:
            self.set_target_node(target_node)

        self.steps: List[SimulationStep] = []
        self.current_index = 0
        self.last_compute_ms = 0.0
        self._trace_version: Optional[int] = None
        self.recompute()

    # -- trace ---------------------------------------------------------------

    def recompute(self) -> List[SimulationStep]:
        version = self.topology.version
        started = time.perf_counter()
        if self.start_node is None:
            self.steps = []
        else:
            self.steps = run_algorithm(self.algorithm, self.topology, self.start_node)
        self.last_compute_ms = (time.perf_counter() - started) * 1000.0
        self._trace_version = version
        if self.current_index >= len(self.steps):
            self.current_index = max(0, len(self.steps) - 1)
        self._log.debug(
            "trace recomputed: algorithm=%s start=%s steps=%d (%.3f ms)",
            self.algorithm.value,
            self.start_node,
            len(self.steps),
            self.last_compute_ms,
        )
        return self.steps

    def _ensure_current(self) -> None:
        if self._trace_version != self.topology.version:
            self.recompute()

    @property
    def current_step(self) -> Optional[SimulationStep]:
        self._ensure_current()
        if not self.steps:
            return None
        return self.steps[self.current_index]

    @property
    def at_end(self) -> bool:
        self._ensure_current()
        return self.current_index >= len(self.steps) - 1

    def advance(self) -> bool:
        """Move playback one step forward; False once the last step is showing."""
        if self.at_end:
            return False
        self.current_index += 1
        return True

    def back(self) -> bool:
        self._ensure_current()
        if self.current_index == 0:
            return False
        self.current_index -= 1
        return True

    def seek(self, index: int) -> SimulationStep:
        self._ensure_current()
        if not 0 <= index < len(self.steps):
            raise ValueError(f"Step index {index} out of range [0, {len(self.steps)})")
        self.current_index = index
        return self.steps[index]

    def reset_playback(self) -> None:
        self.current_index = 0

    def routing_table(self) -> List[RoutingTableEntry]:
        step = self.current_step
        if step is None:
            return []
        return routing_table(step, self.topology)

    def shortest_path(self) -> Optional[PathResult]:
        step = self.current_step
        if step is None or self.target_node is None or self.start_node is None:
            return None
        return reconstruct_path(step, self.start_node, self.target_node, self.topology)

    # -- configuration -------------------------------------------------------

    def set_algorithm(self, algorithm: Union[str, AlgorithmType]) -> None:
        self.algorithm = AlgorithmType.parse(algorithm)
        self.packet_sim.set_algorithm(self.algorithm)
        self.recompute()

    def set_start_node(self, node_id: NodeId) -> None:
        if not self.topology.has_node(node_id):
            raise KeyError(f"Unknown node: {node_id}")
        self.start_node = node_id
        if self.target_node == node_id:
            self.target_node = None
        self.current_index = 0
        self.recompute()

    def set_target_node(self, node_id: Optional[NodeId]) -> None:
        if node_id is not None and not self.topology.has_node(node_id):
            raise KeyError(f"Unknown node: {node_id}")
        self.target_node = node_id

    # -- topology mutation ---------------------------------------------------

    def set_node_active(self, node_id: NodeId, active: bool) -> bool:
        changed = self.topology.set_node_active(node_id, active)
        if changed:
            self._log.info("node %s %s", node_id, "up" if active else "down")
            self.recompute()
        return changed

    def set_link_active(self, link_id: str, active: bool) -> bool:
        changed = self.topology.set_link_active(link_id, active)
        if changed:
            self._log.info("link %s %s", link_id, "up" if active else "down")
            self.recompute()
        return changed

    def set_link_weight(self, link_id: str, weight: int) -> bool:
        changed = self.topology.set_link_weight(link_id, weight)
        if changed:
            self._log.info("link %s weight=%s", link_id, weight)
            self.recompute()
        return changed

    def replace_topology(self, new_topology: Union[Topology, Mapping[str, Any]]) -> None:
        """Swap in a new topology; packets are discarded and the start node resets."""
        if not isinstance(new_topology, Topology):
            new_topology = parse_topology(new_topology)
        self.topology.replace(new_topology)
        self.packet_sim.clear()
        node_ids = self.topology.node_ids()
        self.start_node = node_ids[0] if node_ids else None
        self.target_node = None
        self.current_index = 0
        self._log.info(
            "topology replaced: %d nodes, %d links",
            len(node_ids),
            len(self.topology.links()),
        )
        self.recompute()

    # -- traffic -------------------------------------------------------------

    def spawn(self, count: int) -> List[Packet]:
        return self.packet_sim.spawn(count)

    def tick(self, elapsed: float) -> TickReport:
        return self.packet_sim.tick(elapsed)

    @property
    def packets(self) -> Tuple[Packet, ...]:
        return self.packet_sim.packets

    def reset(self) -> None:
        """Discard the packet set and rewind playback; the trace itself is kept."""
        self.packet_sim.clear()
        self.current_index = 0
