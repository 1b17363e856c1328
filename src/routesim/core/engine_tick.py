from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List

from routesim.core.digest import hash_trace
from routesim.core.eventlog import JsonlLogger
from routesim.core.session import SimulationSession
from routesim.core.types import ExternalEvent, RunResult

_LOG = logging.getLogger("routesim.engine")

# Float slack when comparing accumulated simulated time against event and step times.
_EPS = 1e-9


class TickEngine:
    """Deterministic driver for a ``SimulationSession``.

    Two periodic drivers share one simulated clock: every frame advances the
    packets by ``frame_interval`` and, independently, the playback index moves
    forward once per ``step_interval`` until the trace's last step. Timed
    events are applied between frames, in time order.
    """

    def __init__(
        self,
        session: SimulationSession,
        duration: float,
        frame_interval: float = 0.1,
        step_interval: float = 1.0,
        events: Iterable[ExternalEvent] | None = None,
        logger: JsonlLogger | None = None,
    ) -> None:
        if duration < 0:
            raise ValueError(f"duration must be >= 0, got {duration}")
        if frame_interval <= 0:
            raise ValueError(f"frame_interval must be > 0, got {frame_interval}")
        if step_interval <= 0:
            raise ValueError(f"step_interval must be > 0, got {step_interval}")
        self.session = session
        self.duration = float(duration)
        self.frame_interval = float(frame_interval)
        self.step_interval = float(step_interval)
        self.events = sorted(list(events or []), key=lambda e: e.time)
        self.logger = logger or JsonlLogger(path=None)
        self._handlers: Dict[str, Callable[[Dict], None]] = {
            "set_node_active": self._set_node_active,
            "set_link_active": self._set_link_active,
            "set_link_weight": self._set_link_weight,
            "spawn": self._spawn,
            "set_start_node": self._set_start_node,
            "set_target_node": self._set_target_node,
            "set_algorithm": self._set_algorithm,
        }
        for event in self.events:
            if event.action not in self._handlers:
                raise ValueError(
                    f"Unknown event action '{event.action}'. Available: {sorted(self._handlers)}"
                )

    def run(self) -> RunResult:
        frames = int(round(self.duration / self.frame_interval))
        digests: List[str] = []
        event_idx = 0
        next_step_at = self.step_interval

        self._record_digest(digests)
        for frame in range(frames):
            now = frame * self.frame_interval
            while event_idx < len(self.events) and self.events[event_idx].time <= now + _EPS:
                event = self.events[event_idx]
                self.apply(event)
                self.logger.log("event_applied", time=now, action=event.action, params=event.params)
                event_idx += 1
                self._record_digest(digests)

            report = self.session.tick(self.frame_interval)

            sim_time = (frame + 1) * self.frame_interval
            while sim_time + _EPS >= next_step_at:
                self.session.advance()
                next_step_at += self.step_interval

            stats = self.session.packet_sim.stats
            self.logger.log(
                "frame",
                frame=frame,
                time=round(sim_time, 9),
                step_index=self.session.current_index,
                in_flight=stats["in_flight"],
                delivered=len(report.delivered),
                lost=len(report.lost),
                routing_runs=report.routing_runs,
            )

        self.logger.close()
        stats = self.session.packet_sim.stats
        _LOG.info(
            "run finished: frames=%d events=%d delivered=%d lost=%d",
            frames,
            event_idx,
            stats["delivered"],
            stats["lost"],
        )
        return RunResult(
            frames=frames,
            simulated_time=frames * self.frame_interval,
            final_step_index=self.session.current_index,
            trace_length=len(self.session.steps),
            trace_digests=digests,
            events_applied=event_idx,
            packets_spawned=stats["spawned"],
            packets_delivered=stats["delivered"],
            packets_lost=stats["lost"],
            packets_in_flight=stats["in_flight"],
        )

    def apply(self, event: ExternalEvent) -> None:
        handler = self._handlers.get(event.action)
        if handler is None:
            raise ValueError(f"Unknown event action '{event.action}'")
        _LOG.debug("applying %s %s at t=%.3f", event.action, event.params, event.time)
        with self.session.topology.exclusive():
            handler(dict(event.params))

    def _record_digest(self, digests: List[str]) -> None:
        digest = hash_trace(self.session.steps)
        if not digests or digests[-1] != digest:
            digests.append(digest)

    def _set_node_active(self, params: Dict) -> None:
        self.session.set_node_active(str(params["node"]), bool(params.get("active", False)))

    def _set_link_active(self, params: Dict) -> None:
        self.session.set_link_active(str(params["link"]), bool(params.get("active", False)))

    def _set_link_weight(self, params: Dict) -> None:
        self.session.set_link_weight(str(params["link"]), params["weight"])

    def _spawn(self, params: Dict) -> None:
        self.session.spawn(int(params.get("count", 1)))

    def _set_start_node(self, params: Dict) -> None:
        self.session.set_start_node(str(params["node"]))

    def _set_target_node(self, params: Dict) -> None:
        node = params.get("node")
        self.session.set_target_node(None if node is None else str(node))

    def _set_algorithm(self, params: Dict) -> None:
        self.session.set_algorithm(str(params["algorithm"]))
