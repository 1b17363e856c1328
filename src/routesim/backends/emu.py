from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from routesim.backends.base import Backend
from routesim.core.digest import hash_step
from routesim.core.engine_tick import TickEngine
from routesim.core.eventlog import JsonlLogger
from routesim.runtime.config import build_session, simulation_config_from_dict
from routesim.utils.io import dump_json, ensure_dir, now_tag


class EmuBackend(Backend):
    """In-process run on simulated time; artifacts go to ``output_dir/<name>_<tag>/``."""

    def run(self, config: Dict[str, Any]) -> Dict[str, Any]:
        cfg = simulation_config_from_dict(config)

        output_dir = Path(cfg.output_dir)
        ensure_dir(output_dir)
        run_id = f"{cfg.name}_{now_tag()}"
        run_dir = ensure_dir(output_dir / run_id)
        logger = JsonlLogger(run_dir / "events.jsonl")

        try:
            session = build_session(cfg, event_log=logger)
            engine = TickEngine(
                session,
                duration=cfg.engine.duration,
                frame_interval=cfg.engine.frame_interval,
                step_interval=cfg.engine.step_interval,
                events=cfg.events,
                logger=logger,
            )
            result = engine.run()
        finally:
            logger.close()

        final = session.steps[-1] if session.steps else None
        path = session.shortest_path()
        result_payload = {
            "run_id": run_id,
            "name": cfg.name,
            "seed": cfg.seed,
            "algorithm": cfg.algorithm.value,
            "start_node": session.start_node,
            "target_node": session.target_node,
            "frames": result.frames,
            "simulated_time": result.simulated_time,
            "final_step_index": result.final_step_index,
            "trace_length": result.trace_length,
            "trace_digests": result.trace_digests,
            "final_digest": hash_step(final) if final is not None else None,
            "events_applied": result.events_applied,
            "packets_spawned": result.packets_spawned,
            "packets_delivered": result.packets_delivered,
            "packets_lost": result.packets_lost,
            "packets_in_flight": result.packets_in_flight,
            "routing_table": [e.as_dict() for e in session.routing_table()],
            "shortest_path": path.as_dict() if path is not None else None,
            "packets": [p.as_dict() for p in session.packets],
            "topology": session.topology.to_dict(),
        }
        dump_json(run_dir / "result.json", result_payload)
        dump_json(run_dir / "config.effective.json", config)

        return result_payload
