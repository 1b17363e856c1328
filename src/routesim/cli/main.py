from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from routesim.cli.run_emu import load_checked_config, load_effective_config, run_emu
from routesim.cli.validate import validate_config
from routesim.core.validation import TopologyValidationError
from routesim.runtime.config import build_session, simulation_config_from_dict
from routesim.runtime.driver import RealtimeDriver

_LOG = logging.getLogger("routesim.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="routesim", description="Shortest-path routing simulator")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_run = sub.add_parser("run", help="Run a scripted simulation and write its artifacts")
    p_run.add_argument("--config", required=True)

    p_trace = sub.add_parser("trace", help="Print the algorithm's step trace")
    p_trace.add_argument("--config", required=True)
    p_trace.add_argument("--algorithm", help="Override the configured algorithm")
    p_trace.add_argument("--start", help="Override the configured start node")

    p_route = sub.add_parser("route", help="Print the shortest path between two nodes")
    p_route.add_argument("--config", required=True)
    p_route.add_argument("--start", required=True)
    p_route.add_argument("--target", required=True)
    p_route.add_argument("--algorithm", help="Override the configured algorithm")

    p_validate = sub.add_parser("validate", help="Validate a config file")
    p_validate.add_argument("--config", required=True)

    p_play = sub.add_parser("play", help="Run the simulation against the wall clock")
    p_play.add_argument("--config", required=True)
    p_play.add_argument("--seconds", type=float, default=5.0)

    return parser


def _session_for(args: argparse.Namespace, overrides: Dict[str, Any]):
    cfg = load_checked_config(args.config)
    cfg.update({k: v for k, v in overrides.items() if v is not None})
    return build_session(simulation_config_from_dict(cfg)), cfg


def _trace(args: argparse.Namespace) -> Dict[str, Any]:
    session, _ = _session_for(args, {"algorithm": args.algorithm, "start_node": args.start})
    final = session.seek(len(session.steps) - 1)
    return {
        "algorithm": session.algorithm.value,
        "algorithm_name": session.algorithm.display_name,
        "start_node": session.start_node,
        "compute_ms": round(session.last_compute_ms, 3),
        "steps": [s.as_dict() for s in session.steps],
        "final_step_index": final.step_index,
        "routing_table": [e.as_dict() for e in session.routing_table()],
    }


def _route(args: argparse.Namespace) -> Dict[str, Any]:
    session, _ = _session_for(
        args,
        {"algorithm": args.algorithm, "start_node": args.start, "target_node": args.target},
    )
    session.seek(len(session.steps) - 1)
    path = session.shortest_path()
    return {
        "algorithm": session.algorithm.value,
        "start_node": session.start_node,
        "target_node": session.target_node,
        **(path.as_dict() if path is not None else {"reachable": False}),
    }


def _play(args: argparse.Namespace) -> Dict[str, Any]:
    session, cfg = _session_for(args, {})
    engine = simulation_config_from_dict(cfg).engine
    driver = RealtimeDriver(
        session,
        frame_interval=engine.frame_interval,
        step_interval=engine.step_interval,
    )
    return driver.run(args.seconds)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.cmd == "validate":
            errors = validate_config(load_effective_config(args.config))
            if errors:
                print(json.dumps({"ok": False, "errors": errors}, ensure_ascii=False, indent=2))
                return 1
            print(json.dumps({"ok": True}, ensure_ascii=False, indent=2))
            return 0

        if args.cmd == "run":
            result = run_emu(args.config)
        elif args.cmd == "trace":
            result = _trace(args)
        elif args.cmd == "route":
            result = _route(args)
        else:
            result = _play(args)
    except TopologyValidationError as exc:
        _LOG.warning("topology rejected: %s", exc)
        print(json.dumps({"ok": False, "errors": exc.errors}, ensure_ascii=False, indent=2))
        return 2
    except (KeyError, ValueError, OSError) as exc:
        _LOG.warning("%s failed: %s", args.cmd, exc)
        print(json.dumps({"ok": False, "errors": [str(exc)]}, ensure_ascii=False, indent=2))
        return 2

    print(json.dumps(result, indent=2, ensure_ascii=False, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
