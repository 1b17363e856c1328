"""Config loading and wall-clock driving of a simulation session."""

from routesim.runtime.config import (
    EngineConfig,
    SimulationConfig,
    TrafficConfig,
    build_session,
    load_simulation_config,
    parse_events,
    simulation_config_from_dict,
)
from routesim.runtime.driver import RealtimeDriver

__all__ = [
    "EngineConfig",
    "RealtimeDriver",
    "SimulationConfig",
    "TrafficConfig",
    "build_session",
    "load_simulation_config",
    "parse_events",
    "simulation_config_from_dict",
]
