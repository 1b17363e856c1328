"""Stepwise shortest-path engines."""

from routesim.algorithms.base import ShortestPathAlgorithm, StepRecorder, final_step, is_failed_trace
from routesim.algorithms.bellman_ford import BellmanFordAlgorithm
from routesim.algorithms.dijkstra import DijkstraAlgorithm
from routesim.algorithms.registry import (
    available_algorithms,
    load_algorithm,
    register_algorithm,
    run_algorithm,
)

__all__ = [
    "BellmanFordAlgorithm",
    "DijkstraAlgorithm",
    "ShortestPathAlgorithm",
    "StepRecorder",
    "available_algorithms",
    "final_step",
    "is_failed_trace",
    "load_algorithm",
    "register_algorithm",
    "run_algorithm",
]
