from __future__ import annotations

from typing import Dict, List, Type, Union

from routesim.algorithms.base import ShortestPathAlgorithm, TopologyLike
from routesim.algorithms.bellman_ford import BellmanFordAlgorithm
from routesim.algorithms.dijkstra import DijkstraAlgorithm
from routesim.core.types import AlgorithmType, NodeId, SimulationStep

_REGISTRY: Dict[str, Type[ShortestPathAlgorithm]] = {
    AlgorithmType.DIJKSTRA.value: DijkstraAlgorithm,
    AlgorithmType.BELLMAN_FORD.value: BellmanFordAlgorithm,
}


def register_algorithm(name: str, algorithm_cls: Type[ShortestPathAlgorithm]) -> None:
    _REGISTRY[name] = algorithm_cls


def load_algorithm(name: Union[str, AlgorithmType]) -> ShortestPathAlgorithm:
    key = name.value if isinstance(name, AlgorithmType) else str(name)
    if key not in _REGISTRY:
        try:
            key = AlgorithmType.parse(key).value
        except KeyError:
            pass
    if key not in _REGISTRY:
        raise KeyError(f"Unknown algorithm: {name}. Available: {available_algorithms()}")
    return _REGISTRY[key]()


def available_algorithms() -> List[str]:
    return sorted(_REGISTRY.keys())


def run_algorithm(
    algorithm: Union[str, AlgorithmType],
    topology: TopologyLike,
    start_node_id: NodeId,
) -> List[SimulationStep]:
    return load_algorithm(algorithm).run(topology, start_node_id)
