from routesim.core.topology import Topology, TopologySnapshot
from routesim.core.types import (
    UNREACHABLE,
    AlgorithmType,
    Link,
    Node,
    Packet,
    PacketStatus,
    RoutingTableEntry,
    SimulationStep,
)
from routesim.core.validation import TopologyValidationError, parse_topology, validate_topology

__all__ = [
    "UNREACHABLE",
    "AlgorithmType",
    "Link",
    "Node",
    "Packet",
    "PacketStatus",
    "RoutingTableEntry",
    "SimulationStep",
    "Topology",
    "TopologySnapshot",
    "TopologyValidationError",
    "parse_topology",
    "validate_topology",
]
