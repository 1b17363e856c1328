"""Validation boundary for topologies arriving from outside the core.

A topology document is either admitted whole or rejected whole; nothing is
partially applied.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from routesim.core.topology import Topology
from routesim.core.types import UNREACHABLE, Link, Node


class TopologyValidationError(ValueError):
    def __init__(self, errors: List[str]) -> None:
        super().__init__("Invalid topology: " + "; ".join(errors))
        self.errors = list(errors)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_topology(raw: Any) -> List[str]:
    errors: List[str] = []
    if not isinstance(raw, Mapping):
        return ["topology must be a mapping with 'nodes' and 'links'"]

    nodes = raw.get("nodes")
    links = raw.get("links", [])
    if not isinstance(nodes, list):
        errors.append("'nodes' must be a list")
        nodes = []
    if not isinstance(links, list):
        errors.append("'links' must be a list")
        links = []

    node_ids: set[str] = set()
    for idx, item in enumerate(nodes):
        if not isinstance(item, Mapping):
            errors.append(f"nodes[{idx}] must be a mapping")
            continue
        node_id = item.get("id")
        if not isinstance(node_id, str) or not node_id:
            errors.append(f"nodes[{idx}].id must be a non-empty string")
            continue
        if node_id in node_ids:
            errors.append(f"duplicate node id: {node_id}")
        node_ids.add(node_id)
        if "active" in item and not isinstance(item["active"], bool):
            errors.append(f"nodes[{idx}].active must be a boolean")

    link_ids: set[str] = set()
    total_weight = 0
    for idx, item in enumerate(links):
        if not isinstance(item, Mapping):
            errors.append(f"links[{idx}] must be a mapping")
            continue
        link_id = item.get("id")
        if link_id is not None:
            if not isinstance(link_id, str) or not link_id:
                errors.append(f"links[{idx}].id must be a non-empty string")
            elif link_id in link_ids:
                errors.append(f"duplicate link id: {link_id}")
            else:
                link_ids.add(link_id)
        for end in ("source", "target"):
            ref = item.get(end)
            if not isinstance(ref, str) or not ref:
                errors.append(f"links[{idx}].{end} must be a node id")
            elif ref not in node_ids:
                errors.append(f"links[{idx}].{end} references unknown node: {ref}")
        weight = item.get("weight")
        if not _is_positive_int(weight):
            errors.append(f"links[{idx}].weight must be a positive integer, got {weight!r}")
        else:
            total_weight += weight
        if "active" in item and not isinstance(item["active"], bool):
            errors.append(f"links[{idx}].active must be a boolean")

    if total_weight >= UNREACHABLE:
        errors.append(f"total link weight {total_weight} must stay below {UNREACHABLE}")
    return errors


def parse_topology(raw: Any, assign_link_ids: bool = True) -> Topology:
    """Validate a topology document and build a ``Topology`` from it.

    Links without an id get ``link-<index>`` when ``assign_link_ids`` is set,
    provided that id is not already taken; missing ``active`` flags default to
    ``True``.
    """
    errors = validate_topology(raw)
    links_raw = list(raw.get("links", [])) if isinstance(raw, Mapping) else []
    if not errors:
        taken = {item["id"] for item in links_raw if item.get("id") is not None}
        for idx, item in enumerate(links_raw):
            if item.get("id") is not None:
                continue
            if not assign_link_ids:
                errors.append(f"links[{idx}].id is required")
            elif f"link-{idx}" in taken:
                errors.append(f"links[{idx}] has no id and 'link-{idx}' is already taken")
    if errors:
        raise TopologyValidationError(errors)

    nodes = [Node(id=item["id"], active=item.get("active", True)) for item in raw["nodes"]]
    links = [
        Link(
            id=item.get("id") or f"link-{idx}",
            source=item["source"],
            target=item["target"],
            weight=item["weight"],
            active=item.get("active", True),
        )
        for idx, item in enumerate(links_raw)
    ]
    return Topology(nodes=nodes, links=links)


def build_topology(cfg: Dict[str, Any], seed: int = 0) -> Topology:
    """Topology from a run config: explicit ``nodes``/``links`` or a generator ``type``."""
    if "nodes" in cfg:
        return parse_topology(cfg)
    return Topology.from_config(cfg, seed=seed)
