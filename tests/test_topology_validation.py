from __future__ import annotations

import pytest

from routesim.core.validation import (
    TopologyValidationError,
    build_topology,
    parse_topology,
    validate_topology,
)


def doc(**overrides):
    base = {
        "nodes": [{"id": "a"}, {"id": "b"}, {"id": "c", "active": False}],
        "links": [
            {"id": "ab", "source": "a", "target": "b", "weight": 2},
            {"source": "b", "target": "c", "weight": 3},
        ],
    }
    base.update(overrides)
    return base


def test_valid_document_is_parsed():
    topology = parse_topology(doc())
    assert topology.node_ids() == ["a", "b", "c"]
    assert not topology.node("c").active
    assert [l.id for l in topology.links()] == ["ab", "link-1"]


@pytest.mark.parametrize(
    "raw, needle",
    [
        (["not", "a", "mapping"], "mapping"),
        (doc(nodes=[{"id": "a"}, {"id": "a"}]), "duplicate node id"),
        (doc(nodes=[{"id": ""}]), "non-empty string"),
        (doc(links=[{"source": "a", "target": "zz", "weight": 1}]), "unknown node: zz"),
        (doc(links=[{"source": "a", "target": "b", "weight": 0}]), "positive integer"),
        (doc(links=[{"source": "a", "target": "b", "weight": -4}]), "positive integer"),
        (doc(links=[{"source": "a", "target": "b", "weight": 1.5}]), "positive integer"),
        (doc(links=[{"source": "a", "target": "b", "weight": True}]), "positive integer"),
        (doc(links=[{"source": "a", "target": "b", "weight": 9999}]), "below 9999"),
        (
            doc(links=[
                {"id": "x", "source": "a", "target": "b", "weight": 1},
                {"id": "x", "source": "b", "target": "a", "weight": 1},
            ]),
            "duplicate link id",
        ),
        (doc(nodes=[{"id": "a", "active": "yes"}], links=[]), "boolean"),
    ],
)
def test_invalid_documents_are_rejected_whole(raw, needle):
    assert any(needle in e for e in validate_topology(raw))
    with pytest.raises(TopologyValidationError) as exc_info:
        parse_topology(raw)
    assert any(needle in e for e in exc_info.value.errors)


def test_generated_link_id_collision_is_rejected():
    raw = doc(links=[
        {"id": "link-1", "source": "a", "target": "b", "weight": 1},
        {"source": "b", "target": "c", "weight": 1},
    ])
    with pytest.raises(TopologyValidationError):
        parse_topology(raw)
    with pytest.raises(TopologyValidationError):
        parse_topology(doc(), assign_link_ids=False)


def test_build_topology_dispatches_on_shape():
    assert build_topology(doc()).node_ids() == ["a", "b", "c"]
    assert build_topology({"type": "line", "n_nodes": 3}).node_ids() == ["n0", "n1", "n2"]
