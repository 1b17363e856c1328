from __future__ import annotations

import pytest

from routesim.core.eventlog import JsonlLogger
from routesim.core.packets import PacketSimulator
from routesim.core.topology import Topology
from routesim.core.types import PacketStatus


def pair() -> Topology:
    topology = Topology()
    topology.add_link("a", "b", 1, link_id="ab")
    return topology


def test_single_hop_packet_is_delivered_then_removed():
    sim = PacketSimulator(pair(), seed=1, speed_range=(1.0, 1.0))
    (packet,) = sim.spawn(1)
    assert packet.id == "pkt-1"
    assert packet.current_edge_id == "ab"
    assert packet.next_hop_id == packet.target_id

    report = sim.tick(1.0)
    assert report.delivered == ["pkt-1"]
    assert sim.packets[0].status is PacketStatus.DELIVERED
    assert sim.stats == {"spawned": 1, "delivered": 1, "lost": 0, "in_flight": 0}

    report = sim.tick(0.1)
    assert report.removed == 1
    assert sim.packets == ()


def test_multi_hop_delivery_on_a_line():
    sim = PacketSimulator(Topology.line(3), seed=5, speed_range=(1.0, 1.0))
    created = sim.spawn(10)
    assert len(created) == 10
    assert [p.id for p in created] == [f"pkt-{i}" for i in range(1, 11)]

    sim.tick(1.0)
    sim.tick(1.0)

    assert all(p.status is PacketStatus.DELIVERED for p in sim.packets)
    assert sim.delivered == 10
    assert all(p.hops == abs(int(p.source_id[1:]) - int(p.target_id[1:])) for p in sim.packets)


def test_link_failure_loses_packet_only_when_progress_crosses_one():
    topology = pair()
    sim = PacketSimulator(topology, seed=2, speed_range=(1.0, 1.0))
    sim.spawn(1)
    topology.set_link_active("ab", False)

    report = sim.tick(0.5)
    assert report.lost == []
    assert sim.packets[0].status is PacketStatus.MOVING
    assert sim.packets[0].progress == pytest.approx(0.5)

    report = sim.tick(0.5)
    assert report.lost == ["pkt-1"]
    assert sim.packets[0].status is PacketStatus.LOST


def test_next_hop_node_failure_loses_packet():
    topology = pair()
    sim = PacketSimulator(topology, seed=3, speed_range=(1.0, 1.0))
    (packet,) = sim.spawn(1)
    topology.set_node_active(packet.next_hop_id, False)

    sim.tick(1.0)

    assert sim.packets[0].status is PacketStatus.LOST
    assert sim.lost == 1


def test_packet_is_rerouted_around_a_failure():
    topology = Topology.ring(4)
    sim = PacketSimulator(topology, seed=0, speed_range=(1.0, 1.0))
    outbound = [p for p in sim.spawn(200) if (p.source_id, p.target_id) == ("n0", "n2")]
    assert outbound
    assert all(p.next_hop_id == "n1" for p in outbound)
    topology.set_link_active("n1-n2", False)

    for _ in range(4):
        sim.tick(1.0)

    ids = {p.id for p in outbound}
    finished = [p for p in sim.packets if p.id in ids]
    assert len(finished) == len(outbound)
    assert all(p.status is PacketStatus.DELIVERED for p in finished)
    assert all(p.hops == 4 for p in finished)


def test_spawn_discards_unreachable_attempts():
    topology = Topology()
    for node_id in ("a", "b", "c", "d"):
        topology.add_node(node_id)
    topology.add_link("a", "b", 1, link_id="ab")
    sim = PacketSimulator(topology, seed=4)

    created = sim.spawn(60)

    assert 0 < len(created) < 60
    assert all({p.source_id, p.target_id} == {"a", "b"} for p in created)
    assert sim.spawned == len(created)


def test_spawn_needs_two_active_nodes():
    topology = pair()
    topology.set_node_active("b", False)
    sim = PacketSimulator(topology, seed=4)
    assert sim.spawn(5) == []
    with pytest.raises(ValueError):
        sim.spawn(-1)


def test_speed_is_drawn_from_range():
    sim = PacketSimulator(Topology.line(4), seed=9, speed_range=(0.25, 0.75))
    for packet in sim.spawn(25):
        assert 0.25 <= packet.speed <= 0.75
    with pytest.raises(ValueError):
        PacketSimulator(pair(), speed_range=(0.0, 1.0))


def test_route_memoization_shares_runs_within_a_tick():
    memo = PacketSimulator(Topology.line(5), seed=11, memoize_routes=True)
    plain = PacketSimulator(Topology.line(5), seed=11, memoize_routes=False)

    memo_created = memo.spawn(20)
    plain_created = plain.spawn(20)

    assert memo_created == plain_created
    assert plain.routing_runs == 20
    assert memo.routing_runs <= 5

    for _ in range(8):
        memo_report = memo.tick(0.5)
        plain_report = plain.tick(0.5)
        assert memo_report.delivered == plain_report.delivered
        assert memo_report.routing_runs <= plain_report.routing_runs


def test_ticking_never_mutates_topology():
    topology = Topology.classic()
    sim = PacketSimulator(topology, seed=6)
    sim.spawn(15)
    before = (topology.version, topology.to_dict())
    for _ in range(20):
        sim.tick(0.3)
    assert (topology.version, topology.to_dict()) == before


def test_packets_property_returns_copies():
    sim = PacketSimulator(pair(), seed=1)
    sim.spawn(1)
    sim.packets[0].progress = 42.0
    assert sim.packets[0].progress == 0.0


def test_events_are_logged():
    log = JsonlLogger(path=None, keep=True)
    topology = pair()
    sim = PacketSimulator(topology, seed=1, speed_range=(1.0, 1.0), event_log=log)
    sim.spawn(2)
    topology.set_link_active("ab", False)
    sim.tick(1.0)

    assert len(log.events("packet_spawned")) == 2
    assert [r["packet"] for r in log.events("packet_lost")] == ["pkt-1", "pkt-2"]
    assert log.events("packet_lost")[0]["reason"] == "link down in transit"


def test_negative_elapsed_rejected():
    with pytest.raises(ValueError):
        PacketSimulator(pair()).tick(-0.1)
