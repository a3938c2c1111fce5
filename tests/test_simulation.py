import math

import pytest

from bubblegraph import GraphStore, Link, LinkKind, SimulationConfig, SimulationEngine
from bubblegraph.simulation import explode_charge_factor, link_rest_distance, relax


def _store(*placements):
    store = GraphStore()
    for node_id, x, y in placements:
        store.add_node(node_id.upper(), 20, x, y, node_id=node_id)
    return store


def _distance(store, a, b):
    na, nb = store.node(a), store.node(b)
    return math.hypot(na.x - nb.x, na.y - nb.y)


def test_rest_distance_follows_link_kind_and_explode():
    cfg = SimulationConfig()

    necessary = link_rest_distance(36, 36, LinkKind.NECESSARY, 6, cfg)
    ideal = link_rest_distance(36, 36, LinkKind.IDEAL, 6, cfg)

    assert necessary == pytest.approx(72 * 1.05 * 1.1 + 40 + 9)
    assert ideal == pytest.approx(72 * 1.05 + 40 + 9)
    assert link_rest_distance(36, 36, LinkKind.IDEAL, 6, cfg, explode=2.2) == pytest.approx(ideal * 2.2)


@pytest.mark.parametrize("explode, expected", [(1.0, 1.0), (0.5, 1.0), (1.5, 2.7), (2.2, 3.96)])
def test_charge_boost_only_applies_above_one(explode, expected):
    assert explode_charge_factor(explode, 1.8) == pytest.approx(expected)


def test_paused_engine_performs_no_ticks():
    store = _store(("a", 0, 0), ("b", 5, 0))
    engine = SimulationEngine(store, running=False, seed=0)

    assert engine.tick() is None
    assert engine.step(25) == 0
    assert [node.position for node in store.nodes] == [(0.0, 0.0), (5.0, 0.0)]
    assert engine.alpha == 1.0


def test_overlapping_nodes_are_pushed_apart():
    store = _store(("a", 0, 0), ("b", 1, 0))
    engine = SimulationEngine(store, seed=0)

    engine.run_until_settled(1000)

    assert engine.settled
    assert _distance(store, "a", "b") > 60
    assert engine.tick() is None


def test_locked_nodes_never_move():
    store = _store(("a", 0, 0), ("b", 20, 0), ("c", -30, 10))
    store.set_locked("a", True)
    store.upsert_link("a", "b", "necessary")
    engine = SimulationEngine(store, rotation_sensitivity=100, seed=0)

    engine.step(80)

    assert store.node("a").position == (0.0, 0.0)
    assert (store.node("a").vx, store.node("a").vy) == (0.0, 0.0)
    assert store.node("b").position != (20.0, 0.0)


def test_links_pull_distant_nodes_together():
    store = _store(("a", -500, 0), ("b", 500, 0))
    store.upsert_link("a", "b", "necessary")
    engine = SimulationEngine(store, seed=0)

    engine.run_until_settled(2000)

    assert _distance(store, "a", "b") < 400


def test_ticks_are_coalesced_until_commit():
    store = _store(("a", 0, 0), ("b", 10, 0))
    engine = SimulationEngine(store, seed=0)

    first = engine.tick()
    second = engine.tick()

    assert second.tick == 2 and first.tick == 1
    assert store.node("b").position == (10.0, 0.0)
    assert engine.commit() == 2
    assert store.node("b").position != (10.0, 0.0)
    assert engine.commit() == 0


def test_held_nodes_are_not_overwritten_by_commit():
    store = _store(("a", 0, 0), ("b", 10, 0), ("c", 0, 15))
    engine = SimulationEngine(store, seed=0)
    engine.tick()

    engine.hold(["a"])
    store.node("a").move_to(300, 300)
    engine.step(5)

    assert store.node("a").position == (300.0, 300.0)
    assert store.node("b").position != (10.0, 0.0)

    engine.release(["a"])
    engine.step(5)
    assert store.node("a").position != (300.0, 300.0)


def test_spin_adds_tangential_velocity_to_unlocked_nodes():
    store = _store(("a", 100, 0), ("b", -100, 0))
    spinning = SimulationEngine(store, rotation_sensitivity=100, seed=0)

    frame = spinning.tick()

    assert frame.velocities[0, 1] > 0
    assert frame.velocities[1, 1] < 0

    still = SimulationEngine(_store(("a", 100, 0), ("b", -100, 0)), seed=0)
    frame = still.tick()
    assert frame.velocities[0, 1] == 0.0
    assert frame.velocities[1, 1] == 0.0


def test_rotation_sensitivity_is_clamped():
    engine = SimulationEngine(GraphStore())

    engine.set_rotation_sensitivity(250)
    assert engine.rotation_sensitivity == 100
    assert engine.alpha == 0.5

    engine.set_rotation_sensitivity(-3)
    assert engine.rotation_sensitivity == 0


def test_detangle_retrigger_replaces_pending_expiry():
    store = _store(("a", 0, 0), ("b", 100, 0))
    engine = SimulationEngine(store, seed=0)
    ticks = engine.config.detangle_ticks

    engine.trigger_detangle()
    assert engine.explode == pytest.approx(2.2)
    engine.step(30)
    pulse = engine.trigger_detangle()

    assert pulse.expires_at_tick == 30 + ticks
    assert engine.alpha == 1.0

    engine.step(ticks - 1)
    assert engine.pulse.active

    engine.step(2)
    assert not engine.pulse.active
    assert engine.explode == 1.0


def test_detangle_does_not_expire_while_paused():
    engine = SimulationEngine(_store(("a", 0, 0)), seed=0)
    engine.trigger_detangle()
    engine.set_running(False)

    engine.step(500)

    assert engine.pulse.active
    assert engine.tick_count == 0


def test_duplicate_links_in_store_do_not_break_ticks():
    store = _store(("a", -200, 0), ("b", 200, 0))
    store.upsert_link("a", "b", "ideal")
    store.links.append(Link(id="dup", source="b", target="a", kind=LinkKind.NECESSARY))
    engine = SimulationEngine(store, seed=0)

    specs = engine._link_specs({"a": 0, "b": 1})
    assert [(spec.kind, {spec.source, spec.target}) for spec in specs] == [(LinkKind.NECESSARY, {0, 1})]
    assert engine.step(3) == 3


def test_relax_closes_engine_and_settles():
    store = _store(("a", 0, 0), ("b", 3, 0), ("c", 0, 3))

    ticks = relax(store, max_ticks=2000, seed=1)

    assert 0 < ticks <= 2000
    assert _distance(store, "a", "b") > 30


def test_closed_engine_stops_ticking():
    engine = SimulationEngine(_store(("a", 0, 0)), seed=0)
    engine.close()

    assert engine.closed
    assert engine.tick() is None
