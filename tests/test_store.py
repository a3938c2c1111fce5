import pytest

from bubblegraph import GraphStore, Link, LinkKind


def _store(*ids):
    store = GraphStore()
    for i, node_id in enumerate(ids):
        store.add_node(node_id.upper(), 20, x=i * 200.0, node_id=node_id)
    return store


@pytest.mark.parametrize("first, second", [("ideal", "necessary"), ("necessary", "ideal")])
def test_one_link_per_pair_and_necessary_wins(first, second):
    store = _store("a", "b")

    store.upsert_link("a", "b", first)
    store.upsert_link("b", "a", second)

    assert len(store.links) == 1
    assert store.links[0].kind == LinkKind.NECESSARY
    assert store.link_kind_between("b", "a") == "necessary"


def test_replace_allows_downgrade():
    store = _store("a", "b")
    store.upsert_link("a", "b", "necessary")

    store.upsert_link("a", "b", "ideal", replace=True)

    assert [link.kind for link in store.links] == [LinkKind.IDEAL]


def test_none_removes_pair_in_either_direction():
    store = _store("a", "b", "c")
    store.upsert_link("a", "b", "necessary")
    store.upsert_link("b", "c", "ideal")

    assert store.upsert_link("b", "a", "none") is None

    assert store.link_kind_between("a", "b") == "none"
    assert store.link_kind_between("b", "c") == "ideal"


def test_self_links_and_unknown_ids_are_ignored():
    store = _store("a", "b")

    assert store.upsert_link("a", "a", "necessary") is None
    assert store.upsert_link("a", "zzz", "necessary") is None
    assert store.links == []


def test_deduplicated_links_tolerate_raw_duplicates():
    store = _store("a", "b", "c")
    store.links.append(Link(id="l1", source="a", target="b", kind=LinkKind.IDEAL))
    store.links.append(Link(id="l2", source="b", target="a", kind=LinkKind.NECESSARY))
    store.links.append(Link(id="l3", source="a", target="b", kind=LinkKind.IDEAL))
    store.links.append(Link(id="l4", source="c", target="c", kind=LinkKind.IDEAL))

    deduped = store.deduplicated_links()

    assert [link.id for link in deduped] == ["l2"]


def test_upsert_collapses_existing_duplicates():
    store = _store("a", "b")
    store.links.append(Link(id="l1", source="a", target="b", kind=LinkKind.NECESSARY))
    store.links.append(Link(id="l2", source="b", target="a", kind=LinkKind.IDEAL))

    kept = store.upsert_link("a", "b", "ideal")

    assert kept.id == "l1"
    assert [link.id for link in store.links] == ["l1"]


def test_remove_nodes_drops_incident_links_and_selection():
    store = _store("a", "b", "c")
    store.upsert_link("a", "b", "necessary")
    store.upsert_link("b", "c", "ideal")
    store.upsert_link("a", "c", "ideal")
    store.set_selection(["a", "b", "c"])

    assert store.remove_nodes(["b", "unknown"]) == 1

    assert store.ids() == ["a", "c"]
    assert [link.key for link in store.links] == [("a", "c")]
    assert store.selection == ["a", "c"]
    assert store.remove_nodes(["unknown"]) == 0


def test_selection_helpers_ignore_unknown_ids():
    store = _store("a", "b")

    store.set_selection(["b", "ghost", "b"])
    assert store.selection == ["b"]

    store.toggle_selection("a")
    store.toggle_selection("b")
    store.toggle_selection("ghost")
    assert store.selection == ["a"]

    store.select_all()
    assert store.selection == ["a", "b"]
    store.clear_selection()
    assert store.selected_nodes() == []


def test_lock_moves_with_node_and_upsert_updates_in_place():
    store = _store("a")
    store.set_locked("a", True)
    node = store.node("a")
    assert node.fixed == (0.0, 0.0)

    node.move_to(30, 40)
    assert node.fixed == (30.0, 40.0)

    store.upsert_nodes([{"id": "a", "name": "Renamed", "area": 50, "x": 1, "y": 2}])
    assert store.node("a") is node
    assert (node.name, node.area, node.locked, node.fixed) == ("Renamed", 50.0, False, None)
    assert len(store) == 1


def test_snapshot_restore_round_trip():
    store = _store("a", "b")
    store.upsert_link("a", "b", "ideal")
    store.set_locked("b", True)
    store.select_only("a")
    snapshot = store.snapshot()

    store.clear()
    assert len(store) == 0

    store.restore(snapshot)
    assert store.snapshot() == snapshot
