import json

import pytest

from bubblegraph import Diagram, DiagramFormatError, LinkKind, dumps, from_dict, loads, to_dict
from bubblegraph.io import read_diagram, write_diagram


def _diagram():
    diagram = Diagram(seed=0)
    diagram.upsert_nodes(
        [
            {"id": "a", "name": "Kitchen", "area": 14, "x": 12.5, "y": -3},
            {"id": "b", "name": "Dining", "area": 16, "x": 180, "y": 40},
            {"id": "c", "name": "Entry", "area": 5, "x": -200, "y": 75.25, "locked": True},
        ]
    )
    diagram.upsert_link("a", "b", "necessary")
    diagram.upsert_link("b", "c", "ideal")
    diagram.set_buffer(9)
    diagram.set_rotation_sensitivity(35)
    return diagram


def test_round_trip_preserves_records_and_settings():
    original = _diagram()

    loaded = loads(dumps(original))

    assert [n.to_record() for n in loaded.nodes] == [n.to_record() for n in original.nodes]
    assert [l.to_record() for l in loaded.links] == [l.to_record() for l in original.links]
    assert loaded.settings.buffer == 9
    assert loaded.settings.rotation_sensitivity == 35
    assert loaded.node("c").locked and loaded.node("c").fixed == (-200.0, 75.25)


def test_document_shape():
    data = to_dict(_diagram())

    assert set(data) == {"nodes", "links", "buffer", "rotationSensitivity"}
    assert set(data["nodes"][0]) == {"id", "name", "area", "x", "y", "locked", "fx", "fy"}
    assert data["links"][1]["type"] == "ideal"
    assert "radius" not in data["nodes"][0]
    json.dumps(data)


def test_loading_normalizes_partial_records():
    diagram = from_dict(
        {
            "nodes": [
                {"name": "NoId"},
                {"id": "b", "area": "bad"},
                {"id": "c", "name": "Tiny", "area": -4},
                "garbage",
            ],
            "links": [
                {"source": "b", "target": "c", "type": "ideal"},
                {"source": "c", "target": "b", "type": "necessary"},
                {"source": "b"},
                {"source": "b", "target": "b"},
                {"source": "b", "target": "ghost"},
            ],
        }
    )

    first, second, third = diagram.nodes
    assert first.id and first.name == "NoId" and first.area == 20
    assert second.name == "Unnamed" and second.area == 20
    assert third.area == 1
    assert len(diagram.links) == 1
    assert diagram.links[0].kind == LinkKind.NECESSARY


@pytest.mark.parametrize("text", ["{not json", "[1, 2]", '{"nodes": {"a": 1}}', '{"links": 5}'])
def test_malformed_documents_raise(text):
    with pytest.raises(DiagramFormatError):
        loads(text)


def test_read_and_write_files(tmp_path):
    path = write_diagram(_diagram(), tmp_path / "nested" / "plan.json")

    loaded = read_diagram(path)

    assert [node.name for node in loaded.nodes] == ["Kitchen", "Dining", "Entry"]


@pytest.mark.parametrize(
    "flag, locked",
    [(True, True), ("true", True), (" TRUE ", True), (1, True), (False, False), ("false", False), ("0", False), (None, False)],
)
def test_lock_flag_is_read_strictly(flag, locked):
    diagram = from_dict({"nodes": [{"id": "a", "name": "A", "x": 4, "y": 2, "locked": flag}]})

    node = diagram.node("a")
    assert node.locked is locked
    assert node.fixed == ((4.0, 2.0) if locked else None)
