import json

import pytest

import bubblegraph.__main__ as cli
from bubblegraph import Diagram, DiagramSettings


def test_main_lays_out_list_and_writes_json(tmp_path, capsys):
    list_path = tmp_path / "spaces.txt"
    list_path.write_text("Kitchen, 14\nDining, 16\nStudy, 9\n", encoding="utf-8")
    expected_path = tmp_path / "pairs.txt"
    expected_path.write_text("Kitchen - Dining\n", encoding="utf-8")
    output_path = tmp_path / "out" / "plan.json"

    cli.main(
        [
            str(list_path),
            "--no-physics",
            "--expected",
            str(expected_path),
            "--json-output",
            str(output_path),
        ]
    )

    out = capsys.readouterr().out
    assert "Nodes: 3  Links: 0" in out
    assert "Overlapping pairs: 0" in out
    assert "  - Kitchen - Dining" in out
    assert f"Diagram written to {output_path}" in out

    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert [node["name"] for node in data["nodes"]] == ["Kitchen", "Dining", "Study"]
    assert data["links"] == []


def test_main_auto_connect_runs_simulation(tmp_path, capsys):
    list_path = tmp_path / "spaces.txt"
    list_path.write_text("Kitchen, 14\nDining, 16\n", encoding="utf-8")
    expected_path = tmp_path / "pairs.txt"
    expected_path.write_text("Kitchen, Dining\n", encoding="utf-8")

    cli.main([str(list_path), "--ticks", "50", "--expected", str(expected_path), "--auto-connect"])

    out = capsys.readouterr().out
    assert "Nodes: 2  Links: 1" in out
    assert "Missing necessary pairs:\n  (none)" in out


def test_main_uses_loaded_diagram(monkeypatch, capsys):
    diagram = Diagram(DiagramSettings(physics_enabled=False), seed=0)
    diagram.upsert_nodes([{"id": "a", "name": "Hall", "area": 8, "x": 0, "y": 0, "locked": True}])
    loaded = []

    def _read(path, **kwargs):
        loaded.append((path, kwargs["seed"]))
        return diagram

    monkeypatch.setattr(cli, "read_diagram", _read)

    cli.main(["--load-json", "plan.json", "--no-physics"])

    assert loaded == [("plan.json", 123)]
    assert "  Hall: (0.00, 0.00) r=36.0 (locked)" in capsys.readouterr().out


def test_main_exits_on_unreadable_document(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--load-json", str(tmp_path / "missing.json")])

    assert excinfo.value.code == 1


def test_main_exits_on_unreadable_expected_pairs(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--no-physics", "--expected", str(tmp_path / "nope.txt")])

    assert excinfo.value.code == 1
