import pytest

from bubblegraph import GraphStore, Node, R_MAX, R_MIN, scale_radius


def _nodes(*areas):
    return [Node(id=f"n{i}", name=f"N{i}", area=area) for i, area in enumerate(areas)]


def test_extremes_map_to_visual_bounds():
    scale = scale_radius(_nodes(4, 100))

    assert scale(4) == pytest.approx(R_MIN)
    assert scale(100) == pytest.approx(R_MAX)
    # sqrt(49) = 7 sits 5/8 of the way between sqrt(4) and sqrt(100)
    assert scale(49) == pytest.approx(R_MIN + 5.0 / 8.0 * (R_MAX - R_MIN))


def test_equal_areas_and_empty_sets_use_minimum_radius():
    assert scale_radius(_nodes(30, 30, 30))(30) == R_MIN
    assert scale_radius(_nodes(30, 30, 30))(500) == R_MIN
    assert scale_radius([])(50) == R_MIN


def test_out_of_range_areas_are_clamped():
    scale = scale_radius(_nodes(10, 40))

    assert scale(0.5) == R_MIN
    assert scale(10_000) == R_MAX


@pytest.mark.parametrize(
    "areas",
    [
        [1, 2, 3],
        [5, 90, 45, 12.5, 300],
        [120, 80, 60, 90, 45, 110, 130],
        [1, 1, 2],
    ],
)
def test_radius_is_monotonic_in_area(areas):
    scale = scale_radius(_nodes(*areas))
    probes = sorted(areas + [0.5, 7, 1000])
    radii = [scale(area) for area in probes]

    assert all(a <= b for a, b in zip(radii, radii[1:]))
    assert all(R_MIN <= r <= R_MAX for r in radii)


@pytest.mark.parametrize("raw, expected", [(0, 1.0), (-5, 1.0), ("abc", 20.0), ("12", 12.0), (None, 20.0)])
def test_node_area_is_floored_and_defaulted(raw, expected):
    assert Node(id="x", name="X", area=raw).area == expected


def test_store_rebuilds_scale_when_extrema_change():
    store = GraphStore()
    store.add_node("A", 4, node_id="a")
    store.add_node("B", 100, node_id="b")
    assert store.radius("b") == pytest.approx(R_MAX)

    store.add_node("C", 400, node_id="c")
    assert store.radius("b") < R_MAX
    assert store.radius("c") == pytest.approx(R_MAX)

    store.remove_nodes(["c"])
    assert store.radius("b") == pytest.approx(R_MAX)

    store.change_area("b", 4)
    assert store.radius("b") == R_MIN
    assert store.radius("missing") == R_MIN
