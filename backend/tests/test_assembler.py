import pytest

from wayfinder.errors import InvalidInput, NotFound
from wayfinder.services.assembler import RouteAssembler, duration_for, speed_for_profile
from wayfinder.services.solver import shortest_path

from .helpers import edge, lonlat, make_snapshot, node

SPEEDS = {"walking": 1.35, "wheelchair": 1.10}


def _bent_graph():
    # 1 --(100 m east)-- 2 --(35 m north, with a kink)-- 3
    kink = lonlat(105, 20)
    return make_snapshot(
        [
            node(1, 0, 0, altitude_m=10.0),
            node(2, 100, 0, altitude_m=20.0),
            node(3, 100, 35, altitude_m=None),
        ],
        [
            edge(1, 1, 2, 100.0),
            edge(
                2,
                2,
                3,
                37.0,
                geometry={"type": "LineString", "coordinates": [list(lonlat(100, 0)), list(kink), list(lonlat(100, 35))]},
            ),
        ],
    )


def test_geometry_is_continuous_and_travel_ordered() -> None:
    snapshot = _bent_graph()
    route = RouteAssembler(snapshot, SPEEDS).assemble(shortest_path(snapshot, 1, 3), "walking")
    coords = route.geometry["coordinates"]
    assert route.geometry["type"] == "LineString"
    # junction at node 2 appears once
    assert len(coords) == 4
    assert coords[0] == pytest.approx(list(lonlat(0, 0)))
    assert coords[-1] == pytest.approx(list(lonlat(100, 35)))
    assert route.node_ids == [1, 2, 3]
    assert [s.edge_id for s in route.segments] == [1, 2]


def test_reverse_traversal_reverses_edge_geometry() -> None:
    snapshot = _bent_graph()
    route = RouteAssembler(snapshot, SPEEDS).assemble(shortest_path(snapshot, 3, 1), "walking")
    coords = route.geometry["coordinates"]
    assert coords[0] == pytest.approx(list(lonlat(100, 35)))
    assert coords[1] == pytest.approx(list(lonlat(105, 20)))
    assert coords[-1] == pytest.approx(list(lonlat(0, 0)))
    assert [(s.from_node, s.to_node) for s in route.segments] == [(3, 2), (2, 1)]


def test_distance_is_sum_of_segment_lengths() -> None:
    snapshot = _bent_graph()
    route = RouteAssembler(snapshot, SPEEDS).assemble(shortest_path(snapshot, 1, 3), "walking")
    assert route.distance_m == pytest.approx(sum(s.length_m for s in route.segments))
    # lengths come from geometry, not from the edge cost
    assert route.segments[1].length_m > 35.0
    assert route.cost == 137.0


def test_duration_uses_profile_speed() -> None:
    snapshot = make_snapshot(
        [node(1, 0, 0), node(2, 100, 0), node(3, 100, 35)],
        [edge(1, 1, 2, 100.0), edge(2, 2, 3, 35.0)],
    )
    route = RouteAssembler(snapshot, SPEEDS).assemble(shortest_path(snapshot, 1, 3), "walking")
    assert route.distance_m == pytest.approx(135.0, abs=0.01)
    assert route.duration_s == 100
    assert route.profile == "walking"

    slower = RouteAssembler(snapshot, SPEEDS).assemble(shortest_path(snapshot, 1, 3), "wheelchair")
    assert slower.duration_s == 123


def test_duration_rounds_half_up() -> None:
    assert duration_for(2.5, "unit", {"unit": 1.0}) == 3
    assert duration_for(2.49, "unit", {"unit": 1.0}) == 2
    assert duration_for(0.0, "unit", {"unit": 1.0}) == 0


def test_unknown_profile_is_invalid() -> None:
    snapshot = _bent_graph()
    with pytest.raises(InvalidInput):
        RouteAssembler(snapshot, SPEEDS).assemble(shortest_path(snapshot, 1, 3), "skateboard")
    with pytest.raises(InvalidInput):
        speed_for_profile("skateboard", SPEEDS)


def test_missing_path_is_not_found() -> None:
    with pytest.raises(NotFound):
        RouteAssembler(_bent_graph(), SPEEDS).assemble(None, "walking")


def test_zero_length_route_is_a_point() -> None:
    snapshot = _bent_graph()
    route = RouteAssembler(snapshot, SPEEDS).assemble(shortest_path(snapshot, 2, 2), "walking", three_d=True)
    assert route.geometry["type"] == "Point"
    assert route.geometry["coordinates"] == pytest.approx(list(lonlat(100, 0)) + [20.0])
    assert route.distance_m == 0.0
    assert route.duration_s == 0
    assert route.segments == []


def test_three_d_route_interpolates_between_node_altitudes() -> None:
    snapshot = _bent_graph()
    route = RouteAssembler(snapshot, SPEEDS).assemble(shortest_path(snapshot, 1, 3), "walking", three_d=True)
    coords = route.geometry["coordinates"]
    assert all(len(c) == 3 for c in coords)
    assert coords[0][2] == 10.0
    assert coords[1][2] == 20.0
    # node 3 has no altitude and falls back to 0
    assert coords[-1][2] == 0.0
    assert 0.0 < coords[2][2] < 20.0
