import pytest

from wayfinder.errors import GraphUnavailable, InvalidInput, NoPathError, NotFound
from wayfinder.loader import GraphStore
from wayfinder.services.resolver import ResolutionMode
from wayfinder.services.routing import RoutingService, edge_geojson, node_geojson

from .helpers import StaticLoader, edge, lonlat, node


def _service(nodes, edges=(), features=()):
    return RoutingService(GraphStore(StaticLoader(nodes, edges, features), retries=1, retry_delay_s=0))


@pytest.fixture()
def abc_service():
    # A(1) --5-- B(2) --7-- C(3), distances in meters match the costs
    return _service(
        [node(1, 0, 0, name="A"), node(2, 5, 0, name="B"), node(3, 12, 0, name="C")],
        [edge(1, 1, 2, 5.0), edge(2, 2, 3, 7.0)],
        [{"id": 1, "node_id": 3, "name": "Cafe C", "category": "facility"}],
    )


def test_route_between_nodes(abc_service) -> None:
    lon, lat = lonlat(0, 0)
    result = abc_service.resolve_route(lon, lat, to_node_id=3)
    assert result.start.node_id == 1
    assert result.start.mode == ResolutionMode.direct
    assert result.end_node == 3
    assert result.distance_m == pytest.approx(12.0, abs=0.001)
    assert [(s.edge_id, round(s.length_m, 3)) for s in result.segments] == [(1, 5.0), (2, 7.0)]
    assert result.route.cost == 12.0
    assert result.snapshot_version == 1
    assert result.alternatives == []


def test_route_to_feature(abc_service) -> None:
    lon, lat = lonlat(1, 1)
    result = abc_service.resolve_route(lon, lat, to_feature_id=1, profile="wheelchair")
    assert result.end_node == 3
    assert result.route.profile == "wheelchair"
    assert result.duration_s == 11


def test_disconnected_route_is_not_found() -> None:
    service = _service([node(1, 0, 0), node(2, 500, 0)])
    lon, lat = lonlat(0, 0)
    with pytest.raises(NoPathError):
        service.resolve_route(lon, lat, to_node_id=2)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"to_node_id": 3, "profile": "jetpack"},
        {"to_node_id": 3, "alternatives": 9},
        {"to_node_id": 3, "alternatives": -1},
        {},
    ],
)
def test_bad_requests_are_rejected_before_loading(kwargs) -> None:
    loader = StaticLoader([node(1, 0, 0)])
    service = RoutingService(GraphStore(loader, retries=1, retry_delay_s=0))
    lon, lat = lonlat(0, 0)
    with pytest.raises(InvalidInput):
        service.resolve_route(lon, lat, **kwargs)
    assert loader.calls == 0


def test_invalid_start_is_rejected(abc_service) -> None:
    with pytest.raises(InvalidInput):
        abc_service.resolve_route(0.0, 123.0, to_node_id=3)


def test_unknown_destination(abc_service) -> None:
    lon, lat = lonlat(0, 0)
    with pytest.raises(NotFound):
        abc_service.resolve_route(lon, lat, to_node_id=42)
    with pytest.raises(NotFound):
        abc_service.resolve_route(lon, lat, to_feature_id=42)


def test_graph_unavailable_when_nothing_loads() -> None:
    class BrokenLoader:
        def load(self, version):
            raise OSError("no graph")

    service = RoutingService(GraphStore(BrokenLoader(), retries=1, retry_delay_s=0))
    lon, lat = lonlat(0, 0)
    with pytest.raises(GraphUnavailable):
        service.resolve_route(lon, lat, to_node_id=1)


def test_three_d_route_carries_altitudes() -> None:
    service = _service(
        [node(1, 0, 0, altitude_m=100.0), node(2, 10, 0, altitude_m=104.0)],
        [edge(1, 1, 2, 10.0)],
    )
    lon, lat = lonlat(0, 0)
    result = service.resolve_route(lon, lat, to_node_id=2, three_d=True)
    assert [c[2] for c in result.geometry["coordinates"]] == [100.0, 104.0]


def test_graph_area_by_bbox_and_category() -> None:
    service = _service(
        [node(1, 0, 0), node(2, 50, 0), node(3, 500, 0)],
        [edge(1, 1, 2, 50.0, category="walkway"), edge(2, 2, 3, 450.0, category="road")],
    )
    everything = service.query_graph_in_area()
    assert [n.node_id for n in everything.nodes] == [1, 2, 3]
    assert [e.edge_id for e in everything.edges] == [1, 2]

    min_lon, min_lat = lonlat(-10, -10)
    max_lon, max_lat = lonlat(60, 10)
    area = service.query_graph_in_area((min_lon, min_lat, max_lon, max_lat))
    assert [n.node_id for n in area.nodes] == [1, 2]
    # edge 2 touches the box at node 2
    assert [e.edge_id for e in area.edges] == [1, 2]
    assert area.snapshot_version == 1

    roads = service.query_graph_in_area(category="road")
    assert [e.edge_id for e in roads.edges] == [2]


def test_geojson_helpers() -> None:
    loader = StaticLoader([node(1, 0, 0, altitude_m=7.0), node(2, 10, 0)], [edge(1, 1, 2, 10.0)])
    snapshot = loader.load(1)
    assert node_geojson(snapshot.nodes[1])["coordinates"] == list(lonlat(0, 0))
    assert node_geojson(snapshot.nodes[1], three_d=True)["coordinates"][2] == 7.0
    line = edge_geojson(snapshot.edges[1], snapshot, three_d=True)
    assert [c[2] for c in line["coordinates"]] == [7.0, 0.0]
    assert all(len(c) == 2 for c in edge_geojson(snapshot.edges[1], snapshot)["coordinates"])
