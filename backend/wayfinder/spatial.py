from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Set, Tuple

from shapely.geometry import LineString, Point, box
from shapely.strtree import STRtree

from .utils import BBox, from_local_xy, haversine_m, normalize_coordinate, radius_bboxes, to_local_xy

if TYPE_CHECKING:
    from .graph import Edge, Node


@dataclass(frozen=True)
class NodeHit:
    node: "Node"
    distance_m: float


@dataclass(frozen=True)
class EdgeHit:
    edge: "Edge"
    point: Tuple[float, float]  # closest (lon, lat) on the edge geometry
    distance_m: float


class SpatialIndex:
    """Nearest-neighbour and bounding-box lookups over nodes and edges.

    The STR trees work in raw lon/lat degrees and only propose candidates;
    every reported distance is a haversine distance in meters.
    """

    def __init__(self, nodes: Sequence["Node"], edges: Sequence["Edge"]) -> None:
        self._nodes = list(nodes)
        self._edges = list(edges)
        self._node_tree = STRtree([Point(n.lon, n.lat) for n in self._nodes]) if self._nodes else None
        self._edge_tree = (
            STRtree([LineString([(v[0], v[1]) for v in e.geometry]) for e in self._edges])
            if self._edges
            else None
        )

    @property
    def is_empty(self) -> bool:
        return self._node_tree is None

    def nearest_node(self, lon: float, lat: float) -> Optional[NodeHit]:
        if self._node_tree is None:
            return None
        lon, lat = normalize_coordinate(lon, lat)
        candidate = self._nodes[int(self._node_tree.nearest(Point(lon, lat)))]
        best = NodeHit(candidate, _node_distance(candidate, lon, lat))
        for idx in self._candidates(self._node_tree, lon, lat, best.distance_m):
            node = self._nodes[idx]
            dist = _node_distance(node, lon, lat)
            if (dist, node.node_id) < (best.distance_m, best.node.node_id):
                best = NodeHit(node, dist)
        return best

    def nearest_among(self, nodes: Iterable["Node"], lon: float, lat: float) -> Optional[NodeHit]:
        lon, lat = normalize_coordinate(lon, lat)
        best: Optional[NodeHit] = None
        for node in nodes:
            dist = _node_distance(node, lon, lat)
            if best is None or (dist, node.node_id) < (best.distance_m, best.node.node_id):
                best = NodeHit(node, dist)
        return best

    def nodes_within(self, lon: float, lat: float, radius_m: float) -> List[NodeHit]:
        if self._node_tree is None or radius_m < 0:
            return []
        lon, lat = normalize_coordinate(lon, lat)
        hits = []
        for idx in self._candidates(self._node_tree, lon, lat, radius_m):
            node = self._nodes[idx]
            dist = _node_distance(node, lon, lat)
            if dist <= radius_m:
                hits.append(NodeHit(node, dist))
        hits.sort(key=lambda h: (h.distance_m, h.node.node_id))
        return hits

    def nearest_edge(self, lon: float, lat: float) -> Optional[EdgeHit]:
        if self._edge_tree is None:
            return None
        lon, lat = normalize_coordinate(lon, lat)
        candidate = self._edges[int(self._edge_tree.nearest(Point(lon, lat)))]
        best = _closest_on_edge(candidate, lon, lat)
        for idx in self._candidates(self._edge_tree, lon, lat, best.distance_m):
            hit = _closest_on_edge(self._edges[idx], lon, lat)
            if (hit.distance_m, hit.edge.edge_id) < (best.distance_m, best.edge.edge_id):
                best = hit
        return best

    def nodes_in_bbox(self, bbox: BBox) -> List["Node"]:
        if self._node_tree is None:
            return []
        found = self._node_tree.query(box(*bbox), predicate="intersects")
        return sorted((self._nodes[int(i)] for i in found), key=lambda n: n.node_id)

    def edges_in_bbox(self, bbox: BBox) -> List["Edge"]:
        if self._edge_tree is None:
            return []
        found = self._edge_tree.query(box(*bbox), predicate="intersects")
        return sorted((self._edges[int(i)] for i in found), key=lambda e: e.edge_id)

    @staticmethod
    def _candidates(tree: STRtree, lon: float, lat: float, radius_m: float) -> Set[int]:
        indices: Set[int] = set()
        for bounds in radius_bboxes(lon, lat, radius_m):
            indices.update(int(i) for i in tree.query(box(*bounds)))
        return indices


def _node_distance(node: "Node", lon: float, lat: float) -> float:
    return haversine_m(lat, lon, node.lat, node.lon)


def _closest_on_edge(edge: "Edge", lon: float, lat: float) -> EdgeHit:
    line = LineString([to_local_xy(v[0], v[1], lon, lat) for v in edge.geometry])
    nearest = line.interpolate(line.project(Point(0.0, 0.0)))
    plon, plat = from_local_xy(nearest.x, nearest.y, lon, lat)
    return EdgeHit(edge, (plon, plat), haversine_m(lat, lon, plat, plon))
