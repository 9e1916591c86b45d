from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import GraphIntegrityError, NotFound
from .spatial import SpatialIndex
from .utils import haversine_m, is_valid_coordinate, polyline_distance_m

Coordinate = Tuple[float, ...]


@dataclass(frozen=True)
class Node:
    node_id: int
    lon: float
    lat: float
    name: Optional[str] = None
    altitude_m: Optional[float] = None


@dataclass(frozen=True)
class Edge:
    edge_id: int
    source: int
    target: int
    cost: float
    reverse_cost: Optional[float]  # None: target -> source is not traversable
    geometry: Tuple[Coordinate, ...]
    category: Optional[str] = None

    @property
    def one_way(self) -> bool:
        return self.reverse_cost is None


@dataclass(frozen=True)
class Feature:
    feature_id: int
    node_id: int
    category: Optional[str]
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    rating: Optional[float] = None


@dataclass(frozen=True)
class Arc:
    edge_id: int
    tail: int
    head: int
    cost: float
    forward: bool


class GraphSnapshot:
    """Immutable view of the walkable graph used by one or more queries."""

    def __init__(
        self,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        features: Iterable[Feature] = (),
        *,
        version: int = 0,
        geometry_tolerance_m: float = 1.0,
    ) -> None:
        self.version = version
        problems: List[str] = []

        self.nodes: Dict[int, Node] = {}
        for node in nodes:
            if node.node_id in self.nodes:
                problems.append(f"duplicate node id {node.node_id}")
            elif not is_valid_coordinate(node.lon, node.lat):
                problems.append(f"node {node.node_id} has invalid position ({node.lon}, {node.lat})")
            self.nodes[node.node_id] = node

        self.edges: Dict[int, Edge] = {}
        for edge in sorted(edges, key=lambda e: e.edge_id):
            if edge.edge_id in self.edges:
                problems.append(f"duplicate edge id {edge.edge_id}")
                continue
            problems.extend(_edge_problems(edge, self.nodes, geometry_tolerance_m))
            self.edges[edge.edge_id] = edge

        self.features: Dict[int, Feature] = {}
        self._features_by_node: Dict[int, List[Feature]] = {}
        for feature in sorted(features, key=lambda f: f.feature_id):
            if feature.feature_id in self.features:
                problems.append(f"duplicate feature id {feature.feature_id}")
                continue
            if feature.node_id not in self.nodes:
                problems.append(f"feature {feature.feature_id} references missing node {feature.node_id}")
            self.features[feature.feature_id] = feature
            self._features_by_node.setdefault(feature.node_id, []).append(feature)

        if problems:
            raise GraphIntegrityError(problems)

        self.edge_lengths_m: Dict[int, float] = {
            edge_id: polyline_distance_m(edge.geometry) for edge_id, edge in self.edges.items()
        }
        self._directed: Dict[int, List[Arc]] = {}
        self._undirected: Dict[int, List[Arc]] = {}
        for edge in self.edges.values():
            self._directed.setdefault(edge.source, []).append(
                Arc(edge.edge_id, edge.source, edge.target, edge.cost, True)
            )
            if edge.reverse_cost is not None:
                self._directed.setdefault(edge.target, []).append(
                    Arc(edge.edge_id, edge.target, edge.source, edge.reverse_cost, False)
                )
            both = edge.cost if edge.reverse_cost is None else min(edge.cost, edge.reverse_cost)
            self._undirected.setdefault(edge.source, []).append(
                Arc(edge.edge_id, edge.source, edge.target, both, True)
            )
            self._undirected.setdefault(edge.target, []).append(
                Arc(edge.edge_id, edge.target, edge.source, both, False)
            )

        self.index = SpatialIndex(list(self.nodes.values()), list(self.edges.values()))
        self._entry_cache: Dict[str, Tuple[Node, ...]] = {}

    def __repr__(self) -> str:
        return (
            f"GraphSnapshot(version={self.version}, nodes={len(self.nodes)}, "
            f"edges={len(self.edges)}, features={len(self.features)})"
        )

    def node(self, node_id: int) -> Node:
        node = self.nodes.get(node_id)
        if node is None:
            raise NotFound(f"Node {node_id} not found")
        return node

    def edge(self, edge_id: int) -> Edge:
        edge = self.edges.get(edge_id)
        if edge is None:
            raise NotFound(f"Edge {edge_id} not found")
        return edge

    def feature(self, feature_id: int) -> Feature:
        feature = self.features.get(feature_id)
        if feature is None:
            raise NotFound(f"Feature {feature_id} not found")
        return feature

    def arcs(self, node_id: int, directed: bool = True) -> List[Arc]:
        table = self._directed if directed else self._undirected
        return table.get(node_id, [])

    def features_at(self, node_id: int) -> List[Feature]:
        return self._features_by_node.get(node_id, [])

    def entry_nodes(self, pattern: str) -> Tuple[Node, ...]:
        """Nodes whose name matches pattern, case-insensitively."""
        cached = self._entry_cache.get(pattern)
        if cached is None:
            regex = re.compile(pattern, re.IGNORECASE)
            cached = tuple(n for n in self.nodes.values() if n.name and regex.search(n.name))
            self._entry_cache[pattern] = cached
        return cached

    @classmethod
    def from_records(
        cls,
        nodes: Iterable[Mapping[str, Any]],
        edges: Iterable[Mapping[str, Any]],
        features: Iterable[Mapping[str, Any]] = (),
        *,
        version: int = 0,
        geometry_tolerance_m: float = 1.0,
    ) -> "GraphSnapshot":
        problems: List[str] = []
        parsed_nodes: Dict[int, Node] = {}
        for record in nodes:
            try:
                node = node_from_record(record)
            except (KeyError, TypeError, ValueError) as exc:
                problems.append(f"bad node record {dict(record)!r}: {exc}")
                continue
            parsed_nodes.setdefault(node.node_id, node)
            if parsed_nodes[node.node_id] is not node:
                problems.append(f"duplicate node id {node.node_id}")
        parsed_edges: List[Edge] = []
        for record in edges:
            try:
                parsed_edges.append(edge_from_record(record, parsed_nodes))
            except (KeyError, TypeError, ValueError) as exc:
                problems.append(f"bad edge record {dict(record)!r}: {exc}")
        parsed_features: List[Feature] = []
        for record in features:
            try:
                parsed_features.append(feature_from_record(record))
            except (KeyError, TypeError, ValueError) as exc:
                problems.append(f"bad feature record {dict(record)!r}: {exc}")
        if problems:
            raise GraphIntegrityError(problems)
        return cls(
            parsed_nodes.values(),
            parsed_edges,
            parsed_features,
            version=version,
            geometry_tolerance_m=geometry_tolerance_m,
        )

    @classmethod
    def from_json(cls, path: str | Path, *, version: int = 0, geometry_tolerance_m: float = 1.0) -> "GraphSnapshot":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_records(
            data.get("nodes", []),
            data.get("edges", []),
            data.get("features", []),
            version=version,
            geometry_tolerance_m=geometry_tolerance_m,
        )


def node_from_record(record: Mapping[str, Any]) -> Node:
    altitude = record.get("altitude_m")
    name = record.get("name")
    if name is not None and not isinstance(name, str):
        raise ValueError(f"node name must be a string, got {type(name).__name__}")
    return Node(
        node_id=int(record["id"]),
        lon=float(record["lon"]),
        lat=float(record["lat"]),
        name=name,
        altitude_m=float(altitude) if altitude is not None else None,
    )


def edge_from_record(record: Mapping[str, Any], nodes: Mapping[int, Node]) -> Edge:
    source = int(record["source"])
    target = int(record["target"])
    cost = float(record["cost"])
    raw_reverse = record.get("reverse_cost")
    # null means "same as cost"; negative disables the reverse direction
    if raw_reverse is None:
        reverse_cost: Optional[float] = cost
    else:
        reverse_cost = float(raw_reverse)
        if reverse_cost < 0:
            reverse_cost = None

    raw_geometry = record.get("geometry")
    if isinstance(raw_geometry, Mapping):
        if raw_geometry.get("type") != "LineString":
            raise ValueError("edge geometry must be a LineString")
        raw_geometry = raw_geometry.get("coordinates")
    if raw_geometry is None:
        if source not in nodes or target not in nodes:
            raise ValueError("edge without geometry must join known nodes")
        a, b = nodes[source], nodes[target]
        geometry: Tuple[Coordinate, ...] = ((a.lon, a.lat), (b.lon, b.lat))
    else:
        geometry = tuple(tuple(float(v) for v in vertex) for vertex in raw_geometry)

    return Edge(
        edge_id=int(record["id"]),
        source=source,
        target=target,
        cost=cost,
        reverse_cost=reverse_cost,
        geometry=geometry,
        category=record.get("category", record.get("type")),
    )


def feature_from_record(record: Mapping[str, Any]) -> Feature:
    rating = record.get("rating")
    return Feature(
        feature_id=int(record["id"]),
        node_id=int(record["node_id"]),
        category=record.get("category", record.get("type")),
        name=str(record["name"]),
        description=record.get("description"),
        image_url=record.get("image_url"),
        rating=float(rating) if rating is not None else None,
    )


def _edge_problems(edge: Edge, nodes: Mapping[int, Node], tolerance_m: float) -> List[str]:
    problems = []
    for end in (edge.source, edge.target):
        if end not in nodes:
            problems.append(f"edge {edge.edge_id} references missing node {end}")
    if not math.isfinite(edge.cost) or edge.cost < 0:
        problems.append(f"edge {edge.edge_id} has invalid cost {edge.cost}")
    if edge.reverse_cost is not None and not math.isfinite(edge.reverse_cost):
        problems.append(f"edge {edge.edge_id} has invalid reverse cost {edge.reverse_cost}")
    if len(edge.geometry) < 2 or any(len(v) < 2 for v in edge.geometry):
        problems.append(f"edge {edge.edge_id} geometry needs at least two (lon, lat) vertices")
        return problems
    if any(not is_valid_coordinate(v[0], v[1]) for v in edge.geometry):
        problems.append(f"edge {edge.edge_id} geometry has an invalid coordinate")
        return problems
    for end, vertex in ((edge.source, edge.geometry[0]), (edge.target, edge.geometry[-1])):
        node = nodes.get(end)
        if node is None:
            continue
        gap = haversine_m(node.lat, node.lon, vertex[1], vertex[0])
        if gap > tolerance_m:
            problems.append(
                f"edge {edge.edge_id} geometry ends {gap:.2f} m away from node {end}"
            )
    return problems
