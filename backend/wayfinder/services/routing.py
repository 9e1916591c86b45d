from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from ..config import settings
from ..errors import InvalidInput
from ..graph import Edge, GraphSnapshot, Node
from ..loader import GraphStore, graph_store
from ..utils import BBox, is_valid_coordinate
from .assembler import AssembledRoute, RouteAssembler, speed_for_profile
from .elevation import to_3d
from .resolver import (
    EphemeralStart,
    FeatureResolver,
    SnapshotFeatureResolver,
    StartPointResolver,
    resolve_destination,
)
from .solver import alternative_paths

LOGGER = logging.getLogger("wayfinder.routing")


@dataclass
class RouteResult:
    route: AssembledRoute
    start: EphemeralStart
    end_node: int
    snapshot_version: int
    alternatives: List[AssembledRoute] = field(default_factory=list)

    @property
    def distance_m(self) -> float:
        return self.route.distance_m

    @property
    def duration_s(self) -> int:
        return self.route.duration_s

    @property
    def geometry(self) -> dict:
        return self.route.geometry

    @property
    def segments(self):
        return self.route.segments


@dataclass
class GraphArea:
    nodes: List[Node]
    edges: List[Edge]
    snapshot: GraphSnapshot

    @property
    def snapshot_version(self) -> int:
        return self.snapshot.version


class RoutingService:
    def __init__(self, store: GraphStore | None = None, feature_resolver: FeatureResolver | None = None) -> None:
        self.store = store or graph_store
        self.feature_resolver = feature_resolver

    def _resolve_graph(self) -> GraphSnapshot:
        return self.store.current_snapshot()

    def resolve_route(
        self,
        from_lon: float,
        from_lat: float,
        *,
        to_node_id: Optional[int] = None,
        to_feature_id: Optional[int] = None,
        profile: Optional[str] = None,
        directed: bool = True,
        alternatives: int = 0,
        three_d: bool = False,
    ) -> RouteResult:
        profile = profile or settings.default_profile
        if not is_valid_coordinate(from_lon, from_lat):
            raise InvalidInput(f"Invalid start coordinate ({from_lon}, {from_lat})")
        speed_for_profile(profile)
        if alternatives < 0 or alternatives > settings.max_alternatives:
            raise InvalidInput(f"alternatives must be between 0 and {settings.max_alternatives}")
        if to_node_id is None and to_feature_id is None:
            raise InvalidInput("Provide to_node_id or to_feature_id")

        graph = self._resolve_graph()
        start = StartPointResolver(graph).resolve(from_lon, from_lat)
        end_node = resolve_destination(
            graph,
            self.feature_resolver or SnapshotFeatureResolver(graph),
            to_node_id=to_node_id,
            to_feature_id=to_feature_id,
        )
        deadline = time.monotonic() + settings.route_timeout_s if settings.route_timeout_s > 0 else None
        paths = alternative_paths(
            graph,
            start.node_id,
            end_node,
            alternatives,
            directed=directed,
            penalty=settings.alternative_penalty,
            deadline=deadline,
        )
        assembler = RouteAssembler(graph)
        routes = [assembler.assemble(p, profile, three_d=three_d) for p in paths]
        LOGGER.info(
            "route %s -> %s (%s) %.1f m over %d edges, graph v%d",
            start.node_id,
            end_node,
            start.mode.value,
            routes[0].distance_m,
            len(routes[0].segments),
            graph.version,
        )
        return RouteResult(
            route=routes[0],
            start=start,
            end_node=end_node,
            snapshot_version=graph.version,
            alternatives=routes[1:],
        )

    def query_graph_in_area(self, bbox: BBox | None = None, category: str | None = None) -> GraphArea:
        graph = self._resolve_graph()
        if bbox is None:
            nodes = sorted(graph.nodes.values(), key=lambda n: n.node_id)
            edges = list(graph.edges.values())
        else:
            nodes = graph.index.nodes_in_bbox(bbox)
            edges = graph.index.edges_in_bbox(bbox)
        if category:
            edges = [e for e in edges if e.category == category]
        return GraphArea(nodes=nodes, edges=edges, snapshot=graph)


def node_geojson(node: Node, three_d: bool = False) -> dict:
    geometry = {"type": "Point", "coordinates": [node.lon, node.lat]}
    return to_3d(geometry, z=node.altitude_m) if three_d else geometry


def edge_geojson(edge: Edge, snapshot: GraphSnapshot, three_d: bool = False) -> dict:
    if three_d:
        geometry = {"type": "LineString", "coordinates": [list(v) for v in edge.geometry]}
        return to_3d(
            geometry,
            z_start=_altitude_or_zero(snapshot, edge.source),
            z_end=_altitude_or_zero(snapshot, edge.target),
        )
    return {"type": "LineString", "coordinates": [[v[0], v[1]] for v in edge.geometry]}


def _altitude_or_zero(snapshot: GraphSnapshot, node_id: int) -> float:
    altitude = snapshot.node(node_id).altitude_m
    return altitude if altitude is not None else 0.0
