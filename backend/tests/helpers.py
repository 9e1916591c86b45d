from __future__ import annotations

from typing import Any, Iterable

from wayfinder.config import settings
from wayfinder.graph import GraphSnapshot
from wayfinder.security import create_access_token
from wayfinder.utils import from_local_xy

# Local test graphs are laid out in meters around a point on the equator.
ORIGIN_LON = 100.0
ORIGIN_LAT = 0.0


def auth_header(subject: str = "visitor") -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject)}"}


def service_header() -> dict[str, str]:
    return {"X-Service-Token": settings.service_token.get_secret_value()}


def lonlat(x: float, y: float) -> tuple[float, float]:
    return from_local_xy(x, y, ORIGIN_LON, ORIGIN_LAT)


def node(node_id: int, x: float, y: float, **extra: Any) -> dict[str, Any]:
    lon, lat = lonlat(x, y)
    return {"id": node_id, "lon": lon, "lat": lat, **extra}


def edge(edge_id: int, source: int, target: int, cost: float, **extra: Any) -> dict[str, Any]:
    return {"id": edge_id, "source": source, "target": target, "cost": cost, **extra}


def make_snapshot(
    nodes: Iterable[dict[str, Any]],
    edges: Iterable[dict[str, Any]] = (),
    features: Iterable[dict[str, Any]] = (),
    version: int = 1,
) -> GraphSnapshot:
    return GraphSnapshot.from_records(list(nodes), list(edges), list(features), version=version)


class StaticLoader:
    def __init__(self, nodes, edges=(), features=()) -> None:
        self.nodes = list(nodes)
        self.edges = list(edges)
        self.features = list(features)
        self.calls = 0

    def load(self, version: int) -> GraphSnapshot:
        self.calls += 1
        return GraphSnapshot.from_records(self.nodes, self.edges, self.features, version=version)
