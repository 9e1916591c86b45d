from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from ..config import settings
from ..errors import InvalidInput, NotFound
from ..graph import GraphSnapshot
from ..utils import round_half_up
from .elevation import interpolate_line
from .solver import PathResult


@dataclass(frozen=True)
class RouteSegment:
    edge_id: int
    length_m: float
    from_node: int
    to_node: int


@dataclass
class AssembledRoute:
    geometry: dict
    distance_m: float
    duration_s: int
    profile: str
    cost: float
    node_ids: List[int]
    segments: List[RouteSegment] = field(default_factory=list)


def speed_for_profile(profile: str, speeds: Optional[Mapping[str, float]] = None) -> float:
    table = settings.profile_speeds_mps if speeds is None else speeds
    speed = table.get(profile)
    if speed is None or speed <= 0:
        raise InvalidInput(f"Unknown profile '{profile}'; expected one of {sorted(table)}")
    return speed


def duration_for(distance_m: float, profile: str, speeds: Optional[Mapping[str, float]] = None) -> int:
    return round_half_up((distance_m or 0.0) / speed_for_profile(profile, speeds))


class RouteAssembler:
    """Turns a solver path into one continuous, travel-ordered route."""

    def __init__(self, snapshot: GraphSnapshot, speeds: Optional[Mapping[str, float]] = None) -> None:
        self.snapshot = snapshot
        self.speeds = speeds

    def assemble(self, path: Optional[PathResult], profile: str, *, three_d: bool = False) -> AssembledRoute:
        speed_for_profile(profile, self.speeds)
        if path is None:
            raise NotFound("No path found")

        if not path.steps:
            node = self.snapshot.node(path.source)
            point = [node.lon, node.lat]
            if three_d:
                point.append(node.altitude_m if node.altitude_m is not None else 0.0)
            return AssembledRoute(
                geometry={"type": "Point", "coordinates": point},
                distance_m=0.0,
                duration_s=0,
                profile=profile,
                cost=path.total_cost,
                node_ids=path.node_ids,
            )

        coords: List[List[float]] = []
        segments: List[RouteSegment] = []
        distance = 0.0
        for step in path.steps:
            edge = self.snapshot.edge(step.edge_id)
            vertices = edge.geometry if step.forward else tuple(reversed(edge.geometry))
            if three_d:
                oriented = interpolate_line(
                    vertices,
                    self._altitude(step.from_node),
                    self._altitude(step.to_node),
                )
            else:
                oriented = [[v[0], v[1]] for v in vertices]
            if coords and coords[-1][:2] == oriented[0][:2]:
                oriented = oriented[1:]
            coords.extend(oriented)

            length = self.snapshot.edge_lengths_m[edge.edge_id]
            segments.append(RouteSegment(edge.edge_id, length, step.from_node, step.to_node))
            distance += length

        return AssembledRoute(
            geometry={"type": "LineString", "coordinates": coords},
            distance_m=distance,
            duration_s=duration_for(distance, profile, self.speeds),
            profile=profile,
            cost=path.total_cost,
            node_ids=path.node_ids,
            segments=segments,
        )

    def _altitude(self, node_id: int) -> float:
        altitude = self.snapshot.node(node_id).altitude_m
        return altitude if altitude is not None else 0.0
