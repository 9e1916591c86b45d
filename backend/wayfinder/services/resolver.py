from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from ..config import settings
from ..errors import InvalidInput, NotFound
from ..graph import GraphSnapshot
from ..utils import is_valid_coordinate

LOGGER = logging.getLogger("wayfinder.resolver")


class ResolutionMode(str, enum.Enum):
    direct = "direct"
    entry_fallback = "entry-fallback"
    nearest_unconstrained = "nearest-unconstrained"


@dataclass(frozen=True)
class EphemeralStart:
    """The caller's coordinate, snapped for the lifetime of one request.

    It is never added to the snapshot; the solver only ever sees node_id.
    """

    lon: float
    lat: float
    node_id: int
    mode: ResolutionMode
    distance_m: float


class StartPointResolver:
    def __init__(
        self,
        snapshot: GraphSnapshot,
        *,
        threshold_m: float | None = None,
        entry_pattern: str | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.threshold_m = settings.entry_distance_threshold_m if threshold_m is None else threshold_m
        self.entry_pattern = settings.entry_name_pattern if entry_pattern is None else entry_pattern

    def resolve(self, lon: float, lat: float) -> EphemeralStart:
        if not is_valid_coordinate(lon, lat):
            raise InvalidInput(f"Invalid start coordinate ({lon}, {lat})")
        index = self.snapshot.index
        nearest = index.nearest_node(lon, lat)
        if nearest is None:
            raise NotFound("No nodes near the given coordinate")
        if nearest.distance_m <= self.threshold_m:
            return EphemeralStart(lon, lat, nearest.node.node_id, ResolutionMode.direct, nearest.distance_m)

        entry = index.nearest_among(self.snapshot.entry_nodes(self.entry_pattern), lon, lat)
        if entry is not None:
            LOGGER.debug(
                "start %.1f m from node %s; using entry node %s",
                nearest.distance_m,
                nearest.node.node_id,
                entry.node.node_id,
            )
            return EphemeralStart(lon, lat, entry.node.node_id, ResolutionMode.entry_fallback, entry.distance_m)

        return EphemeralStart(
            lon, lat, nearest.node.node_id, ResolutionMode.nearest_unconstrained, nearest.distance_m
        )


class FeatureResolver(Protocol):
    def node_id_for(self, feature_id: int) -> int:
        ...


class SnapshotFeatureResolver:
    """Reads feature -> node links from the snapshot the query runs on."""

    def __init__(self, snapshot: GraphSnapshot) -> None:
        self.snapshot = snapshot

    def node_id_for(self, feature_id: int) -> int:
        return self.snapshot.feature(feature_id).node_id


def parse_destination(to: int | str | None) -> Optional[int]:
    """Accept a node id or the 'node:<id>' form."""
    if to is None:
        return None
    if isinstance(to, bool):
        raise InvalidInput("Invalid destination")
    if isinstance(to, int):
        return to
    text = str(to).strip()
    if text.startswith("node:"):
        text = text[len("node:"):]
    try:
        return int(text)
    except ValueError:
        raise InvalidInput("Invalid destination. Provide to_feature_id or to=node:<id>") from None


def resolve_destination(
    snapshot: GraphSnapshot,
    features: FeatureResolver,
    *,
    to_node_id: Optional[int] = None,
    to_feature_id: Optional[int] = None,
) -> int:
    if to_feature_id is not None:
        try:
            node_id = features.node_id_for(to_feature_id)
        except NotFound:
            raise NotFound(f"Feature {to_feature_id} not found") from None
    elif to_node_id is not None:
        node_id = to_node_id
    else:
        raise InvalidInput("Provide a destination node or feature")
    snapshot.node(node_id)
    return node_id
