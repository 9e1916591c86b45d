from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

from ..config import settings
from ..errors import InvalidInput
from ..graph import Feature, GraphSnapshot, Node
from ..utils import BBox, haversine_m, is_valid_coordinate

T = TypeVar("T")


@dataclass(frozen=True)
class Pagination:
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_previous_page: bool


@dataclass
class Page(Generic[T]):
    items: List[T]
    pagination: Pagination


@dataclass(frozen=True)
class FeatureHit:
    feature: Feature
    node: Node
    distance_m: Optional[float] = None


def check_page_bounds(page: int, limit: int, max_limit: int) -> None:
    if page < 1:
        raise InvalidInput("page must be >= 1")
    if limit < 1 or limit > max_limit:
        raise InvalidInput(f"limit must be between 1 and {max_limit}")


def paginate(items: List[T], page: int, limit: int, max_limit: int) -> Page[T]:
    check_page_bounds(page, limit, max_limit)
    total_items = len(items)
    total_pages = max(1, math.ceil(total_items / limit))
    if page > total_pages:
        raise InvalidInput(f"page {page} is past the last page ({total_pages})")
    offset = (page - 1) * limit
    return Page(
        items=items[offset:offset + limit],
        pagination=Pagination(
            current_page=page,
            total_pages=total_pages,
            total_items=total_items,
            items_per_page=limit,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        ),
    )


@dataclass
class FeatureQuery:
    """Composable feature filter.

    Each method narrows the query and returns it, so callers can chain only
    the filters they were given::

        FeatureQuery().of_category("shrine").near(lon, lat, radius_m=100)
    """

    category: Optional[str] = None
    text: Optional[str] = None
    bbox: Optional[BBox] = None
    point: Optional[Tuple[float, float]] = None
    radius_m: Optional[float] = None
    _extra: List[Callable[[FeatureHit], bool]] = field(default_factory=list)

    def of_category(self, category: Optional[str]) -> "FeatureQuery":
        if category:
            self.category = category
        return self

    def matching(self, text: Optional[str]) -> "FeatureQuery":
        if text:
            self.text = text
        return self

    def within_bbox(self, bbox: Optional[BBox]) -> "FeatureQuery":
        if bbox is not None:
            self.bbox = bbox
        return self

    def near(self, lon: float, lat: float, radius_m: Optional[float] = None) -> "FeatureQuery":
        if not is_valid_coordinate(lon, lat):
            raise InvalidInput(f"Invalid coordinate ({lon}, {lat})")
        if radius_m is not None and (not math.isfinite(radius_m) or radius_m < 0):
            raise InvalidInput("radius_m must be >= 0")
        self.point = (lon, lat)
        self.radius_m = radius_m
        return self

    def where(self, predicate: Callable[[FeatureHit], bool]) -> "FeatureQuery":
        self._extra.append(predicate)
        return self

    def run(self, snapshot: GraphSnapshot) -> List[FeatureHit]:
        """All matches, by distance when a point was given, else by id."""
        predicates = self._predicates()
        hits = [h for h in self._candidates(snapshot) if all(p(h) for p in predicates)]
        if self.point is not None:
            hits.sort(key=lambda h: (h.distance_m, h.feature.feature_id))
        else:
            hits.sort(key=lambda h: h.feature.feature_id)
        return hits

    def _candidates(self, snapshot: GraphSnapshot) -> Iterable[FeatureHit]:
        if self.point is not None and self.radius_m is not None:
            lon, lat = self.point
            for node_hit in snapshot.index.nodes_within(lon, lat, self.radius_m):
                for feature in snapshot.features_at(node_hit.node.node_id):
                    yield FeatureHit(feature, node_hit.node, node_hit.distance_m)
            return
        if self.bbox is not None:
            nodes = snapshot.index.nodes_in_bbox(self.bbox)
        else:
            nodes = [snapshot.nodes[f.node_id] for f in snapshot.features.values()]
            nodes = list({n.node_id: n for n in nodes}.values())
        for node in nodes:
            for feature in snapshot.features_at(node.node_id):
                yield FeatureHit(feature, node, self._distance_to(node))

    def _distance_to(self, node: Node) -> Optional[float]:
        if self.point is None:
            return None
        lon, lat = self.point
        return haversine_m(lat, lon, node.lat, node.lon)

    def _predicates(self) -> List[Callable[[FeatureHit], bool]]:
        predicates: List[Callable[[FeatureHit], bool]] = []
        if self.category:
            predicates.append(lambda h: h.feature.category == self.category)
        if self.text:
            needle = self.text.casefold()
            predicates.append(
                lambda h: needle in (h.feature.name or "").casefold()
                or needle in (h.feature.description or "").casefold()
            )
        if self.bbox is not None:
            min_lon, min_lat, max_lon, max_lat = self.bbox
            predicates.append(
                lambda h: min_lon <= h.node.lon <= max_lon and min_lat <= h.node.lat <= max_lat
            )
        return predicates + self._extra


class FeatureService:
    def __init__(self, snapshot: GraphSnapshot) -> None:
        self.snapshot = snapshot

    def list_features(
        self,
        *,
        category: Optional[str] = None,
        q: Optional[str] = None,
        bbox: Optional[BBox] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[FeatureHit]:
        check_page_bounds(page, limit, settings.features_max_limit)
        query = FeatureQuery().of_category(category).matching(q).within_bbox(bbox)
        return paginate(query.run(self.snapshot), page, limit, settings.features_max_limit)

    def nearest_features(
        self,
        *,
        lon: float,
        lat: float,
        category: Optional[str] = None,
        radius_m: Optional[float] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[FeatureHit]:
        check_page_bounds(page, limit, settings.nearest_max_limit)
        query = FeatureQuery().near(lon, lat, radius_m).of_category(category)
        return paginate(query.run(self.snapshot), page, limit, settings.nearest_max_limit)
