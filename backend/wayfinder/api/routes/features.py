from fastapi import APIRouter, Depends, Query

from ...api import deps
from ...config import settings
from ...errors import WayfinderError
from ...graph import GraphSnapshot
from ...schemas import FeatureOut, FeaturePage, PaginationOut
from ...services.features import FeatureHit, FeatureService, Page
from ...services.routing import node_geojson
from ...utils import parse_bbox

router = APIRouter(prefix="/features", tags=["features"])


def _serialize_page(page: Page[FeatureHit], three_d: bool) -> FeaturePage:
    p = page.pagination
    return FeaturePage(
        items=[
            FeatureOut(
                id=h.feature.feature_id,
                node_id=h.feature.node_id,
                category=h.feature.category,
                name=h.feature.name,
                description=h.feature.description,
                image_url=h.feature.image_url,
                rating=h.feature.rating,
                geometry=node_geojson(h.node, three_d),
                distance_m=h.distance_m,
            )
            for h in page.items
        ],
        pagination=PaginationOut(
            current_page=p.current_page,
            total_pages=p.total_pages,
            total_items=p.total_items,
            items_per_page=p.items_per_page,
            has_next_page=p.has_next_page,
            has_previous_page=p.has_previous_page,
        ),
    )


@router.get("", response_model=FeaturePage)
def list_features(
    *,
    category: str | None = Query(default=None),
    q: str | None = Query(default=None),
    bbox: str | None = Query(default=None, description="minLon,minLat,maxLon,maxLat"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=settings.features_max_limit),
    three_d: bool = Query(default=False),
    _subject: str = Depends(deps.get_current_subject),
) -> FeaturePage:
    try:
        box = parse_bbox(bbox)
        snapshot: GraphSnapshot = deps.get_snapshot()
        result = FeatureService(snapshot).list_features(
            category=category, q=q, bbox=box, page=page, limit=limit
        )
    except WayfinderError as exc:
        raise deps.http_error(exc)
    return _serialize_page(result, three_d)


@router.get("/nearest", response_model=FeaturePage)
def nearest_features(
    *,
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    category: str | None = Query(default=None),
    radius_m: float | None = Query(default=None, ge=0.0),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=settings.nearest_max_limit),
    three_d: bool = Query(default=False),
    _subject: str = Depends(deps.get_current_subject),
) -> FeaturePage:
    try:
        snapshot: GraphSnapshot = deps.get_snapshot()
        result = FeatureService(snapshot).nearest_features(
            lon=lon, lat=lat, category=category, radius_m=radius_m, page=page, limit=limit
        )
    except WayfinderError as exc:
        raise deps.http_error(exc)
    return _serialize_page(result, three_d)
