from fastapi import APIRouter, Depends

from ...api import deps
from ...errors import WayfinderError
from ...schemas import RouteOut, RouteRequest, RouteResponse, RouteSegmentOut, StartOut
from ...services.assembler import AssembledRoute
from ...services.resolver import parse_destination
from ...services.routing import RoutingService

router = APIRouter(prefix="/routes", tags=["routing"])


def _serialize_route(route: AssembledRoute) -> dict:
    return RouteOut(
        distance_m=route.distance_m,
        duration_s=route.duration_s,
        profile=route.profile,
        cost=route.cost,
        geometry=route.geometry,
        nodes=route.node_ids,
        segments=[
            RouteSegmentOut(
                edge_id=s.edge_id,
                length_m=s.length_m,
                from_node=s.from_node,
                to_node=s.to_node,
            )
            for s in route.segments
        ],
    ).model_dump()


@router.post("", response_model=RouteResponse)
def compute_route(
    payload: RouteRequest,
    _subject: str = Depends(deps.get_current_subject),
) -> RouteResponse:
    service = RoutingService()
    try:
        to_node_id = payload.to_node_id
        if payload.to is not None:
            to_node_id = parse_destination(payload.to)
        result = service.resolve_route(
            payload.from_location.lon,
            payload.from_location.lat,
            to_node_id=to_node_id,
            to_feature_id=payload.to_feature_id,
            profile=payload.profile,
            directed=payload.directed,
            alternatives=payload.alternatives,
            three_d=payload.three_d,
        )
    except WayfinderError as exc:
        raise deps.http_error(exc)
    return RouteResponse(
        **_serialize_route(result.route),
        start=StartOut(
            lon=result.start.lon,
            lat=result.start.lat,
            node_id=result.start.node_id,
            mode=result.start.mode.value,
            distance_m=result.start.distance_m,
        ),
        end_node=result.end_node,
        graph_version=result.snapshot_version,
        alternatives=[RouteOut(**_serialize_route(r)) for r in result.alternatives],
    )
