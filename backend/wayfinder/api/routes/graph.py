from fastapi import APIRouter, Depends, Query

from ...api import deps
from ...errors import WayfinderError
from ...schemas import EdgeOut, GraphAreaResponse, NodeOut
from ...services.routing import RoutingService, edge_geojson, node_geojson
from ...utils import parse_bbox

router = APIRouter(prefix="/graph", tags=["graph"])


@router.get("", response_model=GraphAreaResponse)
def get_graph(
    *,
    bbox: str | None = Query(default=None, description="minLon,minLat,maxLon,maxLat"),
    category: str | None = Query(default=None),
    three_d: bool = Query(default=False),
    _subject: str = Depends(deps.get_current_subject),
) -> GraphAreaResponse:
    try:
        area = RoutingService().query_graph_in_area(parse_bbox(bbox), category)
    except WayfinderError as exc:
        raise deps.http_error(exc)
    snapshot = area.snapshot
    return GraphAreaResponse(
        graph_version=area.snapshot_version,
        nodes=[
            NodeOut(id=n.node_id, name=n.name, altitude_m=n.altitude_m, geometry=node_geojson(n, three_d))
            for n in area.nodes
        ],
        edges=[
            EdgeOut(
                id=e.edge_id,
                source=e.source,
                target=e.target,
                cost=e.cost,
                reverse_cost=e.reverse_cost,
                one_way=e.one_way,
                category=e.category,
                length_m=snapshot.edge_lengths_m[e.edge_id],
                geometry=edge_geojson(e, snapshot, three_d),
            )
            for e in area.edges
        ],
    )
