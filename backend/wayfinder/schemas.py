from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Coordinate(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class RouteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_location: Coordinate = Field(..., alias="from")
    to: Optional[Union[int, str]] = Field(None, description="node id or 'node:<id>'")
    to_node_id: Optional[int] = Field(None, ge=1)
    to_feature_id: Optional[int] = Field(None, ge=1)
    profile: Optional[str] = None
    directed: bool = True
    alternatives: int = Field(0, ge=0)
    three_d: bool = False

    @model_validator(mode="after")
    def _one_destination(self) -> "RouteRequest":
        given = [v for v in (self.to, self.to_node_id, self.to_feature_id) if v is not None]
        if len(given) != 1:
            raise ValueError("provide exactly one of to, to_node_id, to_feature_id")
        return self


class RouteSegmentOut(BaseModel):
    edge_id: int
    length_m: float
    from_node: int
    to_node: int


class RouteOut(BaseModel):
    distance_m: float
    duration_s: int
    profile: str
    cost: float
    geometry: dict
    nodes: list[int]
    segments: list[RouteSegmentOut]


class StartOut(BaseModel):
    lon: float
    lat: float
    node_id: int
    mode: Literal["direct", "entry-fallback", "nearest-unconstrained"]
    distance_m: float


class RouteResponse(RouteOut):
    start: StartOut
    end_node: int
    graph_version: int
    alternatives: list[RouteOut] = []


class PaginationOut(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_previous_page: bool


class FeatureOut(BaseModel):
    id: int
    node_id: int
    category: Optional[str] = None
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    rating: Optional[float] = None
    geometry: dict
    distance_m: Optional[float] = None


class FeaturePage(BaseModel):
    items: list[FeatureOut]
    pagination: PaginationOut


class NodeOut(BaseModel):
    id: int
    name: Optional[str] = None
    altitude_m: Optional[float] = None
    geometry: dict


class EdgeOut(BaseModel):
    id: int
    source: int
    target: int
    cost: float
    reverse_cost: Optional[float] = None
    one_way: bool
    category: Optional[str] = None
    length_m: float
    geometry: dict


class GraphAreaResponse(BaseModel):
    graph_version: int
    nodes: list[NodeOut]
    edges: list[EdgeOut]


class GraphStatus(BaseModel):
    loaded: bool
    version: Optional[int] = None
    nodes: int = 0
    edges: int = 0
    features: int = 0
