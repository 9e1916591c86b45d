from __future__ import annotations

import json
from pathlib import Path

from sqlalchemy.orm import Session

from .config import settings
from .db import Base, SessionLocal, engine
from .models import PathEdge, PathNode, PlaceFeature


def _graph_data(name: str) -> dict:
    graph_path = Path(settings.graphs_dir) / f"{name}.json"
    if not graph_path.exists():
        raise FileNotFoundError(f"Graph {name} not found at {graph_path}")
    return json.loads(graph_path.read_text(encoding="utf-8"))


def _seed_nodes(db: Session, data: dict) -> None:
    if db.query(PathNode).count() > 0:
        return
    db.add_all(
        PathNode(
            id=node["id"],
            name=node.get("name"),
            lon=node["lon"],
            lat=node["lat"],
            altitude_m=node.get("altitude_m"),
        )
        for node in data.get("nodes", [])
    )


def _seed_edges(db: Session, data: dict) -> None:
    if db.query(PathEdge).count() > 0:
        return
    edges = []
    for edge in data.get("edges", []):
        geometry = edge.get("geometry")
        edges.append(
            PathEdge(
                id=edge["id"],
                source=edge["source"],
                target=edge["target"],
                cost=edge["cost"],
                reverse_cost=edge.get("reverse_cost"),
                category=edge.get("category"),
                geometry_geojson={"type": "LineString", "coordinates": geometry} if geometry else None,
            )
        )
    db.add_all(edges)


def _seed_features(db: Session, data: dict) -> None:
    if db.query(PlaceFeature).count() > 0:
        return
    db.add_all(
        PlaceFeature(
            id=feature["id"],
            node_id=feature["node_id"],
            category=feature.get("category"),
            name=feature["name"],
            description=feature.get("description"),
            image_url=feature.get("image_url"),
            rating=feature.get("rating"),
        )
        for feature in data.get("features", [])
    )


def seed(name: str | None = None) -> None:
    data = _graph_data(name or settings.default_graph_name)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        _seed_nodes(db, data)
        db.flush()
        _seed_edges(db, data)
        _seed_features(db, data)
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
