from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Float, ForeignKey, Text, DateTime
from sqlalchemy.types import JSON
from datetime import datetime
from typing import List

from .db import Base

class PathNode(Base):
    __tablename__ = "path_nodes"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    lon: Mapped[float] = mapped_column(Float, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    altitude_m: Mapped[float | None] = mapped_column(Float, nullable=True)
    features: Mapped[List["PlaceFeature"]] = relationship(back_populates="node")

class PathEdge(Base):
    __tablename__ = "path_edges"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    source: Mapped[int] = mapped_column(ForeignKey("path_nodes.id"), index=True)
    target: Mapped[int] = mapped_column(ForeignKey("path_nodes.id"), index=True)
    cost: Mapped[float] = mapped_column(Float, nullable=False)
    # NULL: same as cost, negative: one-way
    reverse_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    category: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    geometry_geojson: Mapped[dict | None] = mapped_column(JSON, nullable=True)

class PlaceFeature(Base):
    __tablename__ = "place_features"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    node_id: Mapped[int] = mapped_column(ForeignKey("path_nodes.id"), nullable=False, index=True)
    category: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    node: Mapped["PathNode"] = relationship(back_populates="features")

class EventLog(Base):
    __tablename__ = "event_logs"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ts: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    component: Mapped[str] = mapped_column(String(120))
    level: Mapped[str] = mapped_column(String(32))
    message: Mapped[str] = mapped_column(String(255))
    payload_json: Mapped[dict | None] = mapped_column(JSON, nullable=True)
