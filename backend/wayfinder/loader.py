from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Protocol

from sqlalchemy.orm import Session

from .config import settings
from .db import SessionLocal
from .errors import GraphIntegrityError, GraphUnavailable
from .graph import GraphSnapshot
from .models import PathEdge, PathNode, PlaceFeature

LOGGER = logging.getLogger("wayfinder.loader")


class GraphLoader(Protocol):
    def load(self, version: int) -> GraphSnapshot:
        ...


class JsonGraphLoader:
    def __init__(self, path: str | Path, geometry_tolerance_m: float | None = None) -> None:
        self.path = Path(path)
        self.geometry_tolerance_m = (
            settings.geometry_tolerance_m if geometry_tolerance_m is None else geometry_tolerance_m
        )

    def load(self, version: int) -> GraphSnapshot:
        if not self.path.exists():
            raise FileNotFoundError(f"Graph file not found at {self.path}")
        return GraphSnapshot.from_json(
            self.path, version=version, geometry_tolerance_m=self.geometry_tolerance_m
        )


class DatabaseGraphLoader:
    """Builds snapshots from the path_nodes / path_edges / place_features tables."""

    def __init__(self, session_factory: Callable[[], Session], geometry_tolerance_m: float | None = None) -> None:
        self.session_factory = session_factory
        self.geometry_tolerance_m = (
            settings.geometry_tolerance_m if geometry_tolerance_m is None else geometry_tolerance_m
        )

    def load(self, version: int) -> GraphSnapshot:
        db = self.session_factory()
        try:
            nodes = [
                {"id": n.id, "name": n.name, "lon": n.lon, "lat": n.lat, "altitude_m": n.altitude_m}
                for n in db.query(PathNode).order_by(PathNode.id).all()
            ]
            edges = [
                {
                    "id": e.id,
                    "source": e.source,
                    "target": e.target,
                    "cost": e.cost,
                    "reverse_cost": e.reverse_cost,
                    "category": e.category,
                    "geometry": e.geometry_geojson,
                }
                for e in db.query(PathEdge).order_by(PathEdge.id).all()
            ]
            features = [
                {
                    "id": f.id,
                    "node_id": f.node_id,
                    "category": f.category,
                    "name": f.name,
                    "description": f.description,
                    "image_url": f.image_url,
                    "rating": f.rating,
                }
                for f in db.query(PlaceFeature).order_by(PlaceFeature.id).all()
            ]
        finally:
            db.close()
        return GraphSnapshot.from_records(
            nodes, edges, features, version=version, geometry_tolerance_m=self.geometry_tolerance_m
        )


class GraphStore:
    """Holds the published snapshot and swaps it atomically on reload.

    Readers grab ``current_snapshot()`` once per request and keep that
    reference until they finish, so a reload never changes a running query.
    """

    def __init__(
        self,
        loader: GraphLoader,
        *,
        retries: int | None = None,
        retry_delay_s: float | None = None,
    ) -> None:
        self.loader = loader
        self.retries = settings.graph_load_retries if retries is None else retries
        self.retry_delay_s = settings.graph_retry_delay_s if retry_delay_s is None else retry_delay_s
        self._snapshot: Optional[GraphSnapshot] = None
        self._version = 0
        self._reload_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def snapshot(self) -> Optional[GraphSnapshot]:
        return self._snapshot

    def current_snapshot(self) -> GraphSnapshot:
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        try:
            return self.refresh(only_if_missing=True)
        except Exception as exc:
            raise GraphUnavailable("Graph snapshot is not available") from exc

    def refresh(self, only_if_missing: bool = False) -> GraphSnapshot:
        """Load a new snapshot and publish it; the old one stays on failure.

        With ``only_if_missing`` a snapshot published while this call waited
        for the lock is returned instead of loading again.
        """
        with self._reload_lock:
            if only_if_missing and self._snapshot is not None:
                return self._snapshot
            version = self._version + 1
            last_exc: Exception | None = None
            for attempt in range(1, self.retries + 1):
                try:
                    snapshot = self.loader.load(version)
                except GraphIntegrityError:
                    raise
                except Exception as exc:
                    last_exc = exc
                    LOGGER.warning("graph load attempt %d/%d failed: %s", attempt, self.retries, exc)
                    if attempt < self.retries:
                        time.sleep(self.retry_delay_s)
                    continue
                self._version = version
                self._snapshot = snapshot
                LOGGER.info("published %r", snapshot)
                return snapshot
            assert last_exc is not None
            raise last_exc

    def start_auto_refresh(self, interval_s: float) -> None:
        if interval_s <= 0 or self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._refresh_loop, args=(interval_s,), name="graph-refresh", daemon=True
        )
        self._thread.start()

    def stop_auto_refresh(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None

    def _refresh_loop(self, interval_s: float) -> None:
        while not self._stop.wait(interval_s):
            try:
                self.refresh()
            except Exception:
                LOGGER.exception("periodic graph refresh failed; keeping version %s", self._version)


def build_loader() -> GraphLoader:
    if settings.graph_source == "json":
        return JsonGraphLoader(Path(settings.graphs_dir) / f"{settings.default_graph_name}.json")
    return DatabaseGraphLoader(SessionLocal)


graph_store = GraphStore(build_loader())
