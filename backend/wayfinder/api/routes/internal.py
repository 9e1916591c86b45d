from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...api import deps
from ...db import get_db
from ...loader import graph_store
from ...schemas import GraphStatus
from ...services.eventlog import log_event

LOGGER = logging.getLogger("wayfinder.api.internal")

router = APIRouter(prefix="/internal", tags=["internal"], dependencies=[Depends(deps.require_service_token)])


def _status() -> GraphStatus:
    snapshot = graph_store.snapshot
    if snapshot is None:
        return GraphStatus(loaded=False)
    return GraphStatus(
        loaded=True,
        version=snapshot.version,
        nodes=len(snapshot.nodes),
        edges=len(snapshot.edges),
        features=len(snapshot.features),
    )


@router.get("/graph/status", response_model=GraphStatus)
def graph_status() -> GraphStatus:
    return _status()


@router.post("/graph/reload", response_model=GraphStatus)
def reload_graph(db: Session = Depends(get_db)) -> GraphStatus:
    previous = graph_store.snapshot
    try:
        snapshot = graph_store.refresh()
    except Exception as exc:
        LOGGER.error("graph reload failed: %s", exc)
        log_event(
            db,
            component="graph_loader",
            level="error",
            message=f"reload failed: {exc}",
            payload={"kept_version": previous.version if previous else None},
        )
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Graph reload failed; previous snapshot kept: {exc}",
        )
    log_event(
        db,
        component="graph_loader",
        level="info",
        message=f"published graph version {snapshot.version}",
        payload={"nodes": len(snapshot.nodes), "edges": len(snapshot.edges)},
    )
    db.commit()
    return _status()
