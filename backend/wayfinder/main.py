import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import create_api_router
from .config import settings
from .db import Base, engine
from .loader import graph_store
from . import models  # noqa: F401

LOGGER = logging.getLogger("wayfinder")


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        graph_store.refresh()
    except Exception as exc:
        # routing answers 503 until a later reload succeeds
        LOGGER.error("initial graph load failed: %s", exc)
    graph_store.start_auto_refresh(settings.graph_refresh_interval_s)
    yield
    graph_store.stop_auto_refresh()


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    Base.metadata.create_all(bind=engine)
    app.include_router(create_api_router())
    return app


app = create_app()
