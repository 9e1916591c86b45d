from fastapi import APIRouter

from .routes import features, graph, internal, routes


def create_api_router() -> APIRouter:
    router = APIRouter(prefix="/api/v1")
    router.include_router(routes.router)
    router.include_router(features.router)
    router.include_router(graph.router)
    router.include_router(internal.router)
    return router
