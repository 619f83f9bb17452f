from fastapi import FastAPI

from . import analytics, areas, assessments, health


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the FastAPI application."""
    app.include_router(health.router)
    app.include_router(areas.router)
    app.include_router(assessments.router)
    app.include_router(analytics.router)
