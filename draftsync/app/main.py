"""FastAPI application."""

from fastapi import FastAPI

from draftsync.app.api.routes.editor import router as editor_router
from draftsync.app.api.routes.health import router as health_router
from draftsync.app.api.routes.metrics import router as metrics_router
from draftsync.app.bootstrap import Services, build_services
from draftsync.app.config import get_settings


def create_app(services: Services | None = None) -> FastAPI:
    """Create the application around an already-built service graph."""
    app = FastAPI(title="Draftsync API", version="0.1.0")
    app.state.services = services or build_services(get_settings())

    # Register routes
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(editor_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": "Draftsync API", "version": "0.1.0"}

    return app


app = create_app()
