"""Health check endpoints.

- Checks database connectivity (when a database is configured)
- Checks the renderer answers tools/list
- Returns honest status with component details
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from draftsync.app.api.deps import get_services
from draftsync.app.bootstrap import Services
from draftsync.app.errors import RendererError

router = APIRouter()


async def check_db(services: Services) -> tuple[bool, str]:
    """Check database connectivity.

    Returns:
        (is_ok, status_message)
    """
    if services.session is None:
        return (True, "not_configured")

    try:
        services.session.execute(text("SELECT 1"))
        return (True, "ok")
    except Exception as e:
        services.session.rollback()
        return (False, f"error: {type(e).__name__}")


async def check_renderer(services: Services) -> tuple[bool, str]:
    """Check the renderer lists its tools.

    Returns:
        (is_ok, status_message)
    """
    try:
        await services.renderer.list_tools()
        return (True, "ok")
    except RendererError as e:
        return (False, f"error: {e}")


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz(
    services: Annotated[Services, Depends(get_services)],
) -> dict[str, Any] | JSONResponse:
    """Health check endpoint.

    Returns:
        200 with component status if core systems ok
        503 if the database or the renderer fails
    """
    db_ok, db_status = await check_db(services)
    renderer_ok, renderer_status = await check_renderer(services)

    response_body = {
        "status": "ok" if db_ok and renderer_ok else "degraded",
        "components": {
            "db": db_status,
            "renderer": renderer_status,
        },
    }

    if not (db_ok and renderer_ok):
        return JSONResponse(content=response_body, status_code=503)

    return response_body
