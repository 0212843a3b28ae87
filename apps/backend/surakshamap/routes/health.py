"""
Health check endpoint.

Returns status + DB connectivity + the connectivity monitor's view, so
callers can tell "API down", "API up but DB unreachable" and "API up but
running offline" apart.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from surakshamap.core.config import settings
from surakshamap.core.runtime import Runtime, get_runtime

router = APIRouter()


class HealthResponse(BaseModel):
    status: str     # Always "ok" if the API process is alive
    version: str
    database: str   # "connected" | "disconnected"
    online: bool
    environment: str


@router.get("", response_model=HealthResponse, summary="API health check")
async def health_check(runtime: Runtime = Depends(get_runtime)) -> HealthResponse:
    """
    Liveness of the API and its database connection.

    Returns 200 even when the database is disconnected; the map and
    analytics views keep working from offline data in that case.
    """
    db_status = "connected" if await runtime.database.ping() else "disconnected"

    return HealthResponse(
        status="ok",
        version="0.1.0",
        database=db_status,
        online=runtime.monitor.online,
        environment=settings.environment,
    )
