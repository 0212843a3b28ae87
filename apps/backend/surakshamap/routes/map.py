"""
map.py — Civic map routes.

Routes:
  GET  /api/v1/map/markers   — normalized markers (sample pins + geolocated reports)
  GET  /api/v1/map           — the map, drawn by Leaflet or the grid fallback
  GET  /api/v1/map/snapshot  — the saved offline snapshot, 404 if none
  POST /api/v1/map/snapshot  — "Save Offline": capture viewport + markers now

A live map render refreshes the offline snapshot, so the most recent
markers survive a later restart without MongoDB.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from surakshamap.core.runtime import Runtime, get_runtime
from surakshamap.models.render import MapViewData, OfflineSnapshot, RenderResult
from surakshamap.models.report import Marker
from surakshamap.services.report_store import ReportStore, get_report_store, load_reports_safely

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/map", tags=["map"])


class SnapshotRequest(BaseModel):
    # Current viewport of the client map; defaults to the configured centre.
    center: Optional[tuple[float, float]] = None
    zoom:   Optional[int] = Field(default=None, ge=1, le=19)


async def _view_data(runtime: Runtime, store: Optional[ReportStore]) -> MapViewData:
    reports = await load_reports_safely(store)
    return runtime.map_view.build(reports)


@router.get("/markers", response_model=list[Marker])
async def get_markers(
    runtime: Runtime = Depends(get_runtime),
    store: Optional[ReportStore] = Depends(get_report_store),
):
    return (await _view_data(runtime, store)).markers


@router.get("", response_model=RenderResult)
async def render_map(
    runtime: Runtime = Depends(get_runtime),
    store: Optional[ReportStore] = Depends(get_report_store),
):
    data = await _view_data(runtime, store)
    result = await runtime.selectors["map"].render(data)
    if data.source == "live" and runtime.monitor.online:
        runtime.map_view.save_snapshot(data.markers, center=data.center, zoom=data.zoom)
    return result


@router.get("/snapshot", response_model=OfflineSnapshot)
async def get_snapshot(runtime: Runtime = Depends(get_runtime)):
    snapshot = runtime.snapshots.load()
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No offline map data saved")
    return snapshot


@router.post("/snapshot", response_model=OfflineSnapshot, status_code=201)
async def save_snapshot(
    payload: Optional[SnapshotRequest] = None,
    runtime: Runtime = Depends(get_runtime),
    store: Optional[ReportStore] = Depends(get_report_store),
):
    payload = payload or SnapshotRequest()
    data = await _view_data(runtime, store)
    snapshot = runtime.map_view.save_snapshot(
        data.markers, center=payload.center or data.center, zoom=payload.zoom or data.zoom
    )
    if snapshot is None:
        raise HTTPException(status_code=500, detail="Could not write offline map data")
    logger.info("Offline snapshot saved with %d markers", len(snapshot.markers))
    return snapshot
