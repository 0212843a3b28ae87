"""
reports.py — Civic report routes.

Routes:
  POST   /api/v1/reports              — submit a report (geocodes the location if needed)
  GET    /api/v1/reports              — list reports (paginated, filterable)
  GET    /api/v1/reports/{id}         — get a single report
  PATCH  /api/v1/reports/{id}         — moderator status / priority change
  POST   /api/v1/reports/{id}/vote    — up- or down-vote
  DELETE /api/v1/reports/{id}         — soft delete

Validation errors the user can fix (short description, unknown place)
come back as 422 with {"field", "message"} so the form can show them
inline. Writes need MongoDB; without it they answer 503.
"""

import logging
from math import ceil
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from surakshamap.core.runtime import Runtime, get_runtime
from surakshamap.models.report import (
    Priority,
    ReportListResponse,
    ReportLocation,
    ReportOut,
    ReportSubmission,
    ReportUpdate,
    VoteRequest,
    label_to_type,
    parse_label,
)
from surakshamap.services.geocoding import LocationNotFoundError
from surakshamap.services.report_store import InvalidReportId, ReportStore, get_report_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


# ── Helpers ───────────────────────────────────────────────────────────────────

def _field_error(field: str, message: str) -> HTTPException:
    return HTTPException(status_code=422, detail={"field": field, "message": message})


def _require_store(store: Optional[ReportStore]) -> ReportStore:
    if store is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return store


def _is_all(value: Optional[str]) -> bool:
    return value is None or value.lower() == "all"


async def _resolve_location(payload: ReportSubmission, runtime: Runtime) -> ReportLocation:
    if payload.coordinates is not None:
        return ReportLocation(
            name=payload.location.strip(),
            lat=payload.coordinates.lat,
            lng=payload.coordinates.lon,
        )

    found = await runtime.geocoder.geocode(payload.location)
    if found is None:
        raise LocationNotFoundError(payload.location.strip())
    return ReportLocation(
        name=found.name, lat=found.lat, lng=found.lon, city=found.city, region=found.region
    )


async def _get_or_404(store: ReportStore, report_id: str) -> ReportOut:
    try:
        report = await store.get(report_id)
    except InvalidReportId:
        raise HTTPException(status_code=422, detail="Invalid report ID format")
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


# ── Routes ────────────────────────────────────────────────────────────────────

@router.post("", response_model=ReportOut, status_code=201)
async def submit_report(
    payload: ReportSubmission,
    runtime: Runtime = Depends(get_runtime),
    store: Optional[ReportStore] = Depends(get_report_store),
):
    """Validate, geocode and store a new report."""
    description = payload.description.strip()
    min_length = runtime.settings.description_min_length
    if not description:
        raise _field_error("description", "Description is required")
    if len(description) < min_length:
        raise _field_error(
            "description", f"Description must be at least {min_length} characters"
        )

    store = _require_store(store)

    try:
        location = await _resolve_location(payload, runtime)
    except LocationNotFoundError as exc:
        raise _field_error("location", str(exc))

    label = parse_label(payload.category)
    return await store.create(
        title=payload.title or f"New Report: {label.value}",
        description=description,
        category=label_to_type(label),
        location=location,
        priority=payload.priority or Priority.MEDIUM,
        image_url=payload.image_url,
    )


@router.get("", response_model=ReportListResponse)
async def list_reports(
    page:     int = Query(default=1, ge=1),
    limit:    int = Query(default=10, ge=1, le=100),
    category: Optional[str] = Query(default=None),
    status:   Optional[str] = Query(default=None),
    priority: Optional[str] = Query(default=None),
    store: Optional[ReportStore] = Depends(get_report_store),
):
    """Return a paginated list of reports, newest first."""
    if store is None:
        return ReportListResponse(items=[], total=0, page=page, limit=limit, pages=0)

    filters = {
        "category": None if _is_all(category) else label_to_type(parse_label(category)).value,
        "status": None if _is_all(status) else status.lower(),
        "priority": None if _is_all(priority) else priority.lower(),
    }

    total = await store.count(**filters)
    items = await store.list_reports(skip=(page - 1) * limit, limit=limit, **filters)
    pages = ceil(total / limit) if total else 0
    return ReportListResponse(items=items, total=total, page=page, limit=limit, pages=pages)


@router.get("/{report_id}", response_model=ReportOut)
async def get_report(report_id: str, store: Optional[ReportStore] = Depends(get_report_store)):
    """Retrieve a single report by ID."""
    return await _get_or_404(_require_store(store), report_id)


@router.patch("/{report_id}", response_model=ReportOut)
async def update_report(
    report_id: str,
    changes: ReportUpdate,
    store: Optional[ReportStore] = Depends(get_report_store),
):
    """Moderator action: change status and/or priority. Transitions are not validated."""
    store = _require_store(store)
    await _get_or_404(store, report_id)
    updated = await store.update(report_id, changes)
    logger.info("Report %s updated: %s", report_id, changes.model_dump(exclude_none=True))
    return updated


@router.post("/{report_id}/vote", response_model=ReportOut)
async def vote_report(
    report_id: str,
    vote: VoteRequest,
    store: Optional[ReportStore] = Depends(get_report_store),
):
    store = _require_store(store)
    await _get_or_404(store, report_id)
    return await store.vote(report_id, vote.direction)


@router.delete("/{report_id}", status_code=204)
async def delete_report(report_id: str, store: Optional[ReportStore] = Depends(get_report_store)):
    """Soft delete. The document stays in MongoDB with deleted=True."""
    store = _require_store(store)
    await _get_or_404(store, report_id)
    await store.delete(report_id)
    return Response(status_code=204)
