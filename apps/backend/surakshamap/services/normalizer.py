"""
normalizer.py — Report Normalizer.

Turns the two report shapes the system sees into map markers:

  ReportSubmission — straight from the form: free-text category label,
                     coordinates only if the geocoder resolved them
  ReportOut        — stored document: CategoryType enum, coordinates
                     normally present

Rules
─────
  • Unknown category labels become Other (parse_label never raises).
  • No coordinates → no marker. The report is logged and skipped; it is
    never pinned to a default point and never aborts the batch.
  • Missing priority → medium.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Iterable, Optional, Union

from surakshamap.models.report import (
    CategoryType,
    Marker,
    Priority,
    ReportOut,
    ReportSubmission,
    Status,
    label_to_type,
    parse_label,
    type_to_label,
)

logger = logging.getLogger(__name__)

_PRIORITY_COLORS = {
    Priority.HIGH: "#ef4444",
    Priority.MEDIUM: "#f59e0b",
    Priority.LOW: "#10b981",
    Priority.URGENT: "#dc2626",
}
_DEFAULT_PRIORITY_COLOR = "#3b82f6"

_STATUS_BADGES = {
    Status.RESOLVED: "green",
    Status.IN_PROGRESS: "yellow",
    Status.OPEN: "red",
}
_DEFAULT_STATUS_BADGE = "gray"


def priority_color(priority: Optional[Priority]) -> str:
    return _PRIORITY_COLORS.get(priority, _DEFAULT_PRIORITY_COLOR)


def status_badge(status: Optional[Status]) -> str:
    return _STATUS_BADGES.get(status, _DEFAULT_STATUS_BADGE)


def build_marker(
    *,
    id: str,
    lat: float,
    lng: float,
    title: str,
    description: str,
    category: CategoryType,
    date: str,
    priority: Optional[Priority] = None,
    status: Optional[Status] = None,
) -> Marker:
    priority = priority or Priority.MEDIUM
    status = status or Status.OPEN
    return Marker(
        id=id,
        lat=lat,
        lng=lng,
        title=title,
        description=description,
        category=category,
        category_label=type_to_label(category),
        priority=priority,
        status=status,
        date=date,
        priority_color=priority_color(priority),
        status_badge=status_badge(status),
    )


def normalize_submission(
    submission: ReportSubmission,
    index: int = 0,
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> Optional[Marker]:
    """Form submission → Marker, or None when the geocoder never resolved it."""
    if submission.coordinates is None:
        logger.warning(
            "Report submitted without valid coordinates, skipping marker: %r",
            submission.location,
        )
        return None

    now = now or datetime.now(tz=timezone.utc)
    label = parse_label(submission.category)
    return build_marker(
        id=f"report_{int(now.timestamp() * 1000)}_{index}",
        lat=submission.coordinates.lat,
        lng=submission.coordinates.lon,
        title=submission.title or f"New Report: {label.value}",
        description=submission.description,
        category=label_to_type(label),
        priority=submission.priority,
        date=now.astimezone(tz).date().isoformat(),
    )


def normalize_report(report: ReportOut, tz: tzinfo = timezone.utc) -> Optional[Marker]:
    """Stored report → Marker, or None if it has no coordinates.

    The marker date is the local day in tz, the same day the trend chart
    counts the report under.
    """
    if not report.location.has_coordinates:
        logger.warning("Report %s has no coordinates, skipping marker", report.id)
        return None

    return build_marker(
        id=report.id,
        lat=report.location.lat,
        lng=report.location.lng,
        title=report.title,
        description=report.description,
        category=report.category,
        priority=report.priority,
        status=report.status,
        date=report.created_at.astimezone(tz).date().isoformat(),
    )


def to_markers(
    items: Iterable[Union[ReportSubmission, ReportOut]],
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> list[Marker]:
    """Convert a mixed batch, dropping anything without coordinates."""
    markers: list[Marker] = []
    for index, item in enumerate(items):
        if isinstance(item, ReportSubmission):
            marker = normalize_submission(item, index=index, now=now, tz=tz)
        else:
            marker = normalize_report(item, tz=tz)
        if marker is not None:
            markers.append(marker)
    return markers
