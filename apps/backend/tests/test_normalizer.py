"""
Tests for surakshamap/services/normalizer.py.

Pure functions, no DB or network needed.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from surakshamap.models.report import (
    CategoryLabel,
    CategoryType,
    Coordinates,
    Priority,
    ReportLocation,
    ReportSubmission,
    Status,
    parse_label,
)
from surakshamap.services.aggregation import trend_series
from surakshamap.services.normalizer import (
    build_marker,
    normalize_report,
    normalize_submission,
    priority_color,
    status_badge,
    to_markers,
)

NOW = datetime(2024, 3, 5, 9, 30, tzinfo=timezone.utc)


def _submission(**overrides) -> ReportSubmission:
    fields = {
        "location": "MG Road, Kochi",
        "coordinates": Coordinates(lat=9.97, lon=76.28),
        "description": "Broken streetlight near the bus stop",
        "category": "Infrastructure",
    }
    fields.update(overrides)
    return ReportSubmission(**fields)


class TestColours:
    @pytest.mark.parametrize("priority,colour", [
        (Priority.HIGH, "#ef4444"),
        (Priority.MEDIUM, "#f59e0b"),
        (Priority.LOW, "#10b981"),
        (Priority.URGENT, "#dc2626"),
        (None, "#3b82f6"),
    ])
    def test_priority_colour(self, priority, colour):
        assert priority_color(priority) == colour

    @pytest.mark.parametrize("status,badge", [
        (Status.RESOLVED, "green"),
        (Status.IN_PROGRESS, "yellow"),
        (Status.OPEN, "red"),
        (Status.REJECTED, "gray"),
    ])
    def test_status_badge(self, status, badge):
        assert status_badge(status) == badge


class TestParseLabel:
    def test_ui_label(self):
        assert parse_label("Safety Issue") == CategoryLabel.SAFETY

    def test_storage_value(self):
        assert parse_label("environment") == CategoryLabel.ENVIRONMENTAL

    def test_case_insensitive(self):
        assert parse_label("  TRAFFIC ") == CategoryLabel.TRAFFIC

    def test_unknown_is_other(self):
        assert parse_label("Potholes & more") == CategoryLabel.OTHER
        assert parse_label(None) == CategoryLabel.OTHER


class TestNormalizeSubmission:
    def test_marker_fields(self):
        marker = normalize_submission(_submission(), index=3, now=NOW)
        assert marker is not None
        assert marker.id == f"report_{int(NOW.timestamp() * 1000)}_3"
        assert (marker.lat, marker.lng) == (9.97, 76.28)
        assert marker.category == CategoryType.INFRASTRUCTURE
        assert marker.category_label == CategoryLabel.INFRASTRUCTURE
        assert marker.date == "2024-03-05"

    def test_defaults(self):
        marker = normalize_submission(_submission(), now=NOW)
        assert marker.title == "New Report: Infrastructure"
        assert marker.priority == Priority.MEDIUM
        assert marker.status == Status.OPEN
        assert marker.priority_color == "#f59e0b"
        assert marker.status_badge == "red"

    def test_explicit_title_and_priority(self):
        marker = normalize_submission(
            _submission(title="Dark junction", priority=Priority.HIGH), now=NOW
        )
        assert marker.title == "Dark junction"
        assert marker.priority_color == "#ef4444"

    def test_unknown_category_becomes_other(self):
        marker = normalize_submission(_submission(category="Stray dogs"), now=NOW)
        assert marker.category == CategoryType.OTHER
        assert marker.title == "New Report: Other"

    def test_missing_coordinates_skipped(self):
        assert normalize_submission(_submission(coordinates=None), now=NOW) is None


class TestNormalizeReport:
    def test_report_to_marker(self, make_report):
        report = make_report(category="environment", priority="high", status="resolved", now=NOW)
        marker = normalize_report(report)
        assert marker.id == report.id
        assert marker.category_label == CategoryLabel.ENVIRONMENTAL
        assert marker.status_badge == "green"
        assert marker.date == "2024-03-05"

    def test_marker_date_is_local_trend_day(self, make_report):
        # 20:00 UTC is 01:30 the next morning in Kerala.
        late = datetime(2024, 3, 5, 20, 0, tzinfo=timezone.utc)
        report = make_report(now=late)
        kolkata = ZoneInfo("Asia/Kolkata")

        marker = normalize_report(report, tz=kolkata)
        assert marker.date == "2024-03-06"

        buckets = {p.day.isoformat(): p.count for p in trend_series([report], now=late, tz=kolkata)}
        assert buckets[marker.date] == 1

    def test_report_without_coordinates(self, make_report):
        report = make_report()
        report.location = ReportLocation(name="Somewhere")
        assert normalize_report(report) is None


class TestToMarkers:
    def test_mixed_batch_drops_unplaced(self, make_report):
        items = [
            _submission(),
            _submission(coordinates=None),
            make_report(),
        ]
        markers = to_markers(items, now=NOW)
        assert len(markers) == 2
        assert all(m.lat is not None and m.lng is not None for m in markers)

    def test_every_marker_has_a_known_category(self):
        items = [_submission(category=c) for c in ("Traffic", "Safety Issue", "whatever")]
        markers = to_markers(items, now=NOW)
        assert {m.category_label for m in markers} <= set(CategoryLabel)


def test_build_marker_fills_defaults():
    marker = build_marker(
        id="x", lat=10.0, lng=76.0, title="t", description="d",
        category=CategoryType.TRAFFIC, date="2024-01-01",
    )
    assert marker.priority == Priority.MEDIUM
    assert marker.status == Status.OPEN
    assert marker.category_label == CategoryLabel.TRAFFIC
