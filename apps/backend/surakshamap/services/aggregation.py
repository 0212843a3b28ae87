"""
aggregation.py — Aggregation Engine for the analytics and chart views.

Pure functions. The same AnalyticsAggregate feeds both the live (Google
Charts) and the fallback (inline SVG) renderers, so the two paths can only
differ in presentation, never in numbers.

USAGE
─────
    from surakshamap.services.aggregation import aggregate
    agg = aggregate(reports, AnalyticsFilters(date_range_days=30), now=now, tz=tz)
    agg.total, agg.by_category, agg.trend

Trend series
────────────
Seven entries, oldest first, one per calendar day in the configured local
timezone ending today, zero-filled. synthetic_trend() exists only for
callers that hold bare category counts with no creation dates; anything
built from real reports uses real day buckets.
"""

from __future__ import annotations

import random
from collections import Counter
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Optional

from surakshamap.models.analytics import (
    TREND_DAYS,
    AnalyticsAggregate,
    AnalyticsFilters,
    KPIMetrics,
    TrendPoint,
)
from surakshamap.models.report import (
    CategoryLabel,
    Priority,
    ReportOut,
    Status,
    parse_label,
)

# The dashboard calls urgent reports "critical".
_PRIORITY_ALIASES = {"critical": Priority.URGENT.value}


# ── Filtering ─────────────────────────────────────────────────────────────────

def _is_all(value: Optional[str]) -> bool:
    return value is None or value.strip().lower() in ("", "all")


def _matches_category(report: ReportOut, wanted: str) -> bool:
    needle = wanted.strip().lower()
    return needle in (report.category.value, report.category_label.value.lower())


def filter_reports(
    reports: Iterable[ReportOut],
    filters: AnalyticsFilters,
    now: datetime,
) -> list[ReportOut]:
    selected = list(reports)

    if filters.date_range_days is not None:
        start = now - timedelta(days=filters.date_range_days)
        selected = [r for r in selected if r.created_at >= start]

    if not _is_all(filters.category):
        selected = [r for r in selected if _matches_category(r, filters.category)]

    if not _is_all(filters.status):
        wanted = filters.status.strip().lower().replace(" ", "-")
        selected = [r for r in selected if r.status.value == wanted]

    if not _is_all(filters.priority):
        wanted = filters.priority.strip().lower()
        wanted = _PRIORITY_ALIASES.get(wanted, wanted)
        selected = [r for r in selected if r.priority.value == wanted]

    return selected


# ── Breakdowns ────────────────────────────────────────────────────────────────

def _ordered(counter: Counter, order: Iterable[str]) -> dict[str, int]:
    """Known keys first, in declaration order; anything else after, by name."""
    order = list(order)
    result = {key: counter[key] for key in order if counter[key]}
    for key in sorted(k for k in counter if k not in result):
        result[key] = counter[key]
    return result


def _location_key(report: ReportOut) -> str:
    city = report.location.city or report.location.name or "Unknown"
    region = report.location.region or "Unknown"
    return f"{city}, {region}"


def _trend_days(now: datetime, tz: tzinfo) -> list[date]:
    today = now.astimezone(tz).date()
    return [today - timedelta(days=offset) for offset in range(TREND_DAYS - 1, -1, -1)]


def _day_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def trend_series(reports: Iterable[ReportOut], now: datetime, tz: tzinfo) -> list[TrendPoint]:
    per_day = Counter(r.created_at.astimezone(tz).date() for r in reports)
    return [
        TrendPoint(day=day, label=_day_label(day), count=per_day.get(day, 0))
        for day in _trend_days(now, tz)
    ]


def synthetic_trend(total: int, rng: random.Random, now: datetime, tz: tzinfo) -> list[TrendPoint]:
    """Randomised filler for count-only input. Deterministic for a seeded rng."""
    return [
        TrendPoint(
            day=day,
            label=_day_label(day),
            count=int(rng.random() * total / 3) + total // TREND_DAYS,
        )
        for day in _trend_days(now, tz)
    ]


# ── KPIs ──────────────────────────────────────────────────────────────────────

def compute_kpis(
    filtered: list[ReportOut],
    all_reports: list[ReportOut],
    filters: AnalyticsFilters,
    now: datetime,
) -> KPIMetrics:
    total = len(filtered)
    open_reports = sum(1 for r in filtered if r.status == Status.OPEN)
    resolved = sum(1 for r in filtered if r.status == Status.RESOLVED)
    critical = sum(1 for r in filtered if r.priority == Priority.URGENT)

    change = 0.0
    if filters.date_range_days is not None:
        period = timedelta(days=filters.date_range_days)
        prev_start, prev_end = now - 2 * period, now - period
        previous = sum(1 for r in all_reports if prev_start <= r.created_at <= prev_end)
        if previous:
            change = round((total - previous) / previous * 100, 1)

    return KPIMetrics(
        total_reports=total,
        open_reports=open_reports,
        resolution_rate=f"{round(resolved / total * 100) if total else 0}%",
        critical_issues=critical,
        total_change=change,
        trend="up" if change > 0 else "down" if change < 0 else "stable",
    )


# ── Entry points ──────────────────────────────────────────────────────────────

def aggregate(
    reports: Iterable[ReportOut],
    filters: AnalyticsFilters,
    now: datetime,
    tz: tzinfo,
) -> AnalyticsAggregate:
    """Full dashboard aggregate. Same inputs → identical output."""
    all_reports = list(reports)
    filtered = filter_reports(all_reports, filters, now)

    by_category = _ordered(
        Counter(r.category_label.value for r in filtered), (c.value for c in CategoryLabel)
    )
    by_priority = _ordered(Counter(r.priority.value for r in filtered), (p.value for p in Priority))
    by_status = _ordered(Counter(r.status.value for r in filtered), (s.value for s in Status))
    locations = Counter(_location_key(r) for r in filtered)
    by_location = dict(sorted(locations.items(), key=lambda kv: (-kv[1], kv[0])))

    return AnalyticsAggregate(
        total=len(filtered),
        by_category=by_category,
        by_priority=by_priority,
        by_status=by_status,
        by_location=by_location,
        trend=trend_series(filtered, now, tz),
        kpis=compute_kpis(filtered, all_reports, filters, now),
        filters=filters,
    )


def aggregate_counts(
    category_data: dict[str, int],
    rng: random.Random,
    now: datetime,
    tz: tzinfo,
) -> AnalyticsAggregate:
    """Aggregate for a caller that only has per-category counts."""
    counts: Counter = Counter()
    for name, count in category_data.items():
        if count > 0:
            counts[parse_label(name).value] += count
    by_category = _ordered(counts, (c.value for c in CategoryLabel))
    total = sum(by_category.values())

    return AnalyticsAggregate(
        total=total,
        by_category=by_category,
        by_priority={},
        by_status={},
        by_location={},
        trend=synthetic_trend(total, rng, now, tz),
        kpis=KPIMetrics(
            total_reports=total,
            open_reports=0,
            resolution_rate="0%",
            critical_issues=0,
            total_change=0.0,
            trend="stable",
        ),
        filters=AnalyticsFilters(date_range_days=None),
        synthetic_trend=True,
    )
