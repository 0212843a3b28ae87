"""
analytics.py — Pydantic models for the Aggregation Engine output.

AnalyticsFilters   — the dashboard filter bar ("all" / None = no filter)
AnalyticsAggregate — totals, breakdowns, KPIs and the 7-day trend
"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from surakshamap.models.report import ReportOut

TREND_DAYS = 7


class AnalyticsFilters(BaseModel):
    # None means "all time"; the dashboard default is the last 30 days.
    date_range_days: Optional[int] = Field(default=30, ge=1, le=3650)
    category: str = "all"
    status: str = "all"
    priority: str = "all"


class TrendPoint(BaseModel):
    day: date
    label: str    # "Oct 12"
    count: int


class KPIMetrics(BaseModel):
    total_reports: int
    open_reports: int
    resolution_rate: str             # "40%"
    critical_issues: int
    total_change: float              # % vs the previous period of equal length
    trend: Literal["up", "down", "stable"]


class AnalyticsAggregate(BaseModel):
    total: int
    by_category: dict[str, int]
    by_priority: dict[str, int]
    by_status: dict[str, int]
    by_location: dict[str, int]
    trend: list[TrendPoint]
    kpis: KPIMetrics
    filters: AnalyticsFilters
    # True only when the trend was generated from bare counts (no dated reports).
    synthetic_trend: bool = False

    @property
    def most_common_category(self) -> str:
        if not self.by_category:
            return "None"
        return max(self.by_category.items(), key=lambda kv: kv[1])[0]


class CategoryCountsRequest(BaseModel):
    """POST /api/v1/charts/category — chart bare counts with no report history."""
    category_data: dict[str, int] = Field(default_factory=dict)
    view: Literal["pie", "bar", "trend"] = "pie"


class ExportSummary(BaseModel):
    total_reports: int
    date_range_days: Optional[int]
    generated_at: datetime


class AnalyticsExport(BaseModel):
    """Download payload for the dashboard's "Export Data" button."""
    summary: ExportSummary
    kpis: KPIMetrics
    distribution: dict[str, dict[str, int]]
    trends: list[TrendPoint]
    reports: list[ReportOut]
