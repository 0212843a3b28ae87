"""
analytics.py — Analytics dashboard routes.

Routes:
  GET /api/v1/analytics          — filtered aggregate (totals, breakdowns, KPIs, trend)
  GET /api/v1/analytics/render   — the dashboard, drawn live or by the fallback
  GET /api/v1/analytics/export   — JSON download of the aggregate plus its reports

Query parameters (all optional):
  date_range — days to look back, or "all" (default 30)
  category   — "all", a category type ("traffic") or label ("Safety Issue")
  status     — "all", "open", "in-progress", "resolved", "rejected"
  priority   — "all", "low", "medium", "high", "urgent" ("critical" = urgent)

Without MongoDB every view is computed over an empty report list, so the
dashboard shows zeroes instead of failing.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from surakshamap.core.runtime import Runtime, get_runtime
from surakshamap.models.analytics import (
    AnalyticsAggregate,
    AnalyticsExport,
    AnalyticsFilters,
    ExportSummary,
)
from surakshamap.models.render import ChartViewData, RenderResult
from surakshamap.models.report import ReportOut
from surakshamap.services.aggregation import aggregate, filter_reports
from surakshamap.services.report_store import ReportStore, get_report_store, load_reports_safely

router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])


def analytics_filters(
    date_range: str = Query(default="30"),
    category:   str = Query(default="all"),
    status:     str = Query(default="all"),
    priority:   str = Query(default="all"),
) -> AnalyticsFilters:
    """Dependency: the dashboard filter bar as an AnalyticsFilters."""
    days: Optional[int] = None
    if date_range.strip().lower() != "all":
        try:
            days = int(date_range)
        except ValueError:
            raise HTTPException(status_code=422, detail="date_range must be a number of days or 'all'")
        if not 1 <= days <= 3650:
            raise HTTPException(status_code=422, detail="date_range must be between 1 and 3650")
    return AnalyticsFilters(
        date_range_days=days, category=category, status=status, priority=priority
    )


async def _reports(store: Optional[ReportStore]) -> list[ReportOut]:
    return await load_reports_safely(store) or []


@router.get("", response_model=AnalyticsAggregate)
async def get_analytics(
    filters: AnalyticsFilters = Depends(analytics_filters),
    runtime: Runtime = Depends(get_runtime),
    store: Optional[ReportStore] = Depends(get_report_store),
):
    reports = await _reports(store)
    return aggregate(reports, filters, now=datetime.now(tz=timezone.utc), tz=runtime.tz)


@router.get("/render", response_model=RenderResult)
async def render_dashboard(
    filters: AnalyticsFilters = Depends(analytics_filters),
    runtime: Runtime = Depends(get_runtime),
    store: Optional[ReportStore] = Depends(get_report_store),
):
    """
    Render the four dashboard charts (category pie, priority and status
    bars, 7-day trend). The fallback path draws the same numbers as SVG.
    """
    reports = await _reports(store)
    agg = aggregate(reports, filters, now=datetime.now(tz=timezone.utc), tz=runtime.tz)
    return await runtime.selectors["analytics"].render(ChartViewData(kind="dashboard", aggregate=agg))


@router.get("/export")
async def export_analytics(
    filters: AnalyticsFilters = Depends(analytics_filters),
    runtime: Runtime = Depends(get_runtime),
    store: Optional[ReportStore] = Depends(get_report_store),
):
    now = datetime.now(tz=timezone.utc)
    reports = await _reports(store)
    agg = aggregate(reports, filters, now=now, tz=runtime.tz)

    export = AnalyticsExport(
        summary=ExportSummary(
            total_reports=agg.total,
            date_range_days=filters.date_range_days,
            generated_at=now,
        ),
        kpis=agg.kpis,
        distribution={
            "category": agg.by_category,
            "priority": agg.by_priority,
            "status": agg.by_status,
        },
        trends=agg.trend,
        reports=filter_reports(reports, filters, now),
    )
    filename = f"analytics-{now.date().isoformat()}.json"
    return JSONResponse(
        content=export.model_dump(mode="json"),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
