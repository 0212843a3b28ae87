"""
charts.py — Category chart routes.

  GET  /api/v1/charts/category?view=pie|bar|trend — chart over every stored report
  POST /api/v1/charts/category                    — chart bare per-category counts

The POST form exists for callers that only have counts. Those have no
creation dates, so the trend view is filled with synthetic day counts and
the aggregate is marked synthetic_trend=True.
"""

from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from surakshamap.core.runtime import Runtime, get_runtime
from surakshamap.models.analytics import AnalyticsFilters, CategoryCountsRequest
from surakshamap.models.render import ChartViewData, RenderResult
from surakshamap.services.aggregation import aggregate, aggregate_counts
from surakshamap.services.report_store import ReportStore, get_report_store, load_reports_safely

router = APIRouter(prefix="/api/v1/charts", tags=["charts"])


@router.get("/category", response_model=RenderResult)
async def category_chart(
    view: Literal["pie", "bar", "trend"] = Query(default="pie"),
    runtime: Runtime = Depends(get_runtime),
    store: Optional[ReportStore] = Depends(get_report_store),
):
    reports = await load_reports_safely(store) or []
    agg = aggregate(
        reports,
        AnalyticsFilters(date_range_days=None),
        now=datetime.now(tz=timezone.utc),
        tz=runtime.tz,
    )
    return await runtime.selectors["chart"].render(ChartViewData(kind=view, aggregate=agg))


@router.post("/category", response_model=RenderResult)
async def category_chart_from_counts(
    payload: CategoryCountsRequest,
    runtime: Runtime = Depends(get_runtime),
):
    agg = aggregate_counts(
        payload.category_data,
        rng=runtime.trend_rng,
        now=datetime.now(tz=timezone.utc),
        tz=runtime.tz,
    )
    return await runtime.selectors["chart"].render(ChartViewData(kind=payload.view, aggregate=agg))
