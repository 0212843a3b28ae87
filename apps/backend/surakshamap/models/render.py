"""
render.py — Models shared by the map, category chart and analytics views.

OfflineSnapshot — persisted last-known viewport + markers
MapViewData     — what both map renderers draw from
ChartViewData   — what both chart renderers draw from
RenderResult    — what a view endpoint returns, whichever path drew it
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from surakshamap.models.analytics import AnalyticsAggregate
from surakshamap.models.report import Marker


class RenderState(str, Enum):
    LOADING = "loading"
    LIVE = "live"
    FALLBACK = "fallback"
    ERROR_TRANSIENT = "error-transient"


ViewName = Literal["map", "chart", "analytics"]


class OfflineSnapshot(BaseModel):
    center: tuple[float, float]
    zoom: int
    markers: list[Marker] = Field(default_factory=list)
    last_updated: datetime


class MapViewData(BaseModel):
    center: tuple[float, float]
    zoom: int
    markers: list[Marker]
    # "live" = built from the report store, "snapshot" = restored from cache.
    source: Literal["live", "snapshot", "sample"] = "live"
    last_updated: Optional[datetime] = None

    @property
    def total(self) -> int:
        return len(self.markers)


class ChartViewData(BaseModel):
    # "pie" | "bar" | "trend" for the category chart; "dashboard" for analytics.
    kind: str
    aggregate: AnalyticsAggregate

    @property
    def total(self) -> int:
        return self.aggregate.total


class RenderResult(BaseModel):
    view: str
    mode: Literal["live", "fallback"]
    state: RenderState
    total: int
    payload: dict[str, Any]
    message: Optional[str] = None


class ModeOverrideRequest(BaseModel):
    fallback: bool


class SelectorStatus(BaseModel):
    view: str
    state: RenderState
    manual_fallback: bool
    live_available: bool
