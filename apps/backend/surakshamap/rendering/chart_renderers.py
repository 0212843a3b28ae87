"""
chart_renderers.py — Live (Google Charts) and fallback (inline SVG) chart renderers.

Both adapters start from chart_series(), which turns an AnalyticsAggregate
into the list of series a view shows:

  pie / bar   — reports by category
  trend       — reports per day, last 7 days
  dashboard   — category pie, priority bar, status bar, trend line

so the numbers in a Google Charts DataTable and in the fallback SVG come
from the same place.
"""

import math
from dataclasses import dataclass, field
from html import escape
from typing import Any, Optional

import httpx

from surakshamap.models.render import ChartViewData
from surakshamap.rendering.adapters import CdnLibraryAdapter, FallbackAdapter

CHART_COLORS = ["#3b82f6", "#10b981", "#f59e0b", "#ef4444", "#8b5cf6", "#64748b"]
PRIORITY_COLORS = {"low": "#10b981", "medium": "#f59e0b", "high": "#ef4444", "urgent": "#dc2626"}
STATUS_COLORS = {
    "open": "#ef4444",
    "in-progress": "#f59e0b",
    "resolved": "#10b981",
    "rejected": "#64748b",
}
_EMPTY_COLOR = "#e2e8f0"

_GOOGLE_TYPES = {"pie": "PieChart", "bar": "ColumnChart", "line": "LineChart"}


@dataclass
class ChartSeries:
    id: str
    shape: str          # pie | bar | line
    title: str
    axis_label: str
    labels: list[str]
    values: list[int]
    colors: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.values)


def _palette(labels: list[str], mapping: Optional[dict[str, str]] = None) -> list[str]:
    if mapping:
        return [mapping.get(label, CHART_COLORS[0]) for label in labels]
    return [CHART_COLORS[i % len(CHART_COLORS)] for i in range(len(labels))]


def chart_series(data: ChartViewData) -> list[ChartSeries]:
    agg = data.aggregate
    categories = list(agg.by_category)
    category_values = [agg.by_category[c] for c in categories]

    category_pie = ChartSeries(
        "categoryPie", "pie", "Reports by Category", "Category",
        categories, category_values, _palette(categories),
    )
    category_bar = ChartSeries(
        "categoryBar", "bar", "Reports by Category", "Category",
        categories, category_values, [CHART_COLORS[0]] * len(categories),
    )
    trend = ChartSeries(
        "trendsLine", "line", "Reports Trend (Last 7 Days)", "Date",
        [p.label for p in agg.trend], [p.count for p in agg.trend],
        [CHART_COLORS[0]] * len(agg.trend),
    )

    if data.kind == "pie":
        return [category_pie]
    if data.kind == "bar":
        return [category_bar]
    if data.kind == "trend":
        return [trend]

    priorities = list(agg.by_priority)
    statuses = list(agg.by_status)
    return [
        category_pie,
        ChartSeries(
            "priorityBar", "bar", "Reports by Priority", "Priority",
            priorities, [agg.by_priority[p] for p in priorities],
            _palette(priorities, PRIORITY_COLORS),
        ),
        ChartSeries(
            "statusBar", "bar", "Reports by Status", "Status",
            statuses, [agg.by_status[s] for s in statuses],
            _palette(statuses, STATUS_COLORS),
        ),
        trend,
    ]


def _summary(data: ChartViewData) -> dict[str, Any]:
    agg = data.aggregate
    return {
        "total_reports": agg.total,
        "most_common_category": agg.most_common_category,
        "kpis": agg.kpis.model_dump(),
        "synthetic_trend": agg.synthetic_trend,
    }


# ── Live ──────────────────────────────────────────────────────────────────────

class GoogleChartsAdapter(CdnLibraryAdapter):
    library = "Google Charts"

    def __init__(
        self,
        loader_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(loader_url, timeout=timeout, transport=transport)

    @staticmethod
    def _chart(series: ChartSeries) -> dict[str, Any]:
        rows: list[list[Any]] = [[series.axis_label, "Count"]]
        empty = series.shape == "pie" and series.total == 0
        if empty:
            # Google's PieChart cannot draw an all-zero table.
            rows.append(["No Data", 1])
        else:
            rows.extend([label, value] for label, value in zip(series.labels, series.values))

        options: dict[str, Any] = {
            "title": series.title,
            "backgroundColor": "transparent",
            "colors": [_EMPTY_COLOR] if empty else (series.colors or [CHART_COLORS[0]]),
        }
        if series.shape == "pie":
            options.update({"pieHole": 0.4, "legend": {"position": "bottom"}})
        else:
            options.update({"legend": {"position": "none"}, "vAxis": {"minValue": 0}})
            if series.shape == "line":
                options["hAxis"] = {"title": series.axis_label}
                options["vAxis"]["title"] = "Number of Reports"

        return {
            "id": series.id,
            "type": _GOOGLE_TYPES[series.shape],
            "data": rows,
            "options": options,
            "empty": series.total == 0,
        }

    def render(self, data: ChartViewData) -> dict[str, Any]:
        return {
            "library": "google-charts",
            "loader_url": self.asset_url,
            "packages": ["corechart", "bar"],
            "summary": _summary(data),
            "charts": [self._chart(s) for s in chart_series(data)],
        }


# ── Fallback ──────────────────────────────────────────────────────────────────

class SvgChartFallback(FallbackAdapter):
    @staticmethod
    def _items(series: ChartSeries) -> list[dict[str, Any]]:
        total = series.total
        return [
            {
                "label": label,
                "value": value,
                "percentage": round(value / total * 100, 1) if total else 0.0,
                "color": color,
            }
            for label, value, color in zip(series.labels, series.values, series.colors)
        ]

    def render(self, data: ChartViewData) -> dict[str, Any]:
        charts = []
        for series in chart_series(data):
            svg = _pie_svg(series) if series.shape == "pie" else _bar_svg(series)
            charts.append(
                {
                    "id": series.id,
                    "type": series.shape,
                    "title": series.title,
                    "items": self._items(series),
                    "svg": svg,
                    "empty": series.total == 0,
                }
            )
        return {"library": "svg", "summary": _summary(data), "charts": charts}


def _bar_svg(series: ChartSeries) -> str:
    width, height = 280, 200
    count = max(len(series.values), 1)
    slot = width / count
    peak = max(series.values, default=0)
    bars = []
    for i, (label, value, color) in enumerate(zip(series.labels, series.values, series.colors)):
        # Zero bars keep a 4px stub so the axis still reads.
        bar_h = max(value / peak * (height - 20), 4) if peak else 4
        x = i * slot + slot * 0.15
        bars.append(
            f'<rect x="{x:.2f}" y="{height - bar_h:.2f}" width="{slot * 0.7:.2f}" '
            f'height="{bar_h:.2f}" fill="{color}"><title>{escape(label)}: {value}</title></rect>'
        )
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width} {height}">'
        + "".join(bars)
        + "</svg>"
    )


def _pie_svg(series: ChartSeries) -> str:
    size, radius, hole = 200, 90, 54
    cx = cy = size / 2
    total = series.total
    if total == 0:
        return (
            f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {size} {size}">'
            f'<circle cx="{cx}" cy="{cy}" r="{radius}" fill="{_EMPTY_COLOR}"/>'
            f'<circle cx="{cx}" cy="{cy}" r="{hole}" fill="#ffffff"/></svg>'
        )

    slices = []
    angle = -math.pi / 2
    for label, value, color in zip(series.labels, series.values, series.colors):
        if value <= 0:
            continue
        sweep = value / total * 2 * math.pi
        if sweep >= 2 * math.pi - 1e-9:
            slices.append(f'<circle cx="{cx}" cy="{cy}" r="{radius}" fill="{color}"/>')
            break
        x1, y1 = cx + radius * math.cos(angle), cy + radius * math.sin(angle)
        angle += sweep
        x2, y2 = cx + radius * math.cos(angle), cy + radius * math.sin(angle)
        large = 1 if sweep > math.pi else 0
        slices.append(
            f'<path d="M{cx},{cy} L{x1:.2f},{y1:.2f} A{radius},{radius} 0 {large} 1 '
            f'{x2:.2f},{y2:.2f} Z" fill="{color}"><title>{escape(label)}: {value}</title></path>'
        )
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {size} {size}">'
        + "".join(slices)
        + f'<circle cx="{cx}" cy="{cy}" r="{hole}" fill="#ffffff"/></svg>'
    )
