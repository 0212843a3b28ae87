"""
Tests for the renderer adapters: CDN probing, the Leaflet / grid map pair
and the Google Charts / SVG chart pair.
"""

import random
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import httpx
import pytest

from surakshamap.models.analytics import AnalyticsFilters
from surakshamap.models.render import ChartViewData, MapViewData
from surakshamap.rendering.chart_renderers import GoogleChartsAdapter, SvgChartFallback, chart_series
from surakshamap.rendering.map_renderers import GridMapFallback, LeafletMapAdapter, project
from surakshamap.services.aggregation import aggregate, aggregate_counts
from surakshamap.services.map_view import SAMPLE_MARKERS

NOW = datetime(2024, 3, 5, tzinfo=timezone.utc)
TZ = ZoneInfo("Asia/Kolkata")


def _transport(status=200, calls=None):
    def handler(request):
        if calls is not None:
            calls.append(request)
        return httpx.Response(status)
    return httpx.MockTransport(handler)


def _chart_data(kind="pie", counts=None):
    agg = aggregate_counts(
        counts if counts is not None else {"Infrastructure": 2, "Environmental": 3},
        rng=random.Random(1), now=NOW, tz=TZ,
    )
    return ChartViewData(kind=kind, aggregate=agg)


class TestCdnProbe:
    async def test_successful_probe_is_cached(self):
        calls = []
        adapter = LeafletMapAdapter("https://cdn.test/leaflet.css", "tiles", transport=_transport(200, calls))
        assert adapter.available is False

        assert (await adapter.load()).ok is True
        assert (await adapter.load()).ok is True
        assert adapter.available is True
        assert len(calls) == 1
        assert calls[0].method == "HEAD"

    async def test_http_error(self):
        adapter = GoogleChartsAdapter("https://cdn.test/loader.js", transport=_transport(404))
        result = await adapter.load()
        assert result.ok is False
        assert result.error == "HTTP 404"
        assert adapter.available is False

    async def test_network_error(self):
        def boom(request):
            raise httpx.ConnectError("no route to host", request=request)

        adapter = GoogleChartsAdapter("https://cdn.test/loader.js", transport=httpx.MockTransport(boom))
        result = await adapter.load()
        assert result.ok is False
        assert "no route" in result.error

    async def test_reset(self):
        adapter = GoogleChartsAdapter("https://cdn.test/loader.js", transport=_transport(200))
        await adapter.load()
        adapter.reset()
        assert adapter.available is False


class TestMapRenderers:
    @pytest.mark.parametrize("lat,lng,expected", [
        (10.0, 76.0, (50.0, 50.0)),
        (12.0, 74.0, (5.0, 5.0)),      # corner clamps inward
        (20.0, 90.0, (95.0, 5.0)),     # far outside the grid
    ])
    def test_project(self, lat, lng, expected):
        assert project(lat, lng) == expected

    def test_leaflet_and_grid_share_markers(self):
        data = MapViewData(center=(10.85, 76.27), zoom=7, markers=list(SAMPLE_MARKERS))
        live = LeafletMapAdapter("css", "tiles").render(data)
        fallback = GridMapFallback().render(data)

        assert [m["id"] for m in live["markers"]] == [m["id"] for m in fallback["markers"]]
        assert live["center"] == fallback["center"] == [10.85, 76.27]
        assert fallback["empty_message"] is None
        assert fallback["svg"].startswith("<svg")

    def test_grid_empty_message(self):
        data = MapViewData(center=(10.85, 76.27), zoom=7, markers=[], source="sample")
        payload = GridMapFallback().render(data)
        assert payload["markers"] == []
        assert "No offline map data" in payload["empty_message"]


class TestChartRenderers:
    @pytest.mark.parametrize("kind,ids", [
        ("pie", ["categoryPie"]),
        ("bar", ["categoryBar"]),
        ("trend", ["trendsLine"]),
        ("dashboard", ["categoryPie", "priorityBar", "statusBar", "trendsLine"]),
    ])
    def test_series_per_kind(self, kind, ids):
        assert [s.id for s in chart_series(_chart_data(kind))] == ids

    def test_google_chart_types(self, make_report):
        agg = aggregate([make_report(now=NOW)], AnalyticsFilters(date_range_days=None), NOW, TZ)
        payload = GoogleChartsAdapter("loader").render(ChartViewData(kind="dashboard", aggregate=agg))
        assert [c["type"] for c in payload["charts"]] == ["PieChart", "ColumnChart", "ColumnChart", "LineChart"]
        assert payload["summary"]["total_reports"] == 1

    def test_empty_pie_placeholder(self):
        payload = GoogleChartsAdapter("loader").render(_chart_data(counts={}))
        chart = payload["charts"][0]
        assert chart["data"] == [["Category", "Count"], ["No Data", 1]]
        assert chart["empty"] is True

    def test_svg_percentages(self):
        payload = SvgChartFallback().render(_chart_data())
        items = payload["charts"][0]["items"]
        assert {i["label"]: i["percentage"] for i in items} == {"Infrastructure": 40.0, "Environmental": 60.0}
        assert payload["charts"][0]["svg"].count("<path") == 2

    def test_svg_bar_chart(self):
        payload = SvgChartFallback().render(_chart_data("bar"))
        assert payload["charts"][0]["svg"].count("<rect") == 2

    def test_summary_flags_synthetic_trend(self):
        payload = SvgChartFallback().render(_chart_data("trend"))
        assert payload["summary"]["synthetic_trend"] is True
        assert len(payload["charts"][0]["items"]) == 7
