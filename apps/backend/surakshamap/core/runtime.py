"""
runtime.py — Process-level services, built once and handed to routes.

The MongoDB handle lives here too; the lifespan connects and closes it.

Nothing here is a module-level singleton. main.py calls build_runtime()
and stores the result on app.state; routes receive it through the
get_runtime dependency, and tests swap in their own with
app.dependency_overrides[get_runtime].

    runtime = build_runtime(settings, transport=httpx.MockTransport(handler))
    runtime.selectors["map"].status()
"""

import asyncio
import random
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Awaitable, Callable, Optional
from zoneinfo import ZoneInfo

import httpx
from starlette.requests import HTTPConnection

from surakshamap.ai.assistant import AssistantService
from surakshamap.core.config import Settings
from surakshamap.core.database import Database
from surakshamap.rendering.chart_renderers import GoogleChartsAdapter, SvgChartFallback
from surakshamap.rendering.map_renderers import GridMapFallback, LeafletMapAdapter
from surakshamap.rendering.selector import RenderingModeSelector
from surakshamap.services.connectivity import ConnectivityMonitor
from surakshamap.services.geocoding import NominatimGeocoder
from surakshamap.services.map_view import MapViewBuilder
from surakshamap.services.offline_cache import LocalCacheStore, OfflineSnapshotStore


@dataclass
class Runtime:
    settings: Settings
    monitor: ConnectivityMonitor
    snapshots: OfflineSnapshotStore
    map_view: MapViewBuilder
    assistant: AssistantService
    geocoder: NominatimGeocoder
    database: Database
    tz: tzinfo
    trend_rng: random.Random
    selectors: dict[str, RenderingModeSelector] = field(default_factory=dict)

    def close(self) -> None:
        for selector in self.selectors.values():
            selector.close()


def build_runtime(
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    rng: Optional[random.Random] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Runtime:
    monitor = ConnectivityMonitor(initial_online=settings.assume_online)
    snapshots = OfflineSnapshotStore(
        LocalCacheStore(settings.offline_cache_dir), settings.offline_cache_key
    )
    tz = ZoneInfo(settings.timezone)
    map_view = MapViewBuilder(
        snapshots,
        default_center=(settings.map_default_center_lat, settings.map_default_center_lng),
        default_zoom=settings.map_default_zoom,
        include_samples=settings.include_sample_markers,
        tz=tz,
    )

    assistant = AssistantService(
        monitor,
        rng=rng or random.Random(settings.assistant_seed),
        sleep=sleep,
        latency_min=settings.assistant_latency_min,
        latency_max=settings.assistant_latency_max,
        failure_rate=settings.assistant_failure_rate,
    )
    geocoder = NominatimGeocoder(
        base_url=settings.nominatim_base_url,
        user_agent=settings.geocoder_user_agent,
        timeout=settings.geocoder_timeout,
        transport=transport,
    )

    leaflet = LeafletMapAdapter(
        settings.leaflet_css_url,
        settings.map_tile_url,
        timeout=settings.renderer_probe_timeout,
        transport=transport,
    )
    # The category chart and the dashboard load Google Charts independently.
    selectors = {
        "map": RenderingModeSelector("map", leaflet, GridMapFallback(), monitor),
        "chart": RenderingModeSelector(
            "chart",
            GoogleChartsAdapter(
                settings.google_charts_loader_url,
                timeout=settings.renderer_probe_timeout,
                transport=transport,
            ),
            SvgChartFallback(),
            monitor,
        ),
        "analytics": RenderingModeSelector(
            "analytics",
            GoogleChartsAdapter(
                settings.google_charts_loader_url,
                timeout=settings.renderer_probe_timeout,
                transport=transport,
            ),
            SvgChartFallback(),
            monitor,
        ),
    }

    return Runtime(
        settings=settings,
        monitor=monitor,
        snapshots=snapshots,
        map_view=map_view,
        assistant=assistant,
        geocoder=geocoder,
        database=Database(settings.mongo_uri, settings.mongo_db_name),
        tz=tz,
        trend_rng=random.Random(settings.trend_seed),
        selectors=selectors,
    )


def get_runtime(connection: HTTPConnection) -> Runtime:
    """FastAPI dependency, for HTTP and WebSocket routes alike."""
    return connection.app.state.runtime
