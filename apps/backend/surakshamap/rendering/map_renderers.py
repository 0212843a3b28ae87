"""
map_renderers.py — Live (Leaflet) and fallback (static grid) map renderers.

LeafletMapAdapter returns the configuration the web client hands to
Leaflet: OpenStreetMap tiles, viewport and one entry per marker.

GridMapFallback places markers on a 12 × 16 tile grid covering Kerala by
linear projection of lat/lng onto percentages, clamped to 5–95 % so pins
near the border stay clickable, and also ships the same picture as an
inline SVG.
"""

from html import escape
from typing import Any, Optional

import httpx

from surakshamap.models.render import MapViewData
from surakshamap.rendering.adapters import CdnLibraryAdapter, FallbackAdapter

# Approximate Kerala bounds used by the static grid.
GRID_BOUNDS = {"north": 12.0, "south": 8.0, "east": 78.0, "west": 74.0}
GRID_ROWS = 12
GRID_COLS = 16
_CLAMP = (5.0, 95.0)

OSM_ATTRIBUTION = "© OpenStreetMap contributors"


def _clamp(value: float) -> float:
    return max(_CLAMP[0], min(_CLAMP[1], value))


def project(lat: float, lng: float) -> tuple[float, float]:
    """lat/lng → (x %, y %) on the offline grid."""
    x = (lng - GRID_BOUNDS["west"]) / (GRID_BOUNDS["east"] - GRID_BOUNDS["west"]) * 100
    y = (GRID_BOUNDS["north"] - lat) / (GRID_BOUNDS["north"] - GRID_BOUNDS["south"]) * 100
    return round(_clamp(x), 2), round(_clamp(y), 2)


class LeafletMapAdapter(CdnLibraryAdapter):
    library = "Leaflet"

    def __init__(
        self,
        css_url: str,
        tile_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(css_url, timeout=timeout, transport=transport)
        self.tile_url = tile_url

    def render(self, data: MapViewData) -> dict[str, Any]:
        return {
            "library": "leaflet",
            "css_url": self.asset_url,
            "tile_url": self.tile_url,
            "attribution": OSM_ATTRIBUTION,
            "max_zoom": 19,
            "center": list(data.center),
            "zoom": data.zoom,
            "source": data.source,
            "markers": [
                {
                    "id": m.id,
                    "lat": m.lat,
                    "lng": m.lng,
                    "title": m.title,
                    "description": m.description,
                    "category": m.category_label.value,
                    "priority": m.priority.value,
                    "status": m.status.value,
                    "date": m.date,
                    "color": m.priority_color,
                    "badge": m.status_badge,
                }
                for m in data.markers
            ],
        }


class GridMapFallback(FallbackAdapter):
    def render(self, data: MapViewData) -> dict[str, Any]:
        pins = []
        for m in data.markers:
            x, y = project(m.lat, m.lng)
            pins.append(
                {
                    "id": m.id,
                    "x": x,
                    "y": y,
                    "title": m.title,
                    "category": m.category_label.value,
                    "priority": m.priority.value,
                    "status": m.status.value,
                    "color": m.priority_color,
                    "badge": m.status_badge,
                }
            )

        if not pins:
            message = (
                "No offline map data available. "
                "Connect to internet to download map data for offline use."
            )
        else:
            message = None

        return {
            "library": "static-grid",
            "grid": {"rows": GRID_ROWS, "cols": GRID_COLS},
            "bounds": GRID_BOUNDS,
            "center": list(data.center),
            "zoom": data.zoom,
            "source": data.source,
            "last_updated": data.last_updated.isoformat() if data.last_updated else None,
            "markers": pins,
            "svg": _grid_svg(pins),
            "empty_message": message,
        }


def _grid_svg(pins: list[dict[str, Any]]) -> str:
    cells = []
    for row in range(GRID_ROWS):
        for col in range(GRID_COLS):
            fill = "#3b82f61a" if (row + col) % 2 == 0 else "#22c55e1a"
            cells.append(
                f'<rect x="{col * 100 / GRID_COLS:.4f}" y="{row * 100 / GRID_ROWS:.4f}" '
                f'width="{100 / GRID_COLS:.4f}" height="{100 / GRID_ROWS:.4f}" fill="{fill}"/>'
            )
    dots = [
        f'<circle cx="{p["x"]}" cy="{p["y"]}" r="1.5" fill="{p["color"]}" '
        f'stroke="#ffffff" stroke-width="0.4"><title>{escape(p["title"])}</title></circle>'
        for p in pins
    ]
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100" '
        'preserveAspectRatio="none">' + "".join(cells) + "".join(dots) + "</svg>"
    )
