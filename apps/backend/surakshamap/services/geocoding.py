"""
NominatimGeocoder — place name → coordinates, restricted to Kerala.

Used by the report submission route when the form did not send
coordinates, and by GET /api/v1/geocode for the form's lookup button.

Each query is tried as "<q>, Kerala, India", "<q> Kerala" and "<q>, India"
against the Nominatim search endpoint with a bounded Kerala viewbox. A
candidate is accepted only if its display name mentions Kerala or one of
its districts / major cities AND its coordinates fall inside the Kerala
bounding box. The first accepted candidate wins.

Graceful degradation: HTTP errors and timeouts are logged and the variant
is skipped. A miss returns None; the route turns that into a field error
the user can fix.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

# west, north, east, south
KERALA_VIEWBOX = (74.8, 12.5, 77.5, 8.2)
KERALA_LAT_RANGE = (8.2, 12.5)
KERALA_LON_RANGE = (74.8, 77.5)

KERALA_PLACE_NAMES = (
    "kerala", "kochi", "thiruvananthapuram", "kozhikode", "kollam", "thrissur",
    "palakkad", "malappuram", "kannur", "kasaragod", "pathanamthitta",
    "alappuzha", "kottayam", "idukki", "ernakulam", "wayanad",
)

MIN_QUERY_LENGTH = 2


class LocationNotFoundError(Exception):
    """The geocoder could not place a free-text location inside Kerala."""

    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(
            f'Could not find "{query}" in Kerala. '
            "Please check the spelling or try a nearby landmark."
        )


@dataclass
class GeocodeResult:
    lat: float
    lon: float
    name: str
    city: Optional[str] = None
    region: Optional[str] = None


def _in_kerala(lat: float, lon: float) -> bool:
    return (
        KERALA_LAT_RANGE[0] <= lat <= KERALA_LAT_RANGE[1]
        and KERALA_LON_RANGE[0] <= lon <= KERALA_LON_RANGE[1]
    )


def _mentions_kerala(display_name: str) -> bool:
    lowered = display_name.lower()
    return any(place in lowered for place in KERALA_PLACE_NAMES)


def _city_from_address(address: dict[str, Any]) -> Optional[str]:
    for key in ("city", "town", "village", "suburb", "county", "state_district"):
        if address.get(key):
            return address[key]
    return None


class NominatimGeocoder:
    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org",
        user_agent: str = "SurakshaMap/0.1",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self._transport = transport

    @staticmethod
    def query_variants(query: str) -> list[str]:
        return [f"{query}, Kerala, India", f"{query} Kerala", f"{query}, India"]

    async def _search(self, client: httpx.AsyncClient, query: str) -> list[dict[str, Any]]:
        west, north, east, south = KERALA_VIEWBOX
        try:
            response = await client.get(
                f"{self.base_url}/search",
                params={
                    "format": "json",
                    "q": query,
                    "limit": 10,
                    "addressdetails": 1,
                    "bounded": 1,
                    "viewbox": f"{west},{north},{east},{south}",
                },
            )
            response.raise_for_status()
            data = response.json()
            return data if isinstance(data, list) else []
        except httpx.HTTPStatusError as exc:
            logger.warning("Nominatim error: %s for %r", exc.response.status_code, query)
            return []
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Nominatim request failed for %r: %s", query, exc)
            return []

    @staticmethod
    def pick_candidate(candidates: list[dict[str, Any]]) -> Optional[GeocodeResult]:
        matching = [c for c in candidates if _mentions_kerala(c.get("display_name", ""))]
        if not matching:
            return None
        best = matching[0]
        try:
            lat, lon = float(best["lat"]), float(best["lon"])
        except (KeyError, TypeError, ValueError):
            return None
        if not _in_kerala(lat, lon):
            return None
        address = best.get("address") or {}
        return GeocodeResult(
            lat=lat,
            lon=lon,
            name=best["display_name"],
            city=_city_from_address(address),
            region=address.get("state"),
        )

    async def geocode(self, query: str) -> Optional[GeocodeResult]:
        query = query.strip()
        if len(query) < MIN_QUERY_LENGTH:
            return None

        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        ) as client:
            for variant in self.query_variants(query):
                result = self.pick_candidate(await self._search(client, variant))
                if result is not None:
                    return result

        logger.info("No Kerala match for location %r", query)
        return None
