"""
adapters.py — The renderer capability interface.

Every view has two RendererAdapter implementations:

  live      — builds a payload for an external client-side library
              (Leaflet, Google Charts). It must load() first, which
              probes the library's CDN asset; a probe failure means the
              client would not be able to draw it either.
  fallback  — builds a self-contained payload (inline SVG, grid
              positions) on the server. Always available.

The RenderingModeSelector picks one per request. Adapters never compute
their own totals: they draw whatever view data they are handed.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    ok: bool
    error: Optional[str] = None


class RendererAdapter(ABC):
    kind: str = "fallback"

    @property
    @abstractmethod
    def available(self) -> bool: ...

    @abstractmethod
    async def load(self) -> LoadResult: ...

    @abstractmethod
    def render(self, data: Any) -> dict[str, Any]: ...

    def reset(self) -> None:
        """Forget any earlier load so the next load() checks again."""


class FallbackAdapter(RendererAdapter):
    """Local, dependency-free rendering. Nothing to load."""

    kind = "fallback"

    @property
    def available(self) -> bool:
        return True

    async def load(self) -> LoadResult:
        return LoadResult(ok=True)


class CdnLibraryAdapter(RendererAdapter):
    """
    Live adapter for a library the browser pulls from a CDN.

    load() issues a HEAD request against asset_url. Once a probe
    succeeds the adapter stays available until reset() is called; the
    selector resets it whenever it starts a new loading episode.
    """

    kind = "live"
    library: str = ""

    def __init__(
        self,
        asset_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.asset_url = asset_url
        self.timeout = timeout
        self._transport = transport
        self._loaded = False

    @property
    def available(self) -> bool:
        return self._loaded

    def reset(self) -> None:
        self._loaded = False

    async def load(self) -> LoadResult:
        if self._loaded:
            return LoadResult(ok=True)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport, follow_redirects=True
            ) as client:
                response = await client.head(self.asset_url)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "%s asset returned %s: %s", self.library, exc.response.status_code, self.asset_url
            )
            return LoadResult(ok=False, error=f"HTTP {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.warning("%s asset unreachable: %s", self.library, exc)
            return LoadResult(ok=False, error=str(exc) or exc.__class__.__name__)

        self._loaded = True
        logger.info("%s available (%s)", self.library, self.asset_url)
        return LoadResult(ok=True)
