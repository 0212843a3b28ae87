"""
selector.py — Rendering Mode Selector, one instance per view.

States
──────
  loading          nothing decided yet, the next render tries the live adapter
  live             live adapter loaded; renders go through it
  error-transient  first load attempt failed, one retry pending
  fallback         fallback adapter renders everything

Transitions
───────────
  loading          → live             load ok, online, no manual override
  loading / live   → fallback         offline, manual override, load or draw failure
  error-transient  → live | fallback  the single retry succeeds | fails
  fallback         → loading          set_manual_override(False), or an
                                      offline → online transition

Nothing else leaves fallback. A selector that gave up on the live library
keeps serving the fallback until a user or connectivity event asks it to
try again, so the client never flickers between renderers on its own.

Entering loading resets the live adapter, so every loading episode probes
its library again. A trigger that fires while a probe is in flight wins
over the probe's result.

Whatever the state, live and fallback receive the same view data and the
RenderResult total is read from that data.
"""

import asyncio
import logging
from typing import Any, Optional

from surakshamap.models.render import RenderResult, RenderState, SelectorStatus
from surakshamap.rendering.adapters import RendererAdapter
from surakshamap.services.connectivity import ConnectivityMonitor

logger = logging.getLogger(__name__)

MAX_LOAD_ATTEMPTS = 2  # first try + exactly one retry

OFFLINE_MESSAGE = "You're currently offline. Showing fallback rendering."
MANUAL_MESSAGE = "Offline mode enabled. Showing fallback rendering."
LOAD_FAILED_MESSAGE = "{library} failed to load. Showing fallback rendering."
DRAW_FAILED_MESSAGE = "{library} could not draw this view. Showing fallback rendering."


class RenderingModeSelector:
    def __init__(
        self,
        view: str,
        live: RendererAdapter,
        fallback: RendererAdapter,
        monitor: ConnectivityMonitor,
    ) -> None:
        self.view = view
        self.live = live
        self.fallback = fallback
        self.monitor = monitor
        self.state = RenderState.LOADING
        self.manual_fallback = False
        self.load_attempts = 0
        self._fallback_message: Optional[str] = None
        self._episode = 0
        self._lock = asyncio.Lock()
        self._unsubscribe = monitor.subscribe(self._on_connectivity)

    @property
    def _library(self) -> str:
        return getattr(self.live, "library", "") or "Rendering library"

    # ── Triggers ──────────────────────────────────────────────────────────────

    def _on_connectivity(self, online: bool) -> None:
        if online:
            if not self.manual_fallback:
                logger.info("[%s] back online, reloading live renderer", self.view)
                self._enter_loading()
        else:
            self._enter_fallback(OFFLINE_MESSAGE)

    def set_manual_override(self, fallback: bool) -> None:
        self.manual_fallback = fallback
        if fallback:
            self._enter_fallback(MANUAL_MESSAGE)
        else:
            self._enter_loading()

    def _enter_loading(self) -> None:
        self._episode += 1
        self.live.reset()
        self.state = RenderState.LOADING
        self.load_attempts = 0
        self._fallback_message = None

    def _enter_fallback(self, message: str) -> None:
        if self.state != RenderState.FALLBACK:
            logger.info("[%s] switching to fallback: %s", self.view, message)
        self._episode += 1
        self.state = RenderState.FALLBACK
        self._fallback_message = message

    # ── Loading ───────────────────────────────────────────────────────────────

    def _can_go_live(self) -> bool:
        return self.monitor.online and not self.manual_fallback

    async def _load_live(self) -> None:
        async with self._lock:
            if self.state not in (RenderState.LOADING, RenderState.ERROR_TRANSIENT):
                return
            episode = self._episode
            while self.load_attempts < MAX_LOAD_ATTEMPTS:
                self.load_attempts += 1
                result = await self.live.load()
                # A trigger fired while the probe was in flight; its state wins.
                if episode != self._episode or not self._can_go_live():
                    return
                if result.ok:
                    self.state = RenderState.LIVE
                    return
                logger.warning(
                    "[%s] %s load attempt %d failed: %s",
                    self.view, self._library, self.load_attempts, result.error,
                )
                self.state = RenderState.ERROR_TRANSIENT
            self._enter_fallback(LOAD_FAILED_MESSAGE.format(library=self._library))

    # ── Rendering ─────────────────────────────────────────────────────────────

    async def render(self, data: Any) -> RenderResult:
        if not self.monitor.online:
            self._enter_fallback(OFFLINE_MESSAGE)
        elif self.manual_fallback:
            self._enter_fallback(MANUAL_MESSAGE)
        elif self.state in (RenderState.LOADING, RenderState.ERROR_TRANSIENT):
            await self._load_live()

        if self.state == RenderState.LIVE and self._can_go_live():
            try:
                payload = self.live.render(data)
            except Exception as exc:
                logger.error("[%s] %s draw failed: %s", self.view, self._library, exc)
                self._enter_fallback(DRAW_FAILED_MESSAGE.format(library=self._library))
            else:
                return RenderResult(
                    view=self.view,
                    mode="live",
                    state=self.state,
                    total=data.total,
                    payload=payload,
                )

        return RenderResult(
            view=self.view,
            mode="fallback",
            state=self.state,
            total=data.total,
            payload=self.fallback.render(data),
            message=self._fallback_message,
        )

    def status(self) -> SelectorStatus:
        return SelectorStatus(
            view=self.view,
            state=self.state,
            manual_fallback=self.manual_fallback,
            live_available=self.live.available,
        )

    def close(self) -> None:
        self._unsubscribe()
