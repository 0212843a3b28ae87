"""
map_view.py — Assembles the data both map renderers draw from.

Sources, in order of preference:
  1. the report store (plus the sample markers) when MongoDB is reachable
  2. the offline snapshot when it is not
  3. the sample markers alone when there is no snapshot either

The viewport always comes from the snapshot when one exists, so a restart
restores the last centre and zoom the user saved.
"""

import logging
from datetime import datetime, timezone, tzinfo
from typing import Optional

from surakshamap.models.render import MapViewData, OfflineSnapshot
from surakshamap.models.report import CategoryType, Marker, Priority, ReportOut, Status
from surakshamap.services.normalizer import build_marker, to_markers
from surakshamap.services.offline_cache import OfflineSnapshotStore

logger = logging.getLogger(__name__)


# ── Seed data ─────────────────────────────────────────────────────────────────
#
# Demonstration pins shown alongside real reports (settings.include_sample_markers).

SAMPLE_MARKERS: list[Marker] = [
    build_marker(id="1", lat=10.8505, lng=76.2711, title="Road Pothole",
                 description="Large pothole causing traffic disruption on NH47",
                 category=CategoryType.INFRASTRUCTURE, priority=Priority.HIGH,
                 status=Status.OPEN, date="2024-01-10"),
    build_marker(id="2", lat=9.9312, lng=76.2673, title="Street Light Outage",
                 description="Multiple street lights not working in residential area",
                 category=CategoryType.INFRASTRUCTURE, priority=Priority.MEDIUM,
                 status=Status.IN_PROGRESS, date="2024-01-08"),
    build_marker(id="3", lat=11.2588, lng=75.7804, title="Water Logging",
                 description="Heavy water logging after recent rains",
                 category=CategoryType.ENVIRONMENT, priority=Priority.HIGH,
                 status=Status.OPEN, date="2024-01-05"),
    build_marker(id="4", lat=8.8932, lng=76.6141, title="Traffic Signal Issue",
                 description="Traffic signal malfunctioning during peak hours",
                 category=CategoryType.SAFETY, priority=Priority.HIGH,
                 status=Status.RESOLVED, date="2024-01-12"),
    build_marker(id="5", lat=10.5276, lng=76.2144, title="Waste Accumulation",
                 description="Garbage not collected for over a week",
                 category=CategoryType.ENVIRONMENT, priority=Priority.MEDIUM,
                 status=Status.OPEN, date="2024-01-07"),
]


class MapViewBuilder:
    def __init__(
        self,
        snapshots: OfflineSnapshotStore,
        default_center: tuple[float, float],
        default_zoom: int,
        include_samples: bool = True,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self.snapshots = snapshots
        self.default_center = default_center
        self.default_zoom = default_zoom
        self.include_samples = include_samples
        self.tz = tz

    def _samples(self) -> list[Marker]:
        return list(SAMPLE_MARKERS) if self.include_samples else []

    def current_markers(self, reports: list[ReportOut]) -> list[Marker]:
        return self._samples() + to_markers(reports, tz=self.tz)

    def build(self, reports: Optional[list[ReportOut]]) -> MapViewData:
        """reports=None means the report store is unreachable."""
        snapshot = self.snapshots.load()
        center = snapshot.center if snapshot else self.default_center
        zoom = snapshot.zoom if snapshot else self.default_zoom

        if reports is not None:
            return MapViewData(center=center, zoom=zoom, markers=self.current_markers(reports))

        if snapshot is not None:
            logger.info("Report store unavailable, restoring offline snapshot")
            return MapViewData(
                center=snapshot.center,
                zoom=snapshot.zoom,
                markers=snapshot.markers,
                source="snapshot",
                last_updated=snapshot.last_updated,
            )

        return MapViewData(center=center, zoom=zoom, markers=self._samples(), source="sample")

    def save_snapshot(
        self,
        markers: list[Marker],
        center: Optional[tuple[float, float]] = None,
        zoom: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Optional[OfflineSnapshot]:
        """Capture a whole snapshot and overwrite the slot. Returns None if the write failed."""
        snapshot = OfflineSnapshot(
            center=center or self.default_center,
            zoom=zoom if zoom is not None else self.default_zoom,
            markers=markers,
            last_updated=now or datetime.now(tz=timezone.utc),
        )
        return snapshot if self.snapshots.save(snapshot) else None
