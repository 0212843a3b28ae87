"""
Tests for the map view: MapViewBuilder source selection and the
/api/v1/map routes, live and degraded.
"""

from datetime import datetime, timezone

from surakshamap.models.report import CategoryType
from surakshamap.rendering.selector import OFFLINE_MESSAGE
from surakshamap.services.map_view import SAMPLE_MARKERS
from surakshamap.services.normalizer import build_marker

REPORT = {
    "location": "Thrissur Round",
    "coordinates": {"lat": 10.52, "lon": 76.21},
    "description": "Overflowing drain next to the temple entrance",
    "category": "Environmental",
}


def _pin(id_="saved"):
    return build_marker(
        id=id_, lat=10.0, lng=76.5, title="Saved pin", description="d",
        category=CategoryType.SAFETY, date="2024-01-01",
    )


class TestMapViewBuilder:
    def test_live_includes_samples_and_reports(self, runtime, make_report):
        data = runtime.map_view.build([make_report()])
        assert data.source == "live"
        assert data.total == len(SAMPLE_MARKERS) + 1

    def test_no_store_no_snapshot_uses_samples(self, runtime):
        data = runtime.map_view.build(None)
        assert data.source == "sample"
        assert [m.id for m in data.markers] == ["1", "2", "3", "4", "5"]
        assert data.center == (10.8505, 76.2711)
        assert data.zoom == 7

    def test_no_store_restores_snapshot(self, runtime):
        runtime.map_view.save_snapshot([_pin()], center=(9.5, 76.5), zoom=10)
        data = runtime.map_view.build(None)
        assert data.source == "snapshot"
        assert [m.id for m in data.markers] == ["saved"]
        assert (data.center, data.zoom) == ((9.5, 76.5), 10)
        assert data.last_updated is not None

    def test_viewport_comes_from_snapshot(self, runtime):
        runtime.map_view.save_snapshot([], center=(9.5, 76.5), zoom=10)
        data = runtime.map_view.build([])
        assert (data.center, data.zoom) == ((9.5, 76.5), 10)


class TestMapRoutes:
    async def test_markers_without_db(self, client):
        markers = (await client.get("/api/v1/map/markers")).json()
        assert len(markers) == len(SAMPLE_MARKERS)

    async def test_markers_with_reports(self, db_client):
        await db_client.post("/api/v1/reports", json=REPORT)
        markers = (await db_client.get("/api/v1/map/markers")).json()
        assert len(markers) == len(SAMPLE_MARKERS) + 1
        assert markers[-1]["category_label"] == "Environmental"
        assert markers[-1]["priority_color"] == "#f59e0b"

    async def test_live_render(self, client, network):
        data = (await client.get("/api/v1/map")).json()
        assert data["mode"] == "live"
        assert data["state"] == "live"
        assert data["payload"]["library"] == "leaflet"
        assert data["total"] == len(SAMPLE_MARKERS)
        assert len(network.probes) == 1

    async def test_live_render_refreshes_snapshot(self, db_client, runtime):
        await db_client.post("/api/v1/reports", json=REPORT)
        await db_client.get("/api/v1/map")
        snapshot = runtime.snapshots.load()
        assert snapshot is not None
        assert len(snapshot.markers) == len(SAMPLE_MARKERS) + 1

    async def test_cdn_down_falls_back_after_retry(self, client, network):
        network.cdn_status = 503
        data = (await client.get("/api/v1/map")).json()
        assert data["mode"] == "fallback"
        assert data["payload"]["library"] == "static-grid"
        assert "Leaflet failed to load" in data["message"]
        assert len(network.probes) == 2

        await client.get("/api/v1/map")
        assert len(network.probes) == 2

    async def test_offline_render(self, client, network):
        await client.post("/api/v1/connectivity", json={"online": False})
        data = (await client.get("/api/v1/map")).json()
        assert data["mode"] == "fallback"
        assert data["message"] == OFFLINE_MESSAGE
        assert network.probes == []

    async def test_db_down_renders_snapshot(self, client, runtime):
        runtime.map_view.save_snapshot(
            [_pin()], now=datetime(2024, 1, 10, tzinfo=timezone.utc)
        )
        data = (await client.get("/api/v1/map")).json()
        assert data["payload"]["source"] == "snapshot"
        assert data["total"] == 1


class TestSnapshotRoutes:
    async def test_missing_snapshot_404(self, client):
        assert (await client.get("/api/v1/map/snapshot")).status_code == 404

    async def test_save_and_read_back(self, client):
        r = await client.post("/api/v1/map/snapshot", json={"center": [10.1, 76.4], "zoom": 9})
        assert r.status_code == 201
        saved = r.json()
        assert saved["center"] == [10.1, 76.4]
        assert saved["zoom"] == 9
        assert len(saved["markers"]) == len(SAMPLE_MARKERS)

        restored = (await client.get("/api/v1/map/snapshot")).json()
        assert restored == saved

    async def test_save_without_body_uses_defaults(self, client):
        saved = (await client.post("/api/v1/map/snapshot")).json()
        assert saved["center"] == [10.8505, 76.2711]
        assert saved["zoom"] == 7
