"""
pytest configuration and shared fixtures for the SurakshaMap API tests.

Key concern: tests must not require a live MongoDB, the network, or
wall-clock waits. We achieve this by:
  1. Patching Database.connect / Database.close to no-ops so FastAPI's
     lifespan doesn't try to reach a real database. Every Runtime
     starts disconnected; tests that need stored reports override
     get_db with the in-memory FakeDB below.
  2. Swapping app.state.runtime for one built on a tmp_path cache, an
     httpx.MockTransport (CDN probes + Nominatim) and a no-op sleep.
"""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

# Set env vars BEFORE importing the app so Settings picks them up correctly
os.environ.setdefault("ENVIRONMENT", "test")


# ── In-memory Motor stand-in ──────────────────────────────────────────────────

class FakeCollection:
    def __init__(self):
        self._docs = {}

    async def find_one(self, query):
        for doc in self._docs.values():
            if self._matches(doc, query):
                return doc
        return None

    async def insert_one(self, doc):
        oid = ObjectId()
        doc = {**doc, "_id": oid}
        self._docs[str(oid)] = doc
        result = MagicMock()
        result.inserted_id = oid
        return result

    async def update_one(self, query, update):
        for doc in self._docs.values():
            if self._matches(doc, query):
                doc.update(update.get("$set", {}))
                for key, amount in update.get("$inc", {}).items():
                    doc[key] = doc.get(key, 0) + amount
                return

    async def count_documents(self, query):
        return sum(1 for d in self._docs.values() if self._matches(d, query))

    def find(self, query=None):
        self._query = query or {}
        self._sorted_docs = list(self._docs.values())
        self._skip_n = 0
        self._limit_n = None
        return self

    def sort(self, key, direction=1):
        self._sorted_docs.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return self

    def skip(self, n):
        self._skip_n = n
        return self

    def limit(self, n):
        self._limit_n = n
        return self

    async def __aiter__(self):
        docs = [d for d in self._sorted_docs if self._matches(d, self._query)]
        end = None if self._limit_n is None else self._skip_n + self._limit_n
        for doc in docs[self._skip_n:end]:
            yield doc

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(k) == v for k, v in query.items())


class FakeDB:
    def __init__(self):
        self._cols = {}

    def __getitem__(self, name):
        if name not in self._cols:
            self._cols[name] = FakeCollection()
        return self._cols[name]


# ── Fake network ──────────────────────────────────────────────────────────────

class FakeNetwork:
    """
    One MockTransport handler for everything the runtime fetches.

    HEAD requests are CDN probes and answer cdn_status. GET /search is
    Nominatim: the first registered place whose name starts the query wins.
    """

    def __init__(self):
        self.cdn_status = 200
        self.places = {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/search"):
            q = request.url.params.get("q", "").lower()
            for name, results in self.places.items():
                if q.startswith(name.lower()):
                    return httpx.Response(200, json=results)
            return httpx.Response(200, json=[])
        return httpx.Response(self.cdn_status)

    @property
    def probes(self):
        return [r for r in self.requests if r.method == "HEAD"]

    @property
    def searches(self):
        return [r for r in self.requests if r.url.path.endswith("/search")]


async def _no_sleep(_seconds):
    return None


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def mock_db():
    """
    Patch the MongoDB lifecycle for every test and reset the rate limiter.

    The runtime's Database never connects, so get_db() yields None unless
    a test overrides it.
    """
    from surakshamap.core.database import Database
    from surakshamap.core.rate_limit import limiter

    with (
        patch.object(Database, "connect", new_callable=AsyncMock),
        patch.object(Database, "close", new_callable=AsyncMock),
    ):
        limiter.reset()
        yield


@pytest.fixture()
def network():
    return FakeNetwork()


@pytest.fixture()
def test_settings(tmp_path):
    from surakshamap.core.config import Settings

    return Settings(
        environment="test",
        offline_cache_dir=str(tmp_path / "cache"),
        assistant_seed=7,
        assistant_failure_rate=0.0,
        trend_seed=11,
    )


@pytest.fixture()
def runtime(test_settings, network):
    """A fresh Runtime installed on the app for the duration of one test."""
    from surakshamap.core.runtime import build_runtime
    from surakshamap.main import app

    rt = build_runtime(test_settings, transport=httpx.MockTransport(network.handler), sleep=_no_sleep)
    original = app.state.runtime
    app.state.runtime = rt
    yield rt
    rt.close()
    app.state.runtime = original


@pytest.fixture()
async def client(runtime):  # noqa: ARG001  (runtime must be installed first)
    """
    HTTPX async test client wired to the FastAPI app, with no database.

    Usage:
        async def test_something(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    from surakshamap.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def fake_db():
    return FakeDB()


@pytest.fixture()
async def db_client(fake_db, runtime):  # noqa: ARG001
    """Like client, but get_db returns the in-memory FakeDB."""
    from surakshamap.core.database import get_db
    from surakshamap.main import app

    app.dependency_overrides[get_db] = lambda: fake_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
def make_report():
    """Factory for ReportOut values; created_at is `days_ago` before now."""
    from surakshamap.models.report import (
        CategoryType,
        ReportLocation,
        ReportOut,
        type_to_label,
    )

    counter = iter(range(1, 10_000))

    def _make(
        category=CategoryType.INFRASTRUCTURE,
        priority="medium",
        status="open",
        days_ago=0.0,
        lat=10.0,
        lng=76.3,
        city="Kochi",
        region="Kerala",
        now=None,
    ):
        now = now or datetime.now(tz=timezone.utc)
        created = now - timedelta(days=days_ago)
        category = CategoryType(category)
        n = next(counter)
        return ReportOut(
            id=f"r{n}",
            title=f"Report {n}",
            description="Something needs fixing here",
            category=category,
            category_label=type_to_label(category),
            location=ReportLocation(name=city or "Unknown", lat=lat, lng=lng, city=city, region=region),
            priority=priority,
            status=status,
            created_at=created,
            updated_at=created,
        )

    return _make
