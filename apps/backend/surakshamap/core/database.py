"""
MongoDB connection management using Motor (async driver).

A Database is constructed by build_runtime() and lives on the Runtime,
so each app (and each test) owns its own connection. Routes never talk
to it directly: they receive a database handle through the get_db
dependency and wrap it in an explicitly constructed ReportStore (see
services/report_store.py).

The connection is opened in FastAPI's lifespan (startup) and closed
on shutdown.
"""

import logging
import re

import certifi
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from starlette.requests import HTTPConnection

logger = logging.getLogger(__name__)


class Database:
    """Holds the Motor client and selected database; both None until connected."""

    def __init__(self, uri: str, name: str, server_selection_timeout_ms: int = 5000) -> None:
        self.uri = uri
        self.name = name
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.client: AsyncIOMotorClient | None = None
        self.db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """
        Create the MongoDB connection and validate it with a ping.

        Fails gracefully if MongoDB is unavailable: the API keeps serving,
        map and analytics views fall back to the offline snapshot, and write
        endpoints answer 503.
        """
        logger.info("Connecting to MongoDB at %s", _redact_uri(self.uri))
        try:
            self.client = AsyncIOMotorClient(
                self.uri,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                tlsCAFile=certifi.where(),
            )
            self.db = self.client[self.name]
            await self.client.admin.command("ping")
            logger.info("MongoDB connection established (db: %s)", self.name)
        except Exception as exc:
            logger.warning(
                "MongoDB unavailable at startup: %s. "
                "API running in degraded mode, DB endpoints will answer 503.",
                exc,
            )
            self.client = None
            self.db = None

    async def close(self) -> None:
        """Close the MongoDB connection gracefully on app shutdown."""
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB connection closed")
        self.client = None
        self.db = None

    async def ping(self) -> bool:
        if self.client is None:
            return False
        try:
            await self.client.admin.command("ping")
        except Exception as exc:
            logger.warning("DB ping failed: %s", exc)
            return False
        return True


def get_db(connection: HTTPConnection) -> AsyncIOMotorDatabase | None:
    """
    FastAPI dependency — inject the app's database into route handlers.

    Returns None when MongoDB is unavailable so routes can degrade
    gracefully rather than returning 500 errors.
    """
    return connection.app.state.runtime.database.db


def _redact_uri(uri: str) -> str:
    """Strip credentials from URI before logging."""
    return re.sub(r"://[^:]+:[^@]+@", "://<redacted>@", uri)
