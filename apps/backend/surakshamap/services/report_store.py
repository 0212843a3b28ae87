"""
report_store.py — Document-database access for civic reports.

ReportStore wraps a Motor database handle. It is constructed per request
by the get_report_store dependency, so nothing in the app reaches for a
process-wide client and tests can hand in a FakeDB.

Collection: reports
  {
    "title": str, "description": str,
    "category": "safety" | "infrastructure" | "environment" | "traffic" | "other",
    "location": {"name", "lat", "lng", "city", "region"},
    "priority": "low" | "medium" | "high" | "urgent",
    "status": "open" | "in-progress" | "resolved" | "rejected",
    "image_url": str | None,
    "upvotes": int, "downvotes": int,
    "deleted": bool,
    "created_at": datetime, "updated_at": datetime
  }

Reports are never removed: delete() sets deleted=True and every read
filters on deleted=False.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from surakshamap.core.database import get_db
from surakshamap.models.report import (
    CategoryType,
    Priority,
    ReportLocation,
    ReportOut,
    ReportUpdate,
    Status,
    type_to_label,
)

logger = logging.getLogger(__name__)

COLLECTION = "reports"


class InvalidReportId(ValueError):
    pass


def parse_report_id(report_id: str) -> ObjectId:
    try:
        return ObjectId(report_id)
    except (InvalidId, TypeError):
        raise InvalidReportId(report_id)


def _aware(value: Optional[datetime]) -> datetime:
    # Motor hands back naive UTC datetimes unless the client is tz_aware.
    if value is None:
        return datetime.now(tz=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def doc_to_report(doc: dict) -> ReportOut:
    category = CategoryType(doc.get("category", CategoryType.OTHER.value))
    created_at = _aware(doc.get("created_at"))
    return ReportOut(
        id=str(doc["_id"]),
        title=doc.get("title") or f"New Report: {type_to_label(category).value}",
        description=doc.get("description", ""),
        category=category,
        category_label=type_to_label(category),
        location=ReportLocation(**(doc.get("location") or {"name": "Unknown"})),
        priority=doc.get("priority", Priority.MEDIUM.value),
        status=doc.get("status", Status.OPEN.value),
        image_url=doc.get("image_url"),
        upvotes=doc.get("upvotes", 0),
        downvotes=doc.get("downvotes", 0),
        created_at=created_at,
        updated_at=_aware(doc.get("updated_at") or created_at),
    )


class ReportStore:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.collection = db[COLLECTION]

    @staticmethod
    def _query(
        category: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> dict:
        query: dict = {"deleted": False}
        if category:
            query["category"] = category
        if status:
            query["status"] = status
        if priority:
            query["priority"] = priority
        return query

    async def create(
        self,
        *,
        title: str,
        description: str,
        category: CategoryType,
        location: ReportLocation,
        priority: Priority = Priority.MEDIUM,
        image_url: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ReportOut:
        now = now or datetime.now(tz=timezone.utc)
        doc = {
            "title": title,
            "description": description,
            "category": category.value,
            "location": location.model_dump(),
            "priority": priority.value,
            "status": Status.OPEN.value,
            "image_url": image_url,
            "upvotes": 0,
            "downvotes": 0,
            "deleted": False,
            "created_at": now,
            "updated_at": now,
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Report %s created (%s)", doc["_id"], category.value)
        return doc_to_report(doc)

    async def get(self, report_id: str) -> Optional[ReportOut]:
        doc = await self.collection.find_one({"_id": parse_report_id(report_id), "deleted": False})
        return doc_to_report(doc) if doc else None

    async def count(self, **filters: Optional[str]) -> int:
        return await self.collection.count_documents(self._query(**filters))

    async def list_reports(
        self,
        *,
        skip: int = 0,
        limit: Optional[int] = None,
        **filters: Optional[str],
    ) -> list[ReportOut]:
        cursor = self.collection.find(self._query(**filters)).sort("created_at", -1).skip(skip)
        if limit is not None:
            cursor = cursor.limit(limit)

        reports = []
        async for doc in cursor:
            try:
                reports.append(doc_to_report(doc))
            except Exception as exc:
                logger.warning("Skipping malformed report doc %s: %s", doc.get("_id"), exc)
        return reports

    async def update(self, report_id: str, changes: ReportUpdate) -> Optional[ReportOut]:
        oid = parse_report_id(report_id)
        fields = {k: v.value for k, v in changes.model_dump(exclude_none=True).items()}
        fields["updated_at"] = datetime.now(tz=timezone.utc)
        await self.collection.update_one({"_id": oid, "deleted": False}, {"$set": fields})
        return await self.get(report_id)

    async def vote(self, report_id: str, direction: str) -> Optional[ReportOut]:
        oid = parse_report_id(report_id)
        counter = "upvotes" if direction == "up" else "downvotes"
        await self.collection.update_one(
            {"_id": oid, "deleted": False},
            {"$inc": {counter: 1}, "$set": {"updated_at": datetime.now(tz=timezone.utc)}},
        )
        return await self.get(report_id)

    async def delete(self, report_id: str) -> bool:
        oid = parse_report_id(report_id)
        existing = await self.collection.find_one({"_id": oid, "deleted": False})
        if not existing:
            return False
        await self.collection.update_one(
            {"_id": oid},
            {"$set": {"deleted": True, "updated_at": datetime.now(tz=timezone.utc)}},
        )
        return True


def get_report_store(db=Depends(get_db)) -> Optional[ReportStore]:
    """FastAPI dependency — None when MongoDB is unavailable."""
    return ReportStore(db) if db is not None else None


async def load_reports_safely(store: Optional[ReportStore]) -> Optional[list[ReportOut]]:
    """
    Every live report, or None when the store is missing or failing.

    The map and analytics views treat None as "offline data only".
    """
    if store is None:
        return None
    try:
        return await store.list_reports()
    except Exception as exc:
        logger.warning("Report store query failed, degrading to offline data: %s", exc)
        return None
