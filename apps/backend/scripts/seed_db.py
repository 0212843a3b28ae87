#!/usr/bin/env python3
"""
seed_db.py — Populate MongoDB with sample Kerala civic reports for local development.

Usage (from apps/backend/):
    python scripts/seed_db.py           # replace existing seed reports
    python scripts/seed_db.py --append  # add without clearing first

Prerequisites:
    • MONGO_URI env var set (or .env file present)
    • `pip install -e .` from the repository root

Seed documents carry "seed": True so a re-run only removes what it
inserted. Creation dates are spread over the last two weeks so the
analytics trend and period-over-period KPIs have something to show.
"""

import argparse
import asyncio
import os
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import certifi
from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorClient

ROOT = Path(__file__).parent.parent
load_dotenv(ROOT / ".env")

MONGO_URI = os.environ.get("MONGO_URI", "")
MONGO_DB_NAME = os.environ.get("MONGO_DB_NAME", "surakshamap")

if not MONGO_URI:
    print("ERROR: MONGO_URI not set. Add it to apps/backend/.env")
    sys.exit(1)

# (title, description, category, priority, status, place, lat, lng, city)
SAMPLE_REPORTS = [
    ("Road Pothole", "Large pothole causing traffic disruption on NH47",
     "infrastructure", "high", "open", "NH47, Thrissur", 10.8505, 76.2711, "Thrissur"),
    ("Street Light Outage", "Multiple street lights not working in residential area",
     "infrastructure", "medium", "in-progress", "Kaloor, Kochi", 9.9312, 76.2673, "Kochi"),
    ("Water Logging", "Heavy water logging after recent rains",
     "environment", "high", "open", "Mavoor Road, Kozhikode", 11.2588, 75.7804, "Kozhikode"),
    ("Traffic Signal Issue", "Traffic signal malfunctioning during peak hours",
     "safety", "high", "resolved", "Chinnakada, Kollam", 8.8932, 76.6141, "Kollam"),
    ("Waste Accumulation", "Garbage not collected for over a week",
     "environment", "medium", "open", "Swaraj Round, Thrissur", 10.5276, 76.2144, "Thrissur"),
    ("Broken Footpath", "Footpath slabs missing outside the bus stand",
     "infrastructure", "low", "open", "East Fort, Thiruvananthapuram", 8.4827, 76.9480,
     "Thiruvananthapuram"),
    ("Illegal Parking", "Vehicles parked on both sides block the ambulance route",
     "traffic", "urgent", "open", "MG Road, Kochi", 9.9716, 76.2852, "Kochi"),
    ("Open Drain", "Uncovered drain next to the school gate is a hazard for children",
     "safety", "urgent", "in-progress", "Kannur Town", 11.8745, 75.3704, "Kannur"),
    ("River Dumping", "Plastic waste dumped into the river near the ghat",
     "environment", "medium", "rejected", "Aluva", 10.1004, 76.3570, "Aluva"),
    ("Stray Cattle", "Cattle wandering on the bypass at night",
     "other", "low", "resolved", "Palakkad Bypass", 10.7867, 76.6548, "Palakkad"),
]


def _docs(now: datetime) -> list[dict]:
    rng = random.Random(2024)
    docs = []
    for title, description, category, priority, status, place, lat, lng, city in SAMPLE_REPORTS:
        created = now - timedelta(days=rng.uniform(0, 14))
        docs.append({
            "title": title,
            "description": description,
            "category": category,
            "location": {"name": place, "lat": lat, "lng": lng, "city": city, "region": "Kerala"},
            "priority": priority,
            "status": status,
            "image_url": None,
            "upvotes": rng.randint(0, 25),
            "downvotes": rng.randint(0, 3),
            "deleted": False,
            "seed": True,
            "created_at": created,
            "updated_at": created,
        })
    return docs


async def seed(append: bool) -> None:
    print("Connecting to MongoDB...")
    client = AsyncIOMotorClient(MONGO_URI, tlsCAFile=certifi.where())
    db = client[MONGO_DB_NAME]

    try:
        await client.admin.command("ping")
        print("Connected.")

        # ─── Clean up previous seed data ──────────────────────────────────────
        if not append:
            deleted = await db.reports.delete_many({"seed": True})
            print(f"Removed {deleted.deleted_count} existing seed reports.")

        # ─── Insert sample reports ────────────────────────────────────────────
        result = await db.reports.insert_many(_docs(datetime.now(timezone.utc)))
        print(f"Inserted {len(result.inserted_ids)} reports.")

        # ─── Ensure indexes exist ─────────────────────────────────────────────
        await db.reports.create_index([("deleted", 1), ("created_at", -1)])
        await db.reports.create_index([("category", 1), ("status", 1), ("priority", 1)])
        print("Indexes ensured.")

        print("\nSeed complete! Reports per category:")
        pipeline = [
            {"$match": {"deleted": False}},
            {"$group": {"_id": "$category", "count": {"$sum": 1}}},
        ]
        async for doc in db.reports.aggregate(pipeline):
            print(f"  {doc['_id']}: {doc['count']} reports")

    finally:
        client.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--append", action="store_true", help="keep existing seed reports")
    asyncio.run(seed(parser.parse_args().append))
