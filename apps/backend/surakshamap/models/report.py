"""
report.py — Pydantic schemas for civic issue reports and map markers.

Two category vocabularies exist side by side:
  CategoryLabel — what the report form and charts show ("Safety Issue")
  CategoryType  — what is stored on documents and markers ("safety")

They are joined by label_to_type / type_to_label. Any other string that
claims to be a category goes through parse_label, which never raises.

ReportSubmission  — what the report form sends
ReportOut         — stored report retrieved from DB
ReportUpdate      — moderator status / priority change
Marker            — map-renderable record derived from a report
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field


# ── Vocabularies ──────────────────────────────────────────────────────────────

class CategoryLabel(str, Enum):
    SAFETY = "Safety Issue"
    INFRASTRUCTURE = "Infrastructure"
    ENVIRONMENTAL = "Environmental"
    TRAFFIC = "Traffic"
    OTHER = "Other"


class CategoryType(str, Enum):
    SAFETY = "safety"
    INFRASTRUCTURE = "infrastructure"
    ENVIRONMENT = "environment"
    TRAFFIC = "traffic"
    OTHER = "other"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Status(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


_LABEL_TO_TYPE: dict[CategoryLabel, CategoryType] = {
    CategoryLabel.SAFETY: CategoryType.SAFETY,
    CategoryLabel.INFRASTRUCTURE: CategoryType.INFRASTRUCTURE,
    CategoryLabel.ENVIRONMENTAL: CategoryType.ENVIRONMENT,
    CategoryLabel.TRAFFIC: CategoryType.TRAFFIC,
    CategoryLabel.OTHER: CategoryType.OTHER,
}
_TYPE_TO_LABEL: dict[CategoryType, CategoryLabel] = {t: l for l, t in _LABEL_TO_TYPE.items()}


def label_to_type(label: CategoryLabel) -> CategoryType:
    return _LABEL_TO_TYPE[label]


def type_to_label(category: CategoryType) -> CategoryLabel:
    return _TYPE_TO_LABEL[category]


def parse_label(value: Optional[str]) -> CategoryLabel:
    """
    Resolve any free-text category to a CategoryLabel.

    Accepts UI labels ("Traffic") and storage values ("traffic"), case-
    insensitively. Anything else resolves to Other.
    """
    if not value:
        return CategoryLabel.OTHER
    needle = value.strip().lower()
    for label in CategoryLabel:
        if label.value.lower() == needle:
            return label
    for category in CategoryType:
        if category.value == needle:
            return type_to_label(category)
    return CategoryLabel.OTHER


# ── Location ──────────────────────────────────────────────────────────────────

class Coordinates(BaseModel):
    """Form-shaped coordinates (the geocoder speaks lat/lon)."""
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class ReportLocation(BaseModel):
    name: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    city: Optional[str] = None
    region: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


# ── Request ───────────────────────────────────────────────────────────────────

class ReportSubmission(BaseModel):
    """Payload for POST /api/v1/reports. Description length is checked by the route."""
    location: str = Field(min_length=1, max_length=500)
    coordinates: Optional[Coordinates] = None
    description: str = Field(max_length=5000)
    category: str = Field(min_length=1, max_length=100)
    title: Optional[str] = Field(default=None, max_length=200)
    priority: Optional[Priority] = None
    image_url: Optional[str] = None


class ReportUpdate(BaseModel):
    """Moderator action — PATCH /api/v1/reports/{id}."""
    status: Optional[Status] = None
    priority: Optional[Priority] = None


class VoteRequest(BaseModel):
    direction: Literal["up", "down"]


# ── Report ────────────────────────────────────────────────────────────────────

class ReportOut(BaseModel):
    """A stored report."""
    id: str
    title: str
    description: str
    category: CategoryType
    category_label: CategoryLabel
    location: ReportLocation
    priority: Priority = Priority.MEDIUM
    status: Status = Status.OPEN
    image_url: Optional[str] = None
    upvotes: int = 0
    downvotes: int = 0
    created_at: datetime
    updated_at: datetime


class ReportListResponse(BaseModel):
    items: list[ReportOut]
    total: int
    page: int
    limit: int
    pages: int


# ── Marker ────────────────────────────────────────────────────────────────────

class Marker(BaseModel):
    """One map pin. Always carries real coordinates."""
    id: str
    lat: float
    lng: float
    title: str
    description: str
    category: CategoryType
    category_label: CategoryLabel
    priority: Priority = Priority.MEDIUM
    status: Status = Status.OPEN
    date: str                 # ISO calendar day, e.g. "2024-01-10"
    priority_color: str       # hex colour for the pin
    status_badge: str         # green | yellow | red | gray
