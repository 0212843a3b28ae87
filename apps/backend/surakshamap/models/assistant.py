"""
assistant.py — Schemas for the AI Assistant classifier.
"""

from pydantic import BaseModel, Field

from surakshamap.models.report import CategoryLabel


class ClassifyRequest(BaseModel):
    text: str = Field(max_length=5000)
    # Client-side "Use offline mode" toggle.
    offline: bool = False


class ClassificationResult(BaseModel):
    category: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str
    is_offline_fallback: bool = False
    # Closest report category for pre-filling the report form.
    report_category: CategoryLabel = CategoryLabel.OTHER


class ClassifyResponse(BaseModel):
    result: ClassificationResult
    online: bool
    # Set when the online path failed and the offline rules answered instead.
    notice: str | None = None
