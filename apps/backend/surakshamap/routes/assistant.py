"""
assistant.py — AI Assistant route.

  POST /api/v1/assistant/classify — categorize free text

Online, the text goes through the simulated remote classifier (1-2 s
latency, roughly one call in three fails). Offline, on request, or after
a failure, the offline keyword rules answer instead and the response
carries a notice. Either way the caller gets a classification.

Rate limited per client IP (settings.classify_rate_limit).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from surakshamap.ai.assistant import EmptyTextError
from surakshamap.core.config import settings
from surakshamap.core.rate_limit import limiter
from surakshamap.core.runtime import Runtime, get_runtime
from surakshamap.models.assistant import ClassifyRequest, ClassifyResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/assistant", tags=["assistant"])


@router.post("/classify", response_model=ClassifyResponse)
@limiter.limit(settings.classify_rate_limit)
async def classify(
    request: Request,
    payload: ClassifyRequest,
    runtime: Runtime = Depends(get_runtime),
):
    try:
        response = await runtime.assistant.classify(payload.text, force_offline=payload.offline)
    except EmptyTextError as exc:
        raise HTTPException(status_code=422, detail={"field": "text", "message": str(exc)})

    logger.debug(
        "Classified as %s (%.2f, offline=%s)",
        response.result.category,
        response.result.confidence,
        response.result.is_offline_fallback,
    )
    return response
