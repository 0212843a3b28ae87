"""
render.py — Rendering mode control.

  GET  /api/v1/render              — state of every view's selector
  POST /api/v1/render/{view}/mode  — manual "offline mode" toggle for one view

{"fallback": true} pins the view to its fallback renderer until it is
turned off again; {"fallback": false} clears the pin and retries the live
library on the next render.
"""

from fastapi import APIRouter, Depends, HTTPException

from surakshamap.core.runtime import Runtime, get_runtime
from surakshamap.models.render import ModeOverrideRequest, SelectorStatus

router = APIRouter(prefix="/api/v1/render", tags=["render"])


@router.get("", response_model=list[SelectorStatus])
async def list_selectors(runtime: Runtime = Depends(get_runtime)):
    return [selector.status() for selector in runtime.selectors.values()]


@router.post("/{view}/mode", response_model=SelectorStatus)
async def set_mode(view: str, payload: ModeOverrideRequest, runtime: Runtime = Depends(get_runtime)):
    selector = runtime.selectors.get(view)
    if selector is None:
        raise HTTPException(status_code=404, detail=f"Unknown view: {view}")
    selector.set_manual_override(payload.fallback)
    return selector.status()
