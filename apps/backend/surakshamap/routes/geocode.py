"""
geocode.py — Location lookup for the report form.

  GET /api/v1/geocode?q=Fort Kochi — best Kerala match, or 404
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from surakshamap.core.runtime import Runtime, get_runtime
from surakshamap.services.geocoding import LocationNotFoundError

router = APIRouter(prefix="/api/v1/geocode", tags=["geocode"])


class GeocodeOut(BaseModel):
    lat: float
    lon: float
    name: str
    city: str | None = None
    region: str | None = None


@router.get("", response_model=GeocodeOut)
async def geocode(
    q: str = Query(min_length=2, max_length=200),
    runtime: Runtime = Depends(get_runtime),
):
    result = await runtime.geocoder.geocode(q)
    if result is None:
        raise HTTPException(status_code=404, detail=str(LocationNotFoundError(q.strip())))
    return GeocodeOut(
        lat=result.lat, lon=result.lon, name=result.name, city=result.city, region=result.region
    )
