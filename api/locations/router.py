"""
Public location endpoints (search, nearby, location pages, home page data).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Response
from fastapi.responses import JSONResponse

from core import db
from core.http import public_cache

from . import service

logger = logging.getLogger(__name__)

router = APIRouter()

SHORT_QUERY_CACHE_S = 300
RESULTS_CACHE_S = 1800
ERROR_CACHE_S = 60
HOME_DATA_CACHE_S = 3600


@router.get("/api/nearby")
async def nearby(
    zip: str = Query(default=""),
    radius: int = Query(default=25, ge=1, le=500),
):
    try:
        results = await service.nearby(zip, radius)
    except service.NearbySearchError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "results": []},
        )
    return {"results": results}


@router.get("/api/search")
async def search(response: Response, q: str = Query(default="")) -> dict:
    if len(q.strip()) < 2:
        response.headers["Cache-Control"] = public_cache(SHORT_QUERY_CACHE_S)
        return {"results": []}

    try:
        results = await service.search(q)
    except db.QUERY_ERRORS:
        logger.exception("search_failed q=%s", q)
        response.headers["Cache-Control"] = public_cache(ERROR_CACHE_S)
        return {"results": []}

    response.headers["Cache-Control"] = public_cache(RESULTS_CACHE_S)
    return {"results": results}


@router.get("/api/locations/{state}/{city}/{slug}")
async def location_page(state: str, city: str, slug: str) -> dict:
    return await service.get_location_page(state, city, slug)


@router.get("/api/featured")
async def featured(response: Response) -> dict:
    results = await service.featured_locations()
    response.headers["Cache-Control"] = public_cache(HOME_DATA_CACHE_S)
    return {"results": results}


@router.get("/api/stats")
async def stats(response: Response) -> dict:
    response.headers["Cache-Control"] = public_cache(HOME_DATA_CACHE_S)
    return await service.site_stats()


@router.get("/api/popular/states")
async def popular_states(response: Response, limit: int = Query(default=10, ge=1, le=100)) -> dict:
    response.headers["Cache-Control"] = public_cache(HOME_DATA_CACHE_S)
    return {"results": await service.popular_states(limit)}


@router.get("/api/popular/cities")
async def popular_cities(response: Response, limit: int = Query(default=10, ge=1, le=100)) -> dict:
    response.headers["Cache-Control"] = public_cache(HOME_DATA_CACHE_S)
    return {"results": await service.popular_cities(limit)}
