"""
Sitemap endpoints (application/xml).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Path
from fastapi.responses import PlainTextResponse, Response

from core import db
from core.http import public_cache

from . import service

logger = logging.getLogger(__name__)

router = APIRouter()

INDEX_CACHE_CONTROL = public_cache(21600, 86400, 43200)
SITEMAP_CACHE_CONTROL = public_cache(86400, 604800, 86400)


def _xml(body: str, cache_control: str) -> Response:
    return Response(
        content=body,
        media_type="application/xml",
        headers={"Cache-Control": cache_control},
    )


def _error(message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=500)


@router.get("/sitemap.xml")
async def sitemap_index() -> Response:
    try:
        body = await service.sitemap_index()
    except db.QUERY_ERRORS:
        logger.exception("sitemap_index_failed")
        return _error("Error generating sitemap index")
    return _xml(body, INDEX_CACHE_CONTROL)


@router.get("/sitemap-static.xml")
async def static_sitemap() -> Response:
    return _xml(service.static_sitemap(), SITEMAP_CACHE_CONTROL)


@router.get("/sitemap-cities.xml")
async def cities_sitemap() -> Response:
    try:
        body = await service.cities_sitemap()
    except db.QUERY_ERRORS:
        logger.exception("sitemap_cities_failed")
        return _error("Error generating cities sitemap")
    return _xml(body, SITEMAP_CACHE_CONTROL)


@router.get("/sitemap-locations-{batch}.xml")
async def locations_sitemap(batch: int = Path(..., ge=1)) -> Response:
    try:
        body = await service.locations_sitemap(batch)
    except db.QUERY_ERRORS:
        logger.exception("sitemap_locations_failed batch=%s", batch)
        return _error("Error generating sitemap")
    return _xml(body, SITEMAP_CACHE_CONTROL)
