"""
Moderation workflows for the admin dashboard.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException

from locations import repository as locations_repository
from locations.service import attach_rows
from reviews import repository as reviews_repository

from . import repository, schemas

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50


async def list_locations(
    *,
    page: int,
    page_size: int,
    status: str,
    search: str,
    only_24_hours: bool,
) -> dict[str, Any]:
    page_size = min(page_size, MAX_PAGE_SIZE)
    rows, total = await repository.list_locations(
        status=status,
        search=search.strip(),
        only_24_hours=only_24_hours,
        limit=page_size,
        offset=page * page_size,
    )
    if rows:
        ids = [row["id"] for row in rows]
        rows = attach_rows(rows, await locations_repository.hours_for_locations(ids), "location_hours")
        rows = attach_rows(rows, await locations_repository.images_for_locations(ids), "location_images")
    return {"data": rows, "count": total}


async def update_location_status(
    location_id: str,
    payload: schemas.LocationStatusUpdate,
    *,
    admin_id: int,
) -> dict[str, Any]:
    if payload.open_24_hours:
        row = await repository.set_open_24_hours_status(location_id, payload.review_status)
    else:
        row = await repository.set_location_status(location_id, payload.review_status)
    if row is None:
        raise HTTPException(status_code=404, detail="Location not found.")

    logger.info(
        "location_moderated location_id=%s status=%s open_24_hours=%s admin_id=%s",
        location_id,
        payload.review_status,
        payload.open_24_hours,
        admin_id,
    )
    return row


async def list_reviews(*, status: str, page: int, page_size: int) -> dict[str, Any]:
    page_size = min(page_size, MAX_PAGE_SIZE)
    rows, total = await reviews_repository.list_reviews(status=status, limit=page_size, offset=page * page_size)
    return {"data": rows, "count": total}


async def update_review_status(
    review_id: str,
    payload: schemas.ReviewStatusUpdate,
    *,
    admin_id: int,
) -> dict[str, Any]:
    row = await reviews_repository.set_review_status(review_id, payload.status)
    if row is None:
        raise HTTPException(status_code=404, detail="Review not found.")
    logger.info("review_moderated review_id=%s status=%s admin_id=%s", review_id, payload.status, admin_id)
    return row
