"""
Admin moderation endpoints (bearer-token protected).
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from auth import dependencies as auth_dependencies
from core.http import private_cache

from . import schemas, service

router = APIRouter(prefix="/api/admin")

ADMIN_CACHE_S = 60


@router.get("/locations")
async def list_locations(
    response: Response,
    page: int = Query(0, ge=0),
    page_size: int = Query(10, ge=1),
    status: schemas.ReviewStatus = "pending",
    search: str = Query("", max_length=200),
    only24: bool = False,
    _: dict = Depends(auth_dependencies.get_current_admin),
) -> dict:
    result = await service.list_locations(
        page=page,
        page_size=page_size,
        status=status,
        search=search,
        only_24_hours=only24,
    )
    response.headers["Cache-Control"] = private_cache(ADMIN_CACHE_S)
    return result


@router.patch("/locations/{location_id}")
async def update_location(
    location_id: UUID,
    request: schemas.LocationStatusUpdate,
    current_admin: dict = Depends(auth_dependencies.get_current_admin),
) -> dict:
    return await service.update_location_status(
        str(location_id),
        request,
        admin_id=int(current_admin["id"]),
    )


@router.get("/reviews")
async def list_reviews(
    status: schemas.ReviewStatus = "pending",
    page: int = Query(0, ge=0),
    page_size: int = Query(20, ge=1),
    _: dict = Depends(auth_dependencies.get_current_admin),
) -> dict:
    return await service.list_reviews(status=status, page=page, page_size=page_size)


@router.patch("/reviews/{review_id}")
async def update_review(
    review_id: UUID,
    request: schemas.ReviewStatusUpdate,
    current_admin: dict = Depends(auth_dependencies.get_current_admin),
) -> dict:
    return await service.update_review_status(
        str(review_id),
        request,
        admin_id=int(current_admin["id"]),
    )
