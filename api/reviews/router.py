"""
Location review endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Request

from core.http import client_ip, user_agent

from . import schemas, service

router = APIRouter()


@router.post("/api/locations/{location_id}/reviews")
async def submit_review(
    location_id: UUID,
    request: schemas.ReviewCreateRequest,
    http_request: Request,
) -> dict:
    return await service.submit_review(
        str(location_id),
        request,
        ip_address=client_ip(http_request),
        user_agent=user_agent(http_request),
    )


@router.get("/api/locations/{location_id}/reviews")
async def review_stats(location_id: UUID) -> dict:
    return await service.review_stats(str(location_id))
