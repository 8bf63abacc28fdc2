"""
Claim and feedback endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from . import schemas, service

router = APIRouter()


@router.post("/api/locations/{location_id}/claim")
async def claim_location(location_id: UUID, request: schemas.ClaimRequest) -> dict:
    return await service.submit_claim(str(location_id), request)


@router.post("/api/locations/{location_id}/feedback")
async def location_feedback(location_id: UUID, request: schemas.FeedbackRequest) -> dict:
    return await service.submit_feedback(str(location_id), request)


@router.post("/api/feedback")
async def site_feedback(request: schemas.FeedbackRequest) -> dict:
    return await service.submit_feedback(None, request)
