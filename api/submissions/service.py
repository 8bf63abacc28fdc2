"""
Listing claims and "report a problem" feedback.
"""

from __future__ import annotations

import logging

import asyncpg
from fastapi import HTTPException, status

from . import repository, schemas

logger = logging.getLogger(__name__)


async def submit_claim(location_id: str, payload: schemas.ClaimRequest) -> dict[str, bool]:
    try:
        await repository.insert_claim(
            location_id=location_id,
            name=payload.name.strip(),
            email=payload.email.strip(),
        )
    except asyncpg.UniqueViolationError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A claim has already been submitted for this location.",
        ) from exc
    except asyncpg.ForeignKeyViolationError as exc:
        raise HTTPException(status_code=404, detail="Location not found.") from exc

    updated = await repository.mark_claim_pending(location_id)
    if not updated:
        logger.warning("claim_status_update_missed location_id=%s", location_id)

    logger.info("claim_submitted location_id=%s", location_id)
    return {"success": True}


async def submit_feedback(location_id: str | None, payload: schemas.FeedbackRequest) -> dict[str, bool]:
    email = (payload.email or "").strip() or None
    try:
        await repository.insert_feedback(
            location_id=location_id,
            feedback=payload.feedback.strip(),
            email=email,
        )
    except asyncpg.ForeignKeyViolationError as exc:
        raise HTTPException(status_code=404, detail="Location not found.") from exc

    logger.info("feedback_submitted location_id=%s", location_id or "-")
    return {"success": True}
