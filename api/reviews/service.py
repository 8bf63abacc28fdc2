"""
Review submission and stats.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import HTTPException, status

from core import db

from . import repository, schemas

logger = logging.getLogger(__name__)

RATE_LIMIT_MAX_REVIEWS = 3
RATE_LIMIT_WINDOW = timedelta(hours=24)

EMPTY_STATS = {
    "total": 0,
    "recommended_count": 0,
    "percent_recommended": 0,
    "recent_comments": [],
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def submit_review(
    location_id: str,
    payload: schemas.ReviewCreateRequest,
    *,
    ip_address: str,
    user_agent: str,
) -> dict[str, bool]:
    """
    Store a pending review after the spam and rate-limit checks.
    """
    if payload.honeypot:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Spam detected.")

    recent = await repository.count_recent_reviews(
        location_id=location_id,
        ip_address=ip_address,
        since=_utc_now() - RATE_LIMIT_WINDOW,
    )
    if recent >= RATE_LIMIT_MAX_REVIEWS:
        logger.info("review_rate_limited location_id=%s ip=%s count=%s", location_id, ip_address, recent)
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded.")

    review_user_id = None
    email = (payload.email or "").strip()
    if email:
        try:
            user_row = await repository.upsert_review_user(email)
        except db.QUERY_ERRORS as exc:
            logger.exception("review_user_upsert_failed location_id=%s", location_id)
            raise HTTPException(status_code=500, detail="Could not save user.") from exc
        review_user_id = user_row["id"]

    try:
        await repository.insert_review(
            location_id=location_id,
            review_user_id=review_user_id,
            recommended=payload.recommended,
            comment=payload.comment,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    except db.QUERY_ERRORS as exc:
        logger.exception("review_insert_failed location_id=%s", location_id)
        raise HTTPException(status_code=500, detail="Could not save review.") from exc

    logger.info("review_submitted location_id=%s has_email=%s", location_id, review_user_id is not None)
    return {"success": True}


async def review_stats(location_id: str) -> dict[str, Any]:
    try:
        row = await repository.review_stats(location_id)
    except db.QUERY_ERRORS as exc:
        logger.exception("review_stats_failed location_id=%s", location_id)
        raise HTTPException(status_code=500, detail="Could not fetch review stats.") from exc
    return row if row is not None else dict(EMPTY_STATS)
