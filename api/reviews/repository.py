"""
Review persistence helpers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from core import db


async def count_recent_reviews(*, location_id: str, ip_address: str, since: datetime) -> int:
    value = await db.fetch_value(
        """
        SELECT count(id)
        FROM location_reviews
        WHERE location_id = $1
          AND ip_address = $2
          AND created_at >= $3
        """,
        location_id,
        ip_address,
        since,
    )
    return int(value or 0)


async def upsert_review_user(email: str) -> dict[str, Any]:
    row = await db.fetch_one(
        """
        INSERT INTO location_review_users (email)
        VALUES ($1)
        ON CONFLICT (email) DO UPDATE SET email = EXCLUDED.email
        RETURNING id
        """,
        email,
    )
    if row is None:
        raise RuntimeError("Failed to upsert review user.")
    return row


async def insert_review(
    *,
    location_id: str,
    review_user_id: Any,
    recommended: bool,
    comment: str | None,
    ip_address: str,
    user_agent: str,
) -> None:
    await db.execute(
        """
        INSERT INTO location_reviews
          (location_id, review_user_id, recommended, comment, ip_address, user_agent, status)
        VALUES ($1, $2, $3, $4, $5, $6, 'pending')
        """,
        location_id,
        review_user_id,
        recommended,
        comment,
        ip_address,
        user_agent,
    )


async def review_stats(location_id: str) -> dict[str, Any] | None:
    rows = await db.rpc("location_review_stats", {"loc_id": location_id})
    return rows[0] if rows else None


async def list_reviews(*, status: str, limit: int, offset: int) -> tuple[list[dict[str, Any]], int]:
    """
    One page of reviews in a moderation state, newest first, plus the total in that state.
    """
    rows = await db.fetch_all(
        """
        SELECT r.id, r.location_id, l.name AS location_name, r.recommended, r.comment,
               u.email, r.ip_address, r.status, r.created_at,
               count(*) OVER() AS total_count
        FROM location_reviews r
        LEFT JOIN locations l ON l.id = r.location_id
        LEFT JOIN location_review_users u ON u.id = r.review_user_id
        WHERE r.status = $1
        ORDER BY r.created_at DESC, r.id DESC
        LIMIT $2
        OFFSET $3
        """,
        status,
        limit,
        offset,
    )
    total = int(rows[0]["total_count"]) if rows else 0
    if not rows and offset > 0:
        total = await count_reviews(status)
    return [{k: v for k, v in row.items() if k != "total_count"} for row in rows], total


async def count_reviews(status: str) -> int:
    value = await db.fetch_value("SELECT count(*) FROM location_reviews WHERE status = $1", status)
    return int(value or 0)


async def set_review_status(review_id: str, status: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        UPDATE location_reviews
        SET status = $2
        WHERE id = $1
        RETURNING id, status
        """,
        review_id,
        status,
    )
