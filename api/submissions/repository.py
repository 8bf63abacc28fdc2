"""
Claim and feedback persistence.
"""

from __future__ import annotations

from core import db


async def insert_claim(*, location_id: str, name: str, email: str) -> None:
    # location_claims.location_id is unique: one claim per listing.
    await db.execute(
        """
        INSERT INTO location_claims (location_id, name, email)
        VALUES ($1, $2, $3)
        """,
        location_id,
        name,
        email,
    )


async def mark_claim_pending(location_id: str) -> bool:
    row = await db.fetch_one(
        """
        UPDATE locations
        SET claimed_status = 'pending', updated_at = now()
        WHERE id = $1
        RETURNING id
        """,
        location_id,
    )
    return row is not None


async def insert_feedback(*, location_id: str | None, feedback: str, email: str | None) -> None:
    await db.execute(
        """
        INSERT INTO location_feedbacks (location_id, feedback, email)
        VALUES ($1, $2, $3)
        """,
        location_id,
        feedback,
        email,
    )
