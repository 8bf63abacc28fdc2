"""
Admin queries over locations and reviews.
"""

from __future__ import annotations

from typing import Any

from core import db
from locations.repository import LOCATION_COLUMNS, like_pattern


def _source(only_24_hours: bool) -> tuple[str, str]:
    if only_24_hours:
        return "locations l JOIN open_24_hour_locations o ON o.location_id = l.id", "o.review_status"
    return "locations l", "l.review_status"


_SEARCH_FILTER = """
  $2::text IS NULL
  OR l.name ILIKE $2
  OR l.description ILIKE $2
  OR l.state ILIKE $2
  OR l.city ILIKE $2
"""


async def list_locations(
    *,
    status: str,
    search: str,
    only_24_hours: bool,
    limit: int,
    offset: int,
) -> tuple[list[dict[str, Any]], int]:
    """
    One page of locations in a moderation state, plus the total match count.
    """
    source, status_column = _source(only_24_hours)

    rows = await db.fetch_all(
        f"""
        SELECT {LOCATION_COLUMNS}, l.photo_url, l.street_view_url,
               count(*) OVER() AS total_count
        FROM {source}
        WHERE {status_column} = $1
          AND ({_SEARCH_FILTER})
        ORDER BY l.created_at DESC, l.id DESC
        LIMIT $3
        OFFSET $4
        """,
        status,
        like_pattern(search) if search else None,
        limit,
        offset,
    )
    total = int(rows[0]["total_count"]) if rows else 0
    if not rows and offset > 0:
        # Past the last page: still report the real total.
        total = await count_locations(status=status, search=search, only_24_hours=only_24_hours)
    return [{k: v for k, v in row.items() if k != "total_count"} for row in rows], total


async def count_locations(*, status: str, search: str, only_24_hours: bool) -> int:
    source, status_column = _source(only_24_hours)
    value = await db.fetch_value(
        f"""
        SELECT count(*)
        FROM {source}
        WHERE {status_column} = $1
          AND ({_SEARCH_FILTER})
        """,
        status,
        like_pattern(search) if search else None,
    )
    return int(value or 0)


async def set_location_status(location_id: str, review_status: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        UPDATE locations
        SET review_status = $2, updated_at = now()
        WHERE id = $1
        RETURNING id, review_status
        """,
        location_id,
        review_status,
    )


async def set_open_24_hours_status(location_id: str, review_status: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        UPDATE open_24_hour_locations
        SET review_status = $2
        WHERE location_id = $1
        RETURNING location_id AS id, review_status
        """,
        location_id,
        review_status,
    )
