"""
SQL used by the image migration and health-check tasks.
"""

from __future__ import annotations

from typing import Any

from core import db

# Keyset on the ORDER BY columns so `--start-after` resumes exactly after that row.
_AFTER_CURSOR = """(
  $1::uuid IS NULL
  OR (created_at, id) > (SELECT c.created_at, c.id FROM locations c WHERE c.id = $1::uuid)
)"""


async def locations_with_google_images(*, start_after: str | None = None) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT id, name, city, state, photo_url, street_view_url
        FROM locations
        WHERE (photo_url IS NOT NULL OR street_view_url IS NOT NULL)
          AND {_AFTER_CURSOR}
        ORDER BY created_at ASC, id ASC
        """,
        start_after,
    )


async def locations_with_serp_payload(*, start_after: str | None = None) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT id, name, city, state, serp_payload
        FROM locations
        WHERE serp_payload IS NOT NULL
          AND {_AFTER_CURSOR}
        ORDER BY created_at ASC, id ASC
        """,
        start_after,
    )


async def location_ids_with_images() -> set[str]:
    rows = await db.fetch_all("SELECT DISTINCT location_id FROM location_images")
    return {str(row["location_id"]) for row in rows}


async def has_primary_image(location_id: str, image_type: str) -> bool:
    row = await db.fetch_one(
        """
        SELECT id
        FROM location_images
        WHERE location_id = $1
          AND image_type = $2
          AND is_primary
        LIMIT 1
        """,
        location_id,
        image_type,
    )
    return row is not None


async def has_any_image(location_id: str) -> bool:
    row = await db.fetch_one(
        "SELECT id FROM location_images WHERE location_id = $1 LIMIT 1",
        location_id,
    )
    return row is not None


async def insert_location_image(
    *,
    location_id: str,
    cf_image_id: str,
    image_type: str,
    is_primary: bool,
    uploaded_by: str,
    source_url: str,
) -> None:
    await db.execute(
        """
        INSERT INTO location_images
          (location_id, cf_image_id, image_type, is_primary, uploaded_by, source_url)
        VALUES ($1, $2, $3, $4, $5, $6)
        """,
        location_id,
        cf_image_id,
        image_type,
        is_primary,
        uploaded_by,
        source_url,
    )
