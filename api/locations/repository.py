"""
Location persistence (raw SQL).

This module contains Postgres queries for:
- radius search through the `locations_within_radius` database function
- text search over visible locations
- location page lookups and their related rows (hours, images, amenities)
- home page data (featured locations, counts, popular states/cities)
"""

from __future__ import annotations

from typing import Any, Sequence

from core import db

# Listed explicitly so pages never pull `serp_payload`.
LOCATION_COLUMNS = """
  l.id, l.name, l.slug, l.city_slug, l.street_address, l.city, l.state, l.postal_code,
  l.country, l.latitude, l.longitude, l.phone, l.email, l.website_url, l.description,
  l.business_type, l.business_types, l.business_status, l.review_status, l.claimed_status,
  l.google_rating, l.review_count, l.reviews_tags, l.booking_appointment_url,
  l.location_url, l.google_place_id, l.created_at, l.updated_at
"""

VISIBLE_WHERE = """
  l.review_status = 'approved'
  AND l.business_status IN ('OPERATIONAL', 'CLOSED_TEMPORARILY')
"""

SEARCH_RESULT_LIMIT = 10


def like_pattern(text: str) -> str:
    """
    Substring pattern for ILIKE with the user's own wildcards escaped.
    """
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def locations_within_radius(
    latitude: float,
    longitude: float,
    radius_miles: float,
    *,
    exclude_ids: Sequence[str] | None = None,
) -> list[dict[str, Any]]:
    """
    Radius search done in Postgres; rows come back ordered by distance.
    """
    params: dict[str, Any] = {
        "search_lat": latitude,
        "search_lng": longitude,
        "radius_miles": radius_miles,
    }
    if exclude_ids is not None:
        params["exclude_ids"] = [str(x) for x in exclude_ids]
    return await db.rpc("locations_within_radius", params)


async def images_for_locations(location_ids: Sequence[Any]) -> list[dict[str, Any]]:
    if not location_ids:
        return []
    return await db.fetch_all(
        """
        SELECT id, location_id, cf_image_id, image_type, is_primary
        FROM location_images
        WHERE location_id = ANY($1::uuid[])
        ORDER BY location_id, is_primary DESC, id
        """,
        [str(x) for x in location_ids],
    )


async def hours_for_locations(location_ids: Sequence[Any]) -> list[dict[str, Any]]:
    if not location_ids:
        return []
    return await db.fetch_all(
        """
        SELECT location_id, day_of_week, open_time, close_time, is_closed
        FROM location_hours
        WHERE location_id = ANY($1::uuid[])
        ORDER BY location_id, day_of_week
        """,
        [str(x) for x in location_ids],
    )


async def amenities_for_location(location_id: Any) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT amenity_name, amenity_category
        FROM location_amenities
        WHERE location_id = $1
        ORDER BY amenity_category, amenity_name
        """,
        str(location_id),
    )


async def search_text(query: str, *, limit: int = SEARCH_RESULT_LIMIT) -> list[dict[str, Any]]:
    """
    Case-insensitive substring search over name/city/state/description.
    """
    return await db.fetch_all(
        f"""
        SELECT l.id, l.name, l.city, l.state, l.slug, l.city_slug,
               l.google_rating, l.description, l.review_count
        FROM locations l
        WHERE {VISIBLE_WHERE}
          AND (
            l.name ILIKE $1
            OR l.city ILIKE $1
            OR l.state ILIKE $1
            OR l.description ILIKE $1
          )
        ORDER BY l.review_count DESC NULLS LAST
        LIMIT $2
        """,
        like_pattern(query),
        limit,
    )


async def page_candidates(*, city_slug: str, state_words: str) -> list[dict[str, Any]]:
    """
    Visible locations in a city whose state loosely matches the URL segment.
    """
    return await db.fetch_all(
        f"""
        SELECT {LOCATION_COLUMNS}
        FROM locations l
        WHERE {VISIBLE_WHERE}
          AND l.city_slug = $1
          AND l.state ILIKE $2
        """,
        city_slug,
        like_pattern(state_words),
    )


async def featured_locations(*, limit: int = 6) -> list[dict[str, Any]]:
    return await db.rpc("get_featured_locations", {"limit_count": limit})


async def popular_states(*, limit: int = 10) -> list[dict[str, Any]]:
    return await db.rpc("get_popular_states", {"limit_count": limit})


async def popular_cities(*, limit: int = 10) -> list[dict[str, Any]]:
    return await db.rpc("get_popular_cities", {"limit_count": limit})


async def distinct_cities() -> list[dict[str, Any]]:
    return await db.rpc("get_distinct_cities")


async def count_visible(*, min_rating: float | None = None) -> int:
    value = await db.fetch_value(
        f"""
        SELECT count(*)
        FROM locations l
        WHERE {VISIBLE_WHERE}
          AND ($1::float8 IS NULL OR l.google_rating >= $1::float8)
        """,
        min_rating,
    )
    return int(value or 0)


async def count_visible_states() -> int:
    value = await db.fetch_value(
        f"""
        SELECT count(DISTINCT l.state)
        FROM locations l
        WHERE {VISIBLE_WHERE}
        """
    )
    return int(value or 0)


async def count_open_24_hours() -> int:
    value = await db.fetch_value(
        f"""
        SELECT count(*)
        FROM open_24_hour_locations o
        JOIN locations l ON l.id = o.location_id
        WHERE o.review_status = 'approved'
          AND {VISIBLE_WHERE}
        """
    )
    return int(value or 0)


async def visible_location_paths(*, offset: int, limit: int) -> list[dict[str, Any]]:
    """
    Slugs needed to build location URLs, in a stable order for batching.
    """
    return await db.fetch_all(
        f"""
        SELECT l.slug, l.state, l.city_slug
        FROM locations l
        WHERE {VISIBLE_WHERE}
        ORDER BY l.id
        OFFSET $1
        LIMIT $2
        """,
        offset,
        limit,
    )
