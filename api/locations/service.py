"""
Location service (orchestration).

This is where we:
- turn a zip code into coordinates (zippopotam.us)
- call the radius search / text search queries (repository)
- attach images and hours to the rows the database returns
- assemble the location page payload (open status, formatted hours, nearby)
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Iterable, Sequence

from fastapi import HTTPException

from core import db, geocoding, images, settings
from core.geo import is_zip_code
from core.slug import slugify, unslugify

from . import hours as hours_utils
from . import repository

logger = logging.getLogger(__name__)

ZIP_LOOKUP_TIMEOUT_S = 10.0
API_RESULT_LIMIT = 10
NEARBY_ON_PAGE_LIMIT = 6
FEATURED_LIMIT = 6
HIGH_RATING = 4.0

# Columns kept out of public search responses.
_API_HIDDEN_FIELDS = ("latitude", "longitude", "distance_miles")


class NearbySearchError(Exception):
    """
    Failure of the zip-based nearby search, with the HTTP status to report.
    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _group_by_location(rows: Iterable[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        grouped[str(row["location_id"])].append(row)
    return grouped


def attach_rows(
    locations: Sequence[dict[str, Any]],
    rows: Iterable[dict[str, Any]],
    key: str,
) -> list[dict[str, Any]]:
    grouped = _group_by_location(rows)
    return [{**location, key: grouped.get(str(location["id"]), [])} for location in locations]


async def attach_images(locations: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Add `location_images` to each row. On failure, rows are returned without images.
    """
    if not locations:
        return []
    try:
        image_rows = await repository.images_for_locations([loc["id"] for loc in locations])
    except db.QUERY_ERRORS:
        logger.exception("location_images_fetch_failed count=%s", len(locations))
        return list(locations)
    return attach_rows(locations, image_rows, "location_images")


async def search_by_lat_lng(
    latitude: float,
    longitude: float,
    radius_miles: float | None = None,
    exclude_ids: Sequence[str] | None = None,
) -> list[dict[str, Any]]:
    radius = radius_miles if radius_miles is not None else settings.default_search_radius_miles()
    try:
        rows = await repository.locations_within_radius(
            latitude,
            longitude,
            radius,
            exclude_ids=list(exclude_ids or []),
        )
    except db.QUERY_ERRORS:
        logger.exception("radius_search_failed lat=%s lng=%s radius=%s", latitude, longitude, radius)
        return []
    return await attach_images(rows)


async def search_by_zip(zip_code: str, radius_miles: float | None = None) -> list[dict[str, Any]]:
    """
    Nearby locations (with images) for a zip code; errors become an empty list.
    """
    try:
        return await nearby(zip_code, radius_miles)
    except NearbySearchError as exc:
        logger.info("zip_search_empty zip=%s reason=%s", zip_code, exc.message)
        return []


async def search_by_zip_for_api(zip_code: str, radius_miles: float | None = None) -> list[dict[str, Any]]:
    """
    Trimmed zip search for the search box: first 10 rows, no coordinates or distances.
    """
    radius = radius_miles if radius_miles is not None else settings.default_search_radius_miles()
    try:
        coords = await asyncio.wait_for(geocoding.coordinates_from_zip(zip_code), timeout=ZIP_LOOKUP_TIMEOUT_S)
        if coords is None:
            return []
        rows = await repository.locations_within_radius(coords.latitude, coords.longitude, radius)
    except db.QUERY_ERRORS:
        logger.exception("zip_search_failed zip=%s", zip_code)
        return []

    return [
        {k: v for k, v in row.items() if k not in _API_HIDDEN_FIELDS}
        for row in rows[:API_RESULT_LIMIT]
    ]


async def nearby(zip_code: str, radius_miles: float | None = None) -> list[dict[str, Any]]:
    """
    Zip-code radius search used by the "near me" page.
    """
    zip_code = (zip_code or "").strip()
    if not is_zip_code(zip_code):
        raise NearbySearchError(400, "Invalid zip code")

    radius = radius_miles if radius_miles is not None else settings.default_search_radius_miles()
    coords = await geocoding.coordinates_from_zip(zip_code)
    if coords is None:
        raise NearbySearchError(404, "Could not find coordinates for zip code")

    try:
        rows = await repository.locations_within_radius(coords.latitude, coords.longitude, radius)
    except db.QUERY_ERRORS as exc:
        logger.exception("radius_search_failed zip=%s radius=%s", zip_code, radius)
        raise NearbySearchError(500, "Database error") from exc

    return await attach_images(rows)


async def search(query: str | None) -> list[dict[str, Any]]:
    """
    Search box: zip codes go through the radius search, anything else is a text match.

    Raises on database errors; the router decides how to report them.
    """
    query = (query or "").strip()
    if len(query) < 2:
        return []
    if is_zip_code(query):
        return await search_by_zip_for_api(query, settings.default_search_radius_miles())
    return await repository.search_text(query)


def _page_extras(location: dict[str, Any]) -> dict[str, Any]:
    location_images = location.get("location_images") or []
    return {
        "open_status": hours_utils.open_status(location),
        "formatted_hours": hours_utils.format_hours(location.get("location_hours"), location.get("state")),
        "photo_url": images.location_image_url(location_images, "photo", "public"),
        "placeholder_gradient": images.placeholder_gradient(str(location["id"])),
    }


async def get_location_page(state: str, city: str, slug: str) -> dict[str, Any]:
    """
    Location page payload for /states/{state}/{city}/{slug}.
    """
    state_slug = slugify(state)
    city_slug = slugify(city)

    candidates = await repository.page_candidates(city_slug=city_slug, state_words=unslugify(state_slug))
    location = next(
        (
            row
            for row in candidates
            if row.get("slug") == slug
            and slugify(row.get("state")) == state_slug
            and row.get("city_slug") == city_slug
        ),
        None,
    )
    if location is None:
        logger.info("location_not_found slug=%s state=%s city=%s", slug, state, city)
        raise HTTPException(status_code=404, detail="Location not found.")

    location_id = location["id"]
    hour_rows = await repository.hours_for_locations([location_id])
    image_rows = await repository.images_for_locations([location_id])
    amenity_rows = await repository.amenities_for_location(location_id)

    location = {
        **location,
        "location_hours": hour_rows,
        "location_images": image_rows,
        "location_amenities": amenity_rows,
    }

    nearby_locations: list[dict[str, Any]] = []
    if location.get("latitude") is not None and location.get("longitude") is not None:
        nearby_locations = await search_by_lat_lng(
            float(location["latitude"]),
            float(location["longitude"]),
            settings.default_search_radius_miles(),
            exclude_ids=[str(location_id)],
        )

    return {
        "location": {**location, **_page_extras(location)},
        "nearby": nearby_locations[:NEARBY_ON_PAGE_LIMIT],
        "canonical_url": (
            f"{settings.site_base_url()}/states/{state_slug}/{city_slug}/{slug}"
        ),
    }


async def featured_locations(limit: int = FEATURED_LIMIT) -> list[dict[str, Any]]:
    """
    Home page cards: top locations from the database's weighted scoring, with hours and images.
    """
    try:
        rows = await repository.featured_locations(limit=limit)
    except db.QUERY_ERRORS:
        logger.exception("featured_locations_failed")
        return []
    if not rows:
        return []

    ids = [row["id"] for row in rows]
    try:
        hour_rows = await repository.hours_for_locations(ids)
    except db.QUERY_ERRORS:
        logger.exception("featured_hours_failed")
        hour_rows = []
    try:
        image_rows = await repository.images_for_locations(ids)
    except db.QUERY_ERRORS:
        logger.exception("featured_images_failed")
        image_rows = []

    return attach_rows(attach_rows(rows, hour_rows, "location_hours"), image_rows, "location_images")


async def site_stats() -> dict[str, int]:
    empty = {
        "total_locations": 0,
        "total_states": 0,
        "high_rated_count": 0,
        "high_rated_percent": 0,
        "open_24_hours_count": 0,
    }
    try:
        total = await repository.count_visible()
        high_rated = await repository.count_visible(min_rating=HIGH_RATING)
        states = await repository.count_visible_states()
        open_24 = await repository.count_open_24_hours()
    except db.QUERY_ERRORS:
        logger.exception("site_stats_failed")
        return empty

    return {
        "total_locations": total,
        "total_states": states,
        "high_rated_count": high_rated,
        "high_rated_percent": round(high_rated / total * 100) if total > 0 else 0,
        "open_24_hours_count": open_24,
    }


async def popular_states(limit: int = 10) -> list[dict[str, Any]]:
    try:
        return await repository.popular_states(limit=limit)
    except db.QUERY_ERRORS:
        logger.exception("popular_states_failed")
        return []


async def popular_cities(limit: int = 10) -> list[dict[str, Any]]:
    try:
        return await repository.popular_cities(limit=limit)
    except db.QUERY_ERRORS:
        logger.exception("popular_cities_failed")
        return []
