"""
Pure parsers that turn SerpAPI Google Maps results into table rows.

Nothing here does I/O; `import_serpapi` wires these into the fetch loop.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any
from urllib.parse import parse_qs, urlsplit

from core.geocoding import ParsedAddress
from core.slug import slugify
from core.states import state_abbr_to_name

# SerpAPI weekday names -> day_of_week as stored by the import (Sunday is 0).
DAY_NUMBERS = {
    "sunday": 0,
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
}

OPEN_24_HOURS = ("12:00 AM", "11:59 PM")

_STATE_ZIP = re.compile(r"^([A-Z]{2})\s+(\d{5}(?:-\d{4})?)$")
_HOURS_RANGE = re.compile(r"(\d+(?::\d+)?)\s*(am|pm)\s*[–-]\s*(\d+(?::\d+)?)\s*(am|pm)", re.IGNORECASE)

# extensions key -> (amenity category, separator used in the raw values)
_EXTENSION_CATEGORIES = (
    ("service_options", "Service options", "_"),
    ("accessibility", "Accessibility", "-"),
    ("from_the_business", "Offerings", None),
    ("planning", "Planning", " "),
    ("parking", "Parking", " "),
    ("crowd", "Crowd", " "),
    ("amenities", "Amenities", "-"),
)

LOCATION_CSV_COLUMNS = (
    "id", "name", "slug", "city_slug", "website_url", "phone", "email", "street_address", "city",
    "state", "postal_code", "country", "latitude", "longitude", "description", "business_type",
    "business_types", "business_status", "google_rating", "review_count", "reviews_tags",
    "working_hours", "price_level", "photo_url", "logo_url", "street_view_url", "reservation_urls",
    "booking_appointment_url", "menu_url", "order_urls", "location_url", "google_place_id",
    "google_id", "google_verified", "updated_at", "serp_payload",
)


def parse_address(address: str | None) -> ParsedAddress | None:
    """
    "8 N Grant St, Brownsburg, IN 46112, United States"
        -> street "8 N Grant St, Brownsburg, Indiana 46112", city "Brownsburg", state "Indiana", zip "46112"
    """
    if not address:
        return None

    cleaned = re.sub(r", United States$", "", address).strip()
    parts = [part.strip() for part in cleaned.split(",")]
    if len(parts) < 2:
        return None

    match = _STATE_ZIP.match(parts[-1])
    if not match:
        return None

    state = state_abbr_to_name(match.group(1))
    postal_code = match.group(2)
    city = parts[-2]

    street_address = f"{city}, {state} {postal_code}"
    if len(parts) > 2:
        street_address = f"{', '.join(parts[:-2])}, {street_address}"
    return ParsedAddress(street_address=street_address, city=city, state=state, postal_code=postal_code)


def parse_business_status(open_state: str | None) -> str:
    state = (open_state or "").lower()
    if "permanently close" in state:
        return "CLOSED_PERMANENTLY"
    if "temporarily close" in state:
        return "CLOSED_TEMPORARILY"
    return "OPERATIONAL"


def convert_to_12_hour(clock: str, period: str) -> str:
    """
    ("7", "pm") -> "07:00 PM"; ("7:30", "am") -> "07:30 AM".
    """
    hours, _, minutes = clock.partition(":")
    return f"{int(hours):02d}:{int(minutes or 0):02d} {period.upper()}"


def parse_operating_hours(operating_hours: dict[str, str] | None) -> list[dict[str, Any]]:
    """
    {"monday": "7 am–9 pm", "tuesday": "Closed", "sunday": "Open 24 hours"} -> location_hours rows.

    Unknown day names are dropped; unparseable ranges keep the day with no times.
    """
    rows: list[dict[str, Any]] = []
    for day, hours in (operating_hours or {}).items():
        day_of_week = DAY_NUMBERS.get(str(day).lower())
        if day_of_week is None:
            continue

        open_time = close_time = None
        is_closed = False
        if hours == "Closed":
            is_closed = True
        elif hours == "Open 24 hours":
            open_time, close_time = OPEN_24_HOURS
        else:
            match = _HOURS_RANGE.search(str(hours or ""))
            if match:
                open_time = convert_to_12_hour(match.group(1), match.group(2))
                close_time = convert_to_12_hour(match.group(3), match.group(4))

        rows.append(
            {
                "day_of_week": day_of_week,
                "open_time": open_time,
                "close_time": close_time,
                "is_closed": is_closed,
            }
        )
    return rows


def _title_words(value: str, separator: str | None) -> str:
    if separator is None:
        return value
    return " ".join(word[:1].upper() + word[1:] for word in value.split(separator))


def extract_amenities(
    extensions: list[dict[str, Any]] | None,
    service_options: dict[str, Any] | None,
) -> list[dict[str, str]]:
    amenities: list[dict[str, str]] = []

    service_options = service_options or {}
    if service_options.get("online_estimates"):
        amenities.append({"name": "Online Estimates", "category": "Service options"})
    if service_options.get("on_site_services"):
        amenities.append({"name": "On-site Services", "category": "Service options"})

    for extension in extensions if isinstance(extensions, list) else []:
        for key, category, separator in _EXTENSION_CATEGORIES:
            for value in extension.get(key) or []:
                amenities.append({"name": _title_words(str(value), separator), "category": category})
    return amenities


def extract_real_url(url: str | None) -> str:
    """
    Unwrap Google redirect links ("/url?q=https://example.com&...").
    """
    if not url:
        return ""
    if not url.startswith("/url?q="):
        return url
    target = parse_qs(urlsplit(url).query).get("q")
    return target[0] if target else url


def pg_text_array(values: list[str] | None) -> str:
    """
    Postgres array literal for a text[] column: ["a", 'b"c'] -> {"a","b\\"c"}.
    """
    if not values:
        return ""
    quoted = ",".join('"' + str(v).replace('"', '\\"') + '"' for v in values)
    return "{" + quoted + "}"


def location_row(
    result: dict[str, Any],
    address: ParsedAddress,
    *,
    location_id: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    gps = result.get("gps_coordinates") or {}
    types = result.get("types") or []
    updated_at = (now or datetime.now(timezone.utc)).isoformat()

    row = dict.fromkeys(LOCATION_CSV_COLUMNS, "")
    row.update(
        {
            "id": location_id,
            "name": result.get("title") or "",
            "slug": slugify(result.get("title")),
            "city_slug": slugify(address.city),
            "website_url": extract_real_url(result.get("website")),
            "phone": result.get("phone") or "",
            "street_address": address.street_address,
            "city": address.city,
            "state": address.state,
            "postal_code": address.postal_code,
            "country": "United States",
            "latitude": gps.get("latitude") or "",
            "longitude": gps.get("longitude") or "",
            "description": result.get("description") or "",
            "business_type": result.get("type") or (types[0] if types else ""),
            "business_types": pg_text_array(types),
            "business_status": parse_business_status(result.get("open_state")),
            "google_rating": result.get("rating") or "",
            "review_count": result.get("reviews") or "",
            "booking_appointment_url": result.get("book_online") or "",
            "location_url": f"https://www.google.com/maps/place/?q=place_id:{result.get('place_id')}",
            "google_place_id": result.get("place_id") or "",
            "google_id": result.get("provider_id") or "",
            "updated_at": updated_at,
            "serp_payload": json.dumps(result),
        }
    )
    return row
