"""
Geocoding HTTP client helpers.

Used endpoints:
- GET https://api.zippopotam.us/us/{zip}          -> {"places": [{"latitude": "...", "longitude": "..."}]}
- GET https://nominatim.openstreetmap.org/reverse -> {"address": {...}}

Zip lookups return None on any failure; the callers treat "no coordinates" the
same as "no results". Reverse lookups raise so the import task can retry them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from . import settings
from .geo import Coordinates
from .states import state_abbr_to_name

ZIPPOPOTAM_BASE_URL = "https://api.zippopotam.us"
NOMINATIM_BASE_URL = "https://nominatim.openstreetmap.org"

logger = logging.getLogger(__name__)


class GeocodingError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class ParsedAddress:
    street_address: str
    city: str
    state: str
    postal_code: str


def parse_zip_payload(data: dict[str, Any]) -> Coordinates:
    places = data.get("places")
    if not isinstance(places, list) or not places:
        raise GeocodingError("Zip lookup returned no places.")
    first = places[0]
    try:
        return Coordinates(latitude=float(first["latitude"]), longitude=float(first["longitude"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise GeocodingError("Zip lookup returned invalid coordinates.") from exc


async def coordinates_from_zip(
    zip_code: str,
    *,
    timeout_s: float = 10.0,
) -> Coordinates | None:
    """
    Resolve a US zip code to its centroid via zippopotam.us.
    """
    zip_code = (zip_code or "").strip()
    if not zip_code:
        return None

    headers = {"User-Agent": settings.geocoder_user_agent()}
    try:
        async with httpx.AsyncClient(base_url=ZIPPOPOTAM_BASE_URL, timeout=timeout_s) as client:
            resp = await client.get(f"/us/{zip_code}", headers=headers)
    except httpx.HTTPError as exc:
        logger.error("zip_lookup_failed zip=%s error=%s", zip_code, exc)
        return None

    if resp.status_code != 200:
        logger.error("zip_lookup_failed zip=%s status=%s", zip_code, resp.status_code)
        return None

    try:
        return parse_zip_payload(resp.json())
    except (GeocodingError, ValueError) as exc:
        logger.error("zip_lookup_failed zip=%s error=%s", zip_code, exc)
        return None


def parse_reverse_payload(data: dict[str, Any]) -> ParsedAddress | None:
    address = data.get("address")
    if not isinstance(address, dict):
        return None

    state_abbr = address.get("state_code")
    if not state_abbr:
        iso = str(address.get("ISO3166-2-lvl4") or "")
        state_abbr = iso.split("-")[1] if "-" in iso else ""
    state = state_abbr_to_name(state_abbr) if state_abbr else str(address.get("state") or "")

    city = (
        address.get("city")
        or address.get("town")
        or address.get("village")
        or address.get("county")
        or ""
    )
    postal_code = str(address.get("postcode") or "")

    if not state or not city:
        return None

    street_address = f"{city}, {state}" + (f" {postal_code}" if postal_code else "")
    return ParsedAddress(street_address=street_address, city=str(city), state=state, postal_code=postal_code)


async def reverse_geocode(
    latitude: float,
    longitude: float,
    *,
    timeout_s: float = 20.0,
) -> ParsedAddress | None:
    """
    Turn GPS coordinates into a service-area address via Nominatim.

    Nominatim allows about one request per second; callers pace themselves.
    Returns None when the point has no usable address; raises `GeocodingError`
    or `httpx.HTTPError` when the lookup itself fails.
    """
    params = {
        "lat": latitude,
        "lon": longitude,
        "format": "json",
        "addressdetails": 1,
    }
    headers = {"User-Agent": settings.nominatim_user_agent()}
    async with httpx.AsyncClient(base_url=NOMINATIM_BASE_URL, timeout=timeout_s) as client:
        resp = await client.get("/reverse", params=params, headers=headers)

    if resp.status_code != 200:
        raise GeocodingError(f"Reverse lookup failed: HTTP {resp.status_code}", status_code=resp.status_code)

    try:
        data: dict[str, Any] = resp.json()
    except ValueError as exc:
        raise GeocodingError("Reverse lookup returned invalid JSON.") from exc
    return parse_reverse_payload(data)
