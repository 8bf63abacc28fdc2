"""
SerpAPI HTTP client helpers.

Used endpoints:
- GET https://serpapi.com/search.json?engine=google_maps&type=search&...  -> {"local_results": [...], "serpapi_pagination": {...}}
- GET <photos_link from a local result>                                   -> {"photos": [{"image": ..., "thumbnail": ...}]}
"""

from __future__ import annotations

from typing import Any

import httpx

from . import settings

SEARCH_URL = "https://serpapi.com/search.json"
RESULTS_PER_PAGE = 20
DEFAULT_ZOOM = "11"

NO_RESULTS_MARKER = "Google hasn't returned any results for this query"


class SerpApiError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _api_key() -> str:
    key = settings.serpapi_api_key()
    if not key:
        raise SerpApiError("SERPAPI_API_KEY is not set.")
    return key


def maps_search_params(query: str, location: str, *, page: int = 1, zoom: str = DEFAULT_ZOOM) -> dict[str, str]:
    params = {
        "engine": "google_maps",
        "type": "search",
        "q": query,
        "location": location,
        "z": zoom,
        "gl": "us",
        "hl": "en",
    }
    start = (page - 1) * RESULTS_PER_PAGE
    if start > 0:
        params["start"] = str(start)
    return params


async def search_maps(query: str, location: str, *, page: int = 1, timeout_s: float = 60.0) -> dict[str, Any]:
    """
    Fetch one page of Google Maps results.

    SerpAPI's "no results" error is returned as an empty page so paging can stop cleanly.
    """
    params = maps_search_params(query, location, page=page)
    params["api_key"] = _api_key()

    async with httpx.AsyncClient(timeout=timeout_s) as client:
        resp = await client.get(SEARCH_URL, params=params)

    if resp.status_code != 200:
        raise SerpApiError(
            f"SerpAPI request failed: {resp.status_code} {resp.text[:300]}",
            status_code=resp.status_code,
        )

    data: dict[str, Any] = resp.json()
    error = data.get("error")
    if error:
        if NO_RESULTS_MARKER in str(error):
            return {"local_results": []}
        raise SerpApiError(f"SerpAPI error: {error}")
    return data


async def fetch_photos(photos_link: str, *, timeout_s: float = 60.0) -> list[dict[str, Any]]:
    url = httpx.URL(photos_link).copy_set_param("api_key", _api_key())

    async with httpx.AsyncClient(timeout=timeout_s) as client:
        resp = await client.get(url)

    if resp.status_code != 200:
        raise SerpApiError(f"SerpAPI request failed: HTTP {resp.status_code}", status_code=resp.status_code)

    data: dict[str, Any] = resp.json()
    if data.get("error"):
        raise SerpApiError(f"SerpAPI error: {data['error']}")
    photos = data.get("photos")
    return photos if isinstance(photos, list) else []
