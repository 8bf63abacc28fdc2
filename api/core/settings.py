"""
Environment-backed settings.

Every value is read on demand so tests (and tasks that load `.env.local`)
can change the environment without re-importing modules.
"""

from __future__ import annotations

import os

DEFAULT_SITE_BASE_URL = "https://www.dryerventcleaners.co"
DEFAULT_SITE_NAME = "dryer-vent-cleaners"
KNOWN_SITES = ("self-car-wash-finder", "dryer-vent-cleaners")

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
)


def env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def site_base_url() -> str:
    return env_str("SITE_BASE_URL", DEFAULT_SITE_BASE_URL).rstrip("/")


def site_name() -> str:
    return env_str("SITE_NAME", DEFAULT_SITE_NAME)


def cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "").strip()
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def geocoder_user_agent() -> str:
    return env_str("GEOCODER_USER_AGENT", "DryerVentCleaners/1.0")


def nominatim_user_agent() -> str:
    return env_str("NOMINATIM_USER_AGENT", "dryer-vent-cleaners-app/1.0")


def cloudflare_account_id() -> str:
    return env_str("CLOUDFLARE_ACCOUNT_ID")


def cloudflare_images_api_token() -> str:
    return env_str("CLOUDFLARE_IMAGES_API_TOKEN")


def cloudflare_images_account_hash() -> str:
    return env_str("CLOUDFLARE_IMAGES_ACCOUNT_HASH")


def serpapi_api_key() -> str:
    return env_str("SERPAPI_API_KEY")


def default_search_radius_miles() -> int:
    return env_int("DEFAULT_SEARCH_RADIUS_MILES", 25)
