"""
Geospatial helpers.

The radius search itself runs in Postgres (`locations_within_radius`); these
helpers cover input checks and client-side distances.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

EARTH_RADIUS_MILES = 3959.0

_ZIP_RE = re.compile(r"^\d{5}$")


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


def is_zip_code(text: str | None) -> bool:
    return bool(_ZIP_RE.match((text or "").strip()))


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance in miles (haversine).
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c
