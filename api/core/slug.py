"""
URL slugs for names, cities and states.

Stored `slug` / `city_slug` columns were produced with the same rules, so
lookups by URL segment depend on this staying stable.
"""

from __future__ import annotations

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str | None) -> str:
    """
    "St. Louis, MO" -> "st-louis-mo"; "Café Olé" -> "cafe-ole".
    """
    text = unicodedata.normalize("NFKD", str(value or ""))
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    text = text.replace("&", " and ").replace("'", "")
    return _NON_ALNUM.sub("-", text).strip("-")


def unslugify(value: str | None) -> str:
    """
    "new-york" -> "new york" (used for loose ILIKE matching).
    """
    return (value or "").replace("-", " ").strip()
