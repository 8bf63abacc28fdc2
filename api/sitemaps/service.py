"""
XML sitemaps for search engines.

Layout:
- /sitemap.xml                  index pointing at the files below
- /sitemap-static.xml           fixed site pages
- /sitemap-cities.xml           one URL per distinct city
- /sitemap-locations-{n}.xml    location pages, LOCATIONS_PER_SITEMAP per file
"""

from __future__ import annotations

import logging
import math
from typing import Iterable
from xml.sax.saxutils import escape

from core import settings
from core.slug import slugify
from locations import repository as locations_repository

logger = logging.getLogger(__name__)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
LOCATIONS_PER_SITEMAP = 1000

STATIC_PATHS = (
    "/",
    "/dryer-vent-cleaning-near-me",
    "/states",
    "/privacy",
    "/terms",
)


def urlset_xml(urls: Iterable[str]) -> str:
    entries = "\n".join(f"<url><loc>{escape(url)}</loc></url>" for url in urls)
    body = f"{entries}\n" if entries else ""
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<urlset xmlns="{SITEMAP_NS}">\n{body}</urlset>'


def sitemap_index_xml(urls: Iterable[str]) -> str:
    entries = "\n".join(f"<sitemap><loc>{escape(url)}</loc></sitemap>" for url in urls)
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<sitemapindex xmlns="{SITEMAP_NS}">\n{entries}\n</sitemapindex>'


def location_batch_count(total_locations: int) -> int:
    return max(1, math.ceil(total_locations / LOCATIONS_PER_SITEMAP))


async def sitemap_index() -> str:
    base = settings.site_base_url()
    total = await locations_repository.count_visible()
    batches = location_batch_count(total)
    urls = [f"{base}/sitemap-static.xml", f"{base}/sitemap-cities.xml"]
    urls += [f"{base}/sitemap-locations-{n}.xml" for n in range(1, batches + 1)]
    logger.info("sitemap_index total_locations=%s batches=%s", total, batches)
    return sitemap_index_xml(urls)


def static_sitemap() -> str:
    base = settings.site_base_url()
    return urlset_xml(f"{base}{path}" for path in STATIC_PATHS)


async def cities_sitemap() -> str:
    base = settings.site_base_url()
    cities = await locations_repository.distinct_cities()
    if not cities:
        logger.warning("sitemap_cities_empty")
    return urlset_xml(f"{base}/cities/{row['city_slug']}-{slugify(row['state'])}" for row in cities)


async def locations_sitemap(batch: int) -> str:
    base = settings.site_base_url()
    rows = await locations_repository.visible_location_paths(
        offset=(batch - 1) * LOCATIONS_PER_SITEMAP,
        limit=LOCATIONS_PER_SITEMAP,
    )
    return urlset_xml(
        f"{base}/states/{slugify(row['state'])}/{row['city_slug']}/{row['slug']}" for row in rows
    )
