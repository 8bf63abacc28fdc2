"""
Pull each location's photo gallery from SerpAPI and store it in Cloudflare Images.

Usage:
  migrate-serpapi-photos --limit 2
  migrate-serpapi-photos --start-after <location-id>
  migrate-serpapi-photos --max-photos 5

Locations that already have any image row are left alone.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from core import cloudflare, db, serpapi, settings
from core.retry import RetryPolicy, retry_async

from . import common, repository

logger = logging.getLogger(__name__)

BATCH_SIZE = 3
BATCH_DELAY_S = 3.0
PHOTO_DELAY_S = 1.0
PHOTO_RETRIES = 2
DEFAULT_MAX_PHOTOS = 10
FAILED_FILE = "serpapi-photos-failed.json"
UPLOADED_BY = "serpapi-migration"


@dataclass
class PhotoStats:
    total: int = 0
    migrated: int = 0
    already_migrated: int = 0
    skipped: int = 0
    failed: int = 0
    photos_uploaded: int = 0
    photos_failed: int = 0
    failures: list[dict[str, Any]] = field(default_factory=list)


def photos_link(serp_payload: Any) -> str | None:
    """
    jsonb arrives as text from asyncpg; accept either form.
    """
    payload = serp_payload
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except ValueError:
            return None
    if not isinstance(payload, dict):
        return None
    link = payload.get("photos_link")
    return str(link) if link else None


async def upload_photo(url: str, metadata: dict[str, Any], *, sleep=asyncio.sleep) -> str:
    async def attempt() -> str:
        data = await cloudflare.download_image(url)
        return await cloudflare.upload_image_bytes(data, metadata=metadata)

    return await retry_async(
        attempt,
        policy=RetryPolicy(retries=PHOTO_RETRIES),
        sleep=sleep,
        label="serpapi_photo_upload",
    )


async def process_location(
    location: dict[str, Any],
    stats: PhotoStats,
    *,
    max_photos: int,
    sleep=asyncio.sleep,
) -> None:
    location_id = str(location["id"])
    try:
        link = photos_link(location.get("serp_payload"))
        if not link:
            stats.skipped += 1
            return

        if await repository.has_any_image(location_id):
            stats.already_migrated += 1
            return

        photos = (await serpapi.fetch_photos(link))[:max_photos]
        if not photos:
            stats.skipped += 1
            return

        uploaded = 0
        for position, photo in enumerate(photos):
            url = photo.get("image") or photo.get("thumbnail")
            if not url:
                continue
            try:
                cf_image_id = await upload_photo(
                    url,
                    {
                        "site": settings.site_name(),
                        "location_id": location_id,
                        "location_name": location.get("name"),
                        "type": "photo",
                        "source": "serpapi",
                        "position": position + 1,
                    },
                    sleep=sleep,
                )
                await repository.insert_location_image(
                    location_id=location_id,
                    cf_image_id=cf_image_id,
                    image_type="photo",
                    is_primary=position == 0,
                    uploaded_by=UPLOADED_BY,
                    source_url=url,
                )
                uploaded += 1
                stats.photos_uploaded += 1
            except (cloudflare.CloudflareError, httpx.HTTPError, *db.QUERY_ERRORS) as exc:
                stats.photos_failed += 1
                logger.warning("photo_upload_failed location_id=%s position=%s error=%s", location_id, position + 1, exc)

            if position < len(photos) - 1:
                await sleep(PHOTO_DELAY_S)

        if uploaded:
            stats.migrated += 1
        else:
            stats.failed += 1
        logger.info("location_photos location_id=%s uploaded=%s of=%s", location_id, uploaded, len(photos))
    except (serpapi.SerpApiError, httpx.HTTPError, *db.QUERY_ERRORS) as exc:
        stats.failed += 1
        stats.failures.append({"location_id": location_id, "location_name": location.get("name"), "error": str(exc)})
        logger.warning("location_photos_failed location_id=%s error=%s", location_id, exc)


async def run_migration(
    *,
    limit: int | None,
    start_after: str | None,
    max_photos: int,
    sleep=asyncio.sleep,
    stats: PhotoStats | None = None,
) -> PhotoStats:
    stats = stats if stats is not None else PhotoStats()
    locations = await repository.locations_with_serp_payload(start_after=start_after)
    if limit:
        locations = locations[:limit]
    stats.total = len(locations)

    batches = list(common.batched(locations, BATCH_SIZE))
    for index, batch in enumerate(batches, start=1):
        logger.info("photo_batch batch=%s of=%s", index, len(batches))
        for location in batch:
            await process_location(location, stats, max_photos=max_photos, sleep=sleep)
        if index < len(batches):
            await sleep(BATCH_DELAY_S)

    if locations and limit:
        logger.info("migration_resume_hint start_after=%s", locations[-1]["id"])
    return stats


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="migrate-serpapi-photos", description=__doc__.split("\n\n")[0].strip())
    ap.add_argument("--limit", type=int, default=None)
    ap.add_argument("--start-after", default=None, help="resume after this location id")
    ap.add_argument("--max-photos", type=int, default=DEFAULT_MAX_PHOTOS)
    ap.add_argument("--failed-file", default=FAILED_FILE)
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    common.bootstrap()

    async def task() -> int:
        stats = PhotoStats()
        try:
            await run_migration(
                limit=args.limit,
                start_after=args.start_after,
                max_photos=args.max_photos,
                stats=stats,
            )
        finally:
            if stats.failures:
                common.write_failures(Path(args.failed_file), stats.failures)
        logger.info(
            "photo_migration_done total=%s migrated=%s already_migrated=%s skipped=%s failed=%s "
            "photos_uploaded=%s photos_failed=%s",
            stats.total,
            stats.migrated,
            stats.already_migrated,
            stats.skipped,
            stats.failed,
            stats.photos_uploaded,
            stats.photos_failed,
        )
        return 0

    return common.run(task)


if __name__ == "__main__":
    raise SystemExit(main())
