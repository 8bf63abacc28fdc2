"""
Tag Cloudflare images with the site they belong to (metadata["site"]).

Usage:
  update-image-metadata --site dryer-vent-cleaners --dry-run
  update-image-metadata --site self-car-wash-finder --image-id <cloudflare-image-id>

Several sites share one Cloudflare account; the tag tells their images apart.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from core import cloudflare, settings

from . import common

logger = logging.getLogger(__name__)

UPDATE_DELAY_S = 0.1


@dataclass
class MetadataStats:
    candidates: int = 0
    updated: int = 0
    failed: int = 0


def needs_site_tag(image: dict[str, Any], site: str) -> bool:
    return cloudflare.image_metadata(image).get("site") != site


def tagged_metadata(image: dict[str, Any], site: str) -> dict[str, Any]:
    return {**cloudflare.image_metadata(image), "site": site}


async def run_update(
    *,
    site: str,
    image_id: str | None,
    dry_run: bool,
    sleep=asyncio.sleep,
) -> MetadataStats:
    if image_id:
        images = [await cloudflare.get_image(image_id)]
    else:
        all_images = await cloudflare.list_all_images(per_page=100)
        images = [image for image in all_images if needs_site_tag(image, site)]
        logger.info("images_listed total=%s needing_update=%s", len(all_images), len(images))

    stats = MetadataStats(candidates=len(images))
    for image in images:
        metadata = tagged_metadata(image, site)
        if dry_run:
            logger.info("would_update image_id=%s metadata=%s", image.get("id"), metadata)
            stats.updated += 1
        else:
            try:
                await cloudflare.update_image_metadata(str(image["id"]), metadata)
                stats.updated += 1
            except (cloudflare.CloudflareError, httpx.HTTPError) as exc:
                stats.failed += 1
                logger.warning("image_update_failed image_id=%s error=%s", image.get("id"), exc)
        await sleep(UPDATE_DELAY_S)
    return stats


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="update-image-metadata", description=__doc__.split("\n\n")[0].strip())
    ap.add_argument("--site", required=True, choices=settings.KNOWN_SITES)
    ap.add_argument("--image-id", default=None, help="update a single image")
    ap.add_argument("--dry-run", action="store_true")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    common.bootstrap()

    async def task() -> int:
        stats = await run_update(site=args.site, image_id=args.image_id, dry_run=args.dry_run)
        logger.info(
            "metadata_update_done site=%s candidates=%s updated=%s failed=%s dry_run=%s",
            args.site,
            stats.candidates,
            stats.updated,
            stats.failed,
            args.dry_run,
        )
        return 1 if stats.failed else 0

    return common.run(task, needs_db=False)


if __name__ == "__main__":
    raise SystemExit(main())
