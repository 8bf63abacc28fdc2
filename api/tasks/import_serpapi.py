"""
Import businesses from SerpAPI Google Maps search into CSV files.

Usage:
  import-serpapi --location "Indiana, United States" --dry-run
  import-serpapi --location "Indiana, United States" --limit 20
  import-serpapi --location "Los Angeles, CA" --query "dryer vent cleaning service"

Writes locations.csv, location_amenities.csv and location_hours.csv under
--output-dir/<location slug>/ after every page, so a crash keeps what was fetched.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from core import geocoding, serpapi
from core.retry import RetryPolicy, is_transient_error, retry_async
from core.slug import slugify

from . import common, parsing

logger = logging.getLogger(__name__)

DEFAULT_QUERY = "dryer vent cleaning"
DEFAULT_OUTPUT_DIR = "serpapi_data"
PAGE_DELAY_S = 1.0
REVERSE_GEOCODE_DELAY_S = 1.0
FETCH_RETRIES = 2
HOURS_CSV_COLUMNS = ("location_id", "day_of_week", "open_time", "close_time", "is_closed")


@dataclass
class ImportState:
    locations: list[dict[str, Any]] = field(default_factory=list)
    hours: list[dict[str, Any]] = field(default_factory=list)
    amenities: list[dict[str, Any]] = field(default_factory=list)
    api_calls: int = 0
    skipped: int = 0


async def resolve_address(result: dict[str, Any], *, sleep=asyncio.sleep) -> geocoding.ParsedAddress | None:
    """
    Address from the result text, else from its GPS coordinates.
    """
    address = parsing.parse_address(result.get("address"))
    if address is not None:
        return address

    gps = result.get("gps_coordinates") or {}
    if not gps.get("latitude") or not gps.get("longitude"):
        return None

    try:
        address = await retry_async(
            lambda: geocoding.reverse_geocode(gps["latitude"], gps["longitude"]),
            policy=RetryPolicy(retries=FETCH_RETRIES),
            should_retry=is_transient_error,
            sleep=sleep,
            label="reverse_geocode",
        )
    except (geocoding.GeocodingError, httpx.HTTPError) as exc:
        logger.warning("reverse_geocode_failed title=%s error=%s", result.get("title"), exc)
        address = None
    # Nominatim allows one request per second.
    await sleep(REVERSE_GEOCODE_DELAY_S)
    return address


async def fetch_page(query: str, location: str, page: int, *, sleep=asyncio.sleep) -> dict[str, Any]:
    return await retry_async(
        lambda: serpapi.search_maps(query, location, page=page),
        policy=RetryPolicy(retries=FETCH_RETRIES),
        should_retry=is_transient_error,
        sleep=sleep,
        label="serpapi_search",
    )


def add_result(state: ImportState, result: dict[str, Any], address: geocoding.ParsedAddress) -> None:
    location_id = str(uuid.uuid4())
    state.locations.append(parsing.location_row(result, address, location_id=location_id))

    for row in parsing.parse_operating_hours(result.get("operating_hours")):
        state.hours.append({"location_id": location_id, **row})

    for amenity in parsing.extract_amenities(result.get("extensions"), result.get("service_options")):
        state.amenities.append(
            {
                "location_id": location_id,
                "amenity_name": amenity["name"],
                "amenity_category": amenity["category"],
            }
        )


def save_progress(state: ImportState, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)

    common.write_csv(
        output_dir / "locations.csv",
        parsing.LOCATION_CSV_COLUMNS,
        ([loc[column] for column in parsing.LOCATION_CSV_COLUMNS] for loc in state.locations),
    )

    if state.amenities:
        common.write_csv(
            output_dir / "location_amenities.csv",
            ("location_id", "amenity_name", "amenity_category"),
            ((a["location_id"], a["amenity_name"], a["amenity_category"]) for a in state.amenities),
        )

    if state.hours:
        common.write_csv(
            output_dir / "location_hours.csv",
            HOURS_CSV_COLUMNS,
            ([row[column] for column in HOURS_CSV_COLUMNS] for row in state.hours),
        )


async def run_import(
    *,
    location: str,
    query: str,
    limit: int | None,
    dry_run: bool,
    output_dir: Path,
    sleep=asyncio.sleep,
) -> ImportState:
    state = ImportState()
    page = 1

    while True:
        logger.info("serpapi_fetch page=%s location=%s", page, location)
        data = await fetch_page(query, location, page, sleep=sleep)
        state.api_calls += 1

        results = data.get("local_results") or []
        logger.info("serpapi_page page=%s results=%s", page, len(results))
        if not results:
            break

        reached_limit = False
        for result in results:
            address = await resolve_address(result, sleep=sleep)
            if address is None:
                state.skipped += 1
                logger.info("result_skipped title=%s address=%s", result.get("title"), result.get("address"))
                continue

            add_result(state, result, address)
            if limit and len(state.locations) >= limit:
                reached_limit = True
                break

        if not dry_run and state.locations:
            save_progress(state, output_dir)

        if reached_limit or not (data.get("serpapi_pagination") or {}).get("next"):
            break
        page += 1
        await sleep(PAGE_DELAY_S)

    return state


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="import-serpapi", description=__doc__.split("\n\n")[0].strip())
    ap.add_argument("--location", required=True, help='e.g. "Indiana, United States"')
    ap.add_argument("--query", default=DEFAULT_QUERY)
    ap.add_argument("--limit", type=int, default=None)
    ap.add_argument("--dry-run", action="store_true")
    ap.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR)
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    common.bootstrap()

    output_dir = Path(args.output_dir) / slugify(args.location)

    async def task() -> int:
        state = await run_import(
            location=args.location,
            query=args.query,
            limit=args.limit,
            dry_run=args.dry_run,
            output_dir=output_dir,
        )
        logger.info(
            "import_done api_calls=%s locations=%s hours=%s amenities=%s skipped=%s dry_run=%s output_dir=%s",
            state.api_calls,
            len(state.locations),
            len(state.hours),
            len(state.amenities),
            state.skipped,
            args.dry_run,
            output_dir,
        )
        return 0

    return common.run(task, needs_db=False)


if __name__ == "__main__":
    raise SystemExit(main())
