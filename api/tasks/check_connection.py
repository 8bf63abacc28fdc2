"""
Smoke-test the configured database (and Cloudflare token, when set).

Usage:
  check-connection
"""

from __future__ import annotations

import argparse
import logging

from core import cloudflare, db, settings
from locations import repository as locations_repository

from . import common

logger = logging.getLogger(__name__)


async def check() -> int:
    value = await db.fetch_value("SELECT 1")
    logger.info("db_ok select_1=%s", value)

    visible = await locations_repository.count_visible()
    logger.info("db_locations visible=%s", visible)

    if settings.cloudflare_account_id() and settings.cloudflare_images_api_token():
        ok = await cloudflare.verify_token()
        logger.info("cloudflare_token valid=%s", ok)
        if not ok:
            return 1
    else:
        logger.info("cloudflare_token skipped=not_configured")
    return 0


def main(argv: list[str] | None = None) -> int:
    argparse.ArgumentParser(prog="check-connection", description=__doc__.split("\n\n")[0].strip()).parse_args(argv)
    common.bootstrap()
    return common.run(check)


if __name__ == "__main__":
    raise SystemExit(main())
