"""
Create an admin account (or reset its password).

Usage:
  create-admin --email admin@example.com
"""

from __future__ import annotations

import argparse
import getpass
import logging

from auth import service as auth_service

from . import common

logger = logging.getLogger(__name__)


def read_password() -> str:
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        raise SystemExit("Passwords do not match.")
    return password


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="create-admin", description=__doc__.split("\n\n")[0].strip())
    ap.add_argument("--email", required=True)
    args = ap.parse_args(argv)
    common.bootstrap()

    password = read_password()

    async def task() -> int:
        try:
            row = await auth_service.create_admin(args.email, password)
        except ValueError as exc:
            logger.error("admin_not_created error=%s", exc)
            return 2
        logger.info("admin_ready id=%s email=%s", row["id"], row["email"])
        return 0

    return common.run(task)


if __name__ == "__main__":
    raise SystemExit(main())
