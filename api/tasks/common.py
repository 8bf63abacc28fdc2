"""
Shared plumbing for the command-line tasks.

Every task:
- loads `.env.local` (then the regular environment) with python-dotenv
- configures logging through `core.log`
- opens the asyncpg pool for the duration of its coroutine when it needs the database
"""

from __future__ import annotations

import asyncio
import csv
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Sequence

from dotenv import load_dotenv

from core import db
from core.log import configure_logging

logger = logging.getLogger(__name__)

ENV_FILE = ".env.local"


def bootstrap(log_level: str | None = None) -> None:
    # Values already in the environment win over the file.
    load_dotenv(ENV_FILE, override=False)
    configure_logging(log_level)


async def with_db(func: Callable[[], Awaitable[int]]) -> int:
    await db.init_pool()
    try:
        return await func()
    finally:
        await db.close_pool()


def run(func: Callable[[], Awaitable[int]], *, needs_db: bool = True) -> int:
    """
    Run a task coroutine and turn fatal errors into a non-zero exit code.
    """
    try:
        if needs_db:
            return asyncio.run(with_db(func))
        return asyncio.run(func())
    except KeyboardInterrupt:
        logger.warning("task_interrupted")
        return 130
    except Exception:
        logger.exception("task_failed")
        return 1


def batched(items: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def csv_field(value: Any) -> str:
    """
    Text for one CSV cell; embedded newlines are flattened so every row stays on one line.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).replace("\r", "").replace("\n", " ")


def write_csv(path: Path, header: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    # Every field quoted, as the COPY imports expect.
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(header)
        writer.writerows([csv_field(v) for v in row] for row in rows)


def write_failures(path: Path, failures: list[dict[str, Any]]) -> None:
    path.write_text(json.dumps(failures, indent=2), encoding="utf-8")
    logger.info("failures_written path=%s count=%s", path, len(failures))
