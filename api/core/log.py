"""
Logging setup shared by the API process and the tasks.

Modules log through `logging.getLogger(__name__)` with `key=value` style
messages; this only configures the root handler once.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | None = None) -> None:
    raw = (level or os.environ.get("LOG_LEVEL", "INFO")).strip().upper() or "INFO"
    resolved = logging.getLevelName(raw)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    root.setLevel(resolved)

    # httpx logs every request at INFO; keep that out of task output.
    logging.getLogger("httpx").setLevel(max(resolved, logging.WARNING))
