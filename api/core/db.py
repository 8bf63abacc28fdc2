"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`); tasks open it in their own `main`.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Database functions (the "RPCs" the site relies on, e.g.
`locations_within_radius`) are called with named arguments through `rpc()`.
"""

from __future__ import annotations

import asyncio
import os
import re
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

_pool: asyncpg.Pool | None = None

# Failures a query can raise: server errors, a dropped connection, or `command_timeout`.
QUERY_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)

_FUNCTION_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    _pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=1,
        max_size=5,
        command_timeout=30,
        # Hosted poolers (pgbouncer transaction mode) reject named prepared statements.
        statement_cache_size=0,
    )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await pool().fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await pool().fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]


async def fetch_value(sql: str, *args: Any) -> Any:
    """
    Run a query and return the first column of the first row (or None).
    """
    return await pool().fetchval(sql, *args)


async def execute(sql: str, *args: Any) -> None:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
    """
    await pool().execute(sql, *args)


def rpc_sql(function_name: str, params: dict[str, Any] | None = None) -> tuple[str, list[Any]]:
    """
    Build `SELECT * FROM fn(arg => $1, ...)` for a database function.

    Only plain lowercase identifiers are accepted for the function and its
    argument names since they are interpolated into the statement.
    """
    if not _FUNCTION_NAME.match(function_name):
        raise ValueError(f"Invalid database function name: {function_name!r}")

    params = params or {}
    named: list[str] = []
    values: list[Any] = []
    for index, (name, value) in enumerate(params.items(), start=1):
        if not _FUNCTION_NAME.match(name):
            raise ValueError(f"Invalid argument name for {function_name}: {name!r}")
        named.append(f"{name} => ${index}")
        values.append(value)

    return f"SELECT * FROM {function_name}({', '.join(named)})", values


async def rpc(function_name: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
    """
    Call a set-returning database function and return its rows as dicts.
    """
    sql, values = rpc_sql(function_name, params)
    return await fetch_all(sql, *values)
