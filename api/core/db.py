"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

json/jsonb columns are encoded and decoded with the `json` module on every
pooled connection, so repositories pass and receive plain dicts/lists.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from .env import env_float, env_int

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None


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


async def _init_connection(conn: asyncpg.Connection) -> None:
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name,
            encoder=lambda value: json.dumps(value, ensure_ascii=False),
            decoder=json.loads,
            schema="pg_catalog",
        )


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    _pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=1,
        max_size=env_int("DB_POOL_MAX_SIZE", 5),
        command_timeout=env_float("DB_COMMAND_TIMEOUT_S", 30.0),
        init=_init_connection,
    )
    logger.info("db_pool_ready max_size=%s", _pool.get_max_size())


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


async def execute(sql: str, *args: Any) -> str:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL) and return asyncpg's status tag,
    e.g. "DELETE 1".
    """
    return await pool().execute(sql, *args)


def affected_rows(status: str) -> int:
    try:
        return int((status or "").rsplit(" ", 1)[-1])
    except ValueError:
        return 0
