"""Read-only connection scope for the session index store.

Every request opens its own connection and releases it on exit; the store
belongs to the assistant, so nothing here ever writes to it.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from sessionhub.errors import SourceUnavailable

logger = logging.getLogger("sessionhub.db")

SOURCE_NAME = "index"


def _read_only_uri(db_path: Path) -> str:
    return f"{db_path.resolve().as_uri()}?mode=ro"


@asynccontextmanager
async def open_index_connection(db_path: Path) -> AsyncIterator[aiosqlite.Connection]:
    """Yield a read-only connection to ``db_path``.

    Raises ``SourceUnavailable`` when the file is missing or cannot be opened.
    The connection is closed on every exit path, including errors raised by
    the caller's queries.
    """
    if not db_path.is_file():
        raise SourceUnavailable(SOURCE_NAME, f"index store not found: {db_path}")

    try:
        conn = await aiosqlite.connect(_read_only_uri(db_path), uri=True)
    except (aiosqlite.Error, OSError) as exc:
        raise SourceUnavailable(SOURCE_NAME, f"cannot open {db_path}: {exc}") from exc

    try:
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA busy_timeout=5000")
        logger.debug("Index store connection opened: %s", db_path)
        yield conn
    finally:
        await conn.close()
        logger.debug("Index store connection closed: %s", db_path)
