"""Session aggregation over the JSONL log tree and the index store."""
from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from sessionhub import config
from sessionhub.db.connection import open_index_connection
from sessionhub.db.repositories.index_sessions import SqliteIndexSessionRepository
from sessionhub.errors import SourceUnavailable
from sessionhub.models import SessionRecord
from sessionhub.observability import record_source_read, start_span
from sessionhub.parsers.session_logs import discover_working_directories, scan_session_logs
from sessionhub.services.session_merge import merge_sessions

logger = logging.getLogger("sessionhub.services")

_LOG_SOURCE = "logs"
_INDEX_SOURCE = "index"


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


class SessionAggregator:
    """Builds the unified session view; holds no state between requests."""

    def __init__(self, projects_dir: Path, index_db_path: Path, decode_dir_names: bool = True):
        self.projects_dir = projects_dir
        self.index_db_path = index_db_path
        self.decode_dir_names = decode_dir_names

    async def aggregate(self, limit: int, working_directory: str | None = None) -> list[SessionRecord]:
        """Return up to ``limit`` sessions from both sources, newest first.

        Never raises: a source that fails contributes nothing.
        """
        if limit < 1:
            return []

        with start_span(
            "sessions.aggregate",
            {"sessions.limit": limit, "sessions.filtered": working_directory is not None},
        ):
            index_records, log_records = await asyncio.gather(
                self._read_index_sessions(limit, working_directory),
                self._read_log_sessions(working_directory),
            )
            return merge_sessions(index_records, log_records, limit)

    async def list_working_directories(self) -> list[str]:
        """Return the sorted, distinct working directories seen in either source."""
        with start_span("sessions.working_directories"):
            index_paths, log_paths = await asyncio.gather(
                self._read_index_paths(),
                self._read_log_paths(),
            )
        return sorted({path for path in (*index_paths, *log_paths) if path})

    async def _read_log_sessions(self, working_directory: str | None) -> list[SessionRecord]:
        started = time.perf_counter()
        try:
            records = await asyncio.to_thread(scan_session_logs, self.projects_dir, working_directory)
        except Exception:
            logger.exception("Log source scan failed")
            record_source_read(_LOG_SOURCE, "error", _elapsed_ms(started))
            return []
        record_source_read(_LOG_SOURCE, "ok", _elapsed_ms(started))
        return records

    async def _read_index_sessions(self, limit: int, working_directory: str | None) -> list[SessionRecord]:
        started = time.perf_counter()
        try:
            async with open_index_connection(self.index_db_path) as db:
                records = await SqliteIndexSessionRepository(db).list_recent(limit, working_directory)
        except SourceUnavailable as exc:
            logger.warning("Index source unavailable: %s", exc)
            record_source_read(_INDEX_SOURCE, "unavailable", _elapsed_ms(started))
            return []
        except Exception:
            logger.exception("Index source query failed")
            record_source_read(_INDEX_SOURCE, "error", _elapsed_ms(started))
            return []
        record_source_read(_INDEX_SOURCE, "ok", _elapsed_ms(started))
        return records

    async def _read_log_paths(self) -> list[str]:
        try:
            return await asyncio.to_thread(
                discover_working_directories, self.projects_dir, self.decode_dir_names
            )
        except Exception:
            logger.exception("Log source directory discovery failed")
            return []

    async def _read_index_paths(self) -> list[str]:
        try:
            async with open_index_connection(self.index_db_path) as db:
                return await SqliteIndexSessionRepository(db).list_working_directories()
        except SourceUnavailable as exc:
            logger.warning("Index source unavailable: %s", exc)
            return []
        except Exception:
            logger.exception("Index directory query failed")
            return []


def get_session_aggregator() -> SessionAggregator:
    """Build an aggregator from the current configuration."""
    return SessionAggregator(
        projects_dir=config.PROJECTS_DIR,
        index_db_path=config.INDEX_DB_PATH,
        decode_dir_names=config.DECODE_PROJECT_DIRS,
    )
