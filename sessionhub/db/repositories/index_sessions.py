"""SQLite implementation of the session index reader."""
from __future__ import annotations

import logging

import aiosqlite

from sessionhub.date_utils import to_epoch_ms
from sessionhub.errors import RecordMalformed, SourceUnavailable
from sessionhub.models import SessionRecord
from sessionhub.observability import record_malformed_record

logger = logging.getLogger("sessionhub.db")

SOURCE_NAME = "index"

# Per-session aggregates over base_messages. `scoped` holds the (optionally
# cwd-filtered) events that are grouped; `latest` picks the newest scoped row
# per session for its cwd; `leaves` picks the newest event of the whole
# session, whose uuid links to conversation_summaries.
_RECENT_SESSIONS_QUERY = """
    WITH scoped AS (
        SELECT rowid AS event_order, session_id, timestamp, cwd
        FROM base_messages
        WHERE session_id IS NOT NULL AND session_id != '' {cwd_filter}
    ),
    grouped AS (
        SELECT
            session_id,
            MIN(timestamp) AS first_message,
            MAX(timestamp) AS last_message,
            COUNT(*) AS message_count
        FROM scoped
        GROUP BY session_id
    ),
    latest AS (
        SELECT
            session_id,
            cwd,
            ROW_NUMBER() OVER (
                PARTITION BY session_id ORDER BY timestamp DESC, event_order DESC
            ) AS rn
        FROM scoped
    ),
    leaves AS (
        SELECT
            session_id,
            uuid,
            ROW_NUMBER() OVER (
                PARTITION BY session_id ORDER BY timestamp DESC, rowid DESC
            ) AS rn
        FROM base_messages
        WHERE session_id IN (SELECT session_id FROM grouped)
    )
    SELECT
        g.session_id,
        g.first_message,
        g.last_message,
        g.message_count,
        l.cwd,
        (
            SELECT cs.summary FROM conversation_summaries cs
            WHERE cs.leaf_uuid = lv.uuid
            LIMIT 1
        ) AS summary
    FROM grouped g
    JOIN latest l ON l.session_id = g.session_id AND l.rn = 1
    LEFT JOIN leaves lv ON lv.session_id = g.session_id AND lv.rn = 1
    ORDER BY g.last_message DESC, g.session_id ASC
    LIMIT ?
"""

_DISTINCT_CWD_QUERY = """
    SELECT DISTINCT cwd
    FROM base_messages
    WHERE cwd IS NOT NULL AND cwd != ''
    ORDER BY cwd
"""


class SqliteIndexSessionRepository:
    """Read-only queries over the assistant's session index store."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def list_recent(self, limit: int, working_directory: str | None = None) -> list[SessionRecord]:
        """Return up to ``limit`` sessions, newest activity first.

        ``working_directory`` is an exact-match filter applied before grouping.
        Raises ``SourceUnavailable`` when the expected tables are missing.
        """
        if limit < 1:
            return []

        params: list[str | int] = []
        cwd_filter = ""
        if working_directory is not None:
            cwd_filter = "AND cwd = ?"
            params.append(working_directory)
        params.append(limit)

        query = _RECENT_SESSIONS_QUERY.format(cwd_filter=cwd_filter)
        try:
            async with self.db.execute(query, params) as cur:
                rows = await cur.fetchall()
        except aiosqlite.Error as exc:
            raise SourceUnavailable(SOURCE_NAME, f"session query failed: {exc}") from exc

        records: list[SessionRecord] = []
        malformed = 0
        for row in rows:
            try:
                records.append(self._row_to_record(row))
            except RecordMalformed as exc:
                malformed += 1
                logger.debug("Skipping malformed index row: %s", exc)
            except Exception:
                malformed += 1
                logger.exception("Skipping index row after unexpected error")
        if malformed:
            record_malformed_record(SOURCE_NAME, malformed)
        return records

    async def list_working_directories(self) -> list[str]:
        try:
            async with self.db.execute(_DISTINCT_CWD_QUERY) as cur:
                rows = await cur.fetchall()
        except aiosqlite.Error as exc:
            raise SourceUnavailable(SOURCE_NAME, f"directory query failed: {exc}") from exc
        return [row[0] for row in rows if isinstance(row[0], str) and row[0]]

    def _row_to_record(self, row) -> SessionRecord:
        session_id = row["session_id"]
        first_ms = to_epoch_ms(row["first_message"])
        last_ms = to_epoch_ms(row["last_message"])
        if first_ms is None or last_ms is None:
            raise RecordMalformed(SOURCE_NAME, f"session {session_id!r} has unreadable timestamps")
        if first_ms > last_ms:
            # Mixed integer/text timestamp columns can invert MIN/MAX.
            first_ms, last_ms = last_ms, first_ms

        summary = row["summary"]
        return SessionRecord(
            sessionId=str(session_id),
            firstMessageAt=first_ms,
            lastMessageAt=last_ms,
            messageCount=max(1, int(row["message_count"] or 0)),
            workingDirectory=row["cwd"] if isinstance(row["cwd"], str) else "",
            summary=summary if isinstance(summary, str) and summary else None,
        )
