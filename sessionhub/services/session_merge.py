"""Merge index-derived and log-derived session records."""
from __future__ import annotations

from typing import Iterable

from sessionhub.models import SessionRecord


def overlay_session(base: SessionRecord, incoming: SessionRecord) -> SessionRecord:
    """Overlay ``incoming`` (higher precedence) onto ``base``.

    Every field comes from ``incoming`` except ``summary``, which keeps the
    base value when the incoming one is missing, and ``messageCount``, which
    takes the larger of the two.
    """
    return incoming.model_copy(
        update={
            "summary": incoming.summary if incoming.summary is not None else base.summary,
            "messageCount": max(base.messageCount, incoming.messageCount),
        }
    )


def _fold_into(merged: dict[str, SessionRecord], records: Iterable[SessionRecord]) -> None:
    for record in records:
        existing = merged.get(record.sessionId)
        merged[record.sessionId] = record if existing is None else overlay_session(existing, record)


def merge_sessions(
    index_records: Iterable[SessionRecord],
    log_records: Iterable[SessionRecord],
    limit: int,
) -> list[SessionRecord]:
    """Combine both sources into one deduplicated, ordered, capped list.

    Index records seed the map, log records are overlaid on top. The result
    is sorted by ``lastMessageAt`` descending with ``sessionId`` as the
    tie-break, then truncated to ``limit``.
    """
    if limit < 1:
        return []

    merged: dict[str, SessionRecord] = {}
    _fold_into(merged, index_records)
    _fold_into(merged, log_records)

    ordered = sorted(merged.values(), key=lambda r: (-r.lastMessageAt, r.sessionId))
    return ordered[:limit]
