"""Error kinds raised inside the session sources.

Readers raise these internally; the aggregation service turns every one of
them into an empty contribution, so none reach HTTP callers.
"""
from __future__ import annotations


class AggregationSourceError(Exception):
    """Base class for failures attributed to one session source."""

    def __init__(self, source: str, detail: str = "") -> None:
        self.source = source
        self.detail = detail
        message = f"{source}: {detail}" if detail else source
        super().__init__(message)


class SourceUnavailable(AggregationSourceError):
    """A log directory or the index store is missing or unreadable."""


class RecordMalformed(AggregationSourceError):
    """A single log line or index row could not be interpreted."""
