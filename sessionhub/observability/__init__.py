"""Observability helpers."""

from sessionhub.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_source_read,
    record_malformed_record,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_source_read",
    "record_malformed_record",
]
