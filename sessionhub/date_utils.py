"""Shared timestamp normalization helpers (epoch milliseconds)."""
from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

_NUMERIC_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
# 9999-12-31T23:59:59.999Z, the last instant datetime can represent.
_MAX_EPOCH_MS = 253_402_300_799_999


def _parse_datetime_token(token: str) -> datetime | None:
    cleaned = token.strip()
    if not cleaned:
        return None
    try:
        return datetime.fromisoformat(cleaned.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in ("%Y/%m/%d", "%Y-%m-%d %H:%M:%S"):
        try:
            return datetime.strptime(cleaned, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def datetime_to_epoch_ms(value: datetime) -> int:
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return round(dt.astimezone(timezone.utc).timestamp() * 1000)


def _number_to_epoch_ms(value: int | float) -> int | None:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        result = int(value)
    except (OverflowError, ValueError):
        return None
    if abs(result) > _MAX_EPOCH_MS:
        return None
    return result


def to_epoch_ms(value: Any) -> int | None:
    """Convert a stored timestamp into epoch milliseconds.

    Integers and floats are taken as epoch milliseconds already; numeric
    strings likewise. Other strings are parsed as ISO-8601, naive values
    being treated as UTC. Non-finite or out-of-range numbers and anything
    else yield ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _number_to_epoch_ms(value)
    if isinstance(value, datetime):
        try:
            return datetime_to_epoch_ms(value)
        except (OverflowError, ValueError):
            return None
    if isinstance(value, str):
        token = value.strip()
        if not token:
            return None
        if _NUMERIC_RE.match(token):
            try:
                number = float(token)
            except (OverflowError, ValueError):
                return None
            return _number_to_epoch_ms(number)
        parsed = _parse_datetime_token(token)
        if parsed is None:
            return None
        try:
            return datetime_to_epoch_ms(parsed)
        except (OverflowError, ValueError):
            return None
    return None


def file_metadata_epoch_ms(path: Path) -> tuple[int, int]:
    """Return ``(created_ms, modified_ms)`` for a file.

    Creation time comes from ``st_birthtime`` where the platform reports it
    and falls back to the modification time otherwise; it is clamped so it
    never exceeds the modification time. Raises ``OSError`` if the file
    cannot be stat'ed.
    """
    stats = path.stat()
    modified_ms = int(stats.st_mtime * 1000)
    birthtime = getattr(stats, "st_birthtime", None)
    if isinstance(birthtime, (int, float)) and birthtime > 0:
        created_ms = min(int(birthtime * 1000), modified_ms)
    else:
        created_ms = modified_ms
    return created_ms, modified_ms
