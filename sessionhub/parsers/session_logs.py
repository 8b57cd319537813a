"""Read per-project JSONL session logs into SessionRecord summaries."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

from sessionhub.date_utils import file_metadata_epoch_ms, to_epoch_ms
from sessionhub.errors import RecordMalformed, SourceUnavailable
from sessionhub.models import SessionRecord
from sessionhub.observability import record_malformed_record

logger = logging.getLogger("sessionhub.parsers")

SOURCE_NAME = "logs"

_SESSION_ID_PATTERN = re.compile(r"^[0-9A-Fa-f-]{36}$")
_SESSION_FILE_PATTERN = re.compile(r"^[0-9A-Fa-f-]{36}\.jsonl$")

# Record types that represent one user/assistant turn.
_TURN_TYPES = {"user", "assistant"}


@dataclass
class _StreamState:
    """Running accumulator folded over the records of one stream."""

    session_id: str = ""
    working_directory: str = ""
    pinned: bool = False
    stated_session_id: str = ""
    summary: str | None = None
    first_ts: int | None = None
    last_ts: int | None = None
    message_count: int = 0
    malformed: int = 0

    def consume(self, entry: dict[str, Any], timestamp_ms: int | None) -> _StreamState:
        entry_type = entry.get("type")

        if entry_type == "summary":
            summary = entry.get("summary")
            if isinstance(summary, str) and summary.strip():
                self.summary = summary

        if not self.pinned:
            session_id = entry.get("sessionId")
            cwd = entry.get("cwd")
            if isinstance(session_id, str) and session_id and not self.stated_session_id:
                self.stated_session_id = session_id
            if isinstance(session_id, str) and session_id and isinstance(cwd, str) and cwd:
                self.session_id = session_id
                self.working_directory = cwd
                self.pinned = True

        if timestamp_ms is not None:
            if self.first_ts is None or timestamp_ms < self.first_ts:
                self.first_ts = timestamp_ms
            if self.last_ts is None or timestamp_ms > self.last_ts:
                self.last_ts = timestamp_ms

        if entry_type in _TURN_TYPES:
            self.message_count += 1

        return self


def is_session_file(path: Path) -> bool:
    return bool(_SESSION_FILE_PATTERN.match(path.name))


def decode_project_dir_name(name: str) -> str:
    """Best-effort decode of an encoded project directory name.

    ``-Users-me-app`` becomes ``/Users/me/app``. Paths that contained dashes
    cannot be told apart from separators, so this is a heuristic only.
    """
    if not name.startswith("-"):
        return ""
    return name.replace("-", "/")


def _parse_record(line: str) -> tuple[dict[str, Any], int | None]:
    try:
        entry = json.loads(line)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise RecordMalformed(SOURCE_NAME, f"invalid JSON: {exc}") from exc
    if not isinstance(entry, dict):
        raise RecordMalformed(SOURCE_NAME, "record is not a JSON object")

    raw_ts = entry.get("timestamp")
    if raw_ts is None:
        return entry, None
    timestamp_ms = to_epoch_ms(raw_ts)
    if timestamp_ms is None:
        raise RecordMalformed(SOURCE_NAME, f"unparsable timestamp {raw_ts!r}")
    return entry, timestamp_ms


def _iter_lines(path: Path) -> Iterator[str]:
    with path.open("r", encoding="utf-8", errors="replace") as handle:
        for line in handle:
            line = line.strip()
            if line:
                yield line


def _fold_stream(lines: Iterable[str], path: Path) -> _StreamState:
    state = _StreamState()
    for line in lines:
        try:
            entry, timestamp_ms = _parse_record(line)
        except RecordMalformed as exc:
            state.malformed += 1
            logger.debug("Skipping malformed record in %s: %s", path, exc)
            continue
        state.consume(entry, timestamp_ms)
    return state


def parse_session_log(path: Path) -> SessionRecord | None:
    """Reduce a single session stream to a SessionRecord.

    The session id is the one pinned together with a cwd, else the first
    id any record states, else the file stem when it looks like an id.
    Returns ``None`` when none of those exist. Raises ``SourceUnavailable``
    if the file cannot be read.
    """
    try:
        state = _fold_stream(_iter_lines(path), path)
    except OSError as exc:
        raise SourceUnavailable(SOURCE_NAME, f"cannot read {path}: {exc}") from exc

    if state.malformed:
        record_malformed_record(SOURCE_NAME, state.malformed)

    session_id = state.session_id or state.stated_session_id
    if not session_id:
        if not _SESSION_ID_PATTERN.match(path.stem):
            return None
        session_id = path.stem

    if state.first_ts is None or state.last_ts is None:
        try:
            first_ts, last_ts = file_metadata_epoch_ms(path)
        except OSError as exc:
            raise SourceUnavailable(SOURCE_NAME, f"cannot stat {path}: {exc}") from exc
    else:
        first_ts, last_ts = state.first_ts, state.last_ts

    return SessionRecord(
        sessionId=session_id,
        firstMessageAt=first_ts,
        lastMessageAt=last_ts,
        messageCount=max(1, state.message_count),
        workingDirectory=state.working_directory,
        summary=state.summary,
    )


def _list_project_dirs(projects_dir: Path) -> list[Path]:
    try:
        children = sorted(projects_dir.iterdir())
    except OSError as exc:
        raise SourceUnavailable(SOURCE_NAME, f"cannot list {projects_dir}: {exc}") from exc
    return [child for child in children if child.is_dir()]


def _list_session_files(project_dir: Path) -> list[Path]:
    try:
        children = sorted(project_dir.iterdir())
    except OSError as exc:
        raise SourceUnavailable(SOURCE_NAME, f"cannot list {project_dir}: {exc}") from exc
    return [child for child in children if is_session_file(child) and child.is_file()]


def scan_session_logs(
    projects_dir: Path,
    working_directory: str | None = None,
) -> list[SessionRecord]:
    """Scan every project directory for session streams.

    Streams are visited in sorted path order. Unreadable directories and
    streams are logged and skipped; a missing root yields an empty list.
    """
    try:
        project_dirs = _list_project_dirs(projects_dir)
    except SourceUnavailable as exc:
        logger.warning("Log source unavailable: %s", exc)
        return []

    records: list[SessionRecord] = []
    for project_dir in project_dirs:
        try:
            session_files = _list_session_files(project_dir)
        except SourceUnavailable as exc:
            logger.warning("Skipping project directory: %s", exc)
            continue

        for path in session_files:
            try:
                record = parse_session_log(path)
            except SourceUnavailable as exc:
                logger.warning("Skipping session stream: %s", exc)
                continue
            except Exception:
                logger.exception("Skipping session stream %s after unexpected error", path)
                continue
            if record is None:
                continue
            if working_directory is not None and record.workingDirectory != working_directory:
                continue
            records.append(record)

    return records


def _first_stated_working_directory(path: Path) -> str:
    for line in _iter_lines(path):
        try:
            entry, _ = _parse_record(line)
        except RecordMalformed:
            continue
        cwd = entry.get("cwd")
        if isinstance(cwd, str) and cwd:
            return cwd
    return ""


def _newest_session_file(session_files: list[Path]) -> Path | None:
    newest: Path | None = None
    newest_mtime = -1.0
    for path in session_files:
        try:
            mtime = path.stat().st_mtime
        except OSError:
            continue
        if mtime > newest_mtime:
            newest, newest_mtime = path, mtime
    return newest


def discover_working_directories(projects_dir: Path, decode_dir_names: bool = True) -> list[str]:
    """Collect one working directory per project directory.

    Only the most recently modified stream of each project is read. When it
    states no ``cwd`` the encoded directory name is decoded instead, if
    ``decode_dir_names`` allows it.
    """
    try:
        project_dirs = _list_project_dirs(projects_dir)
    except SourceUnavailable as exc:
        logger.warning("Log source unavailable: %s", exc)
        return []

    paths: set[str] = set()
    for project_dir in project_dirs:
        try:
            session_files = _list_session_files(project_dir)
        except SourceUnavailable as exc:
            logger.warning("Skipping project directory: %s", exc)
            continue

        cwd = ""
        representative = _newest_session_file(session_files)
        if representative is not None:
            try:
                cwd = _first_stated_working_directory(representative)
            except OSError as exc:
                logger.warning("Skipping session stream %s: %s", representative, exc)

        if not cwd and decode_dir_names:
            cwd = decode_project_dir_name(project_dir.name)
        if cwd:
            paths.add(cwd)

    return sorted(paths)
