"""SessionHub Backend Configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    if not value or not value.strip():
        return default
    return Path(value.strip()).expanduser()


# Assistant data root (~/.claude by default)
CLAUDE_DIR = _env_path("SESSIONHUB_CLAUDE_DIR", Path.home() / ".claude")

# Log source: one sub-directory per project, one JSONL stream per session
PROJECTS_DIR = _env_path("SESSIONHUB_PROJECTS_DIR", CLAUDE_DIR / "projects")

# Index source: SQLite store with base_messages / conversation_summaries
INDEX_DB_PATH = _env_path("SESSIONHUB_INDEX_DB_PATH", CLAUDE_DIR / "__store.db")

# Session listing
DEFAULT_SESSION_LIMIT = _env_int("SESSIONHUB_DEFAULT_SESSION_LIMIT", 50)
MAX_SESSION_LIMIT = _env_int("SESSIONHUB_MAX_SESSION_LIMIT", 500)

# Fall back to decoding project directory names when no stream states a cwd
DECODE_PROJECT_DIRS = _env_bool("SESSIONHUB_DECODE_PROJECT_DIRS", True)

# Observability
OTEL_ENABLED = _env_bool("SESSIONHUB_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("SESSIONHUB_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("SESSIONHUB_OTEL_SERVICE_NAME", "sessionhub-backend")
PROM_PORT = _env_int("SESSIONHUB_PROM_PORT", 9464)

# CORS
FRONTEND_ORIGIN = os.getenv("SESSIONHUB_FRONTEND_ORIGIN", "http://localhost:3000")
