"""API router for the aggregated session list."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from sessionhub import config
from sessionhub.models import ProjectPathsResponse, SessionListResponse
from sessionhub.services.session_aggregator import get_session_aggregator

logger = logging.getLogger("sessionhub")

sessions_router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def _parse_limit(raw: str | None) -> int:
    value = config.DEFAULT_SESSION_LIMIT
    if raw is not None and raw.strip():
        try:
            value = int(raw.strip())
        except ValueError:
            value = config.DEFAULT_SESSION_LIMIT
    return max(1, min(value, config.MAX_SESSION_LIMIT))


@sessions_router.get("", response_model=None)
async def list_sessions(
    limit: str | None = None,
    project: str | None = None,
    paths: str | None = None,
) -> SessionListResponse | ProjectPathsResponse:
    """List recent sessions, or the known working directories with ``paths=true``."""
    aggregator = get_session_aggregator()
    try:
        if (paths or "").strip().lower() == "true":
            return ProjectPathsResponse(paths=await aggregator.list_working_directories())

        working_directory = project if project else None
        sessions = await aggregator.aggregate(_parse_limit(limit), working_directory)
        return SessionListResponse(sessions=sessions, count=len(sessions))
    except Exception as e:
        logger.exception("Error fetching sessions")
        raise HTTPException(status_code=500, detail="Failed to fetch sessions") from e
