"""Pydantic models matching the frontend TypeScript types."""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional


# ── Session-related models ──────────────────────────────────────────

class SessionRecord(BaseModel):
    sessionId: str
    firstMessageAt: int  # epoch ms
    lastMessageAt: int  # epoch ms
    messageCount: int = Field(default=1, ge=1)
    workingDirectory: str = ""
    summary: Optional[str] = None


class SessionListResponse(BaseModel):
    sessions: list[SessionRecord] = Field(default_factory=list)
    count: int = 0


class ProjectPathsResponse(BaseModel):
    paths: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "ok"
    logSource: str = "missing"  # "available" | "missing"
    indexSource: str = "missing"  # "available" | "missing"
