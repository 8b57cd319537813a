"""SessionHub FastAPI Backend: main application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sessionhub import config
from sessionhub.models import HealthResponse
from sessionhub.routers.sessions import sessions_router
from sessionhub.observability import initialize as initialize_observability, shutdown as shutdown_observability

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("sessionhub")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("SessionHub backend starting up")
    logger.info("Log source: %s", config.PROJECTS_DIR)
    logger.info("Index source: %s", config.INDEX_DB_PATH)
    initialize_observability(app)

    yield

    logger.info("SessionHub backend shutting down")
    shutdown_observability(app)


app = FastAPI(
    title="SessionHub API",
    description="Backend API for the SessionHub project and session dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS: allow the frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(sessions_router)


@app.get("/api/health", response_model=HealthResponse)
def health():
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        logSource="available" if config.PROJECTS_DIR.is_dir() else "missing",
        indexSource="available" if config.INDEX_DB_PATH.is_file() else "missing",
    )
