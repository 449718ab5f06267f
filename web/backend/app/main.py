"""FastAPI application for the Streamcentives moderation service.

Provides REST API endpoints wrapping the streamcentives package for:
- Moderating new content (classifier + threshold policy)
- Community events (insert webhooks, user reports, appeals)
- The manual review queue
- User strikes and restrictions
- Threshold configuration
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from streamcentives import __version__
from web.backend.app.routers import moderation

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Streamcentives Moderation API",
    description=(
        "REST API for Streamcentives content moderation. "
        "Classifies community content, applies threshold policies, "
        "tracks user strikes and manages the manual review queue."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins; the web client calls from the browser)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(moderation.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "Streamcentives Moderation API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
