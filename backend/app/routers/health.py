"""Health-check router."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from app import __version__
from app.deps import ENVIRONMENT
from app.models.validation import SCHEMAS

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    """Health check"""
    return {"status": "ok", "message": "Grant Tracker API is running"}


@router.get("/api/v1/health")
async def health_check():
    """Service status plus the validation schemas this build serves."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "environment": ENVIRONMENT,
        "schemas": sorted(SCHEMAS),
    }
