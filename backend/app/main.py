"""
Grant Tracker API - FastAPI backend for multi-year federal grant tracking
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import __version__
from app.routers import grants, health

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
PRODUCTION_ORIGIN = "https://grants.example.gov"


def _allowed_origins() -> list[str]:
    """Environment-aware CORS origins.

    Production keeps HTTPS, non-localhost origins only; development
    defaults to the local frontend ports.
    """
    if ENVIRONMENT == "production":
        raw = os.getenv("ALLOWED_ORIGINS", PRODUCTION_ORIGIN).split(",")
        origins = []
        for origin in raw:
            origin = origin.strip()
            if not origin:
                continue
            if not origin.startswith("https://"):
                logger.warning("[CORS] Rejecting non-HTTPS origin in production: %s", origin)
                continue
            if "localhost" in origin or "127.0.0.1" in origin:
                logger.warning("[CORS] Rejecting localhost origin in production: %s", origin)
                continue
            origins.append(origin)
        return origins or [PRODUCTION_ORIGIN]

    raw = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app() -> FastAPI:
    app = FastAPI(
        title="Grant Tracker API",
        description="Role-based tracking for multi-year federal grants",
        version=__version__,
    )

    origins = _allowed_origins()
    logger.info("[CORS] Environment: %s, allowed origins: %s", ENVIRONMENT, origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Requested-With"],
    )

    app.include_router(health.router)
    app.include_router(grants.router)
    return app


app = create_app()
