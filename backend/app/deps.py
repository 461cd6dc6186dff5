"""Shared dependencies for all grant tracker API routers.

Centralises the grant store singleton, the authentication dependency and
small utility helpers so that every router module can
``from app.deps import …`` without pulling in ``main``.
"""

import logging
import os

from dotenv import load_dotenv

from app.auth import CurrentUser, get_current_user
from app.store import GrantStore, InMemoryGrantStore

load_dotenv()

logger = logging.getLogger(__name__)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

__all__ = ["CurrentUser", "get_current_user", "get_store", "_safe_error"]

# ---------------------------------------------------------------------------
# Grant store (singleton)
# ---------------------------------------------------------------------------
_store: GrantStore = InMemoryGrantStore()


def get_store() -> GrantStore:
    """FastAPI dependency returning the process-wide grant store."""
    return _store


# ---------------------------------------------------------------------------
# Small utility helpers
# ---------------------------------------------------------------------------


def _safe_error(operation: str, e: Exception) -> str:
    """Log the full exception but return a safe message without internal details.

    This prevents leaking stack traces or store internals to API consumers
    while preserving full diagnostics in server logs.
    """
    logger.exception("Error during %s", operation)
    return f"{operation} failed. Please try again or contact support."
