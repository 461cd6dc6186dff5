"""JWT authentication for the grant tracker API.

Tokens are signed with HS256 via python-jose and carry the user's id,
role, email and display name.  The identity provider that issues tokens
in production only needs to emit the same claims.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.models.core import UserRole

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# JWT configuration
# ---------------------------------------------------------------------------
JWT_SECRET = os.getenv(
    "JWT_SECRET",
    "grant-tracker-dev-secret-change-in-production",
)
JWT_ALGORITHM = "HS256"
JWT_EXPIRY_HOURS = int(os.getenv("JWT_EXPIRY_HOURS", "24"))

_VALID_ROLES = frozenset(role.value for role in UserRole)

# ---------------------------------------------------------------------------
# HTTPBearer scheme
# ---------------------------------------------------------------------------
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller as seen by routers and access checks."""

    id: str
    role: str
    email: str = ""
    full_name: str = ""


def create_access_token(user: CurrentUser, expires_in: Optional[timedelta] = None) -> str:
    """Create a signed JWT for *user*."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user.id,
        "role": user.role.value if isinstance(user.role, UserRole) else user.role,
        "email": user.email,
        "name": user.full_name,
        "exp": now + (expires_in or timedelta(hours=JWT_EXPIRY_HOURS)),
        "iat": now,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_access_token(token: str) -> CurrentUser:
    """Verify *token* and build the caller from its claims.

    Raises 401 for a bad signature, an expired token, a missing subject
    or a role outside the known set.
    """
    try:
        payload: dict[str, Any] = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        logger.warning("JWT validation failed: %s", exc)
        raise _unauthorized("Invalid or expired token") from exc

    user_id = payload.get("sub") or ""
    role = payload.get("role") or ""
    if not user_id:
        raise _unauthorized("Invalid token payload")
    if role not in _VALID_ROLES:
        logger.warning("Token for %s carries unknown role %r", user_id, role)
        raise _unauthorized("Invalid token role")

    return CurrentUser(
        id=user_id,
        role=role,
        email=payload.get("email", ""),
        full_name=payload.get("name", ""),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """FastAPI dependency -- extract and validate the Bearer JWT."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")
    return decode_access_token(credentials.credentials)
