"""Core domain models for the grant tracker.

Closed enumerations shared by every entity schema, plus the user
account schemas.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional

from pydantic import field_validator

from app.models.rules import (
    Schema,
    cuid,
    enforce,
    matches,
    max_length,
    min_length,
    EMAIL_PATTERN,
)


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    PI = "PI"
    FINANCE = "FINANCE"
    VIEWER = "VIEWER"


class GrantStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    NOT_AWARDED = "NOT_AWARDED"


class GrantYearStatus(str, Enum):
    PLANNED = "PLANNED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class BudgetCategory(str, Enum):
    PERSONNEL = "PERSONNEL"
    FRINGE_BENEFITS = "FRINGE_BENEFITS"
    TRAVEL = "TRAVEL"
    EQUIPMENT = "EQUIPMENT"
    SUPPLIES = "SUPPLIES"
    CONTRACTUAL = "CONTRACTUAL"
    TOTAL_DIRECT_COSTS = "TOTAL_DIRECT_COSTS"
    INDIRECT_COSTS = "INDIRECT_COSTS"
    OTHER = "OTHER"


class DocumentType(str, Enum):
    PROPOSAL = "PROPOSAL"
    REPORT = "REPORT"
    BUDGET = "BUDGET"
    CORRESPONDENCE = "CORRESPONDENCE"
    CONTRACT = "CONTRACT"
    INVOICE = "INVOICE"
    OTHER = "OTHER"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


# ---------------------------------------------------------------------------
# User schemas
# ---------------------------------------------------------------------------

_EMAIL_CHECKS = [matches(EMAIL_PATTERN.pattern, "Invalid email address")]
_FULL_NAME_CHECKS = [
    min_length(2, "Full name must be at least 2 characters"),
    max_length(100, "Full name must be less than 100 characters"),
]


class UserCreate(Schema):
    """Payload for provisioning a user account."""

    email: str
    full_name: str
    role: UserRole

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return enforce(v, _EMAIL_CHECKS)

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        return enforce(v, _FULL_NAME_CHECKS)


class User(UserCreate):
    """A stored user account."""

    id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        return enforce(v, [cuid("Invalid ID")])


class UserUpdate(Schema):
    """Partial user update. Role changes go through this payload too."""

    partial: ClassVar[bool] = True

    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[UserRole] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else enforce(v, _EMAIL_CHECKS)

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else enforce(v, _FULL_NAME_CHECKS)
