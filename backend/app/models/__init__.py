"""
Grant Tracker Models

Pydantic schemas for every tracked entity and the validation engine
that runs untrusted payloads against them.
"""

from .core import (
    BudgetCategory,
    DocumentType,
    GrantStatus,
    GrantYearStatus,
    TaskPriority,
    TaskStatus,
    UserRole,
)

from .validation import (
    SCHEMAS,
    ValidationResult,
    get_all_field_errors,
    get_error_count,
    get_error_summary,
    get_field_error,
    has_field_error,
    validate,
)

__all__ = [
    # Enumerations
    "BudgetCategory",
    "DocumentType",
    "GrantStatus",
    "GrantYearStatus",
    "TaskPriority",
    "TaskStatus",
    "UserRole",
    # Validation engine
    "SCHEMAS",
    "ValidationResult",
    "validate",
    # Error helpers
    "get_all_field_errors",
    "get_error_count",
    "get_error_summary",
    "get_field_error",
    "has_field_error",
]
