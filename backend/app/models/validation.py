"""
Validation Engine

Validates untrusted payloads against the registered entity schemas and
returns a structured result instead of raising.  Field checks run first;
cross-field refinements run only once every field is individually valid,
and all refinement failures are reported together.

Error maps are keyed by dotted field path (``grant_ids.0``,
``updates.end_date``) and each key holds every message for that field.
The empty path ``""`` collects failures that belong to the payload as a
whole, such as a non-object body.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type

from pydantic import ValidationError

from app.models.budget_models import (
    BudgetLineItem,
    BudgetLineItemCreate,
    BudgetLineItemUpdate,
)
from app.models.core import User, UserCreate, UserUpdate
from app.models.document_models import (
    MAX_UPLOAD_BYTES,
    Document,
    DocumentCreate,
    DocumentUpdate,
    FileUpload,
)
from app.models.grant import (
    BulkDeleteGrants,
    BulkUpdateGrants,
    Grant,
    GrantCreate,
    GrantUpdate,
    GrantYear,
    GrantYearCreate,
    GrantYearUpdate,
)
from app.models.rules import (
    CUID_PATTERN,
    EMAIL_PATTERN,
    RuleViolation,
    Schema,
    after,
    is_currency,
)
from app.models.search import GrantSearch
from app.models.task_models import Task, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

FieldErrors = Dict[str, List[str]]

GRANT_NUMBER_PATTERN = re.compile(r"[A-Z0-9\-]+")

SCHEMAS: Mapping[str, Type[Schema]] = MappingProxyType(
    {
        "user": User,
        "user.create": UserCreate,
        "user.update": UserUpdate,
        "grant": Grant,
        "grant.create": GrantCreate,
        "grant.update": GrantUpdate,
        "grant_year": GrantYear,
        "grant_year.create": GrantYearCreate,
        "grant_year.update": GrantYearUpdate,
        "budget_line_item": BudgetLineItem,
        "budget_line_item.create": BudgetLineItemCreate,
        "budget_line_item.update": BudgetLineItemUpdate,
        "document": Document,
        "document.create": DocumentCreate,
        "document.update": DocumentUpdate,
        "task": Task,
        "task.create": TaskCreate,
        "task.update": TaskUpdate,
        "search_grants": GrantSearch,
        "file_upload": FileUpload,
        "bulk_update_grants": BulkUpdateGrants,
        "bulk_delete_grants": BulkDeleteGrants,
    }
)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one payload.

    Exactly one of ``data`` (on success) or ``errors`` (on failure) is set.
    """

    success: bool
    data: Optional[Dict[str, Any]] = None
    errors: Optional[FieldErrors] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, data: Dict[str, Any]) -> "ValidationResult":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, errors: FieldErrors) -> "ValidationResult":
        return cls(success=False, errors=errors, message="Validation failed")

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "errors": self.errors, "message": self.message}


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _messages_for(error: Dict[str, Any]) -> List[str]:
    cause = (error.get("ctx") or {}).get("error")
    if isinstance(cause, RuleViolation):
        return list(cause.messages)
    if error["type"] == "value_error" and cause is not None:
        return [str(cause)]
    return [error["msg"]]


def collect_errors(exc: ValidationError) -> FieldErrors:
    """Flatten a pydantic ``ValidationError`` into ``{path: [messages]}``."""
    errors: FieldErrors = {}
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"])
        errors.setdefault(path, []).extend(_messages_for(error))
    return errors


def _add_issues(errors: FieldErrors, issues: Iterable[tuple]) -> FieldErrors:
    for field, message in issues:
        errors.setdefault(field, []).append(message)
    return errors


def get_schema(schema_id: str) -> Type[Schema]:
    """Look up a registered schema. Unknown ids raise ``KeyError``."""
    try:
        return SCHEMAS[schema_id]
    except KeyError:
        raise KeyError(f"Unknown validation schema: {schema_id}") from None


def validate(schema_id: str, data: Any) -> ValidationResult:
    """Validate *data* against the schema registered as *schema_id*.

    Never raises for bad input.  Has no side effects, so validating the
    same payload twice yields equal results.
    """
    schema = get_schema(schema_id)
    try:
        instance = schema.model_validate(data)
    except ValidationError as exc:
        errors = collect_errors(exc)
        logger.debug("Validation failed for %s: %s", schema_id, sorted(errors))
        return ValidationResult.failed(errors)

    issues = instance.refine()
    if issues:
        errors = _add_issues({}, issues)
        logger.debug("Refinement failed for %s: %s", schema_id, sorted(errors))
        return ValidationResult.failed(errors)

    return ValidationResult.ok(instance.dump())


# ---------------------------------------------------------------------------
# Standalone predicates
# ---------------------------------------------------------------------------


def validate_email(email: str) -> bool:
    return isinstance(email, str) and EMAIL_PATTERN.fullmatch(email) is not None


def validate_currency(amount: Any) -> bool:
    """Non-negative and an exact multiple of one cent."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    return amount >= 0 and is_currency(amount)


def validate_date_range(start: date, end: date) -> bool:
    return after(end, start)


def validate_grant_number(grant_number: str) -> bool:
    if not isinstance(grant_number, str) or not 3 <= len(grant_number) <= 50:
        return False
    return GRANT_NUMBER_PATTERN.fullmatch(grant_number) is not None


def validate_file_size(size_bytes: int, max_size_mb: int = MAX_UPLOAD_BYTES // (1024 * 1024)) -> bool:
    return size_bytes <= max_size_mb * 1024 * 1024


def validate_file_type(content_type: str, allowed_types: Iterable[str]) -> bool:
    return content_type in set(allowed_types)


def is_cuid(value: Any) -> bool:
    return isinstance(value, str) and CUID_PATTERN.fullmatch(value) is not None


# ---------------------------------------------------------------------------
# Error map helpers
# ---------------------------------------------------------------------------


def get_field_error(errors: Optional[FieldErrors], field: str) -> Optional[str]:
    """First message for *field*, if any."""
    messages = (errors or {}).get(field)
    return messages[0] if messages else None


def has_field_error(errors: Optional[FieldErrors], field: str) -> bool:
    return bool((errors or {}).get(field))


def get_all_field_errors(errors: Optional[FieldErrors], field: str) -> List[str]:
    return list((errors or {}).get(field, []))


def get_error_count(errors: Optional[FieldErrors]) -> int:
    return sum(len(messages) for messages in (errors or {}).values())


def get_error_summary(errors: Optional[FieldErrors]) -> List[str]:
    return [message for messages in (errors or {}).values() for message in messages]
