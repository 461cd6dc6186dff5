"""Declarative field rules and the shared schema base.

Every entity schema declares per-field checks as ``(predicate, message)``
pairs and cross-field refinements as plain functions returning
``(field, message)`` pairs.  Field checks are run inside pydantic
validators so type coercion and rule checks report through the same
``ValidationError``; refinements are evaluated afterwards by
:func:`app.models.validation.validate`.
"""

import re
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Callable, ClassVar, FrozenSet, Iterable, List, Optional, Tuple

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    ValidationInfo,
    field_validator,
)

Check = Tuple[Callable[[Any], bool], str]
Issue = Tuple[str, str]
Refinement = Callable[["Schema"], List[Issue]]

_CENT = Decimal("0.01")

# Matches the collision-resistant ids handed out by the persistence layer.
CUID_PATTERN = re.compile(r"c[^\s-]{8,}", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


class RuleViolation(ValueError):
    """A single field failed one or more of its declared checks."""

    def __init__(self, messages: Iterable[str]):
        self.messages = list(messages)
        super().__init__(self.messages[0] if self.messages else "Invalid value")


# ---------------------------------------------------------------------------
# Check builders
# ---------------------------------------------------------------------------


def min_length(length: int, message: str) -> Check:
    return (lambda value: len(value) >= length, message)


def max_length(length: int, message: str) -> Check:
    return (lambda value: len(value) <= length, message)


def matches(pattern: str, message: str, flags: int = 0) -> Check:
    compiled = re.compile(pattern, flags)
    return (lambda value: compiled.fullmatch(value) is not None, message)


def at_least(bound: float, message: str) -> Check:
    return (lambda value: value >= bound, message)


def at_most(bound: float, message: str) -> Check:
    return (lambda value: value <= bound, message)


def whole(message: str) -> Check:
    return (lambda value: float(value).is_integer(), message)


def cents(message: str) -> Check:
    """Value must be an exact multiple of 0.01."""
    return (lambda value: is_currency(value), message)


def cuid(message: str) -> Check:
    return (lambda value: CUID_PATTERN.fullmatch(value) is not None, message)


def enforce(value: Any, checks: Iterable[Check]) -> Any:
    """Run every check against *value* and raise with all failing messages."""
    failed = [message for passes, message in checks if not passes(value)]
    if failed:
        raise RuleViolation(failed)
    return value


def _kind(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if value is None:
        return "null"
    return type(value).__name__


def require_number(value: Any) -> Any:
    """Accept only real numbers. Booleans and numeric strings are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RuleViolation([f"Expected number, received {_kind(value)}"])
    return value


def enforce_number(value: Any, checks: Iterable[Check]) -> Any:
    """Like :func:`enforce` but first requires a real number.

    Used by ``mode="before"`` validators so the checks see the raw value
    before pydantic coerces it.
    """
    return enforce(require_number(value), checks)


def text_field(*checks: Check) -> Any:
    """``str`` annotated with the given checks."""
    return Annotated[str, AfterValidator(lambda value: enforce(value, checks))]


def whole_field(*checks: Check) -> Any:
    """``int`` whose checks see the raw number, so 2.5 reports a rule message."""
    return Annotated[int, BeforeValidator(lambda value: enforce_number(value, checks))]


def amount_field(label: str, ceiling: int) -> Any:
    checks = currency_checks(label, ceiling)
    return Annotated[float, BeforeValidator(lambda value: enforce_number(value, checks))]


def date_field(*checks: Check) -> Any:
    return Annotated[date, AfterValidator(lambda value: enforce(value, checks))]


def id_field(message: str = "Invalid ID") -> Any:
    return text_field(cuid(message))


def currency_checks(label: str, ceiling: int) -> List[Check]:
    return [
        at_least(0, f"{label} cannot be negative"),
        at_most(ceiling, f"{label} cannot exceed ${ceiling:,}"),
        cents(f"{label} must be a valid currency amount"),
    ]


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def to_decimal(value: Any) -> Decimal:
    return Decimal(str(value))


def is_currency(value: Any) -> bool:
    try:
        return to_decimal(value) % _CENT == 0
    except (InvalidOperation, ValueError):
        return False


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def as_moment(value: date) -> datetime:
    """Aware datetime for *value*; a bare date is midnight UTC."""
    if isinstance(value, datetime):
        return as_utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def after(later: Optional[date], earlier: Optional[date]) -> bool:
    if isinstance(later, datetime) or isinstance(earlier, datetime):
        return as_moment(later) > as_moment(earlier)
    return later > earlier


# ---------------------------------------------------------------------------
# Schema base
# ---------------------------------------------------------------------------


class Schema(BaseModel):
    """Base for every validated entity payload.

    ``refinements`` run only after all field checks pass.  ``partial``
    schemas (update payloads) dump only the fields the caller supplied;
    a supplied field may be ``null`` only if it is listed in ``nullable``.
    """

    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    refinements: ClassVar[Tuple[Refinement, ...]] = ()
    partial: ClassVar[bool] = False
    nullable: ClassVar[FrozenSet[str]] = frozenset()

    @field_validator("*", mode="before")
    @classmethod
    def reject_null_updates(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and cls.partial and info.field_name not in cls.nullable:
            raise RuleViolation(["Expected a value, received null"])
        return value

    def refine(self) -> List[Issue]:
        issues: List[Issue] = []
        for rule in self.refinements:
            issues.extend(rule(self))
        return issues

    def dump(self) -> dict:
        return self.model_dump(exclude_unset=self.partial)


def end_after_start(start_field: str = "start_date", end_field: str = "end_date") -> Refinement:
    """End date must be strictly after start date when both are present."""

    def rule(data: Schema) -> List[Issue]:
        start = getattr(data, start_field, None)
        end = getattr(data, end_field, None)
        if start is None or end is None or after(end, start):
            return []
        return [(end_field, "End date must be after start date")]

    return rule
