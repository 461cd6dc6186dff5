"""Grant and grant-year schemas.

A grant spans one to five funding years; each ``GrantYear`` carries its
own award amount and date range.  ``Grant*Create`` payloads omit
server-assigned fields, ``*Update`` payloads make everything optional and
drop the fields that may not change after creation.
"""

from datetime import date, datetime
from typing import ClassVar, List, Optional

from pydantic import field_validator

from app.models.core import GrantStatus, GrantYearStatus
from app.models.rules import (
    Issue,
    Schema,
    amount_field,
    at_least,
    at_most,
    date_field,
    end_after_start,
    enforce,
    id_field,
    matches,
    max_length,
    min_length,
    text_field,
    whole,
    whole_field,
)

GRANT_YEAR_LIMIT = 5
AWARD_CEILING = 50_000_000

GrantTitle = text_field(
    min_length(5, "Grant title must be at least 5 characters"),
    max_length(200, "Grant title must be less than 200 characters"),
    matches(r"[a-zA-Z0-9\s\-:().,&]+", "Grant title contains invalid characters"),
)
GrantNumber = text_field(
    min_length(3, "Grant number must be at least 3 characters"),
    max_length(50, "Grant number must be less than 50 characters"),
    matches(
        r"[A-Z0-9\-]+",
        "Grant number must contain only uppercase letters, numbers, and hyphens",
    ),
)
AgencyName = text_field(
    min_length(2, "Agency name must be at least 2 characters"),
    max_length(100, "Agency name must be less than 100 characters"),
)
GrantDescription = text_field(
    max_length(1000, "Description must be less than 1000 characters"),
)
StartDate = date_field(
    at_least(date(2020, 1, 1), "Start date cannot be before 2020"),
    at_most(date(2030, 12, 31), "Start date cannot be after 2030"),
)
EndDate = date_field(
    at_least(date(2020, 1, 1), "End date cannot be before 2020"),
    at_most(date(2035, 12, 31), "End date cannot be after 2035"),
)
TotalYears = whole_field(
    whole("Total years must be a whole number"),
    at_least(1, "Grant must be at least 1 year"),
    at_most(GRANT_YEAR_LIMIT, "Grant cannot exceed 5 years"),
)
CurrentYear = whole_field(
    whole("Current year must be a whole number"),
    at_least(1, "Current year must be at least 1"),
    at_most(GRANT_YEAR_LIMIT, "Current year cannot exceed 5"),
)
YearNumber = whole_field(
    whole("Year number must be a whole number"),
    at_least(1, "Year number must be at least 1"),
    at_most(GRANT_YEAR_LIMIT, "Year number cannot exceed 5"),
)
AwardAmount = amount_field("Award amount", AWARD_CEILING)


def current_year_within_total(data: Schema) -> List[Issue]:
    current = getattr(data, "current_year_number", None)
    total = getattr(data, "total_years", None)
    if current is None or total is None or current <= total:
        return []
    return [("current_year_number", "Current year cannot exceed total years")]


# ---------------------------------------------------------------------------
# Grant
# ---------------------------------------------------------------------------


class GrantCreate(Schema):
    """Payload for creating a grant. ``current_year_number`` starts at 1."""

    refinements: ClassVar = (end_after_start(),)

    grant_title: GrantTitle
    grant_number_master: GrantNumber
    agency_name: AgencyName
    principal_investigator_id: id_field("Invalid Principal Investigator ID")
    created_by_id: id_field("Invalid Creator ID")
    start_date: StartDate
    end_date: EndDate
    total_years: TotalYears
    status: GrantStatus = GrantStatus.DRAFT.value
    description: Optional[GrantDescription] = None


class Grant(Schema):
    """A stored grant record."""

    refinements: ClassVar = (end_after_start(), current_year_within_total)

    id: id_field()
    grant_title: GrantTitle
    grant_number_master: GrantNumber
    agency_name: AgencyName
    principal_investigator_id: id_field("Invalid Principal Investigator ID")
    created_by_id: id_field("Invalid Creator ID")
    start_date: StartDate
    end_date: EndDate
    total_years: TotalYears
    current_year_number: CurrentYear
    status: GrantStatus
    created_at: datetime
    updated_at: datetime


class GrantUpdate(Schema):
    """Partial grant update. The creator cannot be reassigned."""

    partial: ClassVar[bool] = True
    refinements: ClassVar = (end_after_start(), current_year_within_total)

    grant_title: Optional[GrantTitle] = None
    grant_number_master: Optional[GrantNumber] = None
    agency_name: Optional[AgencyName] = None
    principal_investigator_id: Optional[id_field("Invalid Principal Investigator ID")] = None
    start_date: Optional[StartDate] = None
    end_date: Optional[EndDate] = None
    total_years: Optional[TotalYears] = None
    current_year_number: Optional[CurrentYear] = None
    status: Optional[GrantStatus] = None


# ---------------------------------------------------------------------------
# Grant year
# ---------------------------------------------------------------------------


class GrantYearCreate(Schema):
    refinements: ClassVar = (end_after_start(),)

    grant_id: id_field("Invalid Grant ID")
    year_number: YearNumber
    award_amount: AwardAmount
    start_date: date
    end_date: date
    status: GrantYearStatus


class GrantYear(GrantYearCreate):
    id: id_field()
    created_at: datetime
    updated_at: datetime


class GrantYearUpdate(Schema):
    """Partial grant-year update. A year never moves to another grant."""

    partial: ClassVar[bool] = True
    refinements: ClassVar = (end_after_start(),)

    year_number: Optional[YearNumber] = None
    award_amount: Optional[AwardAmount] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[GrantYearStatus] = None


# ---------------------------------------------------------------------------
# Bulk operations
# ---------------------------------------------------------------------------

GrantId = id_field()


def _updates_refined(data: Schema) -> List[Issue]:
    return [(f"updates.{field}", message) for field, message in data.updates.refine()]


class BulkUpdateGrants(Schema):
    """Apply one partial update to several grants."""

    refinements: ClassVar = (_updates_refined,)

    grant_ids: List[GrantId]
    updates: GrantUpdate

    @field_validator("grant_ids")
    @classmethod
    def validate_grant_ids(cls, v: List[str]) -> List[str]:
        return enforce(
            v,
            [
                min_length(1, "At least one grant ID is required"),
                max_length(50, "Cannot update more than 50 grants at once"),
            ],
        )

    def dump(self) -> dict:
        return {"grant_ids": list(self.grant_ids), "updates": self.updates.dump()}


class BulkDeleteGrants(Schema):
    grant_ids: List[GrantId]

    @field_validator("grant_ids")
    @classmethod
    def validate_grant_ids(cls, v: List[str]) -> List[str]:
        return enforce(
            v,
            [
                min_length(1, "At least one grant ID is required"),
                max_length(20, "Cannot delete more than 20 grants at once"),
            ],
        )
