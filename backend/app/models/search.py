"""
Grant Search Models

Filter payload accepted by the grant listing endpoint.  Every filter is
optional; an empty payload lists the first page of grants.

Supports:
- search: free-text match on title, grant number, and agency
- status / agency_name / principal_investigator_id: exact filters
- start_date_from / start_date_to: inclusive start-date window
- limit / cursor: keyset pagination
"""

from datetime import date
from typing import ClassVar, List, Optional

from pydantic import Field

from app.models.core import GrantStatus
from app.models.rules import Issue, Schema, id_field, max_length, text_field

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


def date_window_ordered(data: Schema) -> List[Issue]:
    """The upper bound of a date window may not precede the lower bound."""
    if data.start_date_from is None or data.start_date_to is None:
        return []
    if data.start_date_to >= data.start_date_from:
        return []
    return [("start_date_to", "End date must be after start date")]


class GrantSearch(Schema):
    """Filters for listing grants."""

    refinements: ClassVar = (date_window_ordered,)

    search: Optional[
        text_field(max_length(100, "Search term must be less than 100 characters"))
    ] = None
    status: Optional[GrantStatus] = None
    agency_name: Optional[
        text_field(max_length(100, "Agency name must be less than 100 characters"))
    ] = None
    principal_investigator_id: Optional[id_field("Invalid PI ID")] = None
    start_date_from: Optional[date] = None
    start_date_to: Optional[date] = None
    limit: int = Field(
        DEFAULT_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description="Page size (1-100)",
    )
    cursor: Optional[id_field("Invalid cursor")] = None
