"""Pydantic schemas for grant-year budget line items."""

from datetime import datetime
from typing import ClassVar, List, Optional

from app.models.core import BudgetCategory
from app.models.rules import (
    Issue,
    Schema,
    amount_field,
    id_field,
    max_length,
    min_length,
    text_field,
    to_decimal,
)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

LINE_ITEM_CEILING = 10_000_000

# Spending plus encumbrances may run this far past the budgeted amount.
OVERRUN_TOLERANCE = to_decimal("1.10")

LineItemDescription = text_field(
    min_length(5, "Description must be at least 5 characters"),
    max_length(500, "Description must be less than 500 characters"),
)
BudgetedAmount = amount_field("Budgeted amount", LINE_ITEM_CEILING)
ActualSpent = amount_field("Actual spent", LINE_ITEM_CEILING)
EncumberedAmount = amount_field("Encumbered amount", LINE_ITEM_CEILING)


def within_overrun_tolerance(data: Schema) -> List[Issue]:
    """actual_spent + encumbered_amount <= budgeted_amount * 1.10"""
    amounts = (data.budgeted_amount, data.actual_spent, data.encumbered_amount)
    if any(amount is None for amount in amounts):
        return []
    budgeted, spent, encumbered = (to_decimal(amount) for amount in amounts)
    if spent + encumbered <= budgeted * OVERRUN_TOLERANCE:
        return []
    return [
        (
            "actual_spent",
            "Total spent and encumbered cannot exceed 110% of budgeted amount",
        )
    ]


# ---------------------------------------------------------------------------
# Line Item Schemas
# ---------------------------------------------------------------------------


class BudgetLineItemCreate(Schema):
    """Payload for creating a new budget line item.

    Spending and encumbrances default to zero for a fresh allocation.
    """

    refinements: ClassVar = (within_overrun_tolerance,)

    grant_year_id: id_field("Invalid Grant Year ID")
    category: BudgetCategory
    description: LineItemDescription
    budgeted_amount: BudgetedAmount
    actual_spent: ActualSpent = 0.0
    encumbered_amount: EncumberedAmount = 0.0
    last_updated_by_id: Optional[id_field("Invalid User ID")] = None


class BudgetLineItem(BudgetLineItemCreate):
    """Full representation of a stored budget line item."""

    id: id_field()
    actual_spent: ActualSpent
    encumbered_amount: EncumberedAmount
    created_at: datetime
    updated_at: datetime


class BudgetLineItemUpdate(Schema):
    """Payload for updating a line item. All fields optional.

    ``grant_year_id`` is not accepted: a line item stays with its year.
    """

    partial: ClassVar[bool] = True
    nullable: ClassVar = frozenset({"last_updated_by_id"})
    refinements: ClassVar = (within_overrun_tolerance,)

    category: Optional[BudgetCategory] = None
    description: Optional[LineItemDescription] = None
    budgeted_amount: Optional[BudgetedAmount] = None
    actual_spent: Optional[ActualSpent] = None
    encumbered_amount: Optional[EncumberedAmount] = None
    last_updated_by_id: Optional[id_field("Invalid User ID")] = None
