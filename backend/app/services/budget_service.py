"""Budget arithmetic for grant years.

Utilization figures for a single allocation or a whole year's line items,
and the fiscal-year grant number format.  Amounts are summed in
``Decimal`` and returned as floats rounded to cents.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

# Two-decimal quantizer for money rounding
_TWO_PLACES = Decimal("0.01")

UNDER_THRESHOLD = Decimal("75")
FULL_THRESHOLD = Decimal("100")


def _to_decimal(value: Optional[float]) -> Decimal:
    """Convert a float to Decimal, treating None as zero."""
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def _money(value: Decimal) -> float:
    return float(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _status_for(utilization: Decimal) -> str:
    if utilization < UNDER_THRESHOLD:
        return "under"
    if utilization <= FULL_THRESHOLD:
        return "on-track"
    return "over"


def calculate_budget_utilization(
    budgeted: float, spent: float, encumbered: float
) -> Dict[str, Any]:
    """Return available funds, percent utilized, and a status band.

    Status is ``under`` below 75%, ``on-track`` up to and including 100%,
    ``over`` beyond that.  A zero budget reports 0% when nothing has been
    committed against it and ``over`` otherwise.
    """
    budget = _to_decimal(budgeted)
    committed = _to_decimal(spent) + _to_decimal(encumbered)
    available = budget - committed

    if budget == 0:
        if committed == 0:
            return {"available": _money(available), "utilization": 0.0, "status": "under"}
        return {
            "available": _money(available),
            "utilization": float("inf"),
            "status": "over",
        }

    utilization = committed / budget * 100
    return {
        "available": _money(available),
        "utilization": _money(utilization),
        "status": _status_for(utilization),
    }


def generate_grant_number(master_number: str, fiscal_year: str) -> str:
    """``MASTER-FY``, e.g. ``NSF-2024-001`` + ``FY25`` -> ``NSF-2024-001-FY25``."""
    return f"{master_number}-{fiscal_year}"


def summarize_line_items(items: Iterable[Any]) -> Dict[str, Any]:
    """Totals and utilization across a grant year's line items.

    Items may be mappings or objects exposing ``budgeted_amount``,
    ``actual_spent`` and ``encumbered_amount``.
    """
    budgeted = spent = encumbered = Decimal("0")
    count = 0
    for item in items:
        budgeted += _to_decimal(_field(item, "budgeted_amount"))
        spent += _to_decimal(_field(item, "actual_spent"))
        encumbered += _to_decimal(_field(item, "encumbered_amount"))
        count += 1

    summary = calculate_budget_utilization(float(budgeted), float(spent), float(encumbered))
    summary.update(
        {
            "line_item_count": count,
            "total_budgeted": _money(budgeted),
            "total_spent": _money(spent),
            "total_encumbered": _money(encumbered),
        }
    )
    logger.debug(
        "Summarized %d line items: %s%% utilized", count, summary["utilization"]
    )
    return summary
