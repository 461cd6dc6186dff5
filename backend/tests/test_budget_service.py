"""
Unit Tests for Budget Helpers

Usage:
    cd backend && pytest tests/test_budget_service.py -v
"""

import math
import sys
import os
from types import SimpleNamespace

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.services.budget_service import (
    calculate_budget_utilization,
    generate_grant_number,
    summarize_line_items,
)


def make_line_item(budgeted: float, spent: float = 0.0, encumbered: float = 0.0) -> dict:
    """Factory for a line item as the store returns it."""
    return {
        "budgeted_amount": budgeted,
        "actual_spent": spent,
        "encumbered_amount": encumbered,
    }


class TestBudgetUtilization:
    """Tests for calculate_budget_utilization status bands."""

    def test_under_budget(self):
        result = calculate_budget_utilization(100000, 50000, 10000)
        assert result == {"available": 40000.0, "utilization": 60.0, "status": "under"}

    def test_seventy_five_percent_is_on_track(self):
        assert calculate_budget_utilization(1000, 700, 50)["status"] == "on-track"

    def test_exactly_spent_is_on_track(self):
        result = calculate_budget_utilization(1000, 1000, 0)
        assert result["status"] == "on-track"
        assert result["available"] == 0.0

    def test_overspent(self):
        result = calculate_budget_utilization(1000, 900, 200)
        assert result["status"] == "over"
        assert result["available"] == -100.0
        assert result["utilization"] == 110.0

    def test_cent_amounts_sum_exactly(self):
        result = calculate_budget_utilization(0.3, 0.1, 0.2)
        assert result["available"] == 0.0
        assert result["status"] == "on-track"

    def test_zero_budget_without_spending(self):
        result = calculate_budget_utilization(0, 0, 0)
        assert result["utilization"] == 0.0
        assert result["status"] == "under"

    def test_zero_budget_with_spending(self):
        result = calculate_budget_utilization(0, 10, 0)
        assert result["status"] == "over"
        assert math.isinf(result["utilization"])


class TestGrantNumber:
    def test_fiscal_year_suffix(self):
        assert generate_grant_number("NSF-2024-001", "FY25") == "NSF-2024-001-FY25"


class TestSummarizeLineItems:
    """Tests for grant-year budget rollups."""

    def test_totals_across_items(self):
        items = [
            make_line_item(60000, 30000, 5000),
            make_line_item(40000, 20000, 5000),
        ]
        summary = summarize_line_items(items)
        assert summary["line_item_count"] == 2
        assert summary["total_budgeted"] == 100000.0
        assert summary["total_spent"] == 50000.0
        assert summary["total_encumbered"] == 10000.0
        assert summary["utilization"] == 60.0
        assert summary["status"] == "under"

    def test_accepts_objects(self):
        item = SimpleNamespace(budgeted_amount=100, actual_spent=95, encumbered_amount=10)
        summary = summarize_line_items([item])
        assert summary["status"] == "over"
        assert summary["available"] == -5.0

    def test_empty_year(self):
        summary = summarize_line_items([])
        assert summary["line_item_count"] == 0
        assert summary["utilization"] == 0.0
