import math
from datetime import datetime
from decimal import Decimal

import pytest

from financeai.core.aggregator import SpendingTotals, aggregate
from financeai.core.models import TRACKED_CATEGORIES, CategoryLabel, Merchant, Transaction
from financeai.core.reconciler import (
    BudgetLimits,
    InvalidInput,
    ProgressStatus,
    StatusTier,
    reconcile,
)

FD = CategoryLabel.FOOD_DINING
T = CategoryLabel.TRANSPORTATION


def _expense(amount, category):
    merchant = Merchant(id="m", name="Merchant", category=category)
    return Transaction(id="t", amount=amount, timestamp=datetime(2025, 6, 1), description="desc", merchant=merchant)


def test_overspent_and_underspent_categories():
    limits = BudgetLimits.from_mapping({"foodDining": 800, "transportation": 500})
    totals = SpendingTotals({FD: 880, T: 100})
    report = reconcile(totals, limits)

    food = report.categories[FD]
    assert food.percentage == 100
    assert food.status is StatusTier.CRITICAL
    assert food.overage == Decimal("80.00")
    assert food.is_over_budget

    transport = report.categories[T]
    assert transport.percentage == 20
    assert transport.status is StatusTier.COMFORTABLE
    assert transport.remaining == Decimal("400.00")
    assert transport.overage == 0

    assert report.overall.spent == Decimal("980.00")
    assert report.overall.limit == Decimal("1300.00")
    assert report.overall.percentage == pytest.approx(75.38, abs=0.01)
    assert report.overall.status is StatusTier.CAUTION


def test_untracked_categories_are_omitted():
    limits = BudgetLimits.from_mapping({"foodDining": 0, "shopping": 200})
    totals = SpendingTotals({FD: 500, CategoryLabel.SHOPPING: 50, T: 999})
    report = reconcile(totals, limits)
    assert list(report.categories) == [CategoryLabel.SHOPPING]
    # Untracked spend does not dilute the overall figure.
    assert report.overall.spent == Decimal("50.00")
    assert report.overall.limit == Decimal("200.00")
    assert report.overall.percentage == 25


def test_no_limits_yields_empty_report():
    report = reconcile(SpendingTotals({FD: 10}), BudgetLimits())
    assert report.is_empty
    assert report.overall is None
    assert report.to_dict() == {"categories": [], "overall": None}


def test_report_has_no_nan_or_infinity():
    limits = BudgetLimits.from_mapping({"healthcare": 0.01, "shopping": 0})
    report = reconcile(SpendingTotals({CategoryLabel.HEALTHCARE: 10_000}), limits)
    for row in report.to_dict()["categories"] + [report.to_dict()["overall"]]:
        for value in row.values():
            if isinstance(value, float):
                assert math.isfinite(value)
        assert 0 <= row["percentage"] <= 100


@pytest.mark.parametrize(
    "percentage, tier",
    [
        (92, StatusTier.CRITICAL),
        (90, StatusTier.CRITICAL),
        (85, StatusTier.WARNING),
        (80, StatusTier.WARNING),
        (65, StatusTier.CAUTION),
        (45, StatusTier.MODERATE),
        (35, StatusTier.HEALTHY),
        (30, StatusTier.HEALTHY),
        (29.9, StatusTier.COMFORTABLE),
        (10, StatusTier.COMFORTABLE),
        (0, StatusTier.COMFORTABLE),
    ],
)
def test_status_tier_boundaries(percentage, tier):
    assert StatusTier.for_percentage(percentage) is tier


def test_tier_from_reconcile_matches_percentage():
    limits = BudgetLimits.from_mapping({"entertainment": 100})
    for spent, tier in [(92, "critical"), (85, "warning"), (65, "caution"), (45, "moderate"), (35, "healthy"), (10, "comfortable")]:
        report = reconcile(SpendingTotals({CategoryLabel.ENTERTAINMENT: spent}), limits)
        assert report.categories[CategoryLabel.ENTERTAINMENT].status.value == tier


def test_empty_spending_against_limits():
    limits = BudgetLimits.from_mapping(
        {"transportation": 100, "foodDining": 200, "healthcare": 300, "entertainment": 400, "shopping": 500}
    )
    report = reconcile(aggregate([]), limits)
    assert list(report.categories) == list(TRACKED_CATEGORIES)
    for label, progress in report.categories.items():
        assert progress.percentage == 0
        assert progress.status is StatusTier.COMFORTABLE
        assert progress.remaining == limits[label]


def test_negative_limit_is_rejected():
    with pytest.raises(InvalidInput):
        BudgetLimits.from_mapping({"shopping": -1})
    with pytest.raises(InvalidInput):
        BudgetLimits({CategoryLabel.SHOPPING: Decimal("-0.50")})


def test_non_numeric_limits_are_rejected():
    for bad in ["abc", float("nan"), float("inf"), True]:
        with pytest.raises(InvalidInput):
            BudgetLimits.from_mapping({"healthcare": bad})


def test_negative_spend_is_rejected():
    limits = BudgetLimits.from_mapping({"foodDining": 100})
    with pytest.raises(InvalidInput):
        reconcile(SpendingTotals({FD: -5}), limits)


def test_invalid_input_is_a_value_error():
    assert issubclass(InvalidInput, ValueError)


def test_limits_accept_numeric_strings_and_ignore_blanks():
    limits = BudgetLimits.from_mapping({"foodDining": "250.50", "shopping": "", "unknown": 5})
    assert limits[FD] == Decimal("250.50")
    assert limits.tracked == (FD,)
    assert limits.as_dict()["shopping"] == 0.0


def test_progress_status_to_dict():
    progress = ProgressStatus.compute(T, Decimal("120"), Decimal("100"))
    assert progress.to_dict() == {
        "category": "Transportation",
        "key": "transportation",
        "spent": 120.0,
        "limit": 100.0,
        "percentage": 100.0,
        "remaining": -20.0,
        "overage": 20.0,
        "status": "critical",
    }


def test_very_large_spend_reconciles_exactly():
    limits = BudgetLimits.from_mapping({"shopping": 500})
    report = reconcile(aggregate([_expense(-1e30, "Shopping")]), limits)
    shopping = report.categories[CategoryLabel.SHOPPING]
    assert shopping.percentage == 100
    assert shopping.overage == Decimal("999999999999999999999999999500.00")
    assert shopping.status is StatusTier.CRITICAL


def test_limits_beyond_cent_precision_are_too_large():
    assert BudgetLimits.from_mapping({"healthcare": 1e30})[CategoryLabel.HEALTHCARE] == Decimal("1E+30")
    with pytest.raises(InvalidInput, match="too large"):
        BudgetLimits.from_mapping({"healthcare": "1e1000"})
