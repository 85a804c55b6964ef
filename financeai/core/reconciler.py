# financeai/core/reconciler.py
"""Compare aggregated spending with user budget limits."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, localcontext
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

from financeai.core.aggregator import MONEY_CONTEXT, ZERO, SpendingTotals, to_money
from financeai.core.models import TRACKED_CATEGORIES, CategoryLabel


class InvalidInput(ValueError):
    """Raised for negative or non-numeric monetary inputs."""


class StatusTier(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    CAUTION = "caution"
    MODERATE = "moderate"
    HEALTHY = "healthy"
    COMFORTABLE = "comfortable"

    @classmethod
    def for_percentage(cls, percentage: float) -> "StatusTier":
        for threshold, tier in _TIER_THRESHOLDS:
            if percentage >= threshold:
                return tier
        return cls.COMFORTABLE


_TIER_THRESHOLDS = (
    (90, StatusTier.CRITICAL),
    (80, StatusTier.WARNING),
    (60, StatusTier.CAUTION),
    (40, StatusTier.MODERATE),
    (30, StatusTier.HEALTHY),
)


def _checked_amount(value, what: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInput(f"{what} must be a number, got {value!r}")
    try:
        raw = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidInput(f"{what} must be a number, got {value!r}") from exc
    if not raw.is_finite():
        raise InvalidInput(f"{what} must be finite, got {value!r}")
    try:
        amount = to_money(raw)
    except InvalidOperation as exc:
        raise InvalidInput(f"{what} is too large, got {value!r}") from exc
    if amount < 0:
        raise InvalidInput(f"{what} must not be negative, got {value!r}")
    return amount


@dataclass(frozen=True)
class BudgetLimits(Mapping):
    """Monthly limits per tracked category.

    A zero limit means the category is not tracked. Instances are replaced
    wholesale when the user re-submits the budget form; there is no way to
    patch a single category.
    """

    limits: Mapping[CategoryLabel, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        checked = {}
        for label in TRACKED_CATEGORIES:
            raw = self.limits.get(label)
            checked[label] = ZERO if raw is None else _checked_amount(raw, f"{label.value} limit")
        object.__setattr__(self, "limits", MappingProxyType(checked))

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "BudgetLimits":
        """Build limits from a ``{budget_key: amount}`` mapping.

        Unknown keys are ignored; absent or null keys mean untracked.
        """
        data = data or {}
        limits = {}
        for label in TRACKED_CATEGORIES:
            value = data.get(label.budget_key)
            if value is None or value == "":
                continue
            limits[label] = value
        return cls(limits)

    def __getitem__(self, label: CategoryLabel) -> Decimal:
        return self.limits[label]

    def __iter__(self) -> Iterator[CategoryLabel]:
        return iter(self.limits)

    def __len__(self) -> int:
        return len(self.limits)

    def is_tracked(self, label: CategoryLabel) -> bool:
        return self.limits.get(label, ZERO) > 0

    @property
    def tracked(self):
        return tuple(label for label in TRACKED_CATEGORIES if self.is_tracked(label))

    def as_dict(self) -> Dict[str, float]:
        return {label.budget_key: float(amount) for label, amount in self.limits.items()}


@dataclass(frozen=True)
class ProgressStatus:
    label: Optional[CategoryLabel]
    spent: Decimal
    limit: Decimal
    percentage: float
    remaining: Decimal
    status: StatusTier

    @classmethod
    def compute(cls, label: Optional[CategoryLabel], spent: Decimal, limit: Decimal) -> "ProgressStatus":
        if limit <= 0:
            raise InvalidInput("progress requires a positive limit")
        percentage = min(100.0, float(spent * 100 / limit))
        return cls(
            label=label,
            spent=spent,
            limit=limit,
            percentage=percentage,
            remaining=limit - spent,
            status=StatusTier.for_percentage(percentage),
        )

    @property
    def is_over_budget(self) -> bool:
        return self.remaining < 0

    @property
    def overage(self) -> Decimal:
        return -self.remaining if self.remaining < 0 else ZERO

    def to_dict(self) -> Dict[str, object]:
        return {
            "category": self.label.value if self.label else "Overall",
            "key": self.label.budget_key if self.label else "overall",
            "spent": float(self.spent),
            "limit": float(self.limit),
            "percentage": round(self.percentage, 1),
            "remaining": float(self.remaining),
            "overage": float(self.overage),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class ReconciliationReport:
    categories: Mapping[CategoryLabel, ProgressStatus]
    overall: Optional[ProgressStatus]

    @property
    def is_empty(self) -> bool:
        return not self.categories

    def to_dict(self) -> Dict[str, object]:
        return {
            "categories": [status.to_dict() for status in self.categories.values()],
            "overall": self.overall.to_dict() if self.overall else None,
        }


def reconcile(totals: SpendingTotals, limits: BudgetLimits) -> ReconciliationReport:
    """Compute per-category and overall budget progress.

    Untracked categories are omitted and contribute to neither overall sum.
    Negative spend or limits raise :class:`InvalidInput`.
    """
    categories: Dict[CategoryLabel, ProgressStatus] = {}
    overall_spent = ZERO
    overall_limit = ZERO
    with localcontext(MONEY_CONTEXT):
        for label in TRACKED_CATEGORIES:
            spent = _checked_amount(totals.get(label, ZERO), f"{label.value} spend")
            limit = _checked_amount(limits.get(label, ZERO), f"{label.value} limit")
            if limit == 0:
                continue
            categories[label] = ProgressStatus.compute(label, spent, limit)
            overall_spent += spent
            overall_limit += limit

        overall = ProgressStatus.compute(None, overall_spent, overall_limit) if categories else None
    return ReconciliationReport(categories=MappingProxyType(categories), overall=overall)
