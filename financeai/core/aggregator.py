# financeai/core/aggregator.py
"""Fold transaction lists into per-category expense sums.

Every figure shown to the user (dashboard stats, chart rows, budget
progress and the advisor context) is derived from :func:`aggregate`, so the
views cannot disagree on the same number. Amounts are summed as
:class:`~decimal.Decimal` cents, which keeps the result exact and
independent of transaction order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Context, Decimal, localcontext
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional

from financeai.core.categorizer import classify
from financeai.core.models import TRACKED_CATEGORIES, CategoryLabel, Transaction

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Wide enough to hold any float amount to the cent.
MONEY_CONTEXT = Context(prec=400)

PeriodFilter = Callable[[Transaction], bool]

CATEGORY_COLORS: Dict[CategoryLabel, str] = {
    CategoryLabel.FOOD_DINING: "#ef4444",
    CategoryLabel.TRANSPORTATION: "#3b82f6",
    CategoryLabel.SHOPPING: "#8b5cf6",
    CategoryLabel.ENTERTAINMENT: "#f59e0b",
    CategoryLabel.HEALTHCARE: "#10b981",
    CategoryLabel.OTHER: "#6b7280",
}


def to_money(value) -> Decimal:
    """Convert a major-unit amount to a cent-quantized Decimal."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, context=MONEY_CONTEXT)


@dataclass(frozen=True)
class SpendingTotals(Mapping):
    """Expense sums for the five tracked categories.

    Every tracked label is present; categories without spend hold zero.
    """

    amounts: Mapping[CategoryLabel, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        complete = {label: to_money(self.amounts.get(label, ZERO)) for label in TRACKED_CATEGORIES}
        object.__setattr__(self, "amounts", MappingProxyType(complete))

    def __getitem__(self, label: CategoryLabel) -> Decimal:
        return self.amounts[label]

    def __iter__(self) -> Iterator[CategoryLabel]:
        return iter(self.amounts)

    def __len__(self) -> int:
        return len(self.amounts)

    @property
    def grand_total(self) -> Decimal:
        with localcontext(MONEY_CONTEXT):
            return sum(self.amounts.values(), ZERO)

    def as_dict(self) -> Dict[str, float]:
        """Return amounts keyed by budget key, plus ``total``."""
        data = {label.budget_key: float(amount) for label, amount in self.amounts.items()}
        data["total"] = float(self.grand_total)
        return data


@dataclass(frozen=True)
class Period:
    """Timestamp window, ``start`` inclusive and ``end`` exclusive."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @classmethod
    def month(cls, month_str: str) -> "Period":
        year, month = map(int, month_str.split("-"))
        start = datetime(year, month, 1)
        end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
        return cls(start=start, end=end)

    @classmethod
    def day(cls, day: date) -> "Period":
        start = datetime(day.year, day.month, day.day)
        return cls(start=start, end=start + timedelta(days=1))

    def __call__(self, tx: Transaction) -> bool:
        ts = _utc_naive(tx.timestamp)
        if self.start is not None and ts < _utc_naive(self.start):
            return False
        if self.end is not None and ts >= _utc_naive(self.end):
            return False
        return True


def _utc_naive(value: datetime) -> datetime:
    # Naive values are taken as UTC, matching the source parsers.
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def aggregate(
    transactions: Iterable[Transaction],
    period_filter: Optional[PeriodFilter] = None,
) -> SpendingTotals:
    """Sum expenses per tracked category.

    Only negative amounts count, as ``abs(amount)``. Credits never reduce a
    category's spend and ``Other`` is left out.
    """
    sums = {label: ZERO for label in TRACKED_CATEGORIES}
    with localcontext(MONEY_CONTEXT):
        for tx in transactions:
            if not tx.is_expense:
                continue
            if period_filter is not None and not period_filter(tx):
                continue
            label = classify(tx)
            if label is CategoryLabel.OTHER:
                continue
            sums[label] += abs(to_money(tx.amount))
    return SpendingTotals(sums)


def monthly_spending(
    transactions: Iterable[Transaction],
    months: Optional[int] = None,
) -> List[Dict[str, object]]:
    """Tracked expense totals per calendar month, oldest first."""
    txs = list(transactions)
    keys = sorted({tx.timestamp.strftime("%Y-%m") for tx in txs if tx.is_expense})
    if months is not None:
        keys = keys[-months:] if months > 0 else []
    rows = []
    for key in keys:
        totals = aggregate(txs, Period.month(key))
        rows.append(
            {
                "month": key,
                "label": datetime.strptime(key, "%Y-%m").strftime("%b"),
                "amount": totals.grand_total,
            }
        )
    return rows


def daily_spending(
    transactions: Iterable[Transaction],
    days: int = 7,
    today: Optional[date] = None,
) -> List[Dict[str, object]]:
    """Tracked expense totals for the trailing ``days`` days ending ``today``.

    ``today`` defaults to the date of the most recent transaction so that
    historical snapshots still produce a populated window.
    """
    txs = list(transactions)
    if today is None:
        today = max((tx.timestamp.date() for tx in txs), default=date.today())
    rows = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        totals = aggregate(txs, Period.day(day))
        rows.append(
            {
                "day": day.isoformat(),
                "label": day.strftime("%a"),
                "amount": totals.grand_total,
            }
        )
    return rows


def category_breakdown(totals: SpendingTotals) -> List[Dict[str, object]]:
    """Chart rows for the spending-by-category view, largest first."""
    rows = [
        {
            "category": label.value,
            "key": label.budget_key,
            "amount": amount,
            "color": CATEGORY_COLORS[label],
        }
        for label, amount in totals.items()
    ]
    rows.sort(key=lambda r: r["amount"], reverse=True)
    return rows
