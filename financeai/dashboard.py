"""Assemble everything the dashboard, insights page and chat need.

The three consumers used to derive spending figures independently. They
now share one :class:`DashboardData`, built from a single
:func:`~financeai.core.aggregator.aggregate` result per period.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from financeai.core.aggregator import (
    PeriodFilter,
    SpendingTotals,
    aggregate,
    category_breakdown,
    daily_spending,
    monthly_spending,
    to_money,
)
from financeai.core.categorizer import classify
from financeai.core.models import Account, Customer, Transaction
from financeai.core.reconciler import BudgetLimits, ReconciliationReport, reconcile
from financeai.utils import dedupe_transactions


@dataclass(frozen=True)
class DashboardData:
    customer: Customer
    accounts: Sequence[Account]
    transactions: Sequence[Transaction]
    totals: SpendingTotals
    limits: BudgetLimits
    report: ReconciliationReport
    monthly: List[Dict[str, object]] = field(default_factory=list)
    daily: List[Dict[str, object]] = field(default_factory=list)
    categories: List[Dict[str, object]] = field(default_factory=list)
    recent: List[Dict[str, object]] = field(default_factory=list)

    @property
    def total_balance(self) -> Decimal:
        return sum((to_money(a.balance) for a in self.accounts), Decimal("0.00"))

    def to_dict(self) -> Dict[str, object]:
        return {
            "customer": {
                "id": self.customer.id,
                "username": self.customer.username,
                "first_name": self.customer.first_name,
                "last_name": self.customer.last_name,
            },
            "accounts": [
                {
                    "id": a.id,
                    "type": a.type,
                    "nickname": a.nickname,
                    "balance": a.balance,
                    "rewards": a.rewards,
                    "account_number": a.account_number,
                }
                for a in self.accounts
            ],
            "total_balance": float(self.total_balance),
            "spending": self.totals.as_dict(),
            "budgets": self.limits.as_dict(),
            "budget_progress": self.report.to_dict(),
            "monthly_spending": [dict(row, amount=float(row["amount"])) for row in self.monthly],
            "daily_spending": [dict(row, amount=float(row["amount"])) for row in self.daily],
            "category_spending": [dict(row, amount=float(row["amount"])) for row in self.categories],
            "recent_transactions": self.recent,
            "transaction_count": len(self.transactions),
        }


def recent_transactions(transactions: Sequence[Transaction], limit: int = 10) -> List[Dict[str, object]]:
    """Newest transactions first, labelled with their classified category."""
    ordered = sorted(transactions, key=lambda tx: tx.timestamp, reverse=True)
    return [
        {
            "id": tx.id,
            "description": tx.description,
            "amount": tx.amount,
            "date": tx.timestamp.isoformat(),
            "category": classify(tx).value,
            "merchant": tx.merchant_name,
        }
        for tx in ordered[:limit]
    ]


def build_dashboard(
    customer: Customer,
    accounts: Sequence[Account],
    transactions: Sequence[Transaction],
    limits: Optional[BudgetLimits] = None,
    *,
    period_filter: Optional[PeriodFilter] = None,
    today: Optional[date] = None,
    recent: int = 10,
    daily_window: int = 7,
) -> DashboardData:
    """Build the shared view model for one transaction snapshot."""
    txs = tuple(transactions)
    limits = limits if limits is not None else BudgetLimits()
    totals = aggregate(txs, period_filter)
    report = reconcile(totals, limits)
    return DashboardData(
        customer=customer,
        accounts=tuple(accounts),
        transactions=txs,
        totals=totals,
        limits=limits,
        report=report,
        monthly=monthly_spending(txs),
        daily=daily_spending(txs, days=daily_window, today=today),
        categories=category_breakdown(totals),
        recent=recent_transactions(txs, recent),
    )


def load_dashboard(source, customer_id: str, limits: Optional[BudgetLimits] = None, **kwargs) -> DashboardData:
    """Fetch a fresh snapshot from ``source`` and build the view model.

    Source errors propagate; nothing is retried or cached.
    """
    customer = source.get_customer(customer_id)
    accounts = source.get_accounts(customer_id)
    transactions = dedupe_transactions(source.get_transactions(customer_id))
    return build_dashboard(customer, accounts, transactions, limits, **kwargs)
