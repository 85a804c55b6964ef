"""Chat assistant and insight cards built on the shared spending figures.

Nothing here recomputes spending: callers hand in the
:class:`~financeai.core.aggregator.SpendingTotals` and
:class:`~financeai.core.reconciler.ReconciliationReport` that the dashboard
already shows, so the advisor quotes the same numbers the user sees.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, List, Optional, Sequence

from financeai.ai import BaseAIOutput, LLMClient, LLMProvider
from financeai.core.aggregator import SpendingTotals
from financeai.core.models import TRACKED_CATEGORIES, CategoryLabel, Customer
from financeai.core.reconciler import ReconciliationReport, StatusTier
from financeai.dashboard import DashboardData

HISTORY_LIMIT = 10

_GUIDELINES = """Guidelines:
1. Be friendly, encouraging, and supportive
2. Focus on practical, actionable advice
3. Suggest specific money-saving strategies
4. Use the user's actual spending data to give personalized recommendations
5. Keep responses concise but helpful
6. If asked about specific insights, provide detailed explanations with actionable tips
7. Reference previous conversation context to avoid repetition
8. Build on previous advice rather than repeating the same information
9. Use clear, readable formatting and avoid excessive markdown"""


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    @classmethod
    def coerce(cls, item) -> "ChatMessage":
        if isinstance(item, ChatMessage):
            return item
        return cls(role=str(item["role"]), content=str(item["content"]))


@dataclass(frozen=True)
class SpendingInsight:
    title: str
    description: str
    category: str
    amount: str
    tip: str

    def to_dict(self) -> dict:
        return asdict(self)


def history_window(history: Optional[Iterable], limit: int = HISTORY_LIMIT) -> List[ChatMessage]:
    """Return the trailing ``limit`` turns of ``history``."""
    messages = [ChatMessage.coerce(item) for item in (history or [])]
    if limit <= 0:
        return []
    return messages[-limit:]


def spending_context(totals: SpendingTotals, report: Optional[ReconciliationReport] = None) -> str:
    """Render the reconciled figures as plain numeric context lines."""
    lines = [f"- Total Monthly Spending: ${totals.grand_total:.2f}"]
    for label in TRACKED_CATEGORIES:
        lines.append(f"- {label.value}: ${totals[label]:.2f}")
    if report is not None and not report.is_empty:
        lines.append("")
        lines.append("Budget Progress:")
        for progress in report.categories.values():
            lines.append(_progress_line(progress.label.value, progress))
        if report.overall is not None:
            lines.append(_progress_line("Overall", report.overall))
    return "\n".join(lines)


def _progress_line(name, progress) -> str:
    if progress.is_over_budget:
        tail = f"over by ${progress.overage:.2f}"
    else:
        tail = f"${progress.remaining:.2f} remaining"
    return (
        f"- {name}: ${progress.spent:.2f} of ${progress.limit:.2f} "
        f"({progress.percentage:.1f}%, {progress.status.value}, {tail})"
    )


def build_system_prompt(
    customer: Customer,
    totals: SpendingTotals,
    report: Optional[ReconciliationReport] = None,
    context: str = "General financial advice",
) -> str:
    return (
        "You are a helpful financial advisor AI assistant. You have access to the "
        "user's financial data and can provide personalized advice.\n\n"
        "User Information:\n"
        f"- Name: {customer.full_name}\n"
        f"{spending_context(totals, report)}\n\n"
        f"Context: {context}\n\n"
        f"{_GUIDELINES}"
    )


class ChatAdvisor(BaseAIOutput):
    """Answer free-text questions about the user's spending."""

    def __init__(self, client: LLMClient | None = None, history_limit: int = HISTORY_LIMIT):
        self.client = client
        self.history_limit = history_limit

    def build_messages(
        self,
        user_message: str,
        customer: Customer,
        totals: SpendingTotals,
        report: Optional[ReconciliationReport] = None,
        context: str = "General financial advice",
        history: Optional[Sequence] = None,
    ) -> List[dict]:
        messages = [{"role": "system", "content": build_system_prompt(customer, totals, report, context)}]
        messages.extend(asdict(m) for m in history_window(history, self.history_limit))
        messages.append({"role": "user", "content": user_message})
        return messages

    def reply(self, user_message: str, data: DashboardData, history: Optional[Sequence] = None) -> str:
        messages = self.build_messages(user_message, data.customer, data.totals, data.report, history=history)
        return self.ask(messages, self.client)

    def explain_insight(self, insight: SpendingInsight, data: DashboardData, history: Optional[Sequence] = None) -> str:
        context = (
            f"The user clicked on an insight: '{insight.title}' - {insight.description}. "
            "They want to learn more about this specific financial advice."
        )
        question = (
            f"Can you tell me more about this insight: {insight.title}. "
            f"{insight.description} What should I do about it?"
        )
        messages = self.build_messages(question, data.customer, data.totals, data.report, context, history)
        return self.ask(messages, self.client)


class SpendingSummary(BaseAIOutput):
    """One-shot written summary for the command line report."""

    fallback = "AI report unavailable."

    def build_messages(self, data: DashboardData) -> List[dict]:
        return [
            {
                "role": "system",
                "content": "Provide a short financial summary and insights for the user based on these figures.",
            },
            {"role": "user", "content": spending_context(data.totals, data.report)},
        ]

    def generate(self, data: DashboardData, client: LLMClient | None = None) -> str:
        if not data.transactions:
            return "No transactions to analyze."
        return self.ask(self.build_messages(data), client)


def generate_report(data: DashboardData, provider: LLMProvider | None = None) -> str:
    """Convenience wrapper returning an AI summary of ``data``."""
    client = LLMClient(provider) if provider is not None else None
    return SpendingSummary().generate(data, client)


_CATEGORY_TIPS = {
    CategoryLabel.FOOD_DINING: (
        "Food Spending Alert",
        "You've spent ${amount:.2f} on food this month. Consider cooking more meals at home.",
        "Try meal prepping on Sundays to save money and time during the week.",
    ),
    CategoryLabel.TRANSPORTATION: (
        "Transportation Savings",
        "Your transportation costs are ${amount:.2f} this month. Consider public transit or carpooling.",
        "Look into monthly transit passes or bike sharing programs.",
    ),
    CategoryLabel.ENTERTAINMENT: (
        "Entertainment Budget",
        "You've spent ${amount:.2f} on entertainment. Look for free local events and activities.",
        "Check community calendars for free movie nights, concerts, and social events.",
    ),
}


def generate_insights(
    totals: SpendingTotals,
    report: Optional[ReconciliationReport] = None,
) -> List[SpendingInsight]:
    """Rule-based insight cards derived from the shared figures."""
    insights: List[SpendingInsight] = []

    if report is not None:
        for progress in report.categories.values():
            if progress.status not in (StatusTier.CRITICAL, StatusTier.WARNING):
                continue
            name = progress.label.value
            if progress.is_over_budget:
                description = (
                    f"You're ${progress.overage:.2f} over your ${progress.limit:.2f} {name} budget."
                )
            else:
                description = (
                    f"You've used {progress.percentage:.1f}% of your {name} budget, "
                    f"with ${progress.remaining:.2f} left."
                )
            insights.append(
                SpendingInsight(
                    title=f"{name} Budget {'Exceeded' if progress.is_over_budget else 'Alert'}",
                    description=description,
                    category=name,
                    amount=f"${progress.spent:.2f}",
                    tip="Pause non-essential purchases in this category until next month.",
                )
            )

    for label, (title, description, tip) in _CATEGORY_TIPS.items():
        amount = totals[label]
        if amount > 0:
            insights.append(
                SpendingInsight(
                    title=title,
                    description=description.format(amount=amount),
                    category=label.value,
                    amount=f"${amount:.2f}",
                    tip=tip,
                )
            )

    insights.append(
        SpendingInsight(
            title="Emergency Fund",
            description=(
                f"With your current spending of ${totals.grand_total:.2f}, try to save at least "
                "$50-100 per month for emergencies."
            ),
            category="Savings",
            amount="$50-100",
            tip="Set up automatic transfers to a savings account each month, even if it's just $25.",
        )
    )
    return insights
