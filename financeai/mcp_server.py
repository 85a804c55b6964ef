from __future__ import annotations

import anyio
from mcp.server.fastmcp import FastMCP

from financeai.budget_store import load_limits
from financeai.config import load_config
from financeai.core.aggregator import Period, aggregate
from financeai.core.reconciler import BudgetLimits, reconcile
from financeai.sources import get_source
from financeai.utils import validate_month

server = FastMCP(name="FinanceAI", instructions="Expose FinanceAI spending figures as MCP tools")


def _transactions(customer_id: str, config_path: str | None):
    cfg = load_config(config_path)
    source = get_source(cfg["source"], cfg)
    return cfg, source.get_transactions(customer_id)


@server.tool(
    name="get_spending_summary",
    description="Total spending per budget category for a customer",
)
async def get_spending_summary(
    customer_id: str,
    month: str | None = None,
    config_path: str | None = None,
) -> dict:
    """Return ``{category_key: amount, ..., "total": amount}``.

    Parameters
    ----------
    customer_id:
        Customer identifier understood by the configured source.
    month:
        Optional ``YYYY-MM`` month restricting the transactions counted.
    """

    period = Period.month(validate_month(month)) if month else None

    def _run() -> dict:
        _, txs = _transactions(customer_id, config_path)
        return aggregate(txs, period).as_dict()

    return await anyio.to_thread.run_sync(_run)


@server.tool(
    name="get_budget_progress",
    description="Budget progress per tracked category for a customer",
)
async def get_budget_progress(
    customer_id: str,
    month: str | None = None,
    budgets: dict | None = None,
    config_path: str | None = None,
) -> dict:
    """Reconcile spending with ``budgets`` or, when omitted, the stored limits."""

    period = Period.month(validate_month(month)) if month else None
    limits = BudgetLimits.from_mapping(budgets) if budgets else None

    def _run() -> dict:
        cfg, txs = _transactions(customer_id, config_path)
        current = limits if limits is not None else load_limits(cfg["budgets_file"], customer_id)
        return reconcile(aggregate(txs, period), current).to_dict()

    return await anyio.to_thread.run_sync(_run)


def main() -> None:
    server.run()


if __name__ == "__main__":
    main()
