# financeai/utils.py
from datetime import datetime


def validate_month(month_str):
    """Raise ValueError unless month_str looks like YYYY-MM."""
    try:
        datetime.strptime(month_str, '%Y-%m')
    except (TypeError, ValueError) as exc:
        raise ValueError(f"month must be formatted YYYY-MM, got {month_str!r}") from exc
    return month_str


def dedupe_transactions(transactions):
    """
    Remove duplicates by transaction id, falling back to
    (timestamp, description, amount) for transactions without one.
    """
    seen = set()
    unique = []
    for tx in transactions:
        key = tx.id or (tx.timestamp, tx.description, tx.amount)
        if key not in seen:
            seen.add(key)
            unique.append(tx)
    return unique
