# financeai/core/categorizer.py
from financeai.core.models import TRACKED_CATEGORIES, CategoryLabel, Transaction

_BY_MERCHANT_CATEGORY = {label.value: label for label in TRACKED_CATEGORIES}


def classify(tx: Transaction) -> CategoryLabel:
    """Map a transaction's merchant category to exactly one label.

    Matching is exact string equality; everything else is ``Other``.
    """
    merchant = tx.merchant
    if merchant is None or not isinstance(merchant.category, str):
        return CategoryLabel.OTHER
    return _BY_MERCHANT_CATEGORY.get(merchant.category, CategoryLabel.OTHER)
