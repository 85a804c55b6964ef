# financeai/core/models.py
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class CategoryLabel(str, Enum):
    TRANSPORTATION = "Transportation"
    FOOD_DINING = "Food & Dining"
    HEALTHCARE = "Healthcare"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    OTHER = "Other"

    @property
    def budget_key(self) -> Optional[str]:
        """Key used by the budget limits store, ``None`` for ``Other``."""
        return BUDGET_KEYS.get(self)


# Presentation order of the budget progress view.
TRACKED_CATEGORIES = (
    CategoryLabel.TRANSPORTATION,
    CategoryLabel.FOOD_DINING,
    CategoryLabel.HEALTHCARE,
    CategoryLabel.ENTERTAINMENT,
    CategoryLabel.SHOPPING,
)

BUDGET_KEYS = {
    CategoryLabel.TRANSPORTATION: "transportation",
    CategoryLabel.FOOD_DINING: "foodDining",
    CategoryLabel.HEALTHCARE: "healthcare",
    CategoryLabel.ENTERTAINMENT: "entertainment",
    CategoryLabel.SHOPPING: "shopping",
}


@dataclass(frozen=True)
class Merchant:
    id: str = ""
    name: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: float
    timestamp: datetime
    description: str
    merchant: Optional[Merchant] = None
    type: str = ""
    status: str = ""
    account_id: str = ""

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    @property
    def merchant_name(self) -> str:
        if self.merchant and self.merchant.name:
            return self.merchant.name
        return ""


@dataclass(frozen=True)
class Account:
    id: str
    type: str = ""
    nickname: str = ""
    balance: float = 0.0
    rewards: int = 0
    account_number: str = ""
    customer_id: str = ""


@dataclass(frozen=True)
class Customer:
    id: str
    first_name: str = ""
    last_name: str = ""
    username: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
