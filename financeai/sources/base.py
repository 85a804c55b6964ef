# financeai/sources/base.py
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import List, Optional

from financeai.core.models import Account, Customer, Merchant, Transaction


class SourceError(RuntimeError):
    """A transaction source could not deliver the requested data."""


class BaseSource(ABC):
    @abstractmethod
    def get_customer(self, customer_id: str) -> Customer:
        """Return the customer identified by ``customer_id``."""

    @abstractmethod
    def get_accounts(self, customer_id: str) -> List[Account]:
        """Return all accounts owned by the customer."""

    @abstractmethod
    def get_transactions(self, customer_id: str) -> List[Transaction]:
        """Return an immutable snapshot of the customer's transactions."""

    def authenticate(self, username: str, password: str) -> Optional[Customer]:
        """Return the customer for valid credentials, otherwise ``None``."""
        return None


def parse_timestamp(value) -> datetime:
    """Parse API dates into naive UTC datetimes."""
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, date):
        ts = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise ValueError(f"Unrecognized transaction date: {value!r}")
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def parse_merchant(data) -> Optional[Merchant]:
    if not data:
        return None
    # Some Nessie merchants carry a list of categories; only a single name can match.
    category = data.get("category")
    name = data.get("name")
    return Merchant(
        id=str(data.get("_id", data.get("id", ""))),
        name=name if isinstance(name, str) else None,
        category=category if isinstance(category, str) else None,
    )


def parse_transaction(data: dict) -> Transaction:
    raw_date = data.get("transaction_date") or data.get("timestamp") or data.get("date")
    return Transaction(
        id=str(data.get("_id", data.get("id", ""))),
        amount=float(data.get("amount", 0.0)),
        timestamp=parse_timestamp(raw_date),
        description=str(data.get("description", "")),
        merchant=parse_merchant(data.get("merchant")),
        type=str(data.get("type", "")),
        status=str(data.get("status", "")),
        account_id=str(data.get("account_id", "")),
    )


def parse_account(data: dict) -> Account:
    return Account(
        id=str(data.get("_id", data.get("id", ""))),
        type=str(data.get("type", "")),
        nickname=str(data.get("nickname", "")),
        balance=float(data.get("balance", 0.0)),
        rewards=int(data.get("rewards", 0)),
        account_number=str(data.get("account_number", "")),
        customer_id=str(data.get("customer_id", "")),
    )


def parse_customer(data: dict, username: str = "") -> Customer:
    return Customer(
        id=str(data.get("_id", data.get("id", ""))),
        first_name=str(data.get("first_name", "")),
        last_name=str(data.get("last_name", "")),
        username=str(data.get("username", username)),
    )
