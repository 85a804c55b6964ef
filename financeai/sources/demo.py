# financeai/sources/demo.py
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from financeai.core.models import Account, Customer, Transaction
from financeai.sources.base import (
    BaseSource,
    SourceError,
    parse_account,
    parse_customer,
    parse_transaction,
)

DEFAULT_DEMO_FILE = Path(__file__).resolve().parent.parent / "data" / "demo.yaml"


class DemoSource(BaseSource):
    """Serve demo customers from a YAML fixture.

    The fixture maps a username to ``password``, ``customer``, ``accounts``
    and ``transactions`` entries shaped like Nessie payloads. The username
    doubles as the customer identifier.
    """

    def __init__(self, path=None):
        self.path = Path(path) if path else DEFAULT_DEMO_FILE
        with self.path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Demo fixture must map usernames to customers: {self.path}")
        self._entries: Dict[str, dict] = data

    def _entry(self, customer_id: str) -> dict:
        entry = self._entries.get(customer_id)
        if entry is None:
            raise SourceError(f"Unknown customer: {customer_id}")
        return entry

    def get_customer(self, customer_id: str) -> Customer:
        return parse_customer(self._entry(customer_id).get("customer", {}), username=customer_id)

    def get_accounts(self, customer_id: str) -> List[Account]:
        return [parse_account(a) for a in self._entry(customer_id).get("accounts", [])]

    def get_transactions(self, customer_id: str) -> List[Transaction]:
        return [parse_transaction(t) for t in self._entry(customer_id).get("transactions", [])]

    def authenticate(self, username: str, password: str) -> Optional[Customer]:
        entry = self._entries.get(username)
        if entry is None or str(entry.get("password", "")) != password:
            return None
        return self.get_customer(username)
