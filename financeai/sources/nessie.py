# financeai/sources/nessie.py
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import List

from financeai.core.models import Account, Customer, Transaction
from financeai.sources.base import (
    BaseSource,
    SourceError,
    parse_account,
    parse_customer,
    parse_transaction,
)

logger = logging.getLogger(__name__)

NESSIE_URL = "http://api.nessieisreal.com"


def _results(payload) -> list:
    # The enterprise endpoints wrap lists as {"results": [...], "total": n}.
    if isinstance(payload, dict):
        payload = payload.get("results", [])
    if not isinstance(payload, list):
        raise SourceError(f"Unexpected Nessie response format: {payload!r}")
    return payload


@dataclass
class NessieSource(BaseSource):
    """Read-only client for the Capital One Nessie sandbox."""

    api_key: str = ""
    base_url: str = NESSIE_URL
    timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.api_key:
            raise RuntimeError("NESSIE_API_KEY not set")

    def _get(self, path: str):
        query = urllib.parse.urlencode({"key": self.api_key})
        url = f"{self.base_url.rstrip('/')}{path}?{query}"
        logger.debug("Nessie ▶ GET %s", path)
        req = urllib.request.Request(url, method="GET")
        req.add_header("Accept", "application/json")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode()
        except urllib.error.HTTPError as exc:
            raise SourceError(f"Nessie request {path} failed with status: {exc.code}") from exc
        except urllib.error.URLError as exc:
            raise SourceError(f"Failed to reach Nessie for {path}: {exc.reason}") from exc
        logger.debug("Nessie ◀ %s", raw)
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SourceError(f"Failed to parse Nessie response for {path}") from exc

    def get_customer(self, customer_id: str) -> Customer:
        data = self._get(f"/enterprise/customers/{urllib.parse.quote(customer_id)}")
        if not isinstance(data, dict):
            raise SourceError(f"Unexpected customer payload: {data!r}")
        return parse_customer(data)

    def get_accounts(self, customer_id: str) -> List[Account]:
        data = self._get(f"/enterprise/customers/{urllib.parse.quote(customer_id)}/accounts")
        return [parse_account(item) for item in _results(data)]

    def get_account_transactions(self, account_id: str) -> List[Transaction]:
        data = self._get(f"/enterprise/accounts/{urllib.parse.quote(account_id)}/transactions")
        txs = []
        for item in _results(data):
            try:
                txs.append(parse_transaction(item))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping malformed transaction in account %s: %s", account_id, exc)
        return txs

    def get_transactions(self, customer_id: str) -> List[Transaction]:
        txs: List[Transaction] = []
        for account in self.get_accounts(customer_id):
            try:
                txs.extend(self.get_account_transactions(account.id))
            except SourceError as exc:
                logger.warning("Failed to get transactions for account %s: %s", account.id, exc)
        return txs

    def authenticate(self, username: str, password: str):
        # The sandbox has no credentials; a resolvable customer id logs in.
        try:
            return self.get_customer(username)
        except SourceError:
            return None
