import io
import json
import urllib.error
import urllib.request
from datetime import datetime
from decimal import Decimal

import pytest
import yaml

from financeai.core.aggregator import aggregate
from financeai.core.models import CategoryLabel
from financeai.core.categorizer import classify
from financeai.sources import get_source
from financeai.sources.base import SourceError, parse_transaction
from financeai.sources.demo import DemoSource
from financeai.sources.nessie import NessieSource
from financeai.utils import dedupe_transactions


def test_demo_source_serves_fixture():
    source = DemoSource()
    customer = source.get_customer("sarah")
    assert customer.full_name == "Sarah Johnson"
    assert customer.username == "sarah"
    assert [a.id for a in source.get_accounts("sarah")] == ["acc1", "acc2"]
    txs = source.get_transactions("sarah")
    assert len(txs) == 10
    assert txs[0].timestamp == datetime(2025, 6, 2, 10, 15)
    assert classify(txs[0]) is CategoryLabel.FOOD_DINING


def test_demo_source_exact_category_match():
    txs = DemoSource().get_transactions("mike")
    amazon = next(tx for tx in txs if tx.id == "k3")
    assert amazon.merchant.category == "shopping"
    assert classify(amazon) is CategoryLabel.OTHER


def test_demo_source_authenticate():
    source = DemoSource()
    assert source.authenticate("sarah", "password123").first_name == "Sarah"
    assert source.authenticate("sarah", "wrong") is None
    assert source.authenticate("nobody", "password123") is None


def test_demo_source_unknown_customer(tmp_path):
    path = tmp_path / "demo.yaml"
    path.write_text(yaml.safe_dump({"ann": {"password": "x", "customer": {"_id": "c9"}}}))
    source = DemoSource(path)
    assert source.get_transactions("ann") == []
    with pytest.raises(SourceError):
        source.get_customer("bob")


def test_get_source_uses_registry(tmp_path):
    config = {
        "data_sources": {"demo": "financeai.sources.demo.DemoSource"},
        "source_options": {"demo": {"path": None}},
    }
    assert isinstance(get_source("demo", config), DemoSource)


def test_parse_transaction_without_merchant():
    tx = parse_transaction(
        {"_id": "t", "amount": 25, "description": "Deposit", "transaction_date": "2025-06-01"}
    )
    assert tx.merchant is None
    assert tx.timestamp == datetime(2025, 6, 1)
    assert classify(tx) is CategoryLabel.OTHER


class _FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def _fake_urlopen(routes, calls):
    def fake(req, timeout=None):
        url = req.full_url
        calls.append(url)
        for fragment, payload in routes.items():
            if fragment in url:
                if isinstance(payload, Exception):
                    raise payload
                return _FakeResponse(json.dumps(payload).encode())
        raise urllib.error.HTTPError(url, 404, "not found", {}, None)

    return fake


def test_nessie_source_fetches_all_accounts(monkeypatch):
    calls = []
    routes = {
        "/enterprise/customers/c1/accounts": {"results": [{"_id": "a1"}, {"_id": "a2"}], "total": 2},
        "/enterprise/customers/c1": {"_id": "c1", "first_name": "Ann", "last_name": "Lee"},
        "/enterprise/accounts/a1/transactions": {
            "results": [
                {
                    "_id": "t1",
                    "amount": -12.5,
                    "description": "Coffee",
                    "transaction_date": "2025-06-01T08:00:00Z",
                    "merchant": {"_id": "m1", "name": "Cafe", "category": "Food & Dining"},
                }
            ]
        },
        "/enterprise/accounts/a2/transactions": urllib.error.HTTPError("u", 500, "boom", {}, None),
    }
    monkeypatch.setattr(urllib.request, "urlopen", _fake_urlopen(routes, calls))

    source = NessieSource(api_key="secret")
    assert source.get_customer("c1").first_name == "Ann"
    txs = source.get_transactions("c1")
    assert [tx.id for tx in txs] == ["t1"]
    assert txs[0].merchant.category == "Food & Dining"
    assert all("key=secret" in url for url in calls)


def test_nessie_source_raises_on_http_error(monkeypatch):
    monkeypatch.setattr(urllib.request, "urlopen", _fake_urlopen({}, []))
    source = NessieSource(api_key="secret")
    with pytest.raises(SourceError):
        source.get_accounts("missing")
    assert source.authenticate("missing", "") is None


def test_nessie_source_requires_api_key():
    with pytest.raises(RuntimeError):
        NessieSource()


def test_dedupe_transactions():
    txs = DemoSource().get_transactions("sarah")
    doubled = txs + txs[:3]
    assert len(dedupe_transactions(doubled)) == len(txs)


def test_list_valued_merchant_category_counts_as_other():
    tx = parse_transaction(
        {
            "_id": "t",
            "amount": -30,
            "description": "Lunch",
            "transaction_date": "2025-06-01",
            "merchant": {"_id": "m", "name": "Deli", "category": ["Food & Dining", "Shopping"]},
        }
    )
    assert tx.merchant.category is None
    assert classify(tx) is CategoryLabel.OTHER
    assert aggregate([tx]).grand_total == Decimal("0.00")
