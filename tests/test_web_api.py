import pytest
from fastapi.testclient import TestClient

from financeai.ai import LLMClient
from financeai.ai.advisor import ChatAdvisor
from financeai.config import load_config
from webapp.main import app, get_advisor, get_config


class DummyProvider:
    def __init__(self):
        self.messages = []

    def generate(self, messages):
        self.messages.append(messages)
        return "ok"


@pytest.fixture
def provider():
    return DummyProvider()


@pytest.fixture
def client(tmp_path, monkeypatch, provider):
    monkeypatch.delenv("FINANCEAI_SOURCE", raising=False)
    cfg = load_config(tmp_path / "absent.yaml")
    cfg["budgets_file"] = str(tmp_path / "budgets.yaml")
    app.dependency_overrides[get_config] = lambda: cfg
    app.dependency_overrides[get_advisor] = lambda: ChatAdvisor(client=LLMClient(provider=provider))
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_login(client):
    res = client.post("/api/login", json={"username": "sarah", "password": "password123"})
    assert res.status_code == 200
    assert res.json() == {
        "username": "sarah",
        "customerId": "sarah",
        "firstName": "Sarah",
        "lastName": "Johnson",
    }

    res = client.post("/api/login", json={"username": "sarah", "password": "nope"})
    assert res.status_code == 401
    assert res.json() == {"error": "Username or password not found, try again"}


def test_customer_accounts_and_transactions(client):
    assert client.get("/api/customer", params={"customerId": "sarah"}).json()["_id"] == "demo1"
    accounts = client.get("/api/accounts", params={"customerId": "sarah"}).json()["accounts"]
    assert [a["_id"] for a in accounts] == ["acc1", "acc2"]
    txs = client.get("/api/transactions", params={"customerId": "sarah"}).json()["transactions"]
    assert len(txs) == 10
    payroll = next(tx for tx in txs if tx["_id"] == "s8")
    assert payroll["merchant"] is None


def test_missing_customer_id(client):
    assert client.get("/api/dashboard").status_code == 400


def test_unknown_customer_is_a_source_error(client):
    res = client.get("/api/dashboard", params={"customerId": "nobody"})
    assert res.status_code == 502
    assert "nobody" in res.json()["error"]


def test_budgets_round_trip_into_dashboard(client):
    res = client.put("/api/budgets", params={"customerId": "sarah"}, json={"foodDining": 200, "shopping": 0})
    assert res.status_code == 200
    assert res.json()["budgets"]["foodDining"] == 200.0

    stored = client.get("/api/budgets", params={"customerId": "sarah"}).json()["budgets"]
    assert stored == {
        "transportation": 0.0,
        "foodDining": 200.0,
        "healthcare": 0.0,
        "entertainment": 0.0,
        "shopping": 0.0,
    }

    dashboard = client.get("/api/dashboard", params={"customerId": "sarah"}).json()
    assert dashboard["spending"]["total"] == 412.08
    progress = dashboard["budget_progress"]
    assert [c["key"] for c in progress["categories"]] == ["foodDining"]
    assert progress["categories"][0]["spent"] == dashboard["spending"]["foodDining"]
    assert progress["overall"]["limit"] == 200.0

    client.delete("/api/budgets", params={"customerId": "sarah"})
    dashboard = client.get("/api/dashboard", params={"customerId": "sarah"}).json()
    assert dashboard["budget_progress"]["categories"] == []


def test_negative_budget_rejected(client):
    res = client.put("/api/budgets", params={"customerId": "sarah"}, json={"healthcare": -10})
    assert res.status_code == 422
    assert "negative" in res.json()["error"]


def test_ai_insights(client):
    res = client.post("/api/ai-insights", json={"customerId": "sarah", "budgetData": {"foodDining": 150}})
    assert res.status_code == 200
    titles = [i["title"] for i in res.json()["insights"]]
    assert titles[0] == "Food & Dining Budget Exceeded"
    assert titles[-1] == "Emergency Fund"


def test_chat(client, provider):
    history = [{"role": "user", "content": f"q{i}"} for i in range(12)]
    res = client.post("/api/chat", json={"message": "Tips?", "username": "sarah", "history": history})
    assert res.json() == {"response": "ok", "username": "sarah"}
    messages = provider.messages[0]
    assert len(messages) == 12
    assert "$412.08" in messages[0]["content"]


def test_chat_insight(client, provider):
    body = {
        "username": "sarah",
        "insight": {"title": "Emergency Fund", "description": "Save $50-100 per month."},
    }
    res = client.post("/api/chat/insight", json=body)
    assert res.json()["response"] == "ok"
    assert "Emergency Fund" in provider.messages[0][-1]["content"]


def test_budget_form(client):
    res = client.post(
        "/budget",
        data={"customerId": "sarah", "foodDining": "100", "shopping": ""},
        follow_redirects=False,
    )
    assert res.status_code == 303
    assert res.headers["location"] == "/budget?customerId=sarah&message=Budgets%20saved"

    page = client.get("/budget", params={"customerId": "sarah", "message": "Budgets saved"})
    assert page.status_code == 200
    assert "Budgets saved" in page.text
    assert "Over by 68.75" in page.text


def test_budget_form_rejects_garbage(client):
    res = client.post(
        "/budget",
        data={"customerId": "sarah", "healthcare": "lots"},
        follow_redirects=False,
    )
    assert res.status_code == 303
    assert "error=" in res.headers["location"]
    assert client.get("/api/budgets", params={"customerId": "sarah"}).json()["budgets"]["healthcare"] == 0.0
