from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, Form, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field

from financeai.ai.advisor import ChatAdvisor, SpendingInsight, generate_insights
from financeai.budget_store import clear_limits, load_limits, save_limits
from financeai.config import load_config
from financeai.core.models import TRACKED_CATEGORIES
from financeai.core.reconciler import BudgetLimits, InvalidInput
from financeai.dashboard import DashboardData, load_dashboard
from financeai.sources import get_source
from financeai.sources.base import BaseSource, SourceError

logger = logging.getLogger(__name__)

app = FastAPI(title="FinanceAI API")
templates = Jinja2Templates(directory=str(Path(__file__).with_name("templates")))


class LoginRequest(BaseModel):
    username: str
    password: str


class HistoryItem(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    message: str
    username: str = ""
    history: List[HistoryItem] = Field(default_factory=list)


class InsightBody(BaseModel):
    title: str
    description: str
    category: str = ""
    amount: str = ""
    tip: str = ""


class InsightRequest(BaseModel):
    insight: InsightBody
    username: str = ""
    history: List[HistoryItem] = Field(default_factory=list)


class AIInsightsRequest(BaseModel):
    customerId: str = ""
    budgetData: Optional[Dict[str, Optional[float]]] = None


class BudgetPayload(BaseModel):
    transportation: Optional[float] = None
    foodDining: Optional[float] = None
    healthcare: Optional[float] = None
    entertainment: Optional[float] = None
    shopping: Optional[float] = None


def get_config() -> Dict[str, object]:
    return load_config()


def get_data_source(config: Dict[str, object] = Depends(get_config)) -> BaseSource:
    return get_source(config["source"], config)


def get_advisor(config: Dict[str, object] = Depends(get_config)) -> ChatAdvisor:
    return ChatAdvisor(history_limit=config["chat"]["history_limit"])


@app.exception_handler(SourceError)
async def source_error_handler(request: Request, exc: SourceError):
    logger.warning("Transaction source failed for %s: %s", request.url.path, exc)
    return JSONResponse({"error": str(exc)}, status_code=502)


@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse({"error": str(exc)}, status_code=422)


def _require(value: str, name: str) -> str:
    if not value:
        raise HTTPException(status_code=400, detail=f"{name} required")
    return value


def _dashboard(config, source, customer_id: str, limits: Optional[BudgetLimits] = None) -> DashboardData:
    if limits is None:
        limits = load_limits(config["budgets_file"], customer_id)
    return load_dashboard(
        source,
        customer_id,
        limits,
        recent=config["dashboard"]["recent_transactions"],
        daily_window=config["dashboard"]["daily_window"],
    )


@app.get("/health")
async def health():
    return {"status": "ok", "message": "FinanceAI API is running"}


@app.post("/api/login")
def login(body: LoginRequest, source: BaseSource = Depends(get_data_source)):
    customer = source.authenticate(body.username, body.password)
    if customer is None:
        return JSONResponse({"error": "Username or password not found, try again"}, status_code=401)
    return {
        "username": customer.username or body.username,
        "customerId": customer.username or customer.id,
        "firstName": customer.first_name,
        "lastName": customer.last_name,
    }


@app.get("/api/customer")
def customer(customerId: str = Query(""), source: BaseSource = Depends(get_data_source)):
    c = source.get_customer(_require(customerId, "customerId"))
    return {"_id": c.id, "username": c.username, "first_name": c.first_name, "last_name": c.last_name}


@app.get("/api/accounts")
def accounts(customerId: str = Query(""), source: BaseSource = Depends(get_data_source)):
    rows = source.get_accounts(_require(customerId, "customerId"))
    return {
        "accounts": [
            {
                "_id": a.id,
                "type": a.type,
                "nickname": a.nickname,
                "rewards": a.rewards,
                "balance": a.balance,
                "account_number": a.account_number,
                "customer_id": a.customer_id,
            }
            for a in rows
        ]
    }


@app.get("/api/transactions")
def transactions(customerId: str = Query(""), source: BaseSource = Depends(get_data_source)):
    rows = source.get_transactions(_require(customerId, "customerId"))
    return {
        "transactions": [
            {
                "_id": tx.id,
                "type": tx.type,
                "amount": tx.amount,
                "description": tx.description,
                "transaction_date": tx.timestamp.isoformat(),
                "status": tx.status,
                "account_id": tx.account_id,
                "merchant": (
                    {"_id": tx.merchant.id, "name": tx.merchant.name, "category": tx.merchant.category}
                    if tx.merchant
                    else None
                ),
            }
            for tx in rows
        ]
    }


@app.get("/api/dashboard")
def dashboard(
    customerId: str = Query(""),
    config: Dict[str, object] = Depends(get_config),
    source: BaseSource = Depends(get_data_source),
):
    data = _dashboard(config, source, _require(customerId, "customerId"))
    return data.to_dict()


@app.get("/api/budgets")
def read_budgets(customerId: str = Query(""), config: Dict[str, object] = Depends(get_config)):
    limits = load_limits(config["budgets_file"], _require(customerId, "customerId"))
    return {"customerId": customerId, "budgets": limits.as_dict()}


@app.put("/api/budgets")
def replace_budgets(
    body: BudgetPayload,
    customerId: str = Query(""),
    config: Dict[str, object] = Depends(get_config),
):
    limits = BudgetLimits.from_mapping(body.model_dump())
    save_limits(config["budgets_file"], _require(customerId, "customerId"), limits)
    return {"customerId": customerId, "budgets": limits.as_dict()}


@app.delete("/api/budgets")
def delete_budgets(customerId: str = Query(""), config: Dict[str, object] = Depends(get_config)):
    clear_limits(config["budgets_file"], _require(customerId, "customerId"))
    return {"customerId": customerId, "budgets": BudgetLimits().as_dict()}


@app.post("/api/ai-insights")
def ai_insights(
    body: AIInsightsRequest,
    config: Dict[str, object] = Depends(get_config),
    source: BaseSource = Depends(get_data_source),
):
    customer_id = _require(body.customerId, "customerId")
    limits = BudgetLimits.from_mapping(body.budgetData) if body.budgetData else None
    data = _dashboard(config, source, customer_id, limits)
    insights = generate_insights(data.totals, data.report)
    return {"customerId": customer_id, "insights": [i.to_dict() for i in insights]}


@app.post("/api/chat")
def chat(
    body: ChatRequest,
    config: Dict[str, object] = Depends(get_config),
    source: BaseSource = Depends(get_data_source),
    advisor: ChatAdvisor = Depends(get_advisor),
):
    username = _require(body.username, "username")
    data = _dashboard(config, source, username)
    history = [h.model_dump() for h in body.history]
    return {"response": advisor.reply(body.message, data, history), "username": username}


@app.post("/api/chat/insight")
def chat_insight(
    body: InsightRequest,
    config: Dict[str, object] = Depends(get_config),
    source: BaseSource = Depends(get_data_source),
    advisor: ChatAdvisor = Depends(get_advisor),
):
    username = _require(body.username, "username")
    data = _dashboard(config, source, username)
    insight = SpendingInsight(**body.insight.model_dump())
    history = [h.model_dump() for h in body.history]
    return {"response": advisor.explain_insight(insight, data, history), "username": username}


@app.get("/budget")
def budget_page(
    request: Request,
    customerId: str = Query(""),
    message: str | None = None,
    error: str | None = None,
    config: Dict[str, object] = Depends(get_config),
    source: BaseSource = Depends(get_data_source),
):
    data = _dashboard(config, source, _require(customerId, "customerId"))
    return templates.TemplateResponse(
        request,
        "budget.html",
        {
            "customer_id": customerId,
            "data": data,
            "categories": TRACKED_CATEGORIES,
            "message": message,
            "error": error,
        },
    )


@app.post("/budget")
def submit_budget(
    customerId: str = Form(...),
    transportation: str = Form(""),
    foodDining: str = Form(""),
    healthcare: str = Form(""),
    entertainment: str = Form(""),
    shopping: str = Form(""),
    config: Dict[str, object] = Depends(get_config),
):
    form = {
        "transportation": transportation.strip(),
        "foodDining": foodDining.strip(),
        "healthcare": healthcare.strip(),
        "entertainment": entertainment.strip(),
        "shopping": shopping.strip(),
    }
    try:
        limits = BudgetLimits.from_mapping(form)
    except InvalidInput:
        return RedirectResponse(
            f"/budget?customerId={quote(customerId)}&error=Budgets%20must%20be%20non-negative%20numbers",
            status_code=303,
        )
    save_limits(config["budgets_file"], customerId, limits)
    return RedirectResponse(f"/budget?customerId={quote(customerId)}&message=Budgets%20saved", status_code=303)
