"""Lightweight FastAPI server exposing the aggregation and insight tools."""

from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI
from pydantic import BaseModel, Field

from aggregations import (
    category_totals,
    current_month_total,
    goal_progress,
    monthly_totals,
    previous_month_total,
    savings_rate,
    transaction_stats,
)
from assistant import assistant_response
from insights import Insight, MonthlyInsight, generate_insights, generate_monthly_insights
from models import Expense, Goal

app = FastAPI(title="PaisaPal Finance Tools", version="0.1.0")


class FinanceSnapshot(BaseModel):
    expenses: List[Expense] = []
    goals: List[Goal] = []
    income: float = Field(0.0, ge=0)
    now: Optional[datetime] = None

    def reference_time(self) -> datetime:
        return self.now or datetime.now()


class InsightsResponse(BaseModel):
    insights: List[Insight]


@app.post("/tools/insights", response_model=InsightsResponse)
async def insights(req: FinanceSnapshot):
    return InsightsResponse(insights=generate_insights(req.expenses, req.income, req.goals, req.reference_time()))


class MonthlyInsightsRequest(FinanceSnapshot):
    last_n: Optional[int] = Field(None, ge=1, le=120)


class MonthlyInsightsResponse(BaseModel):
    insights: List[MonthlyInsight]


@app.post("/tools/monthly_insights", response_model=MonthlyInsightsResponse)
async def monthly_insights(req: MonthlyInsightsRequest):
    monthly = monthly_totals(req.expenses, last_n=req.last_n)
    latest = [e for e in req.expenses if monthly and e.date.strftime("%Y-%m") == monthly[-1].key]
    return MonthlyInsightsResponse(
        insights=generate_monthly_insights(monthly, category_totals(latest), req.income)
    )


class GoalProgressItem(BaseModel):
    id: str
    name: str
    progress_pct: float
    ratio: float
    days_left: int
    amount_left: float
    daily_amount_needed: float
    is_completed: bool
    status: str


class GoalProgressResponse(BaseModel):
    goals: List[GoalProgressItem]


@app.post("/tools/goal_progress", response_model=GoalProgressResponse)
async def goals_progress(req: FinanceSnapshot):
    now = req.reference_time()
    return GoalProgressResponse(
        goals=[
            GoalProgressItem(id=g.id, name=g.name, **goal_progress(g, now)._asdict())
            for g in req.goals
        ]
    )


class CategoryAmount(BaseModel):
    category: str
    total: float


class MonthAmount(BaseModel):
    key: str
    label: str
    total: float


class SummaryResponse(BaseModel):
    this_month: float
    last_month: float
    savings_rate: Optional[float]
    transaction_count: int
    average_transaction: float
    largest_expense: float
    smallest_expense: float
    total_spent: float
    categories: List[CategoryAmount]
    months: List[MonthAmount]


@app.post("/tools/summary", response_model=SummaryResponse)
async def summary(req: FinanceSnapshot):
    now = req.reference_time()
    this_month = current_month_total(req.expenses, now)
    stats = transaction_stats(req.expenses)
    return SummaryResponse(
        this_month=this_month,
        last_month=previous_month_total(req.expenses, now),
        savings_rate=savings_rate(req.income, this_month),
        transaction_count=stats.count,
        average_transaction=stats.average,
        largest_expense=stats.max,
        smallest_expense=stats.min,
        total_spent=stats.total,
        categories=[CategoryAmount(**c._asdict()) for c in category_totals(req.expenses)],
        months=[MonthAmount(**m._asdict()) for m in monthly_totals(req.expenses)],
    )


class AssistantRequest(FinanceSnapshot):
    query: str = Field(..., min_length=1)
    user_name: Optional[str] = None


class AssistantResponse(BaseModel):
    answer: str


@app.post("/tools/assistant", response_model=AssistantResponse)
async def assistant(req: AssistantRequest):
    answer = assistant_response(
        req.query, req.expenses, req.goals, req.income, now=req.reference_time(), user_name=req.user_name
    )
    return AssistantResponse(answer=answer)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api_server:app", host="0.0.0.0", port=8001, reload=True)
