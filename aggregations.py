"""
Pure derivations over a user's expenses and goals.

Nothing here mutates its inputs or keeps state between calls; every function
can be recomputed on each render from the current snapshot. Totals use
``math.fsum`` so bucket sums do not depend on input order.
"""

import math
from datetime import date, datetime, time
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

import pandas as pd

from models import Expense, Goal

COLUMNS = ["ID", "Date", "Amount", "Category", "Description", "Month"]


class CategoryTotal(NamedTuple):
    category: str
    total: float


class MonthlyTotal(NamedTuple):
    key: str
    label: str
    total: float


class WeeklyTotal(NamedTuple):
    week_start: date
    label: str
    total: float


class CategoryMonth(NamedTuple):
    key: str
    label: str
    categories: List[CategoryTotal]


class TransactionStats(NamedTuple):
    count: int
    average: float
    max: float
    min: float
    total: float


class GoalProgress(NamedTuple):
    progress_pct: float
    ratio: float
    days_left: int
    amount_left: float
    daily_amount_needed: float
    is_completed: bool
    status: str


class GoalSummary(NamedTuple):
    total_target: float
    total_saved: float
    completed: int
    overall_pct: float


def _prep(expenses: Iterable[Expense]) -> pd.DataFrame:
    """
    Tabulate expenses for grouping, one row per expense in input order.
    """
    rows = [
        {
            "ID": e.id,
            "Date": e.date,
            "Amount": e.amount,
            "Category": e.category.value,
            "Description": e.description,
        }
        for e in expenses
    ]
    if not rows:
        return pd.DataFrame(columns=COLUMNS)

    df = pd.DataFrame(rows)
    df["Date"] = pd.to_datetime(df["Date"])
    df["Amount"] = pd.to_numeric(df["Amount"], errors="coerce").fillna(0.0)
    df["Month"] = df["Date"].dt.to_period("M").astype(str)
    return df


def month_label(key: str) -> str:
    """``2026-10`` -> ``Oct 26``."""
    return pd.Period(key, freq="M").strftime("%b %y")


def category_totals(expenses: Iterable[Expense]) -> List[CategoryTotal]:
    """Totals per category, largest first; ties keep first-seen order."""
    df = _prep(expenses)
    if df.empty:
        return []
    totals = df.groupby("Category", sort=False)["Amount"].agg(math.fsum)
    totals = totals.sort_values(ascending=False, kind="stable")
    return [CategoryTotal(cat, float(total)) for cat, total in totals.items()]


def monthly_totals(expenses: Iterable[Expense], last_n: Optional[int] = None) -> List[MonthlyTotal]:
    """Totals per calendar month, oldest first, optionally only the latest ``last_n``."""
    df = _prep(expenses)
    if df.empty:
        return []
    by_month = df.groupby("Month")["Amount"].agg(math.fsum).sort_index()
    rows = [MonthlyTotal(key, month_label(key), float(total)) for key, total in by_month.items()]
    return _tail(rows, last_n)


def category_monthly_totals(expenses: Iterable[Expense], last_n: Optional[int] = 6) -> List[CategoryMonth]:
    """Per-month category breakdown (the stacked bar chart data)."""
    df = _prep(expenses)
    if df.empty:
        return []
    rows = []
    for key, month_df in df.groupby("Month", sort=True):
        by_cat = month_df.groupby("Category", sort=False)["Amount"].agg(math.fsum)
        rows.append(
            CategoryMonth(
                key,
                month_label(key),
                [CategoryTotal(cat, float(total)) for cat, total in by_cat.items()],
            )
        )
    return _tail(rows, last_n)


def weekly_totals(expenses: Iterable[Expense], last_n: Optional[int] = None) -> List[WeeklyTotal]:
    """Totals per week, keyed by the Monday that starts it."""
    df = _prep(expenses)
    if df.empty:
        return []
    df["Week"] = (df["Date"] - pd.to_timedelta(df["Date"].dt.weekday, unit="D")).dt.normalize()
    by_week = df.groupby("Week")["Amount"].agg(math.fsum).sort_index()
    rows = [
        WeeklyTotal(week.date(), f"{week.day} {week.strftime('%b')}", float(total))
        for week, total in by_week.items()
    ]
    return _tail(rows, last_n)


def _tail(rows: list, last_n: Optional[int]) -> list:
    if last_n is None:
        return rows
    return rows[-last_n:] if last_n > 0 else []


def month_expenses(expenses: Iterable[Expense], year: int, month: int) -> List[Expense]:
    return [e for e in expenses if e.date.year == year and e.date.month == month]


def previous_month(now) -> Tuple[int, int]:
    if now.month == 1:
        return now.year - 1, 12
    return now.year, now.month - 1


def current_month_total(expenses: Iterable[Expense], now) -> float:
    return math.fsum(e.amount for e in month_expenses(expenses, now.year, now.month))


def previous_month_total(expenses: Iterable[Expense], now) -> float:
    year, month = previous_month(now)
    return math.fsum(e.amount for e in month_expenses(expenses, year, month))


def transaction_stats(expenses: Sequence[Expense]) -> TransactionStats:
    amounts = [e.amount for e in expenses]
    if not amounts:
        return TransactionStats(0, 0.0, 0.0, 0.0, 0.0)
    total = math.fsum(amounts)
    return TransactionStats(len(amounts), total / len(amounts), max(amounts), min(amounts), total)


def savings_rate(income: float, month_total: float) -> Optional[float]:
    """Percent of income left after ``month_total``; ``None`` while income is unset."""
    if not income or income <= 0:
        return None
    return (income - month_total) / income * 100


def _as_datetime(now) -> datetime:
    if isinstance(now, datetime):
        return now
    return datetime.combine(now, time.min)


def days_until(deadline: date, now) -> int:
    """Whole days until ``deadline`` (rounded up); negative once it has passed."""
    now = _as_datetime(now)
    due = datetime.combine(deadline, time.min, tzinfo=now.tzinfo)
    return math.ceil((due - now).total_seconds() / 86400)


def goal_progress(goal: Goal, now) -> GoalProgress:
    ratio = goal.current_amount / goal.target_amount
    days_left = days_until(goal.deadline, now)
    amount_left = goal.target_amount - goal.current_amount
    completed = goal.is_completed
    daily = amount_left / days_left if days_left > 0 and not completed else 0.0
    pct = min(max(ratio * 100, 0.0), 100.0)

    if completed:
        status = "completed"
    elif days_left < 0:
        status = "overdue"
    elif days_left == 0:
        status = "due_today"
    elif pct >= 75:
        status = "almost_there"
    else:
        status = "in_progress"

    return GoalProgress(pct, ratio, days_left, amount_left, daily, completed, status)


def goal_summary(goals: Sequence[Goal]) -> GoalSummary:
    total_target = math.fsum(g.target_amount for g in goals)
    total_saved = math.fsum(g.current_amount for g in goals)
    completed = sum(1 for g in goals if g.is_completed)
    overall = total_saved / total_target * 100 if total_target > 0 else 0.0
    return GoalSummary(total_target, total_saved, completed, overall)


def recent_expenses(expenses: Sequence[Expense], limit: int = 5) -> List[Expense]:
    return sorted(expenses, key=lambda e: e.date, reverse=True)[:limit]
