"""Monthly and category report rows plus the plain-text report export."""

import math
from datetime import datetime
from typing import List, NamedTuple, Optional, Sequence

from aggregations import (
    category_totals,
    current_month_total,
    goal_summary,
    month_expenses,
    monthly_totals,
    previous_month,
    previous_month_total,
    savings_rate,
    transaction_stats,
)
from formatting import format_currency, format_currency_rounded, format_date, format_percent
from models import Expense, Goal


class MonthlyReport(NamedTuple):
    key: str
    month: str
    expenses: float
    savings: float
    income: float
    savings_rate: Optional[float]


class CategoryReport(NamedTuple):
    category: str
    amount: float
    percentage: float
    trend: str


def monthly_reports(expenses: Sequence[Expense], income: float) -> List[MonthlyReport]:
    """One row per month; savings never go below zero in the table."""
    return [
        MonthlyReport(
            m.key,
            m.label,
            m.total,
            max(0.0, income - m.total),
            income,
            savings_rate(income, m.total),
        )
        for m in monthly_totals(expenses)
    ]


def category_reports(expenses: Sequence[Expense], now: Optional[datetime] = None) -> List[CategoryReport]:
    """
    All-time share per category, with a trend comparing this month's spend
    in the category against last month's.
    """
    now = now or datetime.now()
    totals = category_totals(expenses)
    grand_total = math.fsum(t.total for t in totals)

    this_month = dict(category_totals(month_expenses(expenses, now.year, now.month)))
    last_month = dict(category_totals(month_expenses(expenses, *previous_month(now))))

    rows = []
    for t in totals:
        current, previous = this_month.get(t.category, 0.0), last_month.get(t.category, 0.0)
        if current > previous:
            trend = "up"
        elif current < previous:
            trend = "down"
        else:
            trend = "flat"
        pct = t.total / grand_total * 100 if grand_total > 0 else 0.0
        rows.append(CategoryReport(t.category, t.total, pct, trend))
    return rows


def build_text_report(
    expenses: Sequence[Expense],
    income: float,
    goals: Sequence[Goal],
    now: Optional[datetime] = None,
) -> str:
    now = now or datetime.now()
    this_month = current_month_total(expenses, now)
    last_month = previous_month_total(expenses, now)
    change = (this_month - last_month) / last_month * 100 if last_month > 0 else 0.0
    rate = savings_rate(income, this_month)
    goals_info = goal_summary(goals)
    stats = transaction_stats(expenses)
    categories = category_reports(expenses, now)

    breakdown = "\n".join(
        f"{c.category}: {format_currency(c.amount)} ({format_percent(c.percentage)})" for c in categories
    )
    lines = [
        "PAISAPAL - FINANCIAL REPORT",
        f"Generated: {format_date(now)}",
        "",
        "MONTHLY SUMMARY",
        "===============",
        f"Current Month Expenses: {format_currency(this_month)}",
        f"Last Month Expenses: {format_currency(last_month)}",
        f"Change: {format_percent(change, signed=True)}",
        "",
        f"Monthly Income: {format_currency(income)}",
        f"Savings Rate: {format_percent(rate) if rate is not None else 'N/A (income not set)'}",
        "",
        "FINANCIAL GOALS",
        "===============",
        f"Total Goals: {len(goals)}",
        f"Completed Goals: {goals_info.completed}",
        f"Total Saved: {format_currency(goals_info.total_saved)}",
        "",
        "EXPENSE BREAKDOWN",
        "=================",
        breakdown or "No expenses recorded.",
        "",
        "KEY METRICS",
        "===========",
        f"Total Transactions: {stats.count}",
        f"Average Transaction: {format_currency_rounded(stats.average)}",
        f"Highest Spending Category: {categories[0].category if categories else 'N/A'}",
    ]
    return "\n".join(lines) + "\n"


def report_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"paisapal-report-{now.strftime('%Y%m%d-%H%M%S')}.txt"
