# dashboard.py: chart builders and KPI row for the Streamlit pages

from datetime import datetime
from typing import Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from aggregations import (
    CategoryMonth,
    CategoryTotal,
    MonthlyTotal,
    WeeklyTotal,
    current_month_total,
    goal_progress,
    goal_summary,
    previous_month_total,
    savings_rate,
)
from formatting import format_currency, format_percent
from models import ACHIEVEMENT_CATALOG, Goal

PIE_COLORS = [
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#FFA502", "#9B59B6",
    "#E74C3C", "#3498DB", "#2ECC71", "#F39C12", "#E91E63",
]

CATEGORY_COLORS = {
    "Food": "#FF6B6B",
    "Travel": "#4ECDC4",
    "Entertainment": "#FFE66D",
    "Shopping": "#FF85A2",
    "Bills": "#7B68EE",
    "Health": "#00D9FF",
    "Education": "#95E1D3",
    "Others": "#A8DADC",
}


def render_kpis(expenses, goals: Sequence[Goal], income: float, achievements_unlocked: int, now: datetime):
    """
    Top-level metrics row: this month's spend, balance against income,
    savings progress and unlocked badges.
    """
    this_month = current_month_total(expenses, now)
    last_month = previous_month_total(expenses, now)
    rate = savings_rate(income, this_month)
    summary = goal_summary(goals)

    delta = None
    if last_month > 0:
        delta = format_percent((this_month - last_month) / last_month * 100, signed=True)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("💸 This Month", format_currency(this_month), delta=delta, delta_color="inverse")
    if rate is None:
        col2.metric("💰 Balance", "Set income", help="Add your monthly income in Profile.")
    else:
        col2.metric("💰 Balance", format_currency(income - this_month), delta=f"Savings rate {format_percent(rate)}")
    col3.metric(
        "🎯 Saved for Goals",
        format_currency(summary.total_saved),
        help=f"Target {format_currency(summary.total_target)}",
    )
    col4.metric("🏆 Achievements", f"{achievements_unlocked}/{len(ACHIEVEMENT_CATALOG)}")

    if income > 0:
        st.caption("Monthly Budget Used")
        st.progress(min(1.0, this_month / income))


def category_donut(categories: Sequence[CategoryTotal], title: str = "Spending by Category"):
    """
    Donut chart of spending by category.
    """
    by_cat = pd.DataFrame(categories, columns=["Category", "Amount"])
    fig = px.pie(
        by_cat,
        values="Amount",
        names="Category",
        hole=0.4,
        title=title,
        color_discrete_sequence=PIE_COLORS,
    )
    fig.update_traces(textposition="inside", textinfo="percent+label")
    return fig


def monthly_bars(monthly: Sequence[MonthlyTotal], income: float = 0.0):
    """
    Bar chart of spend per month, with the income line when it is set.
    """
    df = pd.DataFrame(monthly, columns=["Key", "Month", "Amount"])
    fig = go.Figure()
    fig.add_trace(go.Bar(x=df["Month"], y=df["Amount"], name="Expenses", marker_color="#FF5252"))
    if income > 0 and not df.empty:
        fig.add_trace(
            go.Scatter(x=df["Month"], y=[income] * len(df), name="Income", mode="lines", line=dict(dash="dot", color="#4CAF50"))
        )
    fig.update_layout(title="Monthly Spending", height=400)
    return fig


def category_month_bars(rows: Sequence[CategoryMonth]):
    """
    Stacked bars of each month's category mix.
    """
    records = [
        {"Month": row.label, "Category": c.category, "Amount": c.total}
        for row in rows
        for c in row.categories
    ]
    df = pd.DataFrame(records, columns=["Month", "Category", "Amount"])
    fig = px.bar(
        df,
        x="Month",
        y="Amount",
        color="Category",
        color_discrete_map=CATEGORY_COLORS,
        title="Category Spending by Month",
    )
    fig.update_layout(barmode="stack", height=400)
    return fig


def weekly_trend(weeks: Sequence[WeeklyTotal]):
    df = pd.DataFrame(weeks, columns=["Week", "Label", "Amount"])
    fig = px.line(df, x="Week", y="Amount", markers=True, title="Weekly Spending Trend")
    fig.update_layout(height=350)
    return fig


def goal_progress_bars(goals: Sequence[Goal], now: datetime):
    """
    Horizontal bars of each goal's completion (clamped at 100%).
    """
    df = pd.DataFrame(
        [{"Goal": g.name, "Progress": goal_progress(g, now).progress_pct} for g in goals],
        columns=["Goal", "Progress"],
    )
    fig = px.bar(df, x="Progress", y="Goal", orientation="h", range_x=[0, 100], title="Goal Progress (%)")
    fig.update_layout(height=max(250, 60 * len(df)))
    return fig
