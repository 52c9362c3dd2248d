import logging
from datetime import datetime
from typing import Callable, List, Literal, NamedTuple, Optional, Sequence

from pydantic import BaseModel

from aggregations import (
    CategoryTotal,
    MonthlyTotal,
    TransactionStats,
    category_totals,
    current_month_total,
    days_until,
    previous_month_total,
    savings_rate,
    transaction_stats,
)
from formatting import format_currency, format_currency_rounded, format_percent, round_half_up
from models import Expense, Goal

logger = logging.getLogger(__name__)

SAVINGS_TARGET_PCT = 20
CONCENTRATION_PCT = 40
GOAL_INCOME_SHARE = 0.3
PATTERN_MIN_TRANSACTIONS = 5


class Insight(BaseModel):
    kind: Literal["warning", "success", "tip", "info"]
    title: str
    narrative: str
    recommendation: Optional[str] = None


class MonthlyInsight(BaseModel):
    title: str
    narrative: str


FALLBACK_INSIGHT = Insight(
    kind="info",
    title="Insights unavailable",
    narrative="We couldn't analyse your data right now. Your expenses and goals are safe; try again shortly.",
)

FALLBACK_MONTHLY_INSIGHT = MonthlyInsight(
    title="Insights unavailable",
    narrative="Monthly analysis could not be generated for the current data.",
)


class InsightContext(NamedTuple):
    expenses: List[Expense]
    income: float
    goals: List[Goal]
    now: datetime
    this_month: float
    last_month: float
    categories: List[CategoryTotal]
    stats: TransactionStats


def month_over_month(ctx: InsightContext) -> Optional[Insight]:
    """Compare this month's spend with last month's."""
    this_month, last_month = ctx.this_month, ctx.last_month
    if last_month <= 0 or this_month == last_month:
        return None

    if this_month > last_month:
        increase = (this_month - last_month) / last_month * 100
        return Insight(
            kind="warning",
            title="Increased Spending Detected",
            narrative=(
                f"Your spending this month ({format_currency(this_month)}) is {format_percent(increase)} higher "
                f"than last month ({format_currency(last_month)}). This indicates an upward trend in your "
                "expenses that may impact your savings goals."
            ),
            recommendation=(
                "To bring your spending back to last month's level, try reducing expenses by "
                f"{format_currency(this_month - last_month)} over the remaining days. "
                "Focus on non-essential categories."
            ),
        )

    decrease = (last_month - this_month) / last_month * 100
    return Insight(
        kind="success",
        title="Great Spending Control!",
        narrative=(
            f"Excellent work! Your spending this month is {format_percent(decrease)} lower than last month. "
            f"You've saved approximately {format_currency(last_month - this_month)} compared to your "
            "previous spending pattern."
        ),
        recommendation=(
            "Consider allocating the saved amount to your savings goals or emergency fund to maximize "
            "the benefit of your improved spending habits."
        ),
    )


def category_concentration(ctx: InsightContext) -> Optional[Insight]:
    """Flag a single category that dominates all-time spending."""
    if not ctx.categories:
        return None
    total = sum(c.total for c in ctx.categories)
    if total <= 0:
        return None

    top = ctx.categories[0]
    top_pct = top.total / total * 100

    if top_pct > CONCENTRATION_PCT:
        return Insight(
            kind="warning",
            title=f"High Concentration in {top.category}",
            narrative=(
                f"{top.category} accounts for {format_percent(top_pct)} of your total spending "
                f"({format_currency(top.total)}). This high concentration in a single category may indicate "
                "an area where cost optimization is possible.\n\n"
                "Breaking down further:\n"
                f"- Amount spent: {format_currency(top.total)}\n"
                f"- Percentage of total: {format_percent(top_pct)}\n"
                "- Compared to other categories, this is significantly higher"
            ),
            recommendation=(
                f"Review your {top.category} expenses in detail. Look for subscriptions you can cancel, "
                "cheaper alternatives, or ways to reduce frequency. Even a 20% reduction could save you "
                f"{format_currency_rounded(top.total * 0.2)}."
            ),
        )

    breakdown = "\n".join(
        f"{i}. {c.category}: {format_currency(c.total)} ({format_percent(c.total / total * 100)})"
        for i, c in enumerate(ctx.categories[:3], start=1)
    )
    return Insight(
        kind="success",
        title="Well-Balanced Spending Distribution",
        narrative=(
            f"Your spending is well-distributed across categories, with {top.category} being your highest "
            f"at {format_percent(top_pct)}. This balanced approach indicates healthy financial management."
            f"\n\nTop 3 categories:\n{breakdown}"
        ),
        recommendation=(
            "Maintain this balanced approach while looking for small optimizations in each category. "
            "Consider setting specific budgets for your top 3 categories."
        ),
    )


def income_savings(ctx: InsightContext) -> Optional[Insight]:
    """Judge this month's savings rate against the 20% target."""
    rate = savings_rate(ctx.income, ctx.this_month)
    if rate is None:
        return None

    income, spent = ctx.income, ctx.this_month
    remaining = income - spent

    if rate >= SAVINGS_TARGET_PCT:
        return Insight(
            kind="success",
            title="Healthy Savings Rate Achieved!",
            narrative=(
                f"Your current savings rate is {format_percent(rate)}, which exceeds the recommended 20% "
                f"savings target. You're saving {format_currency(remaining)} this month.\n\n"
                "Financial health indicators:\n"
                f"- Monthly income: {format_currency(income)}\n"
                f"- Monthly expenses: {format_currency(spent)}\n"
                f"- Savings: {format_currency(remaining)}\n"
                f"- Savings rate: {format_percent(rate)}"
            ),
            recommendation=(
                "Consider diversifying your savings into different instruments - emergency fund "
                "(3-6 months expenses), short-term goals, and long-term investments like SIPs or PPF."
            ),
        )

    if rate > 0:
        target = income * SAVINGS_TARGET_PCT / 100
        return Insight(
            kind="tip",
            title="Room for Savings Improvement",
            narrative=(
                f"Your current savings rate is {format_percent(rate)}, which is below the recommended 20% "
                "target. To reach the ideal savings rate, you'd need to save an additional "
                f"{format_currency_rounded(target - remaining)} per month.\n\n"
                "Current breakdown:\n"
                f"- Monthly income: {format_currency(income)}\n"
                f"- Monthly expenses: {format_currency(spent)}\n"
                f"- Current savings: {format_currency(remaining)}\n"
                f"- Target savings (20%): {format_currency_rounded(target)}"
            ),
            recommendation=(
                f"Try the 50-30-20 budgeting rule: 50% for needs ({format_currency_rounded(income * 0.5)}), "
                f"30% for wants ({format_currency_rounded(income * 0.3)}), and 20% for savings "
                f"({format_currency_rounded(target)})."
            ),
        )

    if remaining < 0:
        return Insight(
            kind="warning",
            title="Spending Exceeds Income!",
            narrative=(
                f"Critical alert: Your expenses ({format_currency(spent)}) exceed your income "
                f"({format_currency(income)}) by {format_currency(abs(remaining))}. This unsustainable "
                "pattern can lead to debt accumulation.\n\n"
                "Urgent action required:\n"
                f"- Overspending amount: {format_currency(abs(remaining))}\n"
                f"- Percentage over budget: {format_percent(abs(rate))}"
            ),
            recommendation=(
                "Immediately identify non-essential expenses to cut. Prioritize bills and essentials first. "
                "Consider finding additional income sources or using the expense tracker to monitor daily "
                "spending."
            ),
        )
    return None


def goals_at_risk(ctx: InsightContext) -> Optional[Insight]:
    """List goals whose pace would eat more than 30% of monthly income."""
    if ctx.income <= 0 or not ctx.goals:
        return None

    lines = []
    for goal in ctx.goals:
        days_left = days_until(goal.deadline, ctx.now)
        amount_needed = goal.target_amount - goal.current_amount
        daily_needed = amount_needed / max(days_left, 1)
        if days_left > 0 and daily_needed * 30 > ctx.income * GOAL_INCOME_SHARE:
            lines.append(
                f"- {goal.name}: {format_currency(amount_needed)} needed in {days_left} days "
                f"({format_currency(round_half_up(daily_needed))}/day)"
            )

    if not lines:
        return None
    return Insight(
        kind="warning",
        title="Savings Goals at Risk",
        narrative=(
            f"{len(lines)} of your savings goals may be difficult to achieve with current spending "
            "patterns:\n\n" + "\n".join(lines)
        ),
        recommendation=(
            "Consider extending deadlines, increasing monthly contributions, or temporarily pausing "
            "non-essential expenses to fast-track these goals."
        ),
    )


def spending_pattern(ctx: InsightContext) -> Optional[Insight]:
    """Summarize transaction sizes once there is enough history."""
    stats = ctx.stats
    if stats.count < PATTERN_MIN_TRANSACTIONS:
        return None
    return Insight(
        kind="tip",
        title="Spending Pattern Analysis",
        narrative=(
            f"Based on your {stats.count} transactions, your average transaction size is "
            f"{format_currency_rounded(stats.average)}. Understanding your typical transaction size can "
            "help identify unusual expenses.\n\n"
            "Pattern details:\n"
            f"- Total transactions: {stats.count}\n"
            f"- Average transaction: {format_currency_rounded(stats.average)}\n"
            f"- Largest expense: {format_currency(stats.max)}\n"
            f"- Smallest expense: {format_currency(stats.min)}"
        ),
        recommendation=(
            "Set a mental 'pause threshold' at 2x your average "
            f"({format_currency_rounded(stats.average * 2)}). For any purchase above this, take 24 hours "
            "to decide if it's truly necessary."
        ),
    )


INSIGHT_RULES: Sequence[Callable[[InsightContext], Optional[Insight]]] = (
    month_over_month,
    category_concentration,
    income_savings,
    goals_at_risk,
    spending_pattern,
)


def build_context(expenses, income, goals, now) -> InsightContext:
    return InsightContext(
        expenses=expenses,
        income=float(income or 0),
        goals=goals,
        now=now,
        this_month=current_month_total(expenses, now),
        last_month=previous_month_total(expenses, now),
        categories=category_totals(expenses),
        stats=transaction_stats(expenses),
    )


def generate_insights(
    expenses: Sequence[Expense],
    income: float,
    goals: Sequence[Goal],
    now: Optional[datetime] = None,
) -> List[Insight]:
    """
    Evaluate the rule catalog in order; each rule adds at most one insight.

    No expenses means no insights. Any failure while building the messages
    collapses the result into a single fallback entry so the page still renders.
    """
    try:
        expenses = list(expenses)
        if not expenses:
            return []
        ctx = build_context(expenses, income, list(goals), now or datetime.now())
        insights = []
        for rule in INSIGHT_RULES:
            insight = rule(ctx)
            if insight is not None:
                insights.append(insight)
        return insights
    except Exception:
        logger.exception("Insight generation failed")
        return [FALLBACK_INSIGHT.model_copy()]


def generate_monthly_insights(
    monthly: Sequence[MonthlyTotal],
    categories: Sequence[CategoryTotal],
    income: float = 0.0,
) -> List[MonthlyInsight]:
    """
    Month-level observations: trend, peak vs trough, deviation from average
    and the top category's share of the latest month.

    ``categories`` should be the latest month's category totals.
    """
    try:
        return _monthly_insights(list(monthly), list(categories), float(income or 0))
    except Exception:
        logger.exception("Monthly insight generation failed")
        return [FALLBACK_MONTHLY_INSIGHT.model_copy()]


def _monthly_insights(monthly, categories, income) -> List[MonthlyInsight]:
    if not monthly:
        return [
            MonthlyInsight(
                title="No Data Yet",
                narrative="Add a few expenses to see how your spending changes from month to month.",
            )
        ]

    current = monthly[-1]
    if len(monthly) == 1:
        return [
            MonthlyInsight(
                title="First Month",
                narrative=(
                    f"{current.label}: {format_currency(current.total)}\n\n"
                    "This is your first month of tracked spending. Trends, peaks and averages appear once "
                    "a second month is recorded."
                ),
            )
        ]

    insights = []
    average = sum(m.total for m in monthly) / len(monthly)

    # Trend between the latest two months
    previous = monthly[-2]
    if previous.total > 0:
        change = (current.total - previous.total) / previous.total * 100
        change_text = format_percent(change, signed=True)
        direction = "increasing" if change > 0 else "decreasing" if change < 0 else "flat"
    else:
        change_text = "n/a (no spending recorded)"
        direction = "increasing" if current.total > 0 else "flat"
    insights.append(
        MonthlyInsight(
            title="Monthly Trend",
            narrative=(
                f"{current.label}: {format_currency(current.total)}\n"
                f"Change from {previous.label}: {change_text}\n\n"
                f"Your spending is {direction} month over month. Average monthly spend: "
                f"{format_currency_rounded(average)}"
            ),
        )
    )

    # Peak and trough
    ranked = sorted(monthly, key=lambda m: m.total, reverse=True)
    highest, lowest = ranked[0], ranked[-1]
    if lowest.total > 0:
        variation = f"This {format_percent((highest.total / lowest.total - 1) * 100)} variation"
    else:
        variation = "This variation"
    insights.append(
        MonthlyInsight(
            title="Peak Analysis",
            narrative=(
                f"Highest: {highest.label} ({format_currency(highest.total)})\n"
                f"Lowest: {lowest.label} ({format_currency(lowest.total)})\n"
                f"Difference: {format_currency(highest.total - lowest.total)}\n\n"
                f"{variation} shows seasonal or lifestyle patterns."
            ),
        )
    )

    # Current month against the average
    diff = current.total - average
    sign = "+" if diff > 0 else ""
    if average > 0:
        position = "above" if diff > 0 else "below"
        deviation = f"You're {position} your average by {format_percent(abs(diff) / average * 100)}"
    else:
        deviation = "No spending recorded yet to compare against."
    narrative = (
        f"Average spend: {format_currency_rounded(average)}\n"
        f"Current month: {format_currency(current.total)}\n"
        f"Difference: {sign}{format_currency_rounded(diff)}\n\n{deviation}"
    )
    if income > 0:
        narrative += f"\nYour average month uses {format_percent(average / income * 100)} of your income."
    insights.append(MonthlyInsight(title="Monthly Average", narrative=narrative))

    # Top category share of the latest month
    if categories and current.total > 0:
        top = categories[0]
        share = top.total / current.total * 100
        insights.append(
            MonthlyInsight(
                title="Top Category Impact",
                narrative=(
                    f"{top.category} accounts for {format_percent(share)} of current month expenses.\n"
                    f"Amount: {format_currency(top.total)}\n\n"
                    "Focusing on this category alone could have the biggest impact on your budget."
                ),
            )
        )

    return insights
