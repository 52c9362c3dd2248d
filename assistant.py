"""Rule-based finance assistant that answers canned questions from live data."""

import math
from datetime import datetime
from typing import List, NamedTuple, Optional, Sequence

from aggregations import (
    category_totals,
    current_month_total,
    goal_progress,
    goal_summary,
    savings_rate,
    transaction_stats,
)
from formatting import format_currency, format_currency_rounded, format_percent
from models import Expense, Goal

SUGGESTED_QUESTIONS = [
    "How much did I spend this month?",
    "What's my biggest expense category?",
    "Am I on track with my savings goals?",
    "Give me tips to save more money",
    "Analyze my spending patterns",
    "How can I improve my financial health?",
]

GOAL_STATUS_LABELS = {
    "completed": "✅ Completed",
    "overdue": "⚠️ Overdue",
    "due_today": "📈 In progress",
    "almost_there": "🔥 Almost there",
    "in_progress": "📈 In progress",
}


class HealthScore(NamedTuple):
    score: int
    emoji: str
    breakdown: List[str]
    strengths: List[str]
    improvements: List[str]
    action_plan: List[str]


def financial_health_score(
    income: float,
    month_total: float,
    goals: Sequence[Goal],
    expenses: Sequence[Expense],
) -> HealthScore:
    """Score 0-100 from savings rate, tracking habit and goal coverage."""
    score = 50
    breakdown, strengths, improvements, action_plan = [], [], [], []

    # Savings rate (max 25 points)
    rate = savings_rate(income, month_total)
    if rate is None:
        breakdown.append("Savings Rate: 0 (Income not set)")
        action_plan.append("Set your monthly income in Profile")
    elif rate >= 20:
        score += 25
        breakdown.append(f"Savings Rate: +25 ({format_percent(rate)} - Excellent!)")
        strengths.append("Maintaining healthy savings rate above 20%")
    elif rate >= 10:
        score += 15
        breakdown.append(f"Savings Rate: +15 ({format_percent(rate)} - Good)")
        improvements.append("Increase savings rate to 20%")
        action_plan.append("Reduce discretionary spending by 10%")
    elif rate > 0:
        score += 5
        breakdown.append(f"Savings Rate: +5 ({format_percent(rate)} - Needs work)")
        improvements.append("Savings rate is below recommended 10%")
        action_plan.append("Set up automatic savings transfer on payday")
    else:
        score -= 10
        breakdown.append("Savings Rate: -10 (Spending exceeds income!)")
        improvements.append("Critical: Expenses exceed income")
        action_plan.append("Immediately review and cut non-essential expenses")

    # Expense tracking (max 15 points)
    count = len(expenses)
    if count >= 20:
        score += 15
        breakdown.append("Expense Tracking: +15 (Excellent tracking!)")
        strengths.append("Consistent expense tracking habit")
    elif count >= 10:
        score += 10
        breakdown.append("Expense Tracking: +10 (Good tracking)")
    elif count >= 5:
        score += 5
        breakdown.append("Expense Tracking: +5 (Getting started)")
        improvements.append("Track expenses more consistently")
        action_plan.append("Log every expense, no matter how small")
    else:
        breakdown.append("Expense Tracking: 0 (Limited data)")
        action_plan.append("Start tracking all your daily expenses")

    # Goals (max 10 points)
    if len(goals) >= 3:
        score += 10
        breakdown.append("Financial Goals: +10 (Multiple goals set)")
        strengths.append("Clear financial goals established")
    elif goals:
        score += 5
        breakdown.append("Financial Goals: +5 (Goals in progress)")
        action_plan.append("Add more savings goals for different timeframes")
    else:
        breakdown.append("Financial Goals: 0 (No goals set)")
        improvements.append("No savings goals defined")
        action_plan.append("Create at least one savings goal")

    if score >= 80:
        emoji = "🌟"
    elif score >= 60:
        emoji = "😊"
    elif score >= 40:
        emoji = "😐"
    else:
        emoji = "😟"

    return HealthScore(min(100, max(0, score)), emoji, breakdown, strengths, improvements, action_plan)


def _monthly_answer(expenses, income, now) -> str:
    month_total = current_month_total(expenses, now)
    month_rows = [e for e in expenses if e.date.year == now.year and e.date.month == now.month]
    top = category_totals(month_rows)[:5]
    rate = savings_rate(income, month_total)

    parts = [f"📊 **Your Monthly Spending Analysis**\n\n**Total Spent This Month:** {format_currency(month_total)}"]
    if rate is not None:
        parts.append(
            f"**Monthly Income:** {format_currency(income)}\n"
            f"**Remaining Balance:** {format_currency(income - month_total)}\n"
            f"**Savings Rate:** {format_percent(rate)}"
        )
    else:
        parts.append("💡 *Tip: Set your monthly income in Profile to get better insights!*")

    if top and month_total > 0:
        lines = "\n".join(
            f"• {c.category}: {format_currency(c.total)} ({format_percent(c.total / month_total * 100)})"
            for c in top
        )
    else:
        lines = "No expenses recorded this month yet."
    parts.append(f"**Breakdown by Category:**\n{lines}")

    if month_total == 0:
        analysis = "You haven't recorded any expenses this month. Start tracking to get personalized insights!"
    elif rate is None:
        analysis = "Good job tracking your expenses! Set your income to get a complete financial picture."
    elif rate >= 20:
        analysis = "Excellent! You're maintaining a healthy savings rate above 20%. Keep up the great financial discipline!"
    elif rate > 0:
        analysis = (
            f"You're saving {format_percent(rate)} of your income. The recommended savings rate is 20%. "
            "Consider reducing expenses in your top spending categories."
        )
    else:
        analysis = (
            "⚠️ Warning: Your expenses are exceeding your income. This is unsustainable. "
            "Review your spending and identify non-essential expenses to cut."
        )
    parts.append(f"**My Analysis:**\n{analysis}")
    return "\n\n".join(parts)


def _category_answer(expenses) -> str:
    ranking = category_totals(expenses)[:5]
    if not ranking:
        return (
            "You haven't recorded any expenses yet. Start tracking your spending to see which categories "
            "consume most of your budget!"
        )
    total = transaction_stats(expenses).total
    top = ranking[0]
    top_pct = top.total / total * 100 if total > 0 else 0.0

    lines = "\n".join(
        f"{i}. **{c.category}**: {format_currency(c.total)} "
        f"({format_percent(c.total / total * 100 if total > 0 else 0.0)})"
        for i, c in enumerate(ranking, start=1)
    )
    if top_pct > 40:
        analysis = (
            f"Your {top.category} spending is quite high at {format_percent(top_pct)} of total expenses. "
            "Here are some suggestions:\n\n"
            f"• Review individual {top.category} transactions for unnecessary spending\n"
            f"• Set a specific budget limit for {top.category}\n"
            "• Look for alternatives or discounts\n"
            f"• Track {top.category} expenses more closely for a week"
        )
    else:
        analysis = (
            f"Your spending is well-distributed across categories. {top.category} leads at "
            f"{format_percent(top_pct)}, which is reasonable. Consider setting category-specific budgets "
            "to maintain this balance."
        )
    return (
        "🎯 **Your Top Spending Categories**\n\n"
        f"**#1 {top.category}:** {format_currency(top.total)} ({format_percent(top_pct)} of total)\n\n"
        f"**Full Category Ranking:**\n{lines}\n\n**My Analysis:**\n{analysis}"
    )


def _goals_answer(goals, now) -> str:
    if not goals:
        return (
            "🎯 **Savings Goals Status**\n\nYou don't have any savings goals set up yet!\n\n"
            "**Why Set Savings Goals?**\n• Gives your money a purpose\n• Motivates consistent saving\n"
            "• Helps prioritize spending decisions\n• Tracks progress toward dreams\n\n"
            "**Recommended First Goals:**\n1. **Emergency Fund** - 3-6 months of expenses\n"
            "2. **Short-term Goal** - Something achievable in 3-6 months\n"
            "3. **Long-term Goal** - Major purchase or investment\n\n"
            'Click on the "Goals" tab to create your first savings goal!'
        )

    summary = goal_summary(goals)
    blocks = []
    for goal in goals:
        progress = goal_progress(goal, now)
        if progress.days_left > 0:
            timing = f"Days left: {progress.days_left}"
        elif progress.days_left == 0:
            timing = "Due today!"
        else:
            timing = f"Overdue by {abs(progress.days_left)} days"
        block = (
            f"**{goal.name}** {GOAL_STATUS_LABELS[progress.status]}\n"
            f"   • Progress: {format_percent(progress.ratio * 100)} "
            f"({format_currency(goal.current_amount)} / {format_currency(goal.target_amount)})\n"
            f"   • {timing}"
        )
        if not progress.is_completed and progress.days_left > 0:
            block += f"\n   • Daily savings needed: {format_currency(math.ceil(progress.amount_left / progress.days_left))}"
        blocks.append(block)

    behind = [g for g in goals if not g.is_completed and goal_progress(g, now).days_left < 0]
    if behind:
        advice = "Some goals are overdue. Consider extending their deadlines or increasing contributions."
    else:
        advice = "Keep contributing regularly. Small, consistent deposits add up faster than occasional big ones."

    return (
        "🎯 **Savings Goals Analysis**\n\n"
        f"**Overall Progress:** {format_percent(summary.overall_pct)}\n"
        f"**Total Saved:** {format_currency(summary.total_saved)} / {format_currency(summary.total_target)}\n\n"
        "**Your Goals:**\n" + "\n\n".join(blocks) + f"\n\n**My Recommendations:**\n{advice}"
    )


def _tips_answer(expenses, income, now) -> str:
    ranking = category_totals(expenses)
    month_total = current_month_total(expenses, now)
    if ranking:
        first = (
            f"1. **Review {ranking[0].category} spending** - Your top category. Even 10% reduction saves "
            f"{format_currency_rounded(ranking[0].total * 0.1)}"
        )
    else:
        first = "1. **Start tracking expenses** - You can't improve what you don't measure"

    text = (
        "💡 **Personalized Money-Saving Tips**\n\n**Immediate Actions:**\n"
        f"{first}\n"
        f"2. **Apply the 24-hour rule** - Wait a day before non-essential purchases over {format_currency(500)}\n"
        "3. **Use cash for discretionary spending** - Physical money makes spending feel more real\n\n"
        "**Weekly Habits:**\n• Plan meals and shop with a list\n• Review your expenses every Sunday\n"
        "• Compare prices before buying\n\n"
        "**Monthly Strategies:**\n• Cancel subscriptions you don't use\n"
        "• Automate savings right after payday\n• Set category budgets for your top spending areas\n\n"
        "**Long-term Wealth Building:**\n• Build an emergency fund of 3-6 months of expenses\n"
        "• Start SIPs in diversified mutual funds\n• Review insurance and tax-saving options yearly"
    )
    rate = savings_rate(income, month_total)
    if rate is not None and rate < 20:
        gap = income * 0.2 - (income - month_total)
        text += (
            f"\n\n**Your Priority:** Increase savings rate from {format_percent(rate)} to 20% by reducing "
            f"spending by {format_currency_rounded(gap)}/month"
        )
    return text


def _pattern_answer(expenses) -> str:
    stats = transaction_stats(expenses)
    ranking = category_totals(expenses)[:5]

    if ranking:
        distribution = "\n".join(
            f"• **{c.category}**: {format_currency(c.total)} "
            f"({sum(1 for e in expenses if e.category.value == c.category)} transactions)"
            for c in ranking
        )
    else:
        distribution = "No expense data available yet."

    if stats.count >= 5:
        behaviour = [
            f"• Your typical spend per transaction is around {format_currency_rounded(stats.average)}",
            f'• Transactions above {format_currency_rounded(stats.average * 2)} should trigger a "think twice" moment',
            f"• {ranking[0].category} dominates your spending - focus optimization here",
        ]
        if stats.max > stats.average * 5:
            behaviour.append(
                f"• You have some large outlier expenses ({format_currency(stats.max)}) - review if these were necessary"
            )
        behaviour_text = "\n".join(behaviour)
    else:
        behaviour_text = "Add more expenses to unlock detailed pattern analysis!"

    if stats.count == 0:
        recommendations = "Start tracking your expenses to get personalized insights!"
    else:
        recommendations = (
            f"1. Set a daily spending limit of {format_currency_rounded(stats.average * 1.5)}\n"
            "2. Review transactions in your top category weekly\n"
            f"3. Flag any expense above {format_currency_rounded(stats.average * 3)} for review"
        )

    return (
        "📈 **Detailed Spending Pattern Analysis**\n\n**Transaction Statistics:**\n"
        f"• Total transactions: {stats.count}\n"
        f"• Average transaction: {format_currency_rounded(stats.average)}\n"
        f"• Largest expense: {format_currency(stats.max)}\n"
        f"• Smallest expense: {format_currency(stats.min)}\n"
        f"• Total spent (all time): {format_currency(stats.total)}\n\n"
        f"**Category Distribution:**\n{distribution}\n\n"
        f"**Behavioral Insights:**\n{behaviour_text}\n\n**Recommendations:**\n{recommendations}"
    )


def _health_answer(expenses, goals, income, now) -> str:
    health = financial_health_score(income, current_month_total(expenses, now), goals, expenses)
    strengths = "\n".join(f"✅ {s}" for s in health.strengths) or "Start tracking to identify your strengths!"
    improvements = "\n".join(f"⚠️ {i}" for i in health.improvements) or "Great job! Keep maintaining your current habits."
    return (
        "🏥 **Your Financial Health Report**\n\n"
        f"**Overall Health Score: {health.score}/100** {health.emoji}\n\n"
        "**Score Breakdown:**\n" + "\n".join(f"• {item}" for item in health.breakdown) + "\n\n"
        f"**Strengths:**\n{strengths}\n\n**Areas for Improvement:**\n{improvements}\n\n"
        "**Action Plan:**\n" + "\n".join(f"{i}. {a}" for i, a in enumerate(health.action_plan, start=1)) + "\n\n"
        "**Next Steps:**\n• Review your spending weekly using the Analytics dashboard\n"
        "• Set specific, measurable financial goals\n"
        "• Use the assistant regularly for personalized advice\n"
        "• Celebrate small wins to stay motivated!"
    )


def _overview_answer(expenses, goals, income, now, user_name) -> str:
    first_name = (user_name or "").split(" ")[0] or "there"
    month_total = current_month_total(expenses, now)
    if income > 0:
        money = (
            f"• Income: {format_currency(income)}\n"
            f"• Balance: {format_currency(income - month_total)}"
        )
    else:
        money = "• Set your income in Profile for better insights"
    if goals:
        goals_line = f"{len(goals)} active ({goal_summary(goals).overall_pct:.0f}% overall progress)"
    else:
        goals_line = "None set yet"
    questions = "\n".join(f"• {q}" for q in SUGGESTED_QUESTIONS)
    return (
        f"👋 **Hello {first_name}!**\n\n"
        "I'm your Financial Advisor. Here's a quick overview of your finances:\n\n"
        f"**This Month:**\n• Spent: {format_currency(month_total)}\n{money}\n\n"
        f"**Goals:** {goals_line}\n\n**How can I help you today?**\n{questions}"
    )


def assistant_response(
    query: str,
    expenses: Sequence[Expense],
    goals: Sequence[Goal],
    income: float,
    now: Optional[datetime] = None,
    user_name: Optional[str] = None,
) -> str:
    """Route the question by keyword and answer from the user's own numbers."""
    now = now or datetime.now()
    expenses, goals, income = list(expenses), list(goals), float(income or 0)
    lowered = (query or "").lower()

    if any(k in lowered for k in ("spent this month", "spend this month", "monthly spending")):
        return _monthly_answer(expenses, income, now)
    if any(k in lowered for k in ("biggest expense", "top category", "spending category")):
        return _category_answer(expenses)
    if any(k in lowered for k in ("savings goal", "goal", "on track")):
        return _goals_answer(goals, now)
    if any(k in lowered for k in ("tips", "save more", "advice")):
        return _tips_answer(expenses, income, now)
    if any(k in lowered for k in ("pattern", "analyze", "analysis")):
        return _pattern_answer(expenses)
    if any(k in lowered for k in ("financial health", "improve", "better")):
        return _health_answer(expenses, goals, income, now)
    return _overview_answer(expenses, goals, income, now, user_name)
