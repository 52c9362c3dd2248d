import logging
import os
import sys
from datetime import date, datetime
from pathlib import Path

import pandas as pd
import streamlit as st
from pydantic import ValidationError

# Add current directory to path
sys.path.append(str(Path(__file__).parent))

from aggregations import (
    _prep,
    category_monthly_totals,
    category_totals,
    current_month_total,
    goal_progress,
    goal_summary,
    month_expenses,
    monthly_totals,
    recent_expenses,
    transaction_stats,
    weekly_totals,
)
from assistant import GOAL_STATUS_LABELS, SUGGESTED_QUESTIONS, assistant_response, financial_health_score
from auth import AccountRegistry
from dashboard import (
    category_donut,
    category_month_bars,
    goal_progress_bars,
    monthly_bars,
    render_kpis,
    weekly_trend,
)
from finance_store import FinanceStore
from formatting import format_currency, format_currency_rounded, format_date, format_percent
from insights import generate_insights, generate_monthly_insights
from models import Category, category_icon, new_id
from reports import build_text_report, category_reports, monthly_reports, report_filename
from storage import get_store

# --- Configuration ---
st.set_page_config(page_title="PaisaPal", layout="wide", page_icon="💰")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

SHOW_DEMO_CREDENTIALS = os.environ.get("SHOW_DEMO_CREDENTIALS", "").lower() in ("1", "true", "yes")
DEMO_EMAIL = "demo@paisapal.app"
DEMO_PASSWORD = "demo123"
CATEGORY_OPTIONS = [c.value for c in Category]
INSIGHT_STYLES = {"warning": st.warning, "success": st.success, "tip": st.info, "info": st.info}


# --- Storage ---
@st.cache_resource
def get_registry_store():
    return get_store()


store = get_registry_store()

if "finance" not in st.session_state:
    st.session_state.session_id = new_id()
    st.session_state.finance = FinanceStore(store)
    st.session_state.chat = []

registry = AccountRegistry(store, st.session_state.session_id)


def get_finance() -> FinanceStore:
    return st.session_state.finance


def start_session(user):
    st.session_state.user = user
    st.session_state.chat = []
    get_finance().switch_user(user.id)


# --- Authentication ---
def check_login():
    """Login / signup page; returns True once a user is in session."""
    if st.session_state.get("user") is None:
        remembered = registry.current_user()
        if remembered is not None:
            start_session(remembered)

    if st.session_state.get("user") is not None:
        return True

    st.title("💰 PaisaPal")
    st.caption("Track expenses, reach savings goals and understand your money.")

    login_tab, signup_tab = st.tabs(["🔐 Login", "✨ Sign up"])
    with login_tab:
        with st.form("login_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Login", use_container_width=True)
        if submitted:
            user = registry.login(email, password)
            if user is None:
                st.error("❌ Invalid email or password")
            else:
                start_session(user)
                st.success(f"✅ Welcome back, {user.name}!")
                st.rerun()
        if SHOW_DEMO_CREDENTIALS:
            st.info(f"Demo account: {DEMO_EMAIL} / {DEMO_PASSWORD}")

    with signup_tab:
        with st.form("signup_form"):
            name = st.text_input("Name")
            email = st.text_input("Email", key="signup_email")
            password = st.text_input("Password", type="password", key="signup_password")
            submitted = st.form_submit_button("Create account", use_container_width=True)
        if submitted:
            if not name.strip() or not email.strip() or not password:
                st.error("Please fill in every field.")
            else:
                user = registry.signup(name, email, password)
                if user is None:
                    st.error("An account with this email already exists.")
                else:
                    start_session(user)
                    st.rerun()

    return False


def run_action(action, success_message):
    """Run a store mutation, showing validation problems instead of raising."""
    finance = get_finance()
    before = {a.id for a in finance.unlocked_achievements()}
    try:
        result = action()
    except (ValidationError, ValueError) as e:
        st.error(f"Could not save: {e}")
        return False
    if result is False or result is None:
        st.error("That record no longer exists.")
        return False
    for achievement in finance.unlocked_achievements():
        if achievement.id not in before:
            st.toast(f"{achievement.icon} Achievement unlocked: {achievement.title}")
            st.balloons()
    st.success(success_message)
    return True


if not check_login():
    st.stop()

# --- Main App ---
finance = get_finance()
user = st.session_state.user
now = datetime.now()
expenses, goals, income = finance.expenses, finance.goals, finance.income

with st.sidebar:
    st.header(f"👋 {user.name}")
    st.caption(user.email)
    st.metric("This Month", format_currency(current_month_total(expenses, now)))
    st.metric("Monthly Income", format_currency(income) if income > 0 else "Not set")
    if st.button("🚪 Logout", use_container_width=True):
        registry.logout()
        finance.switch_user(None)
        st.session_state.user = None
        st.session_state.chat = []
        st.rerun()

tab1, tab2, tab3, tab4, tab5, tab6, tab7 = st.tabs(
    ["🏠 Dashboard", "💳 Expenses", "🎯 Goals", "📈 Analytics", "📄 Reports", "🤖 Assistant", "👤 Profile"]
)

with tab1:
    st.header(f"Welcome back, {user.name.split()[0]}!")
    render_kpis(expenses, goals, income, len(finance.unlocked_achievements()), now)

    if not expenses:
        st.info("No expenses yet. Add your first one in the Expenses tab to unlock insights.")
    else:
        col1, col2 = st.columns([3, 2])
        with col1:
            st.plotly_chart(
                category_donut(category_totals(month_expenses(expenses, now.year, now.month)), "This Month by Category"),
                use_container_width=True,
            )
        with col2:
            st.subheader("Recent Expenses")
            for e in recent_expenses(expenses):
                st.markdown(
                    f"{category_icon(e.category)} **{e.description or e.category.value}** · "
                    f"{format_currency(e.amount)} · {format_date(e.date)}"
                )

        st.subheader("💡 Top Insights")
        for insight in generate_insights(expenses, income, goals, now)[:3]:
            INSIGHT_STYLES[insight.kind](f"**{insight.title}**: {insight.narrative}")

    if goals:
        st.subheader("🎯 Goals")
        for g in goals[:3]:
            progress = goal_progress(g, now)
            st.caption(f"{g.name}: {format_currency(g.current_amount)} of {format_currency(g.target_amount)}")
            st.progress(progress.progress_pct / 100)

with tab2:
    st.header("💳 Expenses")

    with st.expander("➕ Add Expense", expanded=not expenses):
        with st.form("add_expense", clear_on_submit=True):
            col1, col2 = st.columns(2)
            amount = col1.number_input("Amount (₹)", min_value=0.0, step=10.0)
            category = col2.selectbox("Category", CATEGORY_OPTIONS)
            spent_on = col1.date_input("Date", value=date.today())
            description = col2.text_input("Description")
            if st.form_submit_button("Add Expense"):
                if amount <= 0:
                    st.error("Please enter an amount greater than zero.")
                else:
                    if run_action(
                        lambda: finance.add_expense(amount, category, spent_on, description),
                        "Expense added!",
                    ):
                        st.rerun()

    if not expenses:
        st.info("No expenses recorded.")
    else:
        col1, col2 = st.columns(2)
        search_term = col1.text_input("Search")
        sel_cat = col2.selectbox("Category filter", ["All"] + CATEGORY_OPTIONS)

        df = _prep(expenses)
        if search_term:
            df = df[df["Description"].str.contains(search_term, case=False, regex=False)]
        if sel_cat != "All":
            df = df[df["Category"] == sel_cat]
        df = df.sort_values("Date", ascending=False, kind="stable")

        st.dataframe(
            df[["Date", "Description", "Category", "Amount"]].assign(Date=df["Date"].dt.date),
            use_container_width=True,
            hide_index=True,
        )
        st.caption(f"{len(df)} expenses · {format_currency(df['Amount'].sum())}")

        st.subheader("Edit or Delete")
        labels = {
            e.id: f"{format_date(e.date)} · {e.description or e.category.value} · {format_currency(e.amount)}"
            for e in recent_expenses(expenses, limit=len(expenses))
        }
        selected_id = st.selectbox("Select expense", list(labels), format_func=labels.get)
        selected = finance.get_expense(selected_id)
        if selected is not None:
            with st.form("edit_expense"):
                col1, col2 = st.columns(2)
                new_amount = col1.number_input("Amount (₹)", min_value=0.0, value=float(selected.amount), step=10.0)
                new_category = col2.selectbox(
                    "Category", CATEGORY_OPTIONS, index=CATEGORY_OPTIONS.index(selected.category.value)
                )
                new_date = col1.date_input("Date", value=selected.date)
                new_description = col2.text_input("Description", value=selected.description)
                save_col, delete_col = st.columns(2)
                save = save_col.form_submit_button("💾 Save Changes")
                delete = delete_col.form_submit_button("🗑️ Delete")
            if save:
                if new_amount <= 0:
                    st.error("Please enter an amount greater than zero.")
                elif run_action(
                    lambda: finance.update_expense(
                        selected_id,
                        amount=new_amount,
                        category=new_category,
                        date=new_date,
                        description=new_description,
                    ),
                    "Saved!",
                ):
                    st.rerun()
            if delete and run_action(lambda: finance.delete_expense(selected_id), "Deleted."):
                st.rerun()

with tab3:
    st.header("🎯 Savings Goals")
    summary = goal_summary(goals)
    col1, col2, col3 = st.columns(3)
    col1.metric("Total Target", format_currency(summary.total_target))
    col2.metric("Total Saved", format_currency(summary.total_saved), delta=format_percent(summary.overall_pct))
    col3.metric("Completed", f"{summary.completed}/{len(goals)}")

    with st.expander("➕ New Goal", expanded=not goals):
        with st.form("add_goal", clear_on_submit=True):
            name = st.text_input("Goal name", placeholder="e.g., Emergency fund")
            col1, col2 = st.columns(2)
            target = col1.number_input("Target amount (₹)", min_value=0.0, step=500.0)
            deadline = col2.date_input("Deadline", value=date.today())
            if st.form_submit_button("Create Goal"):
                if not name.strip() or target <= 0:
                    st.error("Please enter a goal name and a target greater than zero.")
                elif run_action(lambda: finance.add_goal(name.strip(), target, deadline), "Goal created!"):
                    st.rerun()

    for g in goals:
        progress = goal_progress(g, now)
        with st.container(border=True):
            col1, col2 = st.columns([3, 1])
            col1.subheader(g.name)
            col2.write(GOAL_STATUS_LABELS[progress.status])
            st.progress(progress.progress_pct / 100)
            st.caption(
                f"{format_currency(g.current_amount)} of {format_currency(g.target_amount)} "
                f"({format_percent(progress.progress_pct)}) · due {format_date(g.deadline)}"
            )
            if not progress.is_completed and progress.days_left > 0:
                st.caption(
                    f"{progress.days_left} days left · save {format_currency_rounded(progress.daily_amount_needed)}/day"
                )

            with st.form(f"contribute_{g.id}", clear_on_submit=True):
                col1, col2, col3 = st.columns([2, 1, 1])
                contribution = col1.number_input("Add money (₹)", min_value=0.0, step=100.0, key=f"amt_{g.id}")
                add_money = col2.form_submit_button("💰 Contribute")
                remove = col3.form_submit_button("🗑️ Delete")
            if add_money:
                if contribution <= 0:
                    st.error("Contribution must be greater than zero.")
                elif run_action(lambda: finance.contribute_to_goal(g.id, contribution), "Contribution added!"):
                    st.rerun()
            if remove and run_action(lambda: finance.delete_goal(g.id), "Goal deleted."):
                st.rerun()

            with st.expander("✏️ Edit goal"):
                with st.form(f"edit_{g.id}"):
                    new_name = st.text_input("Name", value=g.name)
                    new_target = st.number_input("Target (₹)", min_value=0.0, value=float(g.target_amount))
                    new_deadline = st.date_input("Deadline", value=g.deadline)
                    edited = st.form_submit_button("Save")
                if edited:
                    if not new_name.strip() or new_target <= 0:
                        st.error("Please enter a goal name and a target greater than zero.")
                    elif run_action(
                        lambda: finance.update_goal(
                            g.id, name=new_name.strip(), target_amount=new_target, deadline=new_deadline
                        ),
                        "Goal updated!",
                    ):
                        st.rerun()

with tab4:
    st.header("📈 Analytics")
    if not expenses:
        st.info("Need expense data to generate analytics.")
    else:
        range_label = st.selectbox("Timeframe", ["Last 3 months", "Last 6 months", "Last 12 months", "All data"], index=1)
        last_n = {"Last 3 months": 3, "Last 6 months": 6, "Last 12 months": 12}.get(range_label)

        stats = transaction_stats(expenses)
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Transactions", stats.count)
        col2.metric("Average", format_currency_rounded(stats.average))
        col3.metric("Largest", format_currency(stats.max))
        col4.metric("Total Spent", format_currency(stats.total))

        st.subheader("💡 Smart Insights")
        for insight in generate_insights(expenses, income, goals, now):
            text = f"**{insight.title}**: {insight.narrative}"
            if insight.recommendation:
                text += f"\n\n👉 {insight.recommendation}"
            INSIGHT_STYLES[insight.kind](text)

        monthly = monthly_totals(expenses, last_n=last_n)
        latest = [e for e in expenses if monthly and e.date.strftime("%Y-%m") == monthly[-1].key]
        st.subheader("📅 Monthly Insights")
        for entry in generate_monthly_insights(monthly, category_totals(latest), income):
            st.markdown(f"**{entry.title}**: {entry.narrative}")

        col1, col2 = st.columns(2)
        col1.plotly_chart(monthly_bars(monthly, income), use_container_width=True)
        col2.plotly_chart(category_donut(category_totals(expenses)), use_container_width=True)
        st.plotly_chart(category_month_bars(category_monthly_totals(expenses, last_n=last_n)), use_container_width=True)
        st.plotly_chart(weekly_trend(weekly_totals(expenses, last_n=12)), use_container_width=True)
        if goals:
            st.plotly_chart(goal_progress_bars(goals, now), use_container_width=True)

with tab5:
    st.header("📄 Financial Reports")
    if not expenses:
        st.info("Reports appear once you have recorded expenses.")
    else:
        st.subheader("Monthly Summary")
        monthly_df = pd.DataFrame(monthly_reports(expenses, income))
        st.dataframe(
            monthly_df[["month", "expenses", "savings", "income", "savings_rate"]],
            use_container_width=True,
            hide_index=True,
        )

        st.subheader("Category Breakdown")
        trend_icons = {"up": "📈", "down": "📉", "flat": "➖"}
        for row in category_reports(expenses, now):
            st.markdown(
                f"{category_icon(row.category)} **{row.category}**: {format_currency(row.amount)} "
                f"({format_percent(row.percentage)}) {trend_icons[row.trend]}"
            )

    st.download_button(
        "⬇️ Download Report",
        data=build_text_report(expenses, income, goals, now),
        file_name=report_filename(now),
        mime="text/plain",
    )

with tab6:
    st.header("🤖 PaisaPal Assistant")
    health = financial_health_score(income, current_month_total(expenses, now), goals, expenses)
    st.metric("Financial Health", f"{health.emoji} {health.score}/100")

    cols = st.columns(3)
    asked = None
    for idx, question in enumerate(SUGGESTED_QUESTIONS):
        if cols[idx % 3].button(question, key=f"suggest_{idx}", use_container_width=True):
            asked = question

    for message in st.session_state.chat:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    prompt = st.chat_input("Ask about your spending, goals or savings") or asked
    if prompt:
        answer = assistant_response(prompt, expenses, goals, income, now=now, user_name=user.name)
        st.session_state.chat.append({"role": "user", "content": prompt})
        st.session_state.chat.append({"role": "assistant", "content": answer})
        st.rerun()

with tab7:
    st.header("👤 Profile")
    st.write(f"**Name:** {user.name}")
    st.write(f"**Email:** {user.email}")

    with st.form("income_form"):
        new_income = st.number_input("Monthly income (₹)", min_value=0.0, value=float(income), step=1000.0)
        if st.form_submit_button("Save Income"):
            try:
                finance.set_income(new_income)
            except ValueError as e:
                st.error(str(e))
            else:
                st.success("Income saved!")
                st.rerun()

    st.subheader("🏆 Achievements")
    cols = st.columns(3)
    for idx, achievement in enumerate(finance.achievements):
        with cols[idx % 3].container(border=True):
            if achievement.is_unlocked:
                st.markdown(f"### {achievement.icon} {achievement.title}")
                st.caption(f"{achievement.description} · unlocked {format_date(achievement.unlocked_at[:10])}")
            else:
                st.markdown(f"### 🔒 {achievement.title}")
                st.caption(achievement.description)
