import logging
from datetime import date, timedelta

from auth import AccountRegistry
from database import init_db
from finance_store import FinanceStore
from storage import get_store

DEMO_NAME = "Demo User"
DEMO_EMAIL = "demo@paisapal.app"
DEMO_PASSWORD = "demo123"
DEMO_INCOME = 50000

# (days ago, amount, category, description)
SAMPLE_EXPENSES = [
    (2, 450, "Food", "Groceries"),
    (4, 1200, "Bills", "Electricity bill"),
    (6, 350, "Travel", "Cab to office"),
    (9, 2499, "Shopping", "Running shoes"),
    (12, 599, "Entertainment", "Movie night"),
    (15, 800, "Health", "Pharmacy"),
    (33, 520, "Food", "Dinner out"),
    (36, 1150, "Bills", "Internet"),
    (41, 3000, "Education", "Online course"),
    (47, 700, "Travel", "Train tickets"),
    (64, 480, "Food", "Groceries"),
    (70, 1800, "Shopping", "Gift"),
]

# (name, target, saved, days until deadline)
SAMPLE_GOALS = [
    ("Emergency Fund", 100000, 35000, 180),
    ("Goa Trip", 25000, 20000, 60),
]


def seed_demo():
    init_db()
    store = get_store()
    registry = AccountRegistry(store)

    if registry.find(DEMO_EMAIL) is not None:
        print("Demo account already exists. Skipping seed.")
        return

    user = registry.signup(DEMO_NAME, DEMO_EMAIL, DEMO_PASSWORD)
    registry.logout()

    finance = FinanceStore(store, user.id)
    finance.set_income(DEMO_INCOME)
    today = date.today()
    for days_ago, amount, category, description in SAMPLE_EXPENSES:
        finance.add_expense(amount, category, today - timedelta(days=days_ago), description)
    for name, target, saved, days_left in SAMPLE_GOALS:
        goal = finance.add_goal(name, target, today + timedelta(days=days_left))
        finance.contribute_to_goal(goal.id, saved)

    print(f"Seeded demo account {DEMO_EMAIL} with {len(finance.expenses)} expenses and {len(finance.goals)} goals.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_demo()
