import datetime as dt

import pytest

from database import make_session_factory
from finance_store import FinanceStore
from models import Expense, Goal
from storage import MemoryStore, SqlStore

NOW = dt.datetime(2026, 10, 18, 12, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def sql_store():
    return SqlStore(make_session_factory("sqlite://"))


@pytest.fixture(params=["memory", "sql"])
def any_store(request):
    if request.param == "memory":
        return MemoryStore()
    return SqlStore(make_session_factory("sqlite://"))


@pytest.fixture
def finance(memory_store, now):
    return FinanceStore(memory_store, "u1", clock=lambda: now)


@pytest.fixture
def make_expense():
    def _make(amount, category="Food", day=dt.date(2026, 10, 5), description=""):
        return Expense(amount=amount, category=category, date=day, description=description, user_id="u1")

    return _make


@pytest.fixture
def make_goal():
    def _make(target, current=0.0, deadline=dt.date(2026, 12, 31), name="Emergency Fund"):
        return Goal(name=name, target_amount=target, current_amount=current, deadline=deadline, user_id="u1")

    return _make
