import datetime as dt

import pytest
from pydantic import ValidationError

from finance_store import FinanceStore
from models import Category

OCT_5 = dt.date(2026, 10, 5)


def test_records_persist_for_the_same_user(any_store, now):
    finance = FinanceStore(any_store, "u1", clock=lambda: now)
    expense = finance.add_expense(250, "Travel", OCT_5, "Metro card")
    goal = finance.add_goal("Bike", 40000, dt.date(2027, 3, 1))
    finance.set_income(30000)

    reloaded = FinanceStore(any_store, "u1")
    assert reloaded.expenses == [expense]
    assert reloaded.goals == [goal]
    assert reloaded.income == 30000
    assert {a.id for a in reloaded.unlocked_achievements()} == {"first_expense", "savings_starter"}


def test_stored_json_uses_camel_case(finance, memory_store):
    finance.add_goal("Bike", 40000, dt.date(2027, 3, 1))
    stored = memory_store.get("paisapal_goals_u1")[0]
    assert stored["targetAmount"] == 40000
    assert stored["currentAmount"] == 0
    assert stored["userId"] == "u1"


def test_switching_users_isolates_data(finance, memory_store):
    finance.add_expense(100, "Food", OCT_5)
    finance.set_income(1000)

    finance.switch_user("u2")
    assert finance.expenses == []
    assert finance.income == 0
    assert not finance.unlocked_achievements()

    finance.switch_user("u1")
    assert len(finance.expenses) == 1


def test_logged_out_store_ignores_writes(memory_store):
    finance = FinanceStore(memory_store)
    assert finance.add_expense(100, "Food", OCT_5) is None
    assert finance.add_goal("Bike", 100, OCT_5) is None
    finance.set_income(500)
    assert finance.income == 500
    for key in ("paisapal_expenses_None", "paisapal_goals_None", "paisapal_income_None"):
        assert memory_store.get(key) is None


def test_logout_clears_memory(finance):
    finance.add_expense(100, "Food", OCT_5)
    finance.switch_user(None)
    assert finance.expenses == []
    assert finance.achievements == []


def test_unknown_category_stored_as_others(finance):
    assert finance.add_expense(10, "Groceries", OCT_5).category is Category.OTHERS


def test_invalid_expense_leaves_state_untouched(finance, memory_store):
    with pytest.raises(ValidationError):
        finance.add_expense(-5, "Food", OCT_5)
    assert finance.expenses == []
    assert memory_store.get("paisapal_expenses_u1") is None


def test_update_expense(finance):
    expense = finance.add_expense(100, "Food", OCT_5)
    assert finance.update_expense(expense.id, amount=120, description="Lunch", id="other")
    updated = finance.get_expense(expense.id)
    assert updated.amount == 120
    assert updated.description == "Lunch"
    assert updated.user_id == "u1"


def test_update_with_invalid_values_raises(finance):
    expense = finance.add_expense(100, "Food", OCT_5)
    with pytest.raises(ValidationError):
        finance.update_expense(expense.id, amount=-1)
    assert finance.get_expense(expense.id).amount == 100


def test_missing_ids_return_false(finance):
    assert finance.update_expense("missing", amount=1) is False
    assert finance.delete_expense("missing") is False
    assert finance.update_goal("missing", name="x") is False
    assert finance.delete_goal("missing") is False
    assert finance.contribute_to_goal("missing", 10) is False


def test_delete_records(finance):
    expense = finance.add_expense(100, "Food", OCT_5)
    goal = finance.add_goal("Bike", 100, dt.date(2027, 1, 1))
    assert finance.delete_expense(expense.id)
    assert finance.delete_goal(goal.id)
    assert finance.expenses == []
    assert finance.goals == []


def test_contributions_complete_goal(finance, now):
    goal = finance.add_goal("Trip", 1000, dt.date(2027, 1, 1))
    assert finance.contribute_to_goal(goal.id, 600)
    assert not finance.get_goal(goal.id).is_completed
    assert "goal_achieved" not in {a.id for a in finance.unlocked_achievements()}

    assert finance.contribute_to_goal(goal.id, 400)
    assert finance.get_goal(goal.id).current_amount == 1000
    achieved = next(a for a in finance.achievements if a.id == "goal_achieved")
    assert achieved.unlocked_at == now.isoformat()


def test_contribution_must_be_positive(finance):
    goal = finance.add_goal("Trip", 1000, dt.date(2027, 1, 1))
    with pytest.raises(ValueError):
        finance.contribute_to_goal(goal.id, 0)
    assert finance.get_goal(goal.id).current_amount == 0


def test_tenth_expense_unlocks_tracker_pro(finance):
    for _ in range(9):
        finance.add_expense(10, "Food", OCT_5)
    assert "expense_tracker" not in {a.id for a in finance.unlocked_achievements()}
    finance.add_expense(10, "Food", OCT_5)
    assert "expense_tracker" in {a.id for a in finance.unlocked_achievements()}


def test_unlock_is_idempotent(memory_store):
    times = iter([dt.datetime(2026, 10, 1, 9), dt.datetime(2026, 10, 2, 9)])
    finance = FinanceStore(memory_store, "u1", clock=lambda: next(times))

    assert finance.unlock_achievement("first_expense") is True
    assert finance.unlock_achievement("first_expense") is False
    assert finance.unlock_achievement("no_such_badge") is False
    unlocked = finance.unlocked_achievements()
    assert [a.unlocked_at for a in unlocked] == ["2026-10-01T09:00:00"]


def test_negative_income_rejected(finance):
    with pytest.raises(ValueError):
        finance.set_income(-1)
    assert finance.income == 0


def test_malformed_records_are_skipped(memory_store, caplog):
    memory_store.set(
        "paisapal_expenses_u1",
        [{"amount": "lots"}, {"id": "e1", "amount": 10, "category": "Food", "date": "2026-10-05", "userId": "u1"}],
    )
    finance = FinanceStore(memory_store, "u1")
    assert [e.id for e in finance.expenses] == ["e1"]
    assert "Skipping malformed record" in caplog.text
