import pytest

from achievements import (
    EXPENSE_ADDED,
    GOAL_ADDED,
    GOAL_FUNDED,
    LOCKED_FOREVER,
    evaluate,
    locked_forever,
)
from models import ACHIEVEMENT_CATALOG


def test_first_expense_and_tracker_pro(make_expense):
    assert evaluate(EXPENSE_ADDED, [make_expense(1)], []) == ["first_expense"]
    ten = [make_expense(1) for _ in range(10)]
    assert evaluate(EXPENSE_ADDED, ten, []) == ["first_expense", "expense_tracker"]


def test_savings_starter(make_goal):
    assert evaluate(GOAL_ADDED, [], [make_goal(100)]) == ["savings_starter"]
    assert evaluate(GOAL_ADDED, [], []) == []


def test_goal_achieved_only_for_completed_goal(make_goal):
    done = make_goal(100, 100)
    assert evaluate(GOAL_FUNDED, [], [done], goal=done) == ["goal_achieved"]
    partial = make_goal(100, 50)
    assert evaluate(GOAL_FUNDED, [], [partial], goal=partial) == []


def test_unknown_trigger():
    with pytest.raises(ValueError):
        evaluate("expense_deleted", [], [])


def test_unreachable_badges_are_catalogued():
    catalog_ids = {entry["id"] for entry in ACHIEVEMENT_CATALOG}
    assert LOCKED_FOREVER <= catalog_ids
    assert locked_forever("budget_master")
    assert not locked_forever("first_expense")
