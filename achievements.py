"""Badge unlock rules evaluated after each store mutation."""

from typing import List, Optional, Sequence

from models import Expense, Goal

EXPENSE_ADDED = "expense_added"
GOAL_ADDED = "goal_added"
GOAL_FUNDED = "goal_funded"

TRACKER_PRO_COUNT = 10

# Catalogued but no rule ever unlocks them
LOCKED_FOREVER = frozenset({"budget_master", "consistent_saver"})


def locked_forever(achievement_id: str) -> bool:
    return achievement_id in LOCKED_FOREVER


def evaluate(
    trigger: str,
    expenses: Sequence[Expense],
    goals: Sequence[Goal],
    goal: Optional[Goal] = None,
) -> List[str]:
    """
    Return the achievement ids whose condition holds for ``trigger``.

    The result may name badges that are already unlocked; unlocking is
    idempotent on the store side.
    """
    earned = []
    if trigger == EXPENSE_ADDED:
        if len(expenses) >= 1:
            earned.append("first_expense")
        if len(expenses) >= TRACKER_PRO_COUNT:
            earned.append("expense_tracker")
    elif trigger == GOAL_ADDED:
        if len(goals) >= 1:
            earned.append("savings_starter")
    elif trigger == GOAL_FUNDED:
        if goal is not None and goal.is_completed:
            earned.append("goal_achieved")
    else:
        raise ValueError(f"Unknown achievement trigger: {trigger}")
    return earned
