"""
finance_store.py
----------------
Per-user record store for expenses, savings goals, achievements and the
monthly income figure. Each mutation rewrites the whole affected collection
in the key-value store so a reload always sees a consistent snapshot.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from pydantic import ValidationError

import achievements as rules
from models import Achievement, Expense, Goal, default_achievements
from storage import KeyValueStore

logger = logging.getLogger(__name__)

EXPENSES_KEY = "paisapal_expenses_{user_id}"
GOALS_KEY = "paisapal_goals_{user_id}"
ACHIEVEMENTS_KEY = "paisapal_achievements_{user_id}"
INCOME_KEY = "paisapal_income_{user_id}"

# Fields a caller may never overwrite through update_*
_PROTECTED_FIELDS = ("id", "user_id", "userId")


def _load_records(raw, model, key: str) -> list:
    records = []
    for item in raw or []:
        try:
            records.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping malformed record in %s: %s", key, e)
    return records


class FinanceStore:
    """Holds the current user's collections and persists every change."""

    def __init__(
        self,
        store: KeyValueStore,
        user_id: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._clock = clock or datetime.now
        self.user_id: Optional[str] = None
        self.expenses: List[Expense] = []
        self.goals: List[Goal] = []
        self.achievements: List[Achievement] = []
        self.income: float = 0.0
        self.switch_user(user_id)

    # --- Session ---

    def switch_user(self, user_id: Optional[str]) -> None:
        """Drop everything in memory and load (or default) ``user_id``'s data."""
        self.user_id = user_id
        if user_id is None:
            self.expenses, self.goals, self.achievements, self.income = [], [], [], 0.0
            return

        self.expenses = _load_records(self._store.get(self._key(EXPENSES_KEY)), Expense, "expenses")
        self.goals = _load_records(self._store.get(self._key(GOALS_KEY)), Goal, "goals")

        saved_achievements = self._store.get(self._key(ACHIEVEMENTS_KEY))
        if saved_achievements:
            self.achievements = _load_records(saved_achievements, Achievement, "achievements")
        else:
            self.achievements = default_achievements(user_id)

        self.income = float(self._store.get(self._key(INCOME_KEY), 0) or 0)
        logger.info(
            "Loaded %d expenses and %d goals for user %s",
            len(self.expenses),
            len(self.goals),
            user_id,
        )

    def _key(self, template: str) -> str:
        return template.format(user_id=self.user_id)

    def _require_user(self, operation: str) -> bool:
        if self.user_id is None:
            logger.warning("%s ignored: no user is logged in", operation)
            return False
        return True

    # --- Persistence ---

    def _save_expenses(self):
        self._store.set(self._key(EXPENSES_KEY), [e.to_storage() for e in self.expenses])

    def _save_goals(self):
        self._store.set(self._key(GOALS_KEY), [g.to_storage() for g in self.goals])

    def _save_achievements(self):
        self._store.set(self._key(ACHIEVEMENTS_KEY), [a.to_storage() for a in self.achievements])

    # --- Income ---

    def set_income(self, value: float) -> None:
        value = float(value)
        if value < 0:
            raise ValueError("Income cannot be negative")
        self.income = value
        if self.user_id is not None:
            self._store.set(self._key(INCOME_KEY), value)

    # --- Expenses ---

    def add_expense(self, amount, category, date, description: str = "") -> Optional[Expense]:
        if not self._require_user("add_expense"):
            return None
        expense = Expense(
            amount=amount,
            category=category,
            date=date,
            description=description,
            user_id=self.user_id,
        )
        self.expenses = self.expenses + [expense]
        self._save_expenses()
        self._apply_rules(rules.EXPENSE_ADDED)
        return expense

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        return next((e for e in self.expenses if e.id == expense_id), None)

    def update_expense(self, expense_id: str, **changes) -> bool:
        current = self.get_expense(expense_id)
        if current is None or not self._require_user("update_expense"):
            return False
        updated = _merge(current, changes)
        self.expenses = [updated if e.id == expense_id else e for e in self.expenses]
        self._save_expenses()
        return True

    def delete_expense(self, expense_id: str) -> bool:
        if self.get_expense(expense_id) is None or not self._require_user("delete_expense"):
            return False
        self.expenses = [e for e in self.expenses if e.id != expense_id]
        self._save_expenses()
        return True

    # --- Goals ---

    def add_goal(self, name: str, target_amount, deadline) -> Optional[Goal]:
        if not self._require_user("add_goal"):
            return None
        goal = Goal(
            name=name,
            target_amount=target_amount,
            current_amount=0,
            deadline=deadline,
            user_id=self.user_id,
        )
        self.goals = self.goals + [goal]
        self._save_goals()
        self._apply_rules(rules.GOAL_ADDED)
        return goal

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        return next((g for g in self.goals if g.id == goal_id), None)

    def update_goal(self, goal_id: str, **changes) -> bool:
        current = self.get_goal(goal_id)
        if current is None or not self._require_user("update_goal"):
            return False
        updated = _merge(current, changes)
        self.goals = [updated if g.id == goal_id else g for g in self.goals]
        self._save_goals()
        self._apply_rules(rules.GOAL_FUNDED, goal=updated)
        return True

    def delete_goal(self, goal_id: str) -> bool:
        if self.get_goal(goal_id) is None or not self._require_user("delete_goal"):
            return False
        self.goals = [g for g in self.goals if g.id != goal_id]
        self._save_goals()
        return True

    def contribute_to_goal(self, goal_id: str, amount) -> bool:
        amount = float(amount)
        if amount <= 0:
            raise ValueError("Contribution must be greater than zero")
        goal = self.get_goal(goal_id)
        if goal is None:
            return False
        return self.update_goal(goal_id, current_amount=goal.current_amount + amount)

    # --- Achievements ---

    def unlock_achievement(self, achievement_id: str) -> bool:
        """Stamp ``unlockedAt`` once; later calls leave the timestamp alone."""
        if not self._require_user("unlock_achievement"):
            return False
        for idx, achievement in enumerate(self.achievements):
            if achievement.id != achievement_id:
                continue
            if achievement.is_unlocked:
                return False
            unlocked = achievement.model_copy(update={"unlocked_at": self._clock().isoformat()})
            self.achievements = self.achievements[:idx] + [unlocked] + self.achievements[idx + 1:]
            self._save_achievements()
            logger.info("User %s unlocked %s", self.user_id, achievement_id)
            return True
        return False

    def unlocked_achievements(self) -> List[Achievement]:
        return [a for a in self.achievements if a.is_unlocked]

    def _apply_rules(self, trigger: str, goal: Optional[Goal] = None) -> None:
        for achievement_id in rules.evaluate(trigger, self.expenses, self.goals, goal=goal):
            self.unlock_achievement(achievement_id)


def _merge(record, changes: dict):
    """Validate ``changes`` on top of ``record`` and return the new record."""
    data = record.model_dump()
    data.update({k: v for k, v in changes.items() if k not in _PROTECTED_FIELDS})
    return type(record).model_validate(data)
