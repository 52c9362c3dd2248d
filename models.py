"""Domain records shared by the store, the aggregations and the UI.

Records serialize with the camelCase field names used by the stored JSON
(``targetAmount``, ``currentAmount``, ``unlockedAt``, ``userId``) so data
written by earlier versions of the tracker loads unchanged.
"""

import datetime as dt
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_id() -> str:
    return uuid4().hex


class Category(str, Enum):
    FOOD = "Food"
    TRAVEL = "Travel"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    EDUCATION = "Education"
    OTHERS = "Others"

    @classmethod
    def _missing_(cls, value):
        # Anything outside the fixed set lands in the fallback bucket
        return cls.OTHERS

    @property
    def icon(self) -> str:
        return CATEGORY_ICONS[self]


CATEGORY_ICONS = {
    Category.FOOD: "🍔",
    Category.TRAVEL: "✈️",
    Category.SHOPPING: "🛒",
    Category.BILLS: "📄",
    Category.ENTERTAINMENT: "🎬",
    Category.HEALTH: "💊",
    Category.EDUCATION: "📚",
    Category.OTHERS: "📦",
}


def category_icon(value) -> str:
    """Icon for a category value; unknown labels get the ``Others`` icon."""
    return Category(value).icon


class Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Expense(Record):
    id: str = Field(default_factory=new_id)
    amount: float = Field(ge=0)
    category: Category = Category.OTHERS
    description: str = ""
    date: dt.date
    user_id: str = Field("", alias="userId")

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value):
        if value is None or value == "":
            return Category.OTHERS
        return Category(value)

    @field_validator("description", mode="before")
    @classmethod
    def _blank_description(cls, value):
        return "" if value is None else value


class Goal(Record):
    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=1)
    target_amount: float = Field(gt=0, alias="targetAmount")
    current_amount: float = Field(0.0, ge=0, alias="currentAmount")
    deadline: dt.date
    user_id: str = Field("", alias="userId")

    @property
    def is_completed(self) -> bool:
        return self.current_amount >= self.target_amount


class Achievement(Record):
    id: str
    title: str
    description: str
    icon: str
    unlocked_at: Optional[str] = Field(None, alias="unlockedAt")
    user_id: str = Field("", alias="userId")

    @property
    def is_unlocked(self) -> bool:
        return bool(self.unlocked_at)


# Fixed catalog, seeded per user on first load
ACHIEVEMENT_CATALOG = (
    {"id": "first_expense", "title": "First Step", "description": "Added your first expense", "icon": "🎯"},
    {"id": "budget_master", "title": "Budget Master", "description": "Stayed within budget for a week", "icon": "💰"},
    {"id": "savings_starter", "title": "Savings Starter", "description": "Created your first savings goal", "icon": "🌱"},
    {"id": "goal_achieved", "title": "Goal Crusher", "description": "Completed a savings goal", "icon": "🏆"},
    {"id": "expense_tracker", "title": "Tracker Pro", "description": "Logged 10 expenses", "icon": "📊"},
    {"id": "consistent_saver", "title": "Consistent Saver", "description": "Saved for 7 consecutive days", "icon": "⭐"},
)


def default_achievements(user_id: str) -> List[Achievement]:
    return [Achievement(user_id=user_id, **entry) for entry in ACHIEVEMENT_CATALOG]


class User(Record):
    id: str
    name: str
    email: str
    avatar: Optional[str] = None


class Account(Record):
    id: str = Field(default_factory=new_id)
    name: str
    email: str
    password: str

    def to_user(self) -> User:
        return User(id=self.id, name=self.name, email=self.email)
