import datetime as dt
import math
from enum import Enum
from typing import List, Optional

from pydantic import field_validator
from sqlmodel import Field, SQLModel


class Category(str, Enum):
    FOOD = "food"
    TRANSPORTATION = "transportation"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    UTILITIES = "utilities"
    OTHER = "other"


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime) -> dt.datetime:
    """Read a naive datetime as UTC so stored instants stay comparable."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


class ExpenseBase(SQLModel):
    description: str
    amount: float
    payer_id: int
    participants: List[int]
    date: dt.date = Field(default_factory=dt.date.today)
    category: Category = Category.OTHER

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description must not be empty")
        return v

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("amount must be a positive number")
        return v

    @field_validator("participants")
    @classmethod
    def participants_unique(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("expense must be split between at least one person")
        if len(set(v)) != len(v):
            raise ValueError("participants must not repeat")
        return v


class Expense(ExpenseBase):
    id: int
    split_amount: float
    timestamp: dt.datetime = Field(default_factory=utcnow)

    @field_validator("timestamp")
    @classmethod
    def timestamp_aware(cls, v: dt.datetime) -> dt.datetime:
        return as_utc(v)


class ExpenseRecord(SQLModel, table=True):
    __tablename__ = "expense"

    id: Optional[int] = Field(default=None, primary_key=True)
    description: str
    amount: float
    payer_id: int = Field(foreign_key="person.id")
    date: dt.date
    category: str = Category.OTHER.value
    split_amount: float
    created_at: dt.datetime = Field(default_factory=utcnow)


class ExpenseShare(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    expense_id: int = Field(foreign_key="expense.id")
    person_id: int = Field(foreign_key="person.id")
    # keeps the participant order stable across a reload
    position: int = 0
