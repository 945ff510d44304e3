from typing import Optional

from pydantic import field_validator
from sqlmodel import Field, SQLModel


class PersonBase(SQLModel):
    name: str
    emoji: str = ""

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("emoji")
    @classmethod
    def strip_emoji(cls, v: str) -> str:
        return v.strip()


class Person(PersonBase):
    id: int
    # derived from the expense set, see services.balance_service
    total_paid: float = 0.0
    total_owed: float = 0.0

    @property
    def balance(self) -> float:
        return self.total_paid - self.total_owed

    @property
    def label(self) -> str:
        return f"{self.emoji} {self.name}".strip()


class PersonRecord(SQLModel, table=True):
    __tablename__ = "person"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    emoji: str = ""
