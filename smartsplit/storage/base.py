from typing import List, Protocol

from sqlmodel import SQLModel

from smartsplit.models.expense import Expense
from smartsplit.models.person import Person


class Snapshot(SQLModel):
    """Everything a ledger needs to rebuild itself."""
    people: List[Person] = []
    expenses: List[Expense] = []


class Store(Protocol):
    """Persistence strategy a Ledger writes through to.

    The ledger calls exactly one method per logical operation and only after
    the operation has passed validation. Implementations raise
    ``StorageError`` on failure.
    """

    def load(self) -> Snapshot: ...

    def save_person(self, person: Person) -> None: ...

    def delete_person(self, person_id: int) -> None: ...

    def save_expense(self, expense: Expense) -> None: ...

    def delete_expense(self, expense_id: int) -> None: ...

    def clear_expenses(self) -> None: ...

    def clear_all(self) -> None: ...

    def replace_all(self, snapshot: Snapshot) -> None: ...
