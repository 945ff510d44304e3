import logging
from typing import Dict, Optional

from smartsplit.models.expense import Expense
from smartsplit.models.person import Person
from smartsplit.storage.base import Snapshot

logger = logging.getLogger(__name__)


class MemoryStore:
    """Keeps private copies of every record; nothing survives the process."""

    def __init__(self, snapshot: Optional[Snapshot] = None):
        self._people: Dict[int, Person] = {}
        self._expenses: Dict[int, Expense] = {}
        if snapshot is not None:
            self.replace_all(snapshot)

    def load(self) -> Snapshot:
        return Snapshot(
            people=[p.model_copy(deep=True) for p in self._people.values()],
            expenses=[e.model_copy(deep=True) for e in self._expenses.values()],
        )

    def save_person(self, person: Person) -> None:
        self._people[person.id] = person.model_copy(deep=True)

    def delete_person(self, person_id: int) -> None:
        self._people.pop(person_id, None)

    def save_expense(self, expense: Expense) -> None:
        self._expenses[expense.id] = expense.model_copy(deep=True)

    def delete_expense(self, expense_id: int) -> None:
        self._expenses.pop(expense_id, None)

    def clear_expenses(self) -> None:
        self._expenses.clear()

    def clear_all(self) -> None:
        self._people.clear()
        self._expenses.clear()

    def replace_all(self, snapshot: Snapshot) -> None:
        self._people = {p.id: p.model_copy(deep=True) for p in snapshot.people}
        self._expenses = {e.id: e.model_copy(deep=True) for e in snapshot.expenses}
        logger.debug("memory store now holds %d people, %d expenses", len(self._people), len(self._expenses))
