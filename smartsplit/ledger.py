import datetime as dt
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from pydantic import ValidationError as RecordError
from sqlmodel import SQLModel

from smartsplit.errors import ConflictError, NotFoundError, ValidationError
from smartsplit.models.expense import Category, Expense, ExpenseBase, utcnow
from smartsplit.models.person import Person, PersonBase
from smartsplit.models.settlement import Settlement
from smartsplit.services.balance_service import (
    SplitPolicy,
    compute_balances,
    recalculate_balances,
    split_amount_for,
)
from smartsplit.services.settlement_service import suggest_settlements
from smartsplit.services.stats_service import ExpenseStats, Suggestion, expense_stats, smart_suggestions
from smartsplit.storage.base import Snapshot, Store
from smartsplit.storage.memory import MemoryStore

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=SQLModel)


def _validated(model: Type[M], data: Dict[str, Any]) -> M:
    try:
        return model.model_validate(data)
    except RecordError as e:
        err = e.errors()[0]
        field = ".".join(str(part) for part in err["loc"])
        msg = err["msg"].removeprefix("Value error, ")
        raise ValidationError(f"{field}: {msg}" if field else msg) from e


class Ledger:
    """People and expenses of one group, plus their derived balances.

    Every mutation is validated completely, written to the store, and only
    then applied to the in-memory state, so a rejected or failed operation
    leaves the ledger exactly as it was. Balances are rebuilt from scratch
    after each mutation. The ledger holds no lock: callers sharing one
    instance between threads must serialize access themselves.
    """

    def __init__(self, store: Optional[Store] = None, split_policy: SplitPolicy = SplitPolicy.IGNORE):
        self.store: Store = store if store is not None else MemoryStore()
        self.split_policy = SplitPolicy(split_policy)
        self._people: List[Person] = []
        self._expenses: List[Expense] = []
        self._next_person_id = 1
        self._next_expense_id = 1

    # ---------- lifecycle ----------

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any], store: Optional[Store] = None,
                      split_policy: SplitPolicy = SplitPolicy.IGNORE) -> "Ledger":
        ledger = cls(store=store, split_policy=split_policy)
        ledger.import_data(data)
        return ledger

    def load(self) -> "Ledger":
        snapshot = self.store.load()
        self._replace(snapshot.people, snapshot.expenses)
        logger.info("ledger loaded: %d people, %d expenses", len(self._people), len(self._expenses))
        return self

    def serialize(self) -> Dict[str, Any]:
        self.recalculate_balances()
        return Snapshot(people=self._people, expenses=self._expenses).model_dump(mode="json")

    def import_data(self, data: Dict[str, Any]) -> None:
        """Replace all people and expenses with a serialized snapshot."""
        people = [_validated(Person, dict(raw)) for raw in data.get("people", [])]
        expenses = []
        for raw in data.get("expenses", []):
            raw = dict(raw)
            base = _validated(ExpenseBase, raw)
            if raw.get("split_amount") is None:
                raw["split_amount"] = split_amount_for(base.amount, len(base.participants), self.split_policy)
            if raw.get("timestamp") is None:
                raw["timestamp"] = utcnow()
            expenses.append(_validated(Expense, raw))
        self._check_snapshot(people, expenses)

        self.store.replace_all(Snapshot(people=people, expenses=expenses))
        self._replace(people, expenses)
        logger.info("imported %d people and %d expenses", len(people), len(expenses))

    def clear_all(self) -> None:
        self.store.clear_all()
        self._replace([], [])
        logger.info("ledger cleared")

    def _replace(self, people: List[Person], expenses: List[Expense]) -> None:
        self._people = list(people)
        self._expenses = list(expenses)
        self._next_person_id = max((p.id for p in self._people), default=0) + 1
        self._next_expense_id = max((e.id for e in self._expenses), default=0) + 1
        self.recalculate_balances()

    def _check_snapshot(self, people: List[Person], expenses: List[Expense]) -> None:
        seen_names = set()
        person_ids = set()
        for p in people:
            if p.id in person_ids:
                raise ValidationError(f"duplicate person id {p.id}", p.id)
            key = p.name.casefold()
            if key in seen_names:
                raise ValidationError(f"duplicate person name {p.name!r}", p.id)
            person_ids.add(p.id)
            seen_names.add(key)
        expense_ids = set()
        for e in expenses:
            if e.id in expense_ids:
                raise ValidationError(f"duplicate expense id {e.id}", e.id)
            expense_ids.add(e.id)
            self._check_references(e.payer_id, e.participants, person_ids)

    # ---------- read accessors ----------
    # readers get copies; edits must go through the mutators below.

    @property
    def people(self) -> Tuple[Person, ...]:
        return tuple(p.model_copy(deep=True) for p in self._people)

    @property
    def expenses(self) -> Tuple[Expense, ...]:
        return tuple(e.model_copy(deep=True) for e in self._expenses)

    def get_person(self, person_id: int) -> Person:
        return self._person(person_id).model_copy(deep=True)

    def get_expense(self, expense_id: int) -> Expense:
        return self._expense(expense_id).model_copy(deep=True)

    def _person(self, person_id: int) -> Person:
        for p in self._people:
            if p.id == person_id:
                return p
        raise NotFoundError(f"person {person_id} not found", person_id)

    def _expense(self, expense_id: int) -> Expense:
        for e in self._expenses:
            if e.id == expense_id:
                return e
        raise NotFoundError(f"expense {expense_id} not found", expense_id)

    def balances(self) -> Dict[int, float]:
        self.recalculate_balances()
        return compute_balances(self._people)

    def total_expenses(self) -> float:
        return sum(e.amount for e in self._expenses)

    def expenses_by_date(self) -> List[Expense]:
        return sorted(self.expenses, key=lambda e: e.date, reverse=True)

    def recent_expenses(self, limit: int = 5) -> List[Expense]:
        return sorted(self.expenses, key=lambda e: e.timestamp, reverse=True)[:limit]

    def settlements(self) -> List[Settlement]:
        names = {p.id: p.name for p in self._people}
        plan = suggest_settlements(self.balances())
        for s in plan:
            s.from_name = names.get(s.from_id)
            s.to_name = names.get(s.to_id)
        return plan

    def stats(self) -> ExpenseStats:
        self.recalculate_balances()
        return expense_stats(self.people, self._expenses)

    def suggestions(self) -> List[Suggestion]:
        self.recalculate_balances()
        return smart_suggestions(self._people, self._expenses)

    # ---------- people ----------

    def add_person(self, name: str, emoji: str = "") -> Person:
        base = _validated(PersonBase, {"name": name, "emoji": emoji})
        self._check_unique_name(base.name)
        person = Person(id=self._next_person_id, name=base.name, emoji=base.emoji)

        self.store.save_person(person)
        self._people.append(person)
        self._next_person_id += 1
        logger.debug("added person %s (%s)", person.id, person.name)
        return person.model_copy(deep=True)

    def update_person(self, person_id: int, name: str, emoji: str = "") -> Person:
        person = self._person(person_id)
        base = _validated(PersonBase, {"name": name, "emoji": emoji})
        self._check_unique_name(base.name, exclude_id=person_id)

        self.store.save_person(person.model_copy(update={"name": base.name, "emoji": base.emoji}))
        person.name = base.name
        person.emoji = base.emoji
        logger.debug("updated person %s", person_id)
        return person.model_copy(deep=True)

    def delete_person(self, person_id: int) -> None:
        person = self._person(person_id)
        if any(self._involves(e, person_id) for e in self._expenses):
            raise ConflictError(
                f"{person.name} is involved in one or more expenses. Remove those expenses first.",
                person_id,
            )

        self.store.delete_person(person_id)
        self._people.remove(person)
        logger.debug("deleted person %s", person_id)

    def _check_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        key = name.casefold()
        for p in self._people:
            if p.id != exclude_id and p.name.casefold() == key:
                raise ValidationError(f"{name!r} already exists", p.id)

    @staticmethod
    def _involves(e: Expense, person_id: int) -> bool:
        return e.payer_id == person_id or person_id in e.participants

    # ---------- expenses ----------

    def add_expense(
        self,
        description: str,
        amount: float,
        payer_id: int,
        participants: Iterable[int],
        date: Optional[dt.date] = None,
        category: Category = Category.OTHER,
    ) -> Expense:
        base = self._expense_fields(description, amount, payer_id, participants, date, category)
        expense = Expense(
            **base.model_dump(),
            id=self._next_expense_id,
            split_amount=split_amount_for(base.amount, len(base.participants), self.split_policy),
            timestamp=utcnow(),
        )

        self.store.save_expense(expense)
        self._expenses.append(expense)
        self._next_expense_id += 1
        self.recalculate_balances()
        logger.debug("added expense %s: %.2f paid by %s", expense.id, expense.amount, expense.payer_id)
        return expense.model_copy(deep=True)

    def update_expense(
        self,
        expense_id: int,
        description: str,
        amount: float,
        payer_id: int,
        participants: Iterable[int],
        date: Optional[dt.date] = None,
        category: Optional[Category] = None,
    ) -> Expense:
        """Replace an expense. An omitted date or category keeps the old one."""
        expense = self._expense(expense_id)
        base = self._expense_fields(description, amount, payer_id, participants,
                                    date or expense.date, category or expense.category)
        fields = base.model_dump()
        fields["split_amount"] = split_amount_for(base.amount, len(base.participants), self.split_policy)

        self.store.save_expense(expense.model_copy(update=fields))
        for key, value in fields.items():
            setattr(expense, key, value)
        self.recalculate_balances()
        logger.debug("updated expense %s", expense_id)
        return expense.model_copy(deep=True)

    def delete_expense(self, expense_id: int) -> None:
        expense = self._expense(expense_id)
        self.store.delete_expense(expense_id)
        self._expenses.remove(expense)
        self.recalculate_balances()
        logger.debug("deleted expense %s", expense_id)

    def settle_all(self) -> None:
        """Forget every expense, as if all debts were paid outside the ledger."""
        count = len(self._expenses)
        self.store.clear_expenses()
        self._expenses = []
        self.recalculate_balances()
        logger.info("settled all debts, %d expenses cleared", count)

    def _expense_fields(self, description, amount, payer_id, participants, date, category) -> ExpenseBase:
        data = {
            "description": description,
            "amount": amount,
            "payer_id": payer_id,
            "participants": list(participants) if participants is not None else [],
            "category": category,
        }
        if date is not None:
            data["date"] = date
        base = _validated(ExpenseBase, data)
        self._check_references(base.payer_id, base.participants, {p.id for p in self._people})
        return base

    @staticmethod
    def _check_references(payer_id: int, participants: List[int], live_ids: set) -> None:
        if payer_id not in live_ids:
            raise ValidationError(f"payer {payer_id} is not a member of the group", payer_id)
        for pid in participants:
            if pid not in live_ids:
                raise ValidationError(f"participant {pid} is not a member of the group", pid)

    # ---------- balances ----------

    def recalculate_balances(self) -> None:
        recalculate_balances(self._people, self._expenses, self.split_policy)
