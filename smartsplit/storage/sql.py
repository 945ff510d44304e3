import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List

from pydantic import ValidationError as RecordError
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from smartsplit.errors import StorageError
from smartsplit.models.expense import Category, Expense, ExpenseRecord, ExpenseShare
from smartsplit.models.person import Person, PersonRecord
from smartsplit.storage.base import Snapshot

logger = logging.getLogger(__name__)


class SqlStore:
    """Write-through persistence on the ``person``/``expense``/``expenseshare`` tables."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        try:
            with Session(self.engine) as s:
                yield s
        except (SQLAlchemyError, RecordError) as e:
            logger.exception("%s failed", action)
            raise StorageError(f"{action} failed: {e}") from e

    def load(self) -> Snapshot:
        with self._session("load") as s:
            people = [
                Person(id=row.id, name=row.name, emoji=row.emoji)
                for row in s.exec(select(PersonRecord).order_by(PersonRecord.id)).all()
            ]
            shares: Dict[int, List[int]] = {}
            for sh in s.exec(select(ExpenseShare).order_by(ExpenseShare.expense_id, ExpenseShare.position)).all():
                shares.setdefault(sh.expense_id, []).append(sh.person_id)
            expenses = []
            for row in s.exec(select(ExpenseRecord).order_by(ExpenseRecord.id)).all():
                expenses.append(Expense(
                    id=row.id,
                    description=row.description,
                    amount=float(row.amount),
                    payer_id=row.payer_id,
                    participants=shares.get(row.id, []),
                    date=row.date,
                    category=Category(row.category),
                    split_amount=float(row.split_amount),
                    # sqlite drops tzinfo; Expense reads a naive value as UTC
                    timestamp=row.created_at,
                ))
        logger.info("loaded %d people and %d expenses", len(people), len(expenses))
        return Snapshot(people=people, expenses=expenses)

    def save_person(self, person: Person) -> None:
        with self._session("save person") as s:
            self._put_person(s, person)
            s.commit()

    def delete_person(self, person_id: int) -> None:
        with self._session("delete person") as s:
            row = s.get(PersonRecord, person_id)
            if row:
                s.delete(row)
                s.commit()

    def save_expense(self, expense: Expense) -> None:
        with self._session("save expense") as s:
            self._put_expense(s, expense)
            s.commit()

    def delete_expense(self, expense_id: int) -> None:
        with self._session("delete expense") as s:
            row = s.get(ExpenseRecord, expense_id)
            if row:
                self._drop_shares(s, expense_id)
                s.delete(row)
                s.commit()

    def clear_expenses(self) -> None:
        with self._session("clear expenses") as s:
            self._drop_expenses(s)
            s.commit()

    def clear_all(self) -> None:
        with self._session("clear all") as s:
            self._drop_expenses(s)
            for row in s.exec(select(PersonRecord)).all():
                s.delete(row)
            s.commit()

    def replace_all(self, snapshot: Snapshot) -> None:
        with self._session("import") as s:
            self._drop_expenses(s)
            for row in s.exec(select(PersonRecord)).all():
                s.delete(row)
            s.flush()
            for p in snapshot.people:
                self._put_person(s, p)
            s.flush()
            for e in snapshot.expenses:
                self._put_expense(s, e)
            s.commit()

    @staticmethod
    def _put_person(s: Session, person: Person) -> None:
        row = s.get(PersonRecord, person.id)
        if row is None:
            row = PersonRecord(id=person.id, name=person.name, emoji=person.emoji)
        else:
            row.name = person.name
            row.emoji = person.emoji
        s.add(row)

    @classmethod
    def _put_expense(cls, s: Session, e: Expense) -> None:
        row = s.get(ExpenseRecord, e.id)
        if row is None:
            row = ExpenseRecord(id=e.id)
        row.description = e.description
        row.amount = e.amount
        row.payer_id = e.payer_id
        row.date = e.date
        row.category = e.category.value
        row.split_amount = e.split_amount
        row.created_at = e.timestamp
        s.add(row)
        cls._drop_shares(s, e.id)
        for position, pid in enumerate(e.participants):
            s.add(ExpenseShare(expense_id=e.id, person_id=pid, position=position))

    @staticmethod
    def _drop_shares(s: Session, expense_id: int) -> None:
        for sh in s.exec(select(ExpenseShare).where(ExpenseShare.expense_id == expense_id)).all():
            s.delete(sh)

    @staticmethod
    def _drop_expenses(s: Session) -> None:
        for sh in s.exec(select(ExpenseShare)).all():
            s.delete(sh)
        for row in s.exec(select(ExpenseRecord)).all():
            s.delete(row)
