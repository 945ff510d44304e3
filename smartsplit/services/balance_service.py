# smartsplit/services/balance_service.py
from enum import Enum
from typing import Dict, Iterable, List

from smartsplit.models.expense import Expense
from smartsplit.models.person import Person


class SplitPolicy(str, Enum):
    """What happens to the cent left over when an amount does not divide evenly.

    ``IGNORE`` stores the plain quotient and lets the remainder drift, so
    $10 split three ways owes 3.333... each. ``LAST`` and ``PAYER`` store the
    share rounded down to the cent and hand the leftover cents to the last
    participant or to the payer (when the payer is one of the participants).
    """
    IGNORE = "ignore"
    LAST = "last"
    PAYER = "payer"


def split_amount_for(amount: float, count: int, policy: SplitPolicy = SplitPolicy.IGNORE) -> float:
    if count <= 0:
        raise ValueError("cannot split an expense between nobody")
    if policy is SplitPolicy.IGNORE:
        return amount / count
    cents = round(amount * 100)
    return (cents // count) / 100


def participant_shares(e: Expense, policy: SplitPolicy = SplitPolicy.IGNORE) -> Dict[int, float]:
    shares = {pid: e.split_amount for pid in e.participants}
    if policy is SplitPolicy.IGNORE:
        return shares
    remainder = round(e.amount - e.split_amount * len(e.participants), 2)
    if remainder != 0:
        target = e.participants[-1]
        if policy is SplitPolicy.PAYER and e.payer_id in shares:
            target = e.payer_id
        shares[target] = round(shares[target] + remainder, 2)
    return shares


def recalculate_balances(
    people: List[Person],
    expenses: Iterable[Expense],
    policy: SplitPolicy = SplitPolicy.IGNORE,
) -> None:
    """Reset every person's totals and rebuild them from the expense set."""
    by_id = {p.id: p for p in people}
    for p in people:
        p.total_paid = 0.0
        p.total_owed = 0.0

    for e in expenses:
        payer = by_id.get(e.payer_id)
        if payer is not None:
            payer.total_paid += e.amount
        for pid, owed in participant_shares(e, policy).items():
            person = by_id.get(pid)
            if person is not None:
                person.total_owed += owed


def compute_balances(people: Iterable[Person]) -> Dict[int, float]:
    return {p.id: p.balance for p in people}
