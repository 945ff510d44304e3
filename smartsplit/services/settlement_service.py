# smartsplit/services/settlement_service.py
from typing import Dict, List, Mapping

from smartsplit.models.settlement import Settlement

# balances closer to zero than this count as settled
SETTLEMENT_EPSILON = 0.01


def suggest_settlements(nets: Mapping[int, float], eps: float = SETTLEMENT_EPSILON) -> List[Settlement]:
    """Greedily pair the largest creditor with the largest debtor.

    Creditors are sorted by balance descending and debtors by balance
    ascending (most negative first). Sorting is stable, so people with equal
    balances keep the order of ``nets``. Every transfer retires at least one
    side, which bounds the result at ``len(creditors) + len(debtors) - 1``.
    """
    creditors = [(pid, amt) for pid, amt in nets.items() if amt > eps]
    debtors = [(pid, amt) for pid, amt in nets.items() if amt < -eps]
    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1])
    i = j = 0
    settlements = []
    while i < len(debtors) and j < len(creditors):
        debtor_id, debt_amt = debtors[i]
        creditor_id, cred_amt = creditors[j]
        pay = min(cred_amt, -debt_amt)
        if pay > eps:
            settlements.append(Settlement(from_id=debtor_id, to_id=creditor_id, amount=pay))
        debt_amt += pay
        cred_amt -= pay
        if abs(debt_amt) < eps:
            i += 1
        else:
            debtors[i] = (debtor_id, debt_amt)
        if cred_amt < eps:
            j += 1
        else:
            creditors[j] = (creditor_id, cred_amt)
    return settlements


def apply_settlements(nets: Mapping[int, float], settlements: List[Settlement]) -> Dict[int, float]:
    """Balances after every proposed transfer has been paid."""
    after = dict(nets)
    for s in settlements:
        after[s.from_id] = after.get(s.from_id, 0.0) + s.amount
        after[s.to_id] = after.get(s.to_id, 0.0) - s.amount
    return after
