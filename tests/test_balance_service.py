import pytest

from smartsplit.models.expense import Expense
from smartsplit.models.person import Person
from smartsplit.services.balance_service import (
    SplitPolicy,
    compute_balances,
    participant_shares,
    recalculate_balances,
    split_amount_for,
)


def _expense(id, amount, payer_id, participants, policy=SplitPolicy.IGNORE):
    return Expense(
        id=id,
        description=f"expense {id}",
        amount=amount,
        payer_id=payer_id,
        participants=participants,
        split_amount=split_amount_for(amount, len(participants), policy),
    )


def test_split_amount_ignore_keeps_plain_quotient():
    assert split_amount_for(10.0, 3) == pytest.approx(10.0 / 3)


@pytest.mark.parametrize("policy", [SplitPolicy.LAST, SplitPolicy.PAYER])
def test_split_amount_rounds_down_to_cents(policy):
    assert split_amount_for(10.0, 3, policy) == 3.33
    assert split_amount_for(1.15, 1, policy) == 1.15


def test_split_amount_rejects_empty_split():
    with pytest.raises(ValueError):
        split_amount_for(10.0, 0)


def test_ignore_policy_leaves_remainder():
    e = _expense(1, 10.0, 1, [1, 2, 3])
    shares = participant_shares(e)
    assert set(shares) == {1, 2, 3}
    assert sum(shares.values()) == pytest.approx(10.0)


def test_last_policy_gives_remainder_to_last_participant():
    e = _expense(1, 10.0, 1, [1, 2, 3], SplitPolicy.LAST)
    shares = participant_shares(e, SplitPolicy.LAST)
    assert shares == {1: 3.33, 2: 3.33, 3: 3.34}


def test_payer_policy_gives_remainder_to_payer():
    e = _expense(1, 10.0, 2, [1, 2, 3], SplitPolicy.PAYER)
    assert participant_shares(e, SplitPolicy.PAYER) == {1: 3.33, 2: 3.34, 3: 3.33}


def test_payer_policy_falls_back_to_last_when_payer_not_splitting():
    e = _expense(1, 10.0, 9, [1, 2, 3], SplitPolicy.PAYER)
    assert participant_shares(e, SplitPolicy.PAYER)[3] == 3.34


def test_recalculate_resets_and_rebuilds():
    people = [Person(id=1, name="Alice"), Person(id=2, name="Bob")]
    people[0].total_paid = 999.0
    expenses = [_expense(1, 60.0, 1, [1, 2]), _expense(2, 30.0, 2, [2])]

    recalculate_balances(people, expenses)

    assert people[0].total_paid == 60.0
    assert people[0].total_owed == 30.0
    assert people[1].total_paid == 30.0
    assert people[1].total_owed == 60.0
    assert compute_balances(people) == {1: 30.0, 2: -30.0}


def test_recalculate_is_idempotent():
    people = [Person(id=1, name="Alice"), Person(id=2, name="Bob"), Person(id=3, name="Carol")]
    expenses = [_expense(1, 10.0, 1, [1, 2, 3]), _expense(2, 7.0, 3, [2, 3])]

    recalculate_balances(people, expenses)
    first = compute_balances(people)
    recalculate_balances(people, expenses)
    assert compute_balances(people) == first
