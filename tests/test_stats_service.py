import pytest

from smartsplit.models.expense import Category
from smartsplit.services.stats_service import expense_stats, smart_suggestions


def test_stats_for_empty_ledger(ledger):
    stats = ledger.stats()
    assert stats.total_amount == 0
    assert stats.highest_payer is None
    assert stats.most_frequent_category is None
    assert stats.expenses_by_category == {}


def test_stats_totals_and_categories(trio, ledger):
    alice, bob, carol = trio
    ledger.add_expense("Pizza", 30, alice.id, [alice.id, bob.id], category=Category.FOOD)
    ledger.add_expense("Cinema", 45, bob.id, [bob.id, carol.id], category=Category.ENTERTAINMENT)
    ledger.add_expense("Tacos", 15, carol.id, [carol.id], category=Category.FOOD)

    stats = ledger.stats()

    assert stats.total_amount == pytest.approx(90.0)
    assert stats.average_amount == pytest.approx(30.0)
    assert stats.highest_amount == pytest.approx(45.0)
    assert stats.highest_payer.name == "Bob"
    assert stats.most_frequent_category == "food"
    assert stats.expenses_by_category["food"].count == 2
    assert stats.expenses_by_category["food"].total == pytest.approx(45.0)


def test_most_frequent_category_prefers_first_on_tie(trio, ledger):
    alice, bob, _ = trio
    ledger.add_expense("Bus", 3, alice.id, [bob.id], category=Category.TRANSPORTATION)
    ledger.add_expense("Lamp", 20, alice.id, [bob.id], category=Category.SHOPPING)
    assert expense_stats(ledger.people, ledger.expenses).most_frequent_category == "transportation"


def test_no_suggestions_without_expenses(trio, ledger):
    assert ledger.suggestions() == []


def test_suggests_the_person_who_never_paid(trio, ledger):
    alice, bob, carol = trio
    ledger.add_expense("Pizza", 30, alice.id, [alice.id, bob.id, carol.id], category=Category.FOOD)

    suggestions = ledger.suggestions()

    assert [s.type for s in suggestions] == [
        "payment_suggestion", "settlement_suggestion", "category_suggestion",
    ]
    assert suggestions[0].message.startswith("🐻 Bob hasn't paid")
    assert "Food" in suggestions[2].message


def test_suggests_when_top_payer_paid_more_than_double(trio, ledger):
    alice, bob, carol = trio
    ledger.add_expense("Hotel", 100, alice.id, [alice.id, bob.id, carol.id])
    ledger.add_expense("Snacks", 10, bob.id, [alice.id, bob.id, carol.id])
    ledger.add_expense("Water", 20, carol.id, [alice.id, bob.id, carol.id])

    first = ledger.suggestions()[0]
    assert first.type == "payment_suggestion"
    assert "Maybe Bob should pay next?" in first.message


def test_no_settlement_tip_when_balanced(ledger):
    alice = ledger.add_person("Alice")
    bob = ledger.add_person("Bob")
    ledger.add_expense("Groceries", 60, alice.id, [alice.id, bob.id])
    ledger.add_expense("Fuel", 60, bob.id, [alice.id, bob.id])
    ledger.recalculate_balances()

    types = [s.type for s in smart_suggestions(ledger.people, ledger.expenses)]
    assert "settlement_suggestion" not in types
    assert "payment_suggestion" not in types
