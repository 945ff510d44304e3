# smartsplit/services/stats_service.py
from typing import Dict, List, Optional, Sequence

from sqlmodel import SQLModel

from smartsplit.models.expense import Expense
from smartsplit.models.person import Person
from smartsplit.services.balance_service import compute_balances
from smartsplit.services.settlement_service import suggest_settlements


class CategoryTotal(SQLModel):
    count: int = 0
    total: float = 0.0


class ExpenseStats(SQLModel):
    total_amount: float = 0.0
    average_amount: float = 0.0
    highest_amount: float = 0.0
    highest_payer: Optional[Person] = None
    most_frequent_category: Optional[str] = None
    expenses_by_category: Dict[str, CategoryTotal] = {}


class Suggestion(SQLModel):
    type: str
    message: str


def expense_stats(people: Sequence[Person], expenses: Sequence[Expense]) -> ExpenseStats:
    if not expenses:
        return ExpenseStats()

    total = sum(e.amount for e in expenses)
    highest = max(expenses, key=lambda e: e.amount)
    payer = next((p for p in people if p.id == highest.payer_id), None)

    by_category: Dict[str, CategoryTotal] = {}
    for e in expenses:
        bucket = by_category.setdefault(e.category.value, CategoryTotal())
        bucket.count += 1
        bucket.total += e.amount

    most_frequent = None
    highest_count = 0
    for name, bucket in by_category.items():
        if bucket.count > highest_count:
            highest_count = bucket.count
            most_frequent = name

    return ExpenseStats(
        total_amount=total,
        average_amount=total / len(expenses),
        highest_amount=highest.amount,
        highest_payer=payer,
        most_frequent_category=most_frequent,
        expenses_by_category=by_category,
    )


def smart_suggestions(people: Sequence[Person], expenses: Sequence[Expense]) -> List[Suggestion]:
    """Hints for the group. Expects the people's totals to be current."""
    suggestions: List[Suggestion] = []
    if not people or not expenses:
        return suggestions

    top = sorted(people, key=lambda p: p.total_paid, reverse=True)[0]
    bottom = sorted(people, key=lambda p: p.total_paid)[0]
    if top.total_paid > 0 and bottom.total_paid == 0:
        suggestions.append(Suggestion(
            type="payment_suggestion",
            message=f"{bottom.label} hasn't paid for anything yet. Maybe they should pay next?",
        ))
    elif top.total_paid > bottom.total_paid * 2 and bottom.total_paid > 0:
        suggestions.append(Suggestion(
            type="payment_suggestion",
            message=f"{top.label} has paid for a lot more than {bottom.label}. "
                    f"Maybe {bottom.name} should pay next?",
        ))

    if suggest_settlements(compute_balances(people)):
        suggestions.append(Suggestion(
            type="settlement_suggestion",
            message="There are outstanding balances. You could settle up now.",
        ))

    category = expense_stats(people, expenses).most_frequent_category
    if category:
        suggestions.append(Suggestion(
            type="category_suggestion",
            message=f"You spend a lot on {category.capitalize()}. That's your most common expense category.",
        ))
    return suggestions
