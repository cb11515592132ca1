"""Advisory budget checks and budget/goal progress.

``check_budget`` only classifies a prospective expense. It reads the budget
and the amount already spent, then decides; nothing prevents another expense
in the same category from being written between the read and the caller's
insert, so two concurrent submissions can each pass and jointly overshoot the
cap. Closing that gap needs an atomic check-and-insert on the server side.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, Optional, Protocol, Union

from aggregation import ZERO, TransactionLike, spend_by_category
from periods import MonthConvention, to_zero_based


class BudgetLike(Protocol):
    category: str
    amount: Decimal


class GoalLike(Protocol):
    target_amount: Decimal
    current_amount: Decimal


BudgetLookup = Callable[[str, str, int, int], Optional[BudgetLike]]
SpentLookup = Callable[[str, str, int, int], Decimal]


@dataclass(frozen=True)
class NoBudgetDefined:
    pass


@dataclass(frozen=True)
class WithinBudget:
    budget_amount: Decimal
    already_spent: Decimal


@dataclass(frozen=True)
class WouldExceed:
    budget_amount: Decimal
    already_spent: Decimal
    over_by: Decimal


Decision = Union[NoBudgetDefined, WithinBudget, WouldExceed]


def check_budget(
    user_id: str,
    category: str,
    year: int,
    month_one_based: int,
    amount: Decimal,
    *,
    budget_lookup: BudgetLookup,
    spent_lookup: SpentLookup,
) -> Decision:
    """Classify an expense against the category budget of its month.

    ``budget_lookup`` is called with the one-based month budgets are stored
    under; ``spent_lookup`` with the zero-based month used by
    ``periods.month_range``.
    """
    month_zero_based = to_zero_based(month_one_based, MonthConvention.one_based)
    budget = budget_lookup(user_id, category, year, month_one_based)
    if budget is None:
        return NoBudgetDefined()

    budget_amount = Decimal(budget.amount)
    already_spent = Decimal(spent_lookup(user_id, category, year, month_zero_based))
    projected = already_spent + Decimal(amount)
    if projected > budget_amount:
        return WouldExceed(
            budget_amount=budget_amount,
            already_spent=already_spent,
            over_by=projected - budget_amount,
        )
    return WithinBudget(budget_amount=budget_amount, already_spent=already_spent)


@dataclass(frozen=True)
class BudgetProgress:
    category: str
    budget_amount: Decimal
    spent: Decimal
    remaining: Decimal
    percent: float
    status: str  # "ok" | "warning" | "danger"


def progress_status(percent: float) -> str:
    if percent > 90:
        return "danger"
    if percent > 70:
        return "warning"
    return "ok"


def budget_progress(
    budgets: Iterable[BudgetLike], transactions: Iterable[TransactionLike]
) -> list[BudgetProgress]:
    spent_by_category = spend_by_category(transactions)
    rows: list[BudgetProgress] = []
    for budget in budgets:
        budget_amount = Decimal(budget.amount)
        spent = spent_by_category.get(budget.category, ZERO)
        percent = float(spent / budget_amount * 100) if budget_amount > 0 else 0.0
        rows.append(
            BudgetProgress(
                category=budget.category,
                budget_amount=budget_amount,
                spent=spent,
                remaining=budget_amount - spent,
                percent=percent,
                status=progress_status(percent),
            )
        )
    return rows


def goal_progress(goal: GoalLike) -> float:
    target = Decimal(goal.target_amount)
    if target <= 0:
        return 0.0
    return float(Decimal(goal.current_amount) / target)
