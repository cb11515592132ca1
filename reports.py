from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from aggregation import (
    MonthlySummary,
    TransactionLike,
    monthly_summary,
    spend_by_category,
    summarize,
)
from periods import MonthConvention

PALETTE = (
    "#4A90E2",
    "#50E3C2",
    "#F5A623",
    "#BD10E0",
    "#7ED321",
    "#9013FE",
    "#F8E71C",
)


@dataclass(frozen=True)
class CategoryBreakdown:
    category: str
    amount: Decimal
    percentage: float
    color_index: int

    @property
    def color(self) -> str:
        return PALETTE[self.color_index]


@dataclass(frozen=True)
class Report:
    trend: list[MonthlySummary]
    category_breakdown: list[CategoryBreakdown]
    total_income: Decimal
    total_expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.total_income - self.total_expense


def category_breakdown(
    transactions: Iterable[TransactionLike], total_expense: Decimal
) -> list[CategoryBreakdown]:
    # colours follow first-seen order so a category keeps its colour when the
    # amount ranking changes
    entries = [
        CategoryBreakdown(
            category=category,
            amount=amount,
            percentage=float(amount / total_expense * 100) if total_expense > 0 else 0.0,
            color_index=index % len(PALETTE),
        )
        for index, (category, amount) in enumerate(
            spend_by_category(transactions).items()
        )
    ]
    return sorted(entries, key=lambda entry: entry.amount, reverse=True)


def build_report(
    monthly_sets: Sequence[tuple[tuple[int, int], Sequence[TransactionLike]]],
    *,
    convention: MonthConvention = MonthConvention.zero_based,
) -> Report:
    trend: list[MonthlySummary] = []
    flattened: list[TransactionLike] = []
    for (year, month), transactions in monthly_sets:
        trend.append(
            monthly_summary(year, month, transactions, convention=convention)
        )
        flattened.extend(transactions)

    totals = summarize(flattened)
    return Report(
        trend=trend,
        category_breakdown=category_breakdown(flattened, totals.total_expense),
        total_income=totals.total_income,
        total_expense=totals.total_expense,
    )
