"""Pure roll-ups over already-fetched transaction rows.

Every function accepts any iterable of objects exposing ``type``, ``amount``,
``category`` and ``created_at`` (ORM rows, pydantic models, simple namespaces)
and never touches the database.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Protocol, Union

from models import TransactionType
from periods import MonthConvention, in_range, month_range, to_zero_based

ZERO = Decimal("0")
DAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class TransactionLike(Protocol):
    type: Union[TransactionType, str]
    amount: Decimal
    category: str
    created_at: datetime


class MalformedTransactionError(ValueError):
    pass


@dataclass(frozen=True)
class Totals:
    total_income: Decimal
    total_expense: Decimal

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expense


@dataclass(frozen=True)
class DayBucket:
    day_label: str
    total: Decimal


@dataclass(frozen=True)
class MonthlySummary:
    year: int
    month: int  # zero-based
    income: Decimal
    expense: Decimal

    @property
    def label(self) -> str:
        return calendar.month_name[self.month + 1]


@dataclass(frozen=True)
class DailySummary:
    day: int
    income: Decimal
    expense: Decimal


def transaction_type(txn: TransactionLike) -> TransactionType:
    raw = getattr(txn, "type", None)
    try:
        return TransactionType(raw)
    except ValueError:
        raise MalformedTransactionError(
            f"Unrecognized transaction type {raw!r} on transaction {getattr(txn, 'id', None)!r}"
        ) from None


def _amount(txn: TransactionLike) -> Decimal:
    return Decimal(txn.amount)


def summarize(transactions: Iterable[TransactionLike]) -> Totals:
    income = ZERO
    expense = ZERO
    for txn in transactions:
        if transaction_type(txn) == TransactionType.income:
            income += _amount(txn)
        else:
            expense += _amount(txn)
    return Totals(total_income=income, total_expense=expense)


def spend_by_category(transactions: Iterable[TransactionLike]) -> dict[str, Decimal]:
    # category labels are matched verbatim, "Food" and "food" stay separate
    spent: dict[str, Decimal] = {}
    for txn in transactions:
        if transaction_type(txn) != TransactionType.expense:
            continue
        spent[txn.category] = spent.get(txn.category, ZERO) + _amount(txn)
    return spent


def weekly_buckets(
    transactions: Iterable[TransactionLike], reference: datetime
) -> list[DayBucket]:
    totals = [ZERO] * 7
    for txn in transactions:
        if transaction_type(txn) != TransactionType.expense:
            continue
        elapsed_days = (reference - txn.created_at) // timedelta(days=1)
        if 0 <= elapsed_days < 7:
            totals[6 - elapsed_days] += _amount(txn)

    buckets: list[DayBucket] = []
    for index, total in enumerate(totals):
        day = reference - timedelta(days=6 - index)
        buckets.append(DayBucket(day_label=DAY_LABELS[day.weekday()], total=total))
    return buckets


def monthly_summary(
    year: int,
    month: int,
    transactions: Iterable[TransactionLike],
    *,
    convention: MonthConvention = MonthConvention.zero_based,
) -> MonthlySummary:
    totals = summarize(transactions)
    return MonthlySummary(
        year=year,
        month=to_zero_based(month, convention),
        income=totals.total_income,
        expense=totals.total_expense,
    )


def daily_totals(
    transactions: Iterable[TransactionLike],
    year: int,
    month: int,
    *,
    convention: MonthConvention = MonthConvention.zero_based,
) -> list[DailySummary]:
    start, end = month_range(year, month, convention=convention)
    days = (end - start).days
    income = [ZERO] * days
    expense = [ZERO] * days
    for txn in transactions:
        kind = transaction_type(txn)
        if not in_range(txn.created_at, start, end):
            continue
        index = txn.created_at.day - 1
        if kind == TransactionType.income:
            income[index] += _amount(txn)
        else:
            expense[index] += _amount(txn)
    return [
        DailySummary(day=i + 1, income=income[i], expense=expense[i])
        for i in range(days)
    ]
