from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional


class MonthConvention(str, Enum):
    zero_based = "zero_based"  # 0 = January
    one_based = "one_based"  # 1 = January


class ReportPeriod(str, Enum):
    monthly = "monthly"
    quarterly = "quarterly"
    semi_annually = "semi_annually"

    @property
    def months(self) -> int:
        return {"monthly": 1, "quarterly": 3, "semi_annually": 6}[self.value]


def to_zero_based(month: int, convention: MonthConvention) -> int:
    if convention == MonthConvention.one_based:
        if not 1 <= month <= 12:
            raise ValueError(f"One-based month out of range: {month}")
        return month - 1
    if not 0 <= month <= 11:
        raise ValueError(f"Zero-based month out of range: {month}")
    return month


def to_one_based(month: int, convention: MonthConvention) -> int:
    return to_zero_based(month, convention) + 1


def month_range(
    year: int,
    month: int,
    *,
    convention: MonthConvention = MonthConvention.zero_based,
) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` window covering one calendar month.

    ``end`` is the first instant of the following month and is never part of
    the range.
    """
    index = to_zero_based(month, convention)
    start = datetime(year, index + 1, 1)
    if index == 11:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, index + 2, 1)
    return start, end


def in_range(moment: datetime, start: datetime, end: datetime) -> bool:
    return start <= moment < end


def last_n_months(
    n: int,
    *,
    today: Optional[date] = None,
    convention: MonthConvention = MonthConvention.zero_based,
) -> list[tuple[int, int]]:
    if n < 1:
        raise ValueError("Number of months must be at least 1")
    today = today or date.today()
    keys: list[tuple[int, int]] = []
    for offset in range(n - 1, -1, -1):
        total = today.year * 12 + (today.month - 1) - offset
        year, index = divmod(total, 12)
        month = index if convention == MonthConvention.zero_based else index + 1
        keys.append((year, month))
    return keys


@dataclass(frozen=True)
class Period:
    slug: str
    start: datetime
    end: datetime


def resolve_period(
    period: Optional[str],
    start: Optional[str],
    end: Optional[str],
    *,
    today: Optional[date] = None,
) -> Period:
    today = today or date.today()
    if period == "last_month":
        year, month = last_n_months(2, today=today)[0]
        range_start, range_end = month_range(year, month)
        return Period("last_month", range_start, range_end)
    if period == "custom":
        if not start or not end:
            raise ValueError("Custom period requires start and end dates")
        start_date = date.fromisoformat(start)
        end_date = date.fromisoformat(end)
        if start_date > end_date:
            raise ValueError("Start date must be before end date")
        # end date is inclusive for the user, exclusive in the window
        return Period(
            "custom",
            datetime.combine(start_date, time.min),
            datetime.combine(end_date + timedelta(days=1), time.min),
        )
    if period and period != "this_month":
        raise ValueError(f"Unknown period: {period}")

    range_start, range_end = month_range(today.year, today.month - 1)
    return Period("this_month", range_start, range_end)
