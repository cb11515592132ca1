from datetime import date, datetime, timedelta

import pytest

from periods import (
    MonthConvention,
    ReportPeriod,
    in_range,
    last_n_months,
    month_range,
    resolve_period,
    to_one_based,
    to_zero_based,
)


def test_month_range_is_half_open() -> None:
    start, end = month_range(2024, 1)
    assert start == datetime(2024, 2, 1)
    assert end == datetime(2024, 3, 1)
    assert not in_range(end, start, end)
    assert in_range(end - timedelta(milliseconds=1), start, end)
    assert in_range(start, start, end)


def test_month_range_rolls_over_december() -> None:
    start, end = month_range(2023, 11)
    assert start == datetime(2023, 12, 1)
    assert end == datetime(2024, 1, 1)


def test_month_range_accepts_one_based_months() -> None:
    assert month_range(2024, 2, convention=MonthConvention.one_based) == month_range(
        2024, 1
    )


@pytest.mark.parametrize(
    "month, convention",
    [(12, MonthConvention.zero_based), (0, MonthConvention.one_based), (-1, MonthConvention.zero_based)],
)
def test_month_out_of_range_is_rejected(month, convention) -> None:
    with pytest.raises(ValueError):
        month_range(2024, month, convention=convention)


def test_convention_conversion() -> None:
    assert to_zero_based(1, MonthConvention.one_based) == 0
    assert to_zero_based(11, MonthConvention.zero_based) == 11
    assert to_one_based(0, MonthConvention.zero_based) == 1
    assert to_one_based(12, MonthConvention.one_based) == 12


def test_last_n_months_within_year() -> None:
    assert last_n_months(3, today=date(2024, 3, 15)) == [
        (2024, 0),
        (2024, 1),
        (2024, 2),
    ]


def test_last_n_months_crosses_year_boundary() -> None:
    assert last_n_months(3, today=date(2024, 1, 31)) == [
        (2023, 10),
        (2023, 11),
        (2024, 0),
    ]
    assert last_n_months(3, today=date(2024, 2, 1)) == [
        (2023, 11),
        (2024, 0),
        (2024, 1),
    ]


def test_last_n_months_one_based() -> None:
    assert last_n_months(
        2, today=date(2024, 1, 5), convention=MonthConvention.one_based
    ) == [(2023, 12), (2024, 1)]


def test_last_n_months_requires_positive_count() -> None:
    with pytest.raises(ValueError):
        last_n_months(0, today=date(2024, 1, 1))


def test_report_period_lengths() -> None:
    assert ReportPeriod.monthly.months == 1
    assert ReportPeriod.quarterly.months == 3
    assert ReportPeriod.semi_annually.months == 6
    assert len(last_n_months(ReportPeriod.semi_annually.months, today=date(2024, 4, 1))) == 6


def test_resolve_period_defaults_to_this_month() -> None:
    period = resolve_period(None, None, None, today=date(2024, 12, 20))
    assert period.slug == "this_month"
    assert period.start == datetime(2024, 12, 1)
    assert period.end == datetime(2025, 1, 1)


def test_resolve_period_last_month_in_january() -> None:
    period = resolve_period("last_month", None, None, today=date(2024, 1, 10))
    assert period.start == datetime(2023, 12, 1)
    assert period.end == datetime(2024, 1, 1)


def test_resolve_custom_period_includes_whole_end_day() -> None:
    period = resolve_period("custom", "2024-03-01", "2024-03-10")
    assert period.start == datetime(2024, 3, 1)
    assert period.end == datetime(2024, 3, 11)
    assert in_range(datetime(2024, 3, 10, 23, 59, 59), period.start, period.end)


def test_resolve_custom_period_validates_bounds() -> None:
    with pytest.raises(ValueError):
        resolve_period("custom", "2024-03-10", None)
    with pytest.raises(ValueError):
        resolve_period("custom", "2024-03-10", "2024-03-01")
    with pytest.raises(ValueError):
        resolve_period("fortnight", None, None)
