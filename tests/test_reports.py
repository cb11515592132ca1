from datetime import datetime
from decimal import Decimal

import pytest

from models import Transaction, TransactionType
from reports import PALETTE, build_report


def _txn(type_, amount, category, month):
    return Transaction(
        user_id="u1",
        type=type_,
        amount=Decimal(amount),
        category=category,
        created_at=datetime(2024, month + 1, 3, 9, 0),
    )


def _sets():
    return [
        (
            (2024, 0),
            [
                _txn(TransactionType.income, "1000", "Salary", 0),
                _txn(TransactionType.expense, "50", "Food", 0),
                _txn(TransactionType.expense, "30", "Transport", 0),
            ],
        ),
        (
            (2024, 1),
            [
                _txn(TransactionType.expense, "200", "Rent", 1),
                _txn(TransactionType.expense, "20", "Food", 1),
            ],
        ),
        ((2024, 2), []),
    ]


def test_trend_follows_input_order() -> None:
    report = build_report(_sets())
    assert [(row.year, row.month) for row in report.trend] == [
        (2024, 0),
        (2024, 1),
        (2024, 2),
    ]
    assert report.trend[0].income == Decimal("1000")
    assert report.trend[0].expense == Decimal("80")
    assert report.trend[2].expense == 0


def test_totals_come_from_all_periods() -> None:
    report = build_report(_sets())
    assert report.total_income == Decimal("1000")
    assert report.total_expense == Decimal("300")
    assert report.net == Decimal("700")


def test_breakdown_sorted_with_first_seen_colors() -> None:
    report = build_report(_sets())
    assert [entry.category for entry in report.category_breakdown] == [
        "Rent",
        "Food",
        "Transport",
    ]
    colors = {entry.category: entry.color_index for entry in report.category_breakdown}
    assert colors == {"Food": 0, "Transport": 1, "Rent": 2}
    assert report.category_breakdown[0].color == PALETTE[2]


def test_breakdown_percentages_sum_to_hundred() -> None:
    report = build_report(_sets())
    assert sum(e.percentage for e in report.category_breakdown) == pytest.approx(100)
    assert report.category_breakdown[0].percentage == pytest.approx(200 / 300 * 100)


def test_zero_expense_gives_zero_percentages() -> None:
    report = build_report(
        [((2024, 0), [_txn(TransactionType.expense, "0", "Food", 0)])]
    )
    assert report.total_expense == 0
    assert [e.percentage for e in report.category_breakdown] == [0]


def test_ties_keep_insertion_order() -> None:
    report = build_report(
        [
            (
                (2024, 0),
                [
                    _txn(TransactionType.expense, "10", "B", 0),
                    _txn(TransactionType.expense, "10", "A", 0),
                ],
            )
        ]
    )
    assert [e.category for e in report.category_breakdown] == ["B", "A"]


def test_palette_cycles_after_seven_categories() -> None:
    rows = [
        _txn(TransactionType.expense, str(i + 1), f"C{i}", 0) for i in range(9)
    ]
    report = build_report([((2024, 0), rows)])
    indices = {e.category: e.color_index for e in report.category_breakdown}
    assert len(PALETTE) >= 7
    assert indices["C7"] == 0
    assert indices["C8"] == 1


def test_build_report_is_repeatable() -> None:
    assert build_report(_sets()) == build_report(_sets())
