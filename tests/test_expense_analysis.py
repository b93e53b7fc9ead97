"""Unit tests for financepal.expense_analysis."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from financepal.exceptions import InvalidViewModeError
from financepal.expense_analysis import (
    MONTHLY,
    YEARLY,
    aggregate,
    category_breakdown,
    compute_monthly_change,
    month_summary,
)
from financepal.models import ExpenseRecord

NOW = date(2024, 3, 15)


def _build_records(rows):
    return [dict(row) for row in rows]


def test_monthly_example_from_two_months() -> None:
    records = _build_records([
        {'date': '2024-03-01', 'amount': 100, 'category': 'Food'},
        {'date': '2024-02-01', 'amount': 50, 'category': 'Food'},
    ])

    result = aggregate(records, MONTHLY, NOW)

    assert result.monthly_totals[2] == 100
    assert result.monthly_totals[1] == 50
    assert all(v == 0 for i, v in enumerate(result.monthly_totals) if i not in (1, 2))
    assert result.yearly_total == 150
    assert result.category_totals == {'Food': 150}
    assert result.monthly_change == 100
    assert result.yearly_totals_arr is None


def test_monthly_truncates_at_today() -> None:
    records = _build_records([
        {'date': '2024-03-15', 'amount': 10, 'category': 'Food'},
        {'date': '2024-03-16', 'amount': 20, 'category': 'Food'},
        {'date': '2024-04-01', 'amount': 40, 'category': 'Bills'},
        {'date': '2023-03-01', 'amount': 80, 'category': 'Bills'},
    ])

    result = aggregate(records, MONTHLY, NOW)

    assert result.monthly_totals[2] == 10
    assert result.yearly_total == 10
    # category totals ignore every date filter
    assert result.category_totals == {'Food': 30, 'Bills': 120}


def test_months_after_current_are_zero() -> None:
    records = _build_records([
        {'date': f'2024-{month:02d}-01', 'amount': month * 10, 'category': 'Others'}
        for month in range(1, 13)
    ])

    result = aggregate(records, MONTHLY, NOW)

    assert result.monthly_totals[:3] == [10, 20, 30]
    assert result.monthly_totals[3:] == [0.0] * 9
    assert sum(result.monthly_totals) == result.yearly_total


def test_monthly_accepts_datetime_now() -> None:
    records = _build_records([{'date': '2024-03-15', 'amount': 5}])
    result = aggregate(records, MONTHLY, datetime(2024, 3, 15, 23, 59))
    assert result.monthly_totals[2] == 5


def test_non_numeric_amount_contributes_zero() -> None:
    records = _build_records([
        {'date': '2024-03-01', 'amount': 'abc', 'category': 'Misc'},
        {'date': '2024-03-02', 'amount': '12.5', 'category': 'Food'},
    ])

    result = aggregate(records, MONTHLY, NOW)

    assert result.monthly_totals[2] == 12.5
    assert result.yearly_total == 12.5
    assert result.category_totals == {'Misc': 0.0, 'Food': 12.5}


def test_missing_or_bad_date_only_counts_for_categories() -> None:
    records = _build_records([
        {'amount': 30, 'category': 'Travel'},
        {'date': 'not-a-date', 'amount': 20, 'category': 'Travel'},
        {'date': '2024-03-01', 'amount': 5},
        {'date': '2024-03-02', 'amount': 7, 'category': ''},
    ])

    result = aggregate(records, MONTHLY, NOW)

    assert result.yearly_total == 12
    assert result.category_totals == {'Travel': 50}


def test_category_totals_match_categorised_amounts() -> None:
    records = _build_records([
        {'date': '2019-01-01', 'amount': 1, 'category': 'A'},
        {'date': '2024-12-31', 'amount': 2, 'category': 'B'},
        {'amount': 4, 'category': 'A'},
        {'date': '2024-01-01', 'amount': 8},
        {'date': '2024-01-01', 'amount': None, 'category': 'C'},
    ])

    for mode in (MONTHLY, YEARLY):
        result = aggregate(records, mode, NOW)
        assert sum(result.category_totals.values()) == 7


def test_accepts_expense_records() -> None:
    records = [
        ExpenseRecord(amount=100, category='Food', date='2024-03-01'),
        ExpenseRecord(amount=50, category='Food', date=date(2024, 2, 1)),
    ]
    result = aggregate(records, MONTHLY, NOW)
    assert result.yearly_total == 150


def test_unknown_record_type_raises() -> None:
    with pytest.raises(TypeError):
        aggregate([42], MONTHLY, NOW)


def test_empty_input_in_monthly_mode() -> None:
    result = aggregate([], MONTHLY, NOW)
    assert result.monthly_totals == [0.0] * 12
    assert result.yearly_total == 0
    assert result.category_totals == {}
    assert result.monthly_change == 0


def test_invalid_view_mode_raises() -> None:
    with pytest.raises(InvalidViewModeError):
        aggregate([], 'weekly', NOW)
    with pytest.raises(ValueError):
        aggregate([], None, NOW)


def test_view_mode_is_case_insensitive() -> None:
    assert aggregate([], 'Yearly', NOW).view_mode == YEARLY


def test_yearly_groups_all_years_ascending() -> None:
    records = _build_records([
        {'date': '2023-06-01', 'amount': 20, 'category': 'Food'},
        {'date': '2022-01-01', 'amount': 10, 'category': 'Food'},
        {'date': '2024-02-01', 'amount': 30, 'category': 'Bills'},
        {'date': '2024-12-31', 'amount': 5, 'category': 'Bills'},
        {'amount': 100, 'category': 'Food'},
    ])

    result = aggregate(records, YEARLY, NOW)

    assert [item.year for item in result.yearly_totals_arr] == ['2022', '2023', '2024']
    assert [item.total for item in result.yearly_totals_arr] == [10, 20, 35]
    assert result.yearly_total == 65
    assert result.category_totals == {'Food': 130, 'Bills': 35}
    assert result.monthly_change is None
    assert result.monthly_totals == [0.0] * 12


def test_yearly_sorts_year_labels_as_strings() -> None:
    records = [
        ExpenseRecord(amount=1, date=date(2024, 1, 1)),
        ExpenseRecord(amount=2, date=date(999, 1, 1)),
    ]
    result = aggregate(records, YEARLY, NOW)
    assert [item.year for item in result.yearly_totals_arr] == ['2024', '999']


def test_word_dates_do_not_create_year_buckets() -> None:
    records = _build_records([
        {'date': 'today', 'amount': 10, 'category': 'X'},
        {'date': 'March', 'amount': 5, 'category': 'X'},
    ])
    result = aggregate(records, YEARLY, NOW)
    assert result.yearly_totals_arr == []
    assert result.category_totals == {'X': 15}


def test_to_dict_shape() -> None:
    records = _build_records([{'date': '2024-03-01', 'amount': 100, 'category': 'Food'}])

    monthly = aggregate(records, MONTHLY, NOW).to_dict()
    assert set(monthly) == {'monthlyTotals', 'yearlyTotal', 'categoryTotals', 'monthlyChange'}
    assert len(monthly['monthlyTotals']) == 12

    yearly = aggregate(records, YEARLY, NOW).to_dict()
    assert yearly['yearlyTotalsArr'] == [{'year': '2024', 'total': 100}]


def test_monthly_change_is_none_in_january() -> None:
    assert compute_monthly_change([5.0] * 12, date(2024, 1, 31)) is None
    records = _build_records([{'date': '2024-01-02', 'amount': 10}])
    assert aggregate(records, MONTHLY, date(2024, 1, 5)).monthly_change is None


def test_monthly_change_from_zero_base() -> None:
    totals = [0.0] * 12
    totals[4] = 25.0
    assert compute_monthly_change(totals, date(2024, 5, 10)) == 100


def test_monthly_change_both_zero() -> None:
    assert compute_monthly_change([0.0] * 12, date(2024, 6, 1)) == 0


def test_monthly_change_decrease() -> None:
    totals = [0.0] * 12
    totals[5], totals[6] = 200.0, 50.0
    assert compute_monthly_change(totals, date(2024, 7, 1)) == -75


def test_monthly_change_without_totals() -> None:
    assert compute_monthly_change(None, NOW) is None
    assert compute_monthly_change([3.0], NOW) is None


def test_category_breakdown_orders_by_amount() -> None:
    shares = category_breakdown({'Food': 25.0, 'Bills': 75.0}, 100.0)
    assert [s.category for s in shares] == ['Bills', 'Food']
    assert [s.percentage for s in shares] == [75.0, 25.0]


def test_category_breakdown_with_zero_total() -> None:
    shares = category_breakdown({'Food': 10.0}, 0)
    assert shares[0].percentage == 0.0


def test_month_summary() -> None:
    records = _build_records([
        {'date': '2024-03-02', 'amount': 10, 'category': 'Food'},
        {'date': '2024-03-20', 'amount': 5},
        {'date': '2024-04-01', 'amount': 99, 'category': 'Food'},
        {'amount': 1, 'category': 'Food'},
    ])

    summary = month_summary(records, 2024, 3)

    assert [r.date for r in summary.records] == ['2024-03-20', '2024-03-02']
    assert summary.total == 15
    assert summary.categories == {'Uncategorized': 5, 'Food': 10}
