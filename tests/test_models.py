from datetime import date, datetime
from decimal import Decimal

import pytest

from financepal.exceptions import BudgetValidationError, ExpenseValidationError
from financepal.models import (
    ExpenseRecord,
    budget_period,
    category_label,
    coerce_amount,
    parse_date,
    parse_period,
    validate_new_budget,
    validate_new_expense,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (12, 12.0),
        (12.75, 12.75),
        ("12.5", 12.5),
        (" 7 ", 7.0),
        (Decimal("2.5"), 2.5),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
        (True, 0.0),
        (float("nan"), 0.0),
        ("inf", 0.0),
        ("1_000", 0.0),
        ([1], 0.0),
    ],
)
def test_coerce_amount(value, expected):
    assert coerce_amount(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-03-01", date(2024, 3, 1)),
        ("2024-03-01T10:30:00", date(2024, 3, 1)),
        (datetime(2024, 3, 1, 8, 0), date(2024, 3, 1)),
        (date(2023, 12, 31), date(2023, 12, 31)),
        ("2024-02-30", None),
        ("garbage", None),
        ("now", None),
        ("today", None),
        ("March", None),
        ("", None),
        (None, None),
        (20240301, None),
    ],
)
def test_parse_date(value, expected):
    assert parse_date(value) == expected


def test_category_label():
    assert category_label("Food") == "Food"
    assert category_label("") is None
    assert category_label(None) is None
    assert category_label(float("nan")) is None


def test_record_from_document_reads_camel_case():
    record = ExpenseRecord.from_document(
        {'amount': '20', 'category': 'Bills', 'date': '2024-01-05', 'userId': 'u1', 'note': None},
        doc_id=7,
    )
    assert record.id == '7'
    assert record.user_id == 'u1'
    assert record.note == ''
    assert record.amount_value == 20.0
    assert record.parsed_date == date(2024, 1, 5)
    assert record.to_document()['userId'] == 'u1'


def test_validate_new_expense_accepts_positive_amount():
    assert validate_new_expense("25", "Food") == 25.0
    assert validate_new_expense(3, "Bills") == 3.0


@pytest.mark.parametrize(
    "amount, category, message",
    [
        ("", "Food", "required"),
        (None, "Food", "required"),
        (10, "", "required"),
        ("abc", "Food", "valid amount"),
        ("-5", "Food", "valid amount"),
        (0, "Food", "valid amount"),
        ("1_000", "Food", "valid amount"),
    ],
)
def test_validate_new_expense_rejects(amount, category, message):
    with pytest.raises(ExpenseValidationError, match=message):
        validate_new_expense(amount, category)


def test_budget_period_round_trips():
    assert budget_period(2024, 3) == "2024-03"
    assert parse_period("2024-03") == (2024, 3)


@pytest.mark.parametrize("period", ["2024-3", "2024-00", "2024-13", "March", "", None])
def test_parse_period_rejects(period):
    assert parse_period(period) is None


def test_validate_new_budget():
    assert validate_new_budget("150", "Food", "2024-03") == 150.0
    with pytest.raises(BudgetValidationError, match="required"):
        validate_new_budget(150, "", "2024-03")
    with pytest.raises(BudgetValidationError, match="month"):
        validate_new_budget(150, "Food", "2024/03")
