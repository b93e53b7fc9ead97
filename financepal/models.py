"""Expense record model and input coercion helpers.

Records arrive from the store as loosely typed documents: amounts may be
strings or missing, dates may be absent or malformed.  Nothing here
raises for bad stored data; :func:`coerce_amount` and :func:`parse_date`
normalise it so the aggregations in :mod:`expense_analysis` stay total.
Only :func:`validate_new_expense`, used when writing, rejects input.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Tuple

import pandas as pd

from .exceptions import BudgetValidationError, ExpenseValidationError

UNCATEGORIZED = 'Uncategorized'

PERIOD_RE = re.compile(r'^(\d{4})-(\d{2})$')


def coerce_amount(value: Any) -> float:
    """Convert a stored amount to a float, falling back to ``0.0``.

    Numeric strings are accepted; booleans, NaN, infinities and anything
    unparseable become zero.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value or "_" in value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date string (or date-like object) into a ``date``.

    Returns ``None`` for missing or unparseable values.
    """
    if value is None:
        return None
    # pandas Timestamp subclasses datetime
    if isinstance(value, datetime):
        return None if pd.isna(value) else value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    # ISO forms only. pandas reads "now" and "today" as the current time
    # even with an explicit format.
    if not text[0].isdigit():
        return None
    ts = pd.to_datetime(text, format='ISO8601', errors='coerce')
    if pd.isna(ts):
        return None
    return ts.date()


def category_label(value: Any) -> Optional[str]:
    """Return the category as a label, or ``None`` when it is empty."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    label = str(value)
    return label if label else None


@dataclass(frozen=True)
class ExpenseRecord:
    """One user-entered expense as stored."""

    amount: Any = None
    category: Optional[str] = None
    date: Any = None
    user_id: Optional[str] = None
    id: Optional[str] = None
    note: str = ''
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def amount_value(self) -> float:
        return coerce_amount(self.amount)

    @property
    def parsed_date(self) -> Optional[date]:
        return parse_date(self.date)

    @property
    def category_label(self) -> Optional[str]:
        return category_label(self.category)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any], doc_id: Optional[Any] = None) -> 'ExpenseRecord':
        """Build a record from a store document (camelCase or snake_case keys)."""
        record_id = doc_id if doc_id is not None else doc.get('id')
        return cls(
            amount=doc.get('amount'),
            category=doc.get('category'),
            date=doc.get('date'),
            user_id=doc.get('userId', doc.get('user_id')),
            id=str(record_id) if record_id is not None else None,
            note=doc.get('note') or '',
            created_at=doc.get('createdAt', doc.get('created_at')),
            updated_at=doc.get('updatedAt', doc.get('updated_at')),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'amount': self.amount,
            'category': self.category,
            'date': self.date,
            'note': self.note,
            'userId': self.user_id,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }


def as_record(item: Any) -> ExpenseRecord:
    """Accept either an :class:`ExpenseRecord` or a document mapping."""
    if isinstance(item, ExpenseRecord):
        return item
    if isinstance(item, Mapping):
        return ExpenseRecord.from_document(item)
    raise TypeError(f"Unsupported expense record type: {type(item).__name__}")


def validate_new_expense(amount: Any, category: Optional[str]) -> float:
    """Check user input for a new or edited expense.

    Returns the amount as a float.  Raises :class:`ExpenseValidationError`
    with a user-facing message otherwise.
    """
    if amount is None or (isinstance(amount, str) and not amount.strip()) or not category:
        raise ExpenseValidationError('Amount and category are required.')
    if isinstance(amount, bool) or (isinstance(amount, str) and "_" in amount):
        raise ExpenseValidationError('Please enter a valid amount.')
    try:
        amount_num = float(amount)
    except (TypeError, ValueError):
        raise ExpenseValidationError('Please enter a valid amount.')
    if not math.isfinite(amount_num) or amount_num <= 0:
        raise ExpenseValidationError('Please enter a valid amount.')
    return amount_num


@dataclass
class CategoryShare:
    """A category's total and its share of the overall spend."""

    category: str
    amount: float
    percentage: float


@dataclass
class MonthSummary:
    """Expenses recorded within one calendar month."""

    year: int
    month: int
    records: list = field(default_factory=list)
    total: float = 0.0
    categories: Dict[str, float] = field(default_factory=dict)


def budget_period(year: int, month: int) -> str:
    """Period key for a calendar month, e.g. ``2024-03``."""
    return f"{int(year)}-{int(month):02d}"


def parse_period(period: Any) -> Optional[Tuple[int, int]]:
    """Split a ``YYYY-MM`` period key into ``(year, month)``, or ``None``."""
    if not isinstance(period, str):
        return None
    match = PERIOD_RE.match(period.strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def validate_new_budget(amount: Any, category: Optional[str], period: Any) -> float:
    """Check user input for a new or edited budget. Returns the amount."""
    try:
        amount_num = validate_new_expense(amount, category)
    except ExpenseValidationError as exc:
        raise BudgetValidationError(str(exc)) from exc
    if parse_period(period) is None:
        raise BudgetValidationError('Please choose a valid month.')
    return amount_num


@dataclass(frozen=True)
class BudgetRecord:
    """A spending limit for one category in one calendar month."""

    amount: Any = None
    category: Optional[str] = None
    period: Optional[str] = None
    user_id: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def amount_value(self) -> float:
        return coerce_amount(self.amount)
