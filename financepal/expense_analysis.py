"""Expense aggregation for the analysis screen.

Everything in this module is pure: the caller supplies the records and
the reference date ``now``; nothing reads the wall clock or the store.
Malformed records never raise.  Bad amounts count as zero and bad or
missing dates simply keep a record out of the time-based totals.

Two behaviours are kept deliberately even though they look odd:

* category totals are computed over *every* record, ignoring the
  year/day truncation applied to the monthly and yearly totals;
* yearly buckets are ordered by sorting the year labels as strings,
  which only matches numeric order for four digit years.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .exceptions import InvalidViewModeError
from .models import (
    UNCATEGORIZED,
    CategoryShare,
    MonthSummary,
    as_record,
)

logger = logging.getLogger(__name__)

MONTHLY = 'monthly'
YEARLY = 'yearly'
VIEW_MODES = (MONTHLY, YEARLY)

MONTH_LABELS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

FRAME_COLUMNS = ['Amount', 'Category', 'Year', 'Month', 'Day']


@dataclass
class YearTotal:
    year: str
    total: float


@dataclass
class AggregationResult:
    """Derived totals for one fetch."""

    view_mode: str
    monthly_totals: List[float] = field(default_factory=lambda: [0.0] * 12)
    yearly_total: float = 0.0
    category_totals: Dict[str, float] = field(default_factory=dict)
    yearly_totals_arr: Optional[List[YearTotal]] = None
    monthly_change: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase shape consumed by the UI layer."""
        payload: Dict[str, Any] = {
            'monthlyTotals': list(self.monthly_totals),
            'yearlyTotal': self.yearly_total,
            'categoryTotals': dict(self.category_totals),
            'monthlyChange': self.monthly_change,
        }
        if self.yearly_totals_arr is not None:
            payload['yearlyTotalsArr'] = [
                {'year': item.year, 'total': item.total} for item in self.yearly_totals_arr
            ]
        return payload


def normalize_view_mode(view_mode: Any) -> str:
    mode = getattr(view_mode, 'value', view_mode)
    if isinstance(mode, str) and mode.strip().lower() in VIEW_MODES:
        return mode.strip().lower()
    raise InvalidViewModeError(f"Unknown view mode: {view_mode!r}")


def records_frame(records: Iterable[Any]) -> pd.DataFrame:
    """Flatten records into a frame of coerced amounts and date parts.

    ``Category`` is ``None`` for records without a usable category and
    the date columns are ``<NA>`` for records without a parseable date.
    """
    rows = []
    for item in records:
        record = as_record(item)
        parsed = record.parsed_date
        rows.append({
            'Amount': record.amount_value,
            'Category': record.category_label,
            'Year': parsed.year if parsed else None,
            'Month': parsed.month if parsed else None,
            'Day': parsed.day if parsed else None,
        })

    frame = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    frame['Amount'] = frame['Amount'].astype(float)
    frame['Category'] = frame['Category'].astype(object)
    for column in ('Year', 'Month', 'Day'):
        frame[column] = frame[column].astype('Int64')
    return frame


def _category_totals(frame: pd.DataFrame) -> Dict[str, float]:
    categorized = frame[frame['Category'].notna()]
    if categorized.empty:
        return {}
    totals = categorized.groupby('Category', sort=False)['Amount'].sum()
    return {str(label): float(total) for label, total in totals.items()}


def _elapsed_this_year(frame: pd.DataFrame, now: date) -> pd.Series:
    """Rows dated in ``now``'s year on or before ``now``."""
    same_year = frame['Year'] == now.year
    earlier_month = frame['Month'] < now.month
    same_month_so_far = (frame['Month'] == now.month) & (frame['Day'] <= now.day)
    mask = same_year & (earlier_month | same_month_so_far)
    return mask.fillna(False).astype(bool)


def compute_monthly_change(monthly_totals: Optional[List[float]], now: date) -> Optional[float]:
    """Percentage change of ``now``'s month against the previous month.

    ``None`` in January or when no totals are available.  A zero previous
    month counts as a full 100% increase if anything was spent this month.
    """
    if not monthly_totals or len(monthly_totals) < 2:
        return None

    current_month = now.month - 1
    if current_month == 0:
        return None

    this_month = monthly_totals[current_month]
    last_month = monthly_totals[current_month - 1]
    if last_month > 0:
        return (this_month - last_month) / last_month * 100
    if this_month > 0:
        return 100.0
    return 0.0


def aggregate_monthly(records: Iterable[Any], now: date) -> AggregationResult:
    frame = records_frame(records)
    monthly_totals = [0.0] * 12

    elapsed = frame[_elapsed_this_year(frame, now)]
    if not elapsed.empty:
        for month, total in elapsed.groupby('Month')['Amount'].sum().items():
            monthly_totals[int(month) - 1] += float(total)

    # Months after the current one are always reported as zero.
    current_month = now.month - 1
    for index in range(current_month + 1, 12):
        monthly_totals[index] = 0.0

    result = AggregationResult(
        view_mode=MONTHLY,
        monthly_totals=monthly_totals,
        yearly_total=sum(monthly_totals),
        category_totals=_category_totals(frame),
    )
    result.monthly_change = compute_monthly_change(result.monthly_totals, now)
    return result


def aggregate_yearly(records: Iterable[Any]) -> AggregationResult:
    frame = records_frame(records)
    dated = frame[frame['Year'].notna()]

    buckets: Dict[str, float] = {}
    if not dated.empty:
        for year, total in dated.groupby('Year')['Amount'].sum().items():
            buckets[str(int(year))] = float(total)

    # String sort, not numeric: "999" orders after "2024".
    yearly_totals_arr = [YearTotal(year=label, total=buckets[label]) for label in sorted(buckets)]

    return AggregationResult(
        view_mode=YEARLY,
        yearly_total=sum(item.total for item in yearly_totals_arr),
        category_totals=_category_totals(frame),
        yearly_totals_arr=yearly_totals_arr,
    )


def aggregate(records: Iterable[Any], view_mode: Any, now: date) -> AggregationResult:
    """Aggregate ``records`` for the given view mode as of ``now``.

    ``records`` may hold :class:`~financepal.models.ExpenseRecord` objects
    or store documents.  Raises :class:`InvalidViewModeError` for an
    unknown ``view_mode``; bad record data never raises.
    """
    mode = normalize_view_mode(view_mode)
    records = list(records)
    if mode == MONTHLY:
        result = aggregate_monthly(records, now)
    else:
        result = aggregate_yearly(records)
    logger.debug("Aggregated %d records in %s mode", len(records), mode)
    return result


def category_breakdown(category_totals: Dict[str, float], total: float) -> List[CategoryShare]:
    """Categories ordered by amount, largest first, with their share of ``total``."""
    ordered = sorted(category_totals.items(), key=lambda item: item[1], reverse=True)
    return [
        CategoryShare(
            category=label,
            amount=amount,
            percentage=(amount / total * 100) if total > 0 else 0.0,
        )
        for label, amount in ordered
    ]


def month_summary(records: Iterable[Any], year: int, month: int) -> MonthSummary:
    """Collect the records dated within ``year``/``month``, newest first."""
    in_month = []
    for item in records:
        record = as_record(item)
        parsed = record.parsed_date
        if parsed is not None and parsed.year == year and parsed.month == month:
            in_month.append((parsed, record))

    in_month.sort(key=lambda pair: pair[0], reverse=True)
    summary = MonthSummary(year=year, month=month, records=[record for _, record in in_month])
    for record in summary.records:
        amount = record.amount_value
        summary.total += amount
        label = record.category_label or UNCATEGORIZED
        summary.categories[label] = summary.categories.get(label, 0.0) + amount
    return summary
