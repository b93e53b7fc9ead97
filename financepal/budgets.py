"""Monthly budget lookups and spent-vs-budget calculations.

Budgets are keyed by a ``YYYY-MM`` period.  Spending comes from a
:class:`~financepal.models.MonthSummary`, so amounts are coerced the same
way as everywhere else and undated records never count against a budget.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

import pandas as pd

from .models import BudgetRecord, MonthSummary, budget_period

PERFORMANCE_COLUMNS = ['Category', 'Budget', 'Spent', 'Remaining', 'Percentage_Used', 'Status']

OVER_BUDGET = 'Over Budget'
UNDER_BUDGET = 'Under Budget'


def _as_budget(item: Any) -> BudgetRecord:
    if isinstance(item, BudgetRecord):
        return item
    if isinstance(item, dict):
        return BudgetRecord(
            amount=item.get('amount'),
            category=item.get('category'),
            period=item.get('period'),
            user_id=item.get('userId', item.get('user_id')),
            id=str(item['id']) if item.get('id') is not None else None,
        )
    raise TypeError(f"Unsupported budget type: {type(item).__name__}")


def monthly_budgets(budgets: Iterable[Any], year: int, month: int) -> List[BudgetRecord]:
    """Budgets set for ``year``/``month``."""
    period = budget_period(year, month)
    return [b for b in map(_as_budget, budgets) if b.period == period]


def budget_for_category(budgets: Iterable[Any], category: str, year: int, month: int) -> Optional[BudgetRecord]:
    for budget in monthly_budgets(budgets, year, month):
        if budget.category == category:
            return budget
    return None


def total_budget_for_month(budgets: Iterable[Any], year: int, month: int) -> float:
    return sum(b.amount_value for b in monthly_budgets(budgets, year, month))


def budget_performance(budgets: Iterable[Any], summary: MonthSummary) -> pd.DataFrame:
    """Compare each budget for the summary's month with what was spent.

    ``Percentage_Used`` is capped at 100 and is 0 for a zero budget;
    ``Remaining`` goes negative once a budget is overspent.
    """
    rows = []
    for budget in monthly_budgets(budgets, summary.year, summary.month):
        limit = budget.amount_value
        spent = summary.categories.get(budget.category, 0.0)
        percentage_used = min(100.0, spent / limit * 100) if limit > 0 else 0.0
        rows.append({
            'Category': budget.category,
            'Budget': limit,
            'Spent': spent,
            'Remaining': limit - spent,
            'Percentage_Used': percentage_used,
            'Status': OVER_BUDGET if spent > limit else UNDER_BUDGET,
        })
    return pd.DataFrame(rows, columns=PERFORMANCE_COLUMNS)
