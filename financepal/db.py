from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

from .config import DB_PATH
from .exceptions import DuplicateBudgetError, ExpenseValidationError, NotAuthenticatedError
from .models import (
    BudgetRecord,
    ExpenseRecord,
    parse_date,
    parse_period,
    validate_new_budget,
    validate_new_expense,
)

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS expenses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    amount,
    category TEXT,
    date TEXT,
    note TEXT,
    created_at TEXT,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_expenses_user ON expenses (user_id);
CREATE INDEX IF NOT EXISTS ix_expenses_user_date ON expenses (user_id, date);

CREATE TABLE IF NOT EXISTS budgets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    category TEXT NOT NULL,
    period TEXT NOT NULL,
    amount REAL NOT NULL,
    created_at TEXT,
    updated_at TEXT,
    UNIQUE (user_id, category, period)
);
"""

SELECT_COLUMNS = "id, user_id, amount, category, date, note, created_at, updated_at"
BUDGET_COLUMNS = "id, user_id, category, period, amount, created_at, updated_at"

DateLike = Union[str, date, datetime]


@contextmanager
def connect() -> Iterator[sqlite3.Connection]:
    path = Path(DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db() -> None:
    with connect() as conn:
        conn.executescript(SCHEMA_SQL)
        conn.commit()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_iso_date(value: Optional[DateLike]) -> str:
    parsed = parse_date(value)
    if parsed is None:
        raise ExpenseValidationError('Please enter a valid date.')
    return parsed.isoformat()


def _row_to_record(row: sqlite3.Row) -> ExpenseRecord:
    return ExpenseRecord(
        id=str(row['id']),
        user_id=row['user_id'],
        amount=row['amount'],
        category=row['category'],
        date=row['date'],
        note=row['note'] or '',
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )


def _sort_newest_first(records: List[ExpenseRecord]) -> List[ExpenseRecord]:
    dated = [r for r in records if r.parsed_date is not None]
    undated = [r for r in records if r.parsed_date is None]
    dated.sort(key=lambda r: r.parsed_date, reverse=True)
    return dated + undated


def add_expense(
    user_id: Optional[str],
    amount: Any,
    category: Optional[str],
    expense_date: DateLike,
    note: str = '',
) -> str:
    """Validate and store a new expense. Returns its id."""
    if not user_id:
        raise NotAuthenticatedError('User is not authenticated.')
    amount_num = validate_new_expense(amount, category)
    iso_date = _to_iso_date(expense_date)
    stamp = _now_iso()

    try:
        with connect() as conn:
            cur = conn.execute(
                "INSERT INTO expenses (user_id, amount, category, date, note, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (user_id, amount_num, category, iso_date, note or '', stamp, stamp),
            )
            conn.commit()
            expense_id = str(cur.lastrowid)
    except sqlite3.Error:
        logger.exception("Failed to add expense for user %s", user_id)
        raise

    logger.info("Added expense %s for user %s", expense_id, user_id)
    return expense_id


def update_expense(
    expense_id: Union[int, str],
    amount: Any = None,
    category: Optional[str] = None,
    expense_date: Optional[DateLike] = None,
    note: Optional[str] = None,
) -> bool:
    """Update an expense in the database.

    Only the supplied fields change.  An edit must still leave a valid
    amount and category.  Returns True if a row was updated.
    """
    updates = []
    params: List[Any] = []

    if amount is not None or category is not None:
        current = get_expense(expense_id)
        if current is None:
            return False
        amount_num = validate_new_expense(
            amount if amount is not None else current.amount,
            category if category is not None else current.category,
        )
        if amount is not None:
            updates.append("amount = ?")
            params.append(amount_num)
        if category is not None:
            updates.append("category = ?")
            params.append(category)

    if expense_date is not None:
        updates.append("date = ?")
        params.append(_to_iso_date(expense_date))

    if note is not None:
        updates.append("note = ?")
        params.append(note)

    if not updates:
        return False

    updates.append("updated_at = ?")
    params.append(_now_iso())
    params.append(int(expense_id))
    sql = f"UPDATE expenses SET {', '.join(updates)} WHERE id = ?"

    try:
        with connect() as conn:
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor.rowcount > 0
    except sqlite3.Error:
        logger.exception("Failed to update expense %s", expense_id)
        raise


def delete_expense(expense_id: Union[int, str]) -> bool:
    """Delete an expense. Returns True if a row was removed."""
    try:
        with connect() as conn:
            cursor = conn.execute("DELETE FROM expenses WHERE id = ?", (int(expense_id),))
            conn.commit()
            return cursor.rowcount > 0
    except sqlite3.Error:
        logger.exception("Failed to delete expense %s", expense_id)
        raise


def get_expense(expense_id: Union[int, str]) -> Optional[ExpenseRecord]:
    with connect() as conn:
        row = conn.execute(
            f"SELECT {SELECT_COLUMNS} FROM expenses WHERE id = ?", (int(expense_id),)
        ).fetchone()
    return _row_to_record(row) if row else None


def fetch_expenses(user_id: str) -> List[ExpenseRecord]:
    """All expenses owned by ``user_id``, newest first; undated ones last."""
    with connect() as conn:
        rows = conn.execute(
            f"SELECT {SELECT_COLUMNS} FROM expenses WHERE user_id = ? ORDER BY id ASC",
            (user_id,),
        ).fetchall()
    records = _sort_newest_first([_row_to_record(row) for row in rows])
    logger.info("Fetched %d expenses for user %s", len(records), user_id)
    return records


def fetch_expenses_for_day(user_id: str, day: DateLike) -> List[ExpenseRecord]:
    iso_date = _to_iso_date(day)
    with connect() as conn:
        rows = conn.execute(
            f"SELECT {SELECT_COLUMNS} FROM expenses WHERE user_id = ? AND date = ? ORDER BY id DESC",
            (user_id, iso_date),
        ).fetchall()
    return [_row_to_record(row) for row in rows]


def fetch_distinct_categories(user_id: str) -> List[str]:
    with connect() as conn:
        rows = conn.execute(
            "SELECT DISTINCT category FROM expenses WHERE user_id = ? AND category IS NOT NULL "
            "AND category != '' ORDER BY category",
            (user_id,),
        ).fetchall()
    return [r[0] for r in rows]


def insert_raw_document(user_id: str, document: dict) -> str:
    """Store a document as-is, without validation.

    Used for importing data written by other clients, which may carry
    malformed amounts or dates.
    """
    with connect() as conn:
        cur = conn.execute(
            "INSERT INTO expenses (user_id, amount, category, date, note, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                user_id,
                document.get('amount'),
                document.get('category'),
                document.get('date'),
                document.get('note'),
                document.get('createdAt'),
                document.get('updatedAt'),
            ),
        )
        conn.commit()
        return str(cur.lastrowid)


def clear_expenses(user_id: Optional[str] = None) -> int:
    """Delete all expenses, or only ``user_id``'s. Returns the number removed."""
    with connect() as conn:
        if user_id is None:
            cursor = conn.execute("DELETE FROM expenses")
        else:
            cursor = conn.execute("DELETE FROM expenses WHERE user_id = ?", (user_id,))
        conn.commit()
        return cursor.rowcount


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------

DUPLICATE_BUDGET_MESSAGE = 'A budget for this category already exists for the selected month.'


def _row_to_budget(row: sqlite3.Row) -> BudgetRecord:
    return BudgetRecord(
        id=str(row['id']),
        user_id=row['user_id'],
        category=row['category'],
        period=row['period'],
        amount=row['amount'],
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )


def _normalize_period(period: str) -> str:
    year, month = parse_period(period)
    return f"{year}-{month:02d}"


def _budget_exists(
    conn: sqlite3.Connection,
    user_id: str,
    category: str,
    period: str,
    exclude_id: Optional[int] = None,
) -> bool:
    sql = "SELECT id FROM budgets WHERE user_id = ? AND category = ? AND period = ?"
    params: List[Any] = [user_id, category, period]
    if exclude_id is not None:
        sql += " AND id != ?"
        params.append(exclude_id)
    return conn.execute(sql, params).fetchone() is not None


def add_budget(user_id: Optional[str], amount: Any, category: Optional[str], period: str) -> str:
    """Store a monthly budget for ``category``. Returns its id.

    Only one budget may exist per user, category and ``YYYY-MM`` period.
    """
    if not user_id:
        raise NotAuthenticatedError('User is not authenticated.')
    amount_num = validate_new_budget(amount, category, period)
    period_key = _normalize_period(period)
    stamp = _now_iso()

    try:
        with connect() as conn:
            if _budget_exists(conn, user_id, category, period_key):
                raise DuplicateBudgetError(DUPLICATE_BUDGET_MESSAGE)
            cur = conn.execute(
                "INSERT INTO budgets (user_id, category, period, amount, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (user_id, category, period_key, amount_num, stamp, stamp),
            )
            conn.commit()
            budget_id = str(cur.lastrowid)
    except sqlite3.IntegrityError as exc:
        raise DuplicateBudgetError(DUPLICATE_BUDGET_MESSAGE) from exc
    except sqlite3.Error:
        logger.exception("Failed to add budget for user %s", user_id)
        raise

    logger.info("Added budget %s (%s, %s) for user %s", budget_id, category, period_key, user_id)
    return budget_id


def get_budget(budget_id: Union[int, str]) -> Optional[BudgetRecord]:
    with connect() as conn:
        row = conn.execute(
            f"SELECT {BUDGET_COLUMNS} FROM budgets WHERE id = ?", (int(budget_id),)
        ).fetchone()
    return _row_to_budget(row) if row else None


def update_budget(
    budget_id: Union[int, str],
    amount: Any = None,
    category: Optional[str] = None,
    period: Optional[str] = None,
) -> bool:
    """Update a budget in place. Returns True if a row was updated.

    Moving a budget onto a category and period that already has one raises
    :class:`DuplicateBudgetError`.
    """
    if amount is None and category is None and period is None:
        return False
    current = get_budget(budget_id)
    if current is None:
        return False

    new_amount = amount if amount is not None else current.amount
    new_category = category if category is not None else current.category
    new_period = period if period is not None else current.period
    amount_num = validate_new_budget(new_amount, new_category, new_period)
    period_key = _normalize_period(new_period)

    try:
        with connect() as conn:
            if _budget_exists(conn, current.user_id, new_category, period_key, exclude_id=int(budget_id)):
                raise DuplicateBudgetError(DUPLICATE_BUDGET_MESSAGE)
            cursor = conn.execute(
                "UPDATE budgets SET amount = ?, category = ?, period = ?, updated_at = ? WHERE id = ?",
                (amount_num, new_category, period_key, _now_iso(), int(budget_id)),
            )
            conn.commit()
            return cursor.rowcount > 0
    except sqlite3.IntegrityError as exc:
        raise DuplicateBudgetError(DUPLICATE_BUDGET_MESSAGE) from exc
    except sqlite3.Error:
        logger.exception("Failed to update budget %s", budget_id)
        raise


def delete_budget(budget_id: Union[int, str]) -> bool:
    """Delete a budget. Returns True if a row was removed."""
    try:
        with connect() as conn:
            cursor = conn.execute("DELETE FROM budgets WHERE id = ?", (int(budget_id),))
            conn.commit()
            return cursor.rowcount > 0
    except sqlite3.Error:
        logger.exception("Failed to delete budget %s", budget_id)
        raise


def fetch_budgets(user_id: str) -> List[BudgetRecord]:
    """All budgets owned by ``user_id``, newest period first, then by category."""
    with connect() as conn:
        rows = conn.execute(
            f"SELECT {BUDGET_COLUMNS} FROM budgets WHERE user_id = ? ORDER BY period DESC, category ASC",
            (user_id,),
        ).fetchall()
    budgets = [_row_to_budget(row) for row in rows]
    logger.info("Fetched %d budgets for user %s", len(budgets), user_id)
    return budgets
