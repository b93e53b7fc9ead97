"""Streamlit page for the expense analysis view.

Shows the signed-in user's spending for the current year (monthly view)
or across all years (yearly view), a category breakdown, and the change
against last month.  Authentication is handled elsewhere; the page only
needs a user id.

To run the page from the command line::

    streamlit run financepal/Home.py
"""

from __future__ import annotations

import asyncio
import os
import sqlite3
import sys
from datetime import date

import streamlit as st

if __package__:
    from . import db
    from . import visualization as viz
    from .analysis_session import ExpenseAnalysisSession
    from .budgets import budget_performance
    from .config import DEFAULT_USER_ID, ensure_data_directories
    from .exceptions import BudgetValidationError
    from .expense_analysis import MONTHLY, YEARLY, category_breakdown, month_summary
    from .formatting import escape_currency_for_markdown, format_change, format_currency
    from .logger import configure_logging, get_logger
    from .models import budget_period
else:
    # Direct execution: make the package importable.
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from financepal import db  # type: ignore
    from financepal import visualization as viz  # type: ignore
    from financepal.analysis_session import ExpenseAnalysisSession  # type: ignore
    from financepal.budgets import budget_performance  # type: ignore
    from financepal.config import DEFAULT_USER_ID, ensure_data_directories  # type: ignore
    from financepal.exceptions import BudgetValidationError  # type: ignore
    from financepal.expense_analysis import MONTHLY, YEARLY, category_breakdown, month_summary  # type: ignore
    from financepal.formatting import escape_currency_for_markdown, format_change, format_currency  # type: ignore
    from financepal.logger import configure_logging, get_logger  # type: ignore
    from financepal.models import budget_period  # type: ignore

logger = get_logger("dashboard")

VIEW_LABELS = {"Monthly": MONTHLY, "Yearly": YEARLY}


def _get_session(user_id: str) -> ExpenseAnalysisSession:
    session = st.session_state.get("analysis_session")
    if session is None or session.user_id != user_id:
        session = ExpenseAnalysisSession(user_id)
        st.session_state["analysis_session"] = session
    return session


def _render_summary(result) -> None:
    label = "Total Expenses This Year" if result.view_mode == MONTHLY else "Total Expenses (All Years)"
    delta = format_change(result.monthly_change) if result.view_mode == MONTHLY else ""
    st.metric(
        label,
        format_currency(result.yearly_total),
        delta=delta or None,
        delta_color="inverse",
    )


def _render_categories(result) -> None:
    st.subheader("Spending by category")
    # Shares are taken against the view total, which category totals may exceed.
    shares = category_breakdown(result.category_totals, result.yearly_total)
    if not shares:
        st.info("No categorised expenses yet.")
        return
    for share in shares:
        st.markdown(
            f"**{share.category}** {escape_currency_for_markdown(share.amount)} "
            f"({share.percentage:.1f}%)"
        )
        st.progress(min(max(share.percentage / 100, 0.0), 1.0))


def _render_budget_form(user_id: str, today: date) -> None:
    with st.sidebar.expander("Add budget for this month"):
        with st.form("add_budget", clear_on_submit=True):
            category = st.text_input("Category")
            amount = st.text_input("Amount")
            submitted = st.form_submit_button("Save budget")
        if submitted:
            try:
                db.add_budget(user_id, amount, category.strip(), budget_period(today.year, today.month))
            except BudgetValidationError as exc:
                st.error(str(exc))
            except sqlite3.Error:
                st.error("Failed to add budget. Please try again.")
            else:
                st.success("Budget added.")


def _render_budgets(user_id: str, records, today: date) -> None:
    st.subheader("Budgets this month")
    try:
        budgets = db.fetch_budgets(user_id)
    except sqlite3.Error:
        logger.exception("Error fetching budgets for user %s", user_id)
        st.error("Failed to load budgets.")
        return

    performance = budget_performance(budgets, month_summary(records, today.year, today.month))
    if performance.empty:
        st.info("No budgets set for this month.")
        return
    st.dataframe(performance, use_container_width=True, hide_index=True)


def main() -> None:
    """Entry point for the Streamlit app."""
    configure_logging()
    st.set_page_config(page_title="Expense Analysis", layout="wide")
    st.title("Expense Analysis")

    try:
        ensure_data_directories()
        db.init_db()
    except (OSError, sqlite3.Error) as exc:
        logger.exception("Could not open the expense database")
        st.error(f"Could not open the expense database: {exc}")
        st.stop()

    user_id = st.sidebar.text_input("User ID", value=DEFAULT_USER_ID).strip()
    if not user_id:
        st.info("Enter a user id to view expenses.")
        st.stop()

    session = _get_session(user_id)
    view_label = st.sidebar.radio("View", options=list(VIEW_LABELS), horizontal=True)
    view_mode = VIEW_LABELS[view_label]
    refresh = st.sidebar.button("Refresh")
    today = date.today()
    _render_budget_form(user_id, today)

    if refresh or session.result is None or session.view_mode != view_mode:
        with st.spinner("Loading expenses..."):
            asyncio.run(session.refresh(view_mode))

    result = session.result
    if result is None:
        st.warning("No expense data available.")
        st.stop()

    _render_summary(result)
    st.plotly_chart(viz.create_totals_bar_chart(result), use_container_width=True)
    col_chart, col_list = st.columns(2)
    with col_chart:
        st.plotly_chart(viz.create_category_pie_chart(result.category_totals), use_container_width=True)
    with col_list:
        _render_categories(result)
    _render_budgets(user_id, session.records, today)


if __name__ == "__main__":  # pragma: no cover
    main()
