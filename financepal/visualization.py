"""Plotly visualisation helpers for the expense analysis view.

Each function accepts the structures produced by
:mod:`financepal.expense_analysis` and returns a
`plotly.graph_objects.Figure` that Streamlit renders via
``st.plotly_chart``.  Empty inputs produce a blank figure titled
"No data to display" rather than raising.
"""

from __future__ import annotations

from typing import Dict

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .expense_analysis import MONTH_LABELS, MONTHLY, AggregationResult

BAR_COLOR = "#6366f1"


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def totals_frame(result: AggregationResult) -> pd.DataFrame:
    """Return the bar chart data as a ``Period``/``Total`` frame.

    Monthly results give one row per calendar month; yearly results one
    row per year in the order they were aggregated.
    """
    if result.view_mode == MONTHLY:
        return pd.DataFrame({"Period": MONTH_LABELS, "Total": result.monthly_totals})
    rows = [{"Period": item.year, "Total": item.total} for item in (result.yearly_totals_arr or [])]
    return pd.DataFrame(rows, columns=["Period", "Total"])


def create_totals_bar_chart(result: AggregationResult, title: str | None = None) -> go.Figure:
    """Bar chart of monthly totals (Jan-Dec) or yearly totals.

    Parameters
    ----------
    result : AggregationResult
        Output of :func:`financepal.expense_analysis.aggregate`.
    title : str, optional
        Chart title.  Defaults to a title derived from the view mode.

    Returns
    -------
    plotly.graph_objects.Figure
        Bar chart.
    """
    df = totals_frame(result)
    if df.empty:
        return _empty_figure()
    fig = px.bar(df, x="Period", y="Total")
    fig.update_traces(marker_color=BAR_COLOR)
    # Year labels are categories; keep them in aggregation order.
    fig.update_xaxes(type="category", categoryorder="array", categoryarray=list(df["Period"]))
    default_title = "Expenses this year" if result.view_mode == MONTHLY else "Expenses by year"
    fig.update_layout(
        title=title or default_title,
        xaxis_title="Month" if result.view_mode == MONTHLY else "Year",
        yaxis_title="Total",
    )
    return fig


def create_category_pie_chart(category_totals: Dict[str, float], title: str | None = None) -> go.Figure:
    """Pie chart of spending by category."""
    series = pd.Series(category_totals, dtype=float)
    series = series[series > 0]
    if series.empty:
        return _empty_figure()
    df = series.reset_index()
    df.columns = ["Category", "Value"]
    fig = px.pie(df, names="Category", values="Value")
    fig.update_layout(title=title or "Category breakdown")
    return fig
