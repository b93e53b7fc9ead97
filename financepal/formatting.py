"""Formatting utilities for currency and text display."""

from __future__ import annotations

from typing import Optional, Union

from .config import CURRENCY_SYMBOL


def format_currency(amount: Union[float, int], symbol: Optional[str] = None) -> str:
    """Format a currency amount with thousands separators.

    Args:
        amount: The amount to format
        symbol: Currency symbol; defaults to the configured one. Pass an
            empty string to omit it.

    Example:
        >>> format_currency(1234.5, symbol="$")
        '$1,234.50'
        >>> format_currency(-20, symbol="$")
        '-$20.00'
    """
    prefix = CURRENCY_SYMBOL if symbol is None else symbol
    formatted = f"{abs(amount):,.2f}"
    sign = "-" if amount < 0 else ""
    return f"{sign}{prefix}{formatted}"


def escape_currency_for_markdown(amount: float, symbol: Optional[str] = None) -> str:
    """Format an amount and escape ``$`` so markdown does not read it as LaTeX."""
    return format_currency(amount, symbol).replace("$", "\\$")


def format_change(change: Optional[float]) -> str:
    """Render a month-over-month change such as ``+12.5%``.

    ``None`` (no comparison available) renders as an empty string.
    """
    if change is None:
        return ""
    return f"{change:+.1f}%"
