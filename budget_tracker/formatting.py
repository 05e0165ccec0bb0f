"""Formatting utilities for currency and percentage display."""

from __future__ import annotations

from decimal import Decimal
from typing import Union

from . import config

Number = Union[Decimal, float, int]


def format_currency(amount: Number, include_sign: bool = True, symbol: str | None = None) -> str:
    """Format a currency amount with thousands separators and two decimals.

    Args:
        amount: The amount to format
        include_sign: Whether to prefix the currency symbol
        symbol: Override for the configured currency symbol

    Returns:
        Formatted currency string (e.g., "₹1,234.56" or "1,234.56")

    Example:
        >>> format_currency(Decimal("1234.5"), symbol="$")
        '$1,234.50'
        >>> format_currency(-20, symbol="$")
        '-$20.00'
    """
    value = Decimal(str(amount))
    formatted = f"{abs(value):,.2f}"
    if include_sign:
        formatted = f"{symbol if symbol is not None else config.CURRENCY_SYMBOL}{formatted}"
    return f"-{formatted}" if value < 0 else formatted


def escape_currency_for_markdown(amount: Number) -> str:
    """Format an amount and escape a dollar sign so markdown does not read it as LaTeX."""
    return format_currency(amount).replace("$", "\\$")


def format_percent(value: float, digits: int = 1) -> str:
    return f"{value:.{digits}f}%"
