"""Rounding and display formatting for money, percentages and sizes."""

from __future__ import annotations

import math
from typing import Union

Number = Union[float, int]


def round_half_up(value: Number, digits: int = 1) -> float:
    """Round halves upward, e.g. ``2.25 -> 2.3`` and ``-2.25 -> -2.2``.

    Example:
        >>> round_half_up(2.25)
        2.3
        >>> round_half_up(12.5, 0)
        13.0
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def format_currency(amount: Number, include_sign: bool = True, decimals: int = 0) -> str:
    """Format a currency amount, whole units by default.

    Example:
        >>> format_currency(1234.56)
        '$1,235'
        >>> format_currency(-50, decimals=2)
        '-$50.00'
    """
    rounded = round_half_up(abs(amount), decimals)
    formatted = f"{rounded:,.{decimals}f}"
    if include_sign:
        formatted = f"${formatted}"
    return f"-{formatted}" if amount < 0 and rounded else formatted


def format_percentage(percentage: Number) -> str:
    return f"{int(round_half_up(percentage, 0))}%"


def format_bytes(size: int) -> str:
    """Human readable byte count.

    Example:
        >>> format_bytes(0)
        '0 B'
        >>> format_bytes(1536)
        '1.5 KB'
    """
    if size <= 0:
        return '0 B'
    units = ['B', 'KB', 'MB']
    exponent = 0
    while exponent < len(units) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1
    value = round_half_up(size / 1024 ** exponent, 1)
    return f"{value:g} {units[exponent]}"
