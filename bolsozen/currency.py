"""Formatting and parsing utilities for Brazilian real amounts."""

from __future__ import annotations

import math
import re
from typing import Optional, Union

CURRENCY_SYMBOL = 'R$'

_NUMERIC_CHARS = re.compile(r'[^\d.,]')
_NON_DIGITS = re.compile(r'\D')
# '1,234.56' -> '1.234,56'
_PT_BR_SEPARATORS = str.maketrans({',': '.', '.': ','})


def parse_currency_input(text: Optional[str]) -> float:
    """Parse user-typed currency text into a float.

    Everything except digits, comma and dot is discarded.  When both
    separators are present the dot is the thousands separator and the comma
    the decimal separator (``1.234,56``); a lone comma is the decimal
    separator; anything else is parsed as a plain decimal.

    Args:
        text: Raw input such as ``"R$ 1.234,56"``

    Returns:
        The parsed value, or ``0.0`` for empty or malformed input

    Example:
        >>> parse_currency_input("R$ 1.234,56")
        1234.56
        >>> parse_currency_input("abc")
        0.0
    """
    if not text:
        return 0.0
    cleaned = _NUMERIC_CHARS.sub('', str(text))
    if ',' in cleaned and '.' in cleaned:
        cleaned = cleaned.replace('.', '').replace(',', '.')
    elif ',' in cleaned:
        cleaned = cleaned.replace(',', '.')
    try:
        value = float(cleaned)
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def format_currency_display(amount: Union[float, int]) -> str:
    """Format an amount with pt-BR rules and two decimal places.

    Example:
        >>> format_currency_display(-1234.5)
        '-R$ 1.234,50'
    """
    try:
        value = float(amount)
    except (TypeError, ValueError):
        value = 0.0
    if not math.isfinite(value):
        value = 0.0
    formatted = f"{abs(value):,.2f}".translate(_PT_BR_SEPARATORS)
    sign = '-' if value < 0 and formatted != '0,00' else ''
    return f"{sign}{CURRENCY_SYMBOL} {formatted}"


def format_currency_input(digits: Optional[str]) -> str:
    """Render the digits typed into a money field as a value in cents.

    An empty digit string gives an empty string so the field can stay
    blank until the user types.

    Example:
        >>> format_currency_input("123456")
        'R$ 1.234,56'
        >>> format_currency_input("")
        ''
    """
    only_digits = _NON_DIGITS.sub('', digits or '')
    if not only_digits:
        return ''
    return format_currency_display(int(only_digits) / 100)


def format_percentage(value: Union[float, int], decimals: int = 1) -> str:
    """Format a percentage with a decimal comma, e.g. ``'20,0%'``."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = 0.0
    if not math.isfinite(number):
        number = 0.0
    return f"{number:.{decimals}f}%".replace('.', ',')
