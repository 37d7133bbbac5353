"""
Typed coercion of spreadsheet cell values.

Cells arrive as whatever openpyxl found in the sheet: None, str, int,
float, bool or datetime. These helpers accept any of them and fall back
to an explicit default instead of failing.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time
from html import escape
from typing import Any, Union

Number = Union[int, float]

_TRUE_WORDS = ("true", "1", "yes")


def as_str(value: Any) -> str:
    """Cell value as trimmed text; blank cells read as ''."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value).strip()


def as_num(value: Any, default: Number = 0) -> Number:
    """Cell value as a number, ``default`` when blank or not numeric."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return int(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return int(number) if number.is_integer() else number


def as_int(value: Any, default: int = 0) -> int:
    number = as_num(value, default)
    return int(number)


def as_bool(value: Any) -> bool:
    """``true``, ``1`` and ``yes`` (any case) are true; everything else is false."""
    if isinstance(value, bool):
        return value
    return as_str(value).lower() in _TRUE_WORDS


def display(value: Any) -> str:
    """Cell value as text escaped for HTML display (& < > " ')."""
    return escape(as_str(value), quote=True)
