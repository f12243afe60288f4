"""Numeric-likeness of single cell values."""

import math
import re
from typing import Any, Optional

# ASCII number syntax only: unicode digits and "1_000" are not numbers in a CSV
_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_PREFIXED_INTEGER = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)", re.ASCII)


def _normalize(value: Any) -> Optional[str]:
    if value is None:
        return None
    normalized = str(value).strip().replace(",", "")
    return normalized or None


def to_number(value: Any) -> Optional[float]:
    """
    Parse a cell value as a finite number.

    Surrounding whitespace and grouping commas are ignored, so "1,234.5"
    parses as 1234.5. Decimal and exponent notation are accepted, as are
    unsigned hex, octal and binary literals ("0x1A").

    Returns:
        The parsed value, or None if the cell is blank or not a finite number
    """
    normalized = _normalize(value)
    if normalized is None:
        return None

    if _PREFIXED_INTEGER.fullmatch(normalized):
        try:
            return float(int(normalized, 0))
        except OverflowError:
            return None
    if not _DECIMAL.fullmatch(normalized):
        return None

    number = float(normalized)
    if not math.isfinite(number):
        return None
    return number


def is_numeric_like(value: Any) -> bool:
    """Check whether a cell value looks like a finite number."""
    return to_number(value) is not None
