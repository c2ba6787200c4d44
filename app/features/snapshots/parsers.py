"""Numeric and text coercion for raw export values.

Coercion policy:
- quantity: strip thousands separators, parse as a number, truncate to int.
- estimated_cost: strip currency symbols and thousands separators, parse as float.
- Empty or unparsable values become 0; negative values are clamped to 0.
"""

import math
import re

_THOUSANDS_RE = re.compile(r"[,\s]")
_CURRENCY_RE = re.compile(r"[$€£¥,\s]")
_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def normalize_text(raw: object) -> str | None:
    """Strip a raw text value; blank or missing becomes None."""
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def _to_finite_float(text: str) -> float | None:
    """Plain decimal or exponent notation only; "1_000", "nan" and "inf" are unparsable."""
    if not _NUMBER_RE.fullmatch(text):
        return None
    value = float(text)
    return value if math.isfinite(value) else None


def parse_quantity(raw: str | int | float | None) -> int:
    """Parse a quantity value using the export coercion policy.

    Args:
        raw: Raw value, e.g. "1,234", "12.0", 7 or None.

    Returns:
        Non-negative integer quantity (0 for empty or unparsable input).
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return max(raw, 0)
    if isinstance(raw, float):
        return max(int(raw), 0) if math.isfinite(raw) else 0

    value = _to_finite_float(_THOUSANDS_RE.sub("", raw))
    if value is None:
        return 0
    return max(int(value), 0)


def parse_cost(raw: str | int | float | None) -> float:
    """Parse an estimated cost value using the export coercion policy.

    Args:
        raw: Raw value, e.g. "$1,299.99", "4.5", 3 or None.

    Returns:
        Non-negative float cost (0.0 for empty or unparsable input).
    """
    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, int | float):
        value: float | None = float(raw) if math.isfinite(raw) else None
    else:
        value = _to_finite_float(_CURRENCY_RE.sub("", raw))
    if value is None:
        return 0.0
    return max(value, 0.0)
