"""Numeric helpers for the EMI calculator.

This module owns the decimal arithmetic policy shared by every calculation:
28 significant digits with half-up rounding. It also provides the parsing
boundary that turns user-entered text into ``Decimal`` values, treating
anything unparsable as zero.
"""

from __future__ import annotations

import functools
import re
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext
from typing import Any, Callable, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

# ``getcontext()`` is thread-local, so calculations enter this context
# explicitly instead of mutating the process default.
FINANCIAL_CONTEXT = Context(prec=28, rounding=ROUND_HALF_UP)

ZERO = Decimal("0")

_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def financial_precision(func: F) -> F:
    """Run ``func`` under :data:`FINANCIAL_CONTEXT`."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with localcontext(FINANCIAL_CONTEXT):
            return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def to_decimal(value: Any) -> Decimal:
    """Convert a native number (or numeric string) into a ``Decimal``.

    Floats go through ``str`` first so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    return decimal_from_str(str(value))


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = value.strip().replace(",", "")
        return Decimal(cleaned)
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def get_numeric_value(raw: Any) -> Decimal:
    """Parse user-entered text into a ``Decimal``, defaulting to zero.

    Only the leading numeric literal is used, so ``"12.5 months"`` parses as
    ``12.5``. Empty input, ``None`` and text without a leading number yield
    ``0``. Thousands separators are ignored. Native numbers are accepted as
    well; non-finite values are treated as zero.
    """
    if raw is None:
        return ZERO
    if isinstance(raw, (int, float, Decimal)):
        try:
            value = to_decimal(raw)
        except ValueError:
            return ZERO
        return value if value.is_finite() else ZERO
    text = str(raw).strip().replace(",", "")
    match = _LEADING_NUMBER.match(text)
    if not match:
        return ZERO
    value = Decimal(match.group(0))
    return value if value.is_finite() else ZERO


def round_to_places(value: Any, places: int = 2) -> Decimal:
    """Round ``value`` half-up to ``places`` decimal places for display."""
    quantum = Decimal(1).scaleb(-places)
    with localcontext(FINANCIAL_CONTEXT):
        return to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
