"""Progressive income tax.

Annual income is split across contiguous brackets and each slice is taxed at
its own rate. The table is a module-level tuple of frozen dataclasses, so it
cannot be changed at runtime; :func:`get_tax_brackets` hands out a copy for
display.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Sequence

from .data_models import TaxBracket
from .utils import ZERO, financial_precision, to_decimal

TAX_BRACKETS = (
    TaxBracket(Decimal("0"), Decimal("720000"), Decimal("0")),
    TaxBracket(Decimal("720000"), Decimal("1200000"), Decimal("5.5")),
    TaxBracket(Decimal("1200000"), Decimal("1800000"), Decimal("8")),
    TaxBracket(Decimal("1800000"), Decimal("2400000"), Decimal("12")),
    TaxBracket(Decimal("2400000"), None, Decimal("15")),
)


@financial_precision
def calculate_annual_income_tax(
    annual_income: Any, brackets: Sequence[TaxBracket] = TAX_BRACKETS
) -> Decimal:
    """Return the tax owed on ``annual_income`` for a whole year."""
    income = to_decimal(annual_income)
    tax = ZERO
    for bracket in brackets:
        if income <= bracket.lower_bound:
            continue
        taxable = income - bracket.lower_bound
        if bracket.upper_bound is not None:
            taxable = min(taxable, bracket.upper_bound - bracket.lower_bound)
        tax += taxable * bracket.rate / 100
    return tax


@financial_precision
def calculate_income_tax(
    annual_income: Any, brackets: Sequence[TaxBracket] = TAX_BRACKETS
) -> Decimal:
    """Return the monthly tax liability for ``annual_income``."""
    return calculate_annual_income_tax(annual_income, brackets) / 12


def get_tax_brackets() -> List[TaxBracket]:
    """Return a copy of the tax table, lowest bracket first."""
    return list(TAX_BRACKETS)
