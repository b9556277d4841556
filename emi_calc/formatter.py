"""Output helpers for the EMI calculator.

This module renders calculation results, the tax table and loan presets in a
simple tabular text format using built-in printing. Amounts are shown with
two decimals and thousands separators; no currency symbol is attached.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Tuple

from .data_models import CalculationResult, LoanPreset, TaxBracket
from .utils import round_to_places

EXCELLENT_DSCR = Decimal("1.25")
ADEQUATE_DSCR = Decimal("1.0")


def dscr_status(dscr) -> str:
    """Classify a DSCR for display."""
    value = Decimal(str(dscr))
    if value >= EXCELLENT_DSCR:
        return "Excellent"
    if value >= ADEQUATE_DSCR:
        return "Good"
    return "Needs Improvement"


def format_amount(value) -> str:
    return f"{round_to_places(value):,.2f}"


def _result_rows(result: CalculationResult) -> List[Tuple[str, Decimal]]:
    return [
        ("Total income", result.total_income),
        ("Total expenditure", result.total_expenditure),
        ("Project income", result.total_project_income),
        ("Project expenditure", result.total_project_expenditure),
        ("Maintenance cost", result.maintenance_cost),
        ("Income tax", result.income_tax),
        ("Net income", result.net_income),
        ("Bank finance", result.bank_finance_amount),
        ("Equity", result.equity_amount),
        ("Current repayment", result.monthly_repayment),
        ("Grace repayment", result.grace_period_repayment),
        ("After-grace EMI", result.after_grace_repayment),
    ]


def print_result(result: CalculationResult) -> None:
    """Print a single calculation result in a human-readable format."""
    print("Affordability")
    print("-" * 72)
    print(f"Scenario           : {result.scenario.value}")
    print(f"Loan state         : {result.grace_state.value}")
    for label, value in _result_rows(result):
        print(f"{label:19s}: {format_amount(value)}")
    print(f"{'DSCR':19s}: {round_to_places(result.dscr)} ({dscr_status(result.dscr)})")
    print("-" * 72)


def print_comparison(base: CalculationResult, stressed: CalculationResult) -> None:
    """Print two results side by side.

    The difference column is ``stressed - base``; a negative value means the
    stressed scenario is lower for that metric.
    """
    print("Comparison")
    print("=" * 72)
    print(f"{'Metric':20s} {base.scenario.value:>15s} {stressed.scenario.value:>15s} {'Difference':>15s}")
    rows = list(zip(_result_rows(base), _result_rows(stressed)))
    rows.append((("DSCR", base.dscr), ("DSCR", stressed.dscr)))
    for (label, v1), (_, v2) in rows:
        diff = v2 - v1
        print(f"{label:20s} {format_amount(v1):>15s} {format_amount(v2):>15s} {format_amount(diff):>15s}")
    print("=" * 72)


def print_tax_brackets(brackets: Iterable[TaxBracket]) -> None:
    print(f"{'From':>15s} {'To':>15s} {'Rate':>8s}")
    for bracket in brackets:
        upper = "and above" if bracket.upper_bound is None else format_amount(bracket.upper_bound)
        print(f"{format_amount(bracket.lower_bound):>15s} {upper:>15s} {bracket.rate:>7}%")


def print_presets(presets: Iterable[LoanPreset]) -> None:
    print(f"{'ID':20s} {'Name':20s} {'Rate':>8s} {'Tenure':>8s}")
    for preset in presets:
        print(f"{preset.id:20s} {preset.name:20s} {preset.interest_rate:>7}% {preset.tenure:>8}")
