"""Core calculation engine for the EMI calculator.

This module implements the affordability logic: the amortized monthly
installment (EMI), the interest-only payment due during a grace period, the
income stress scenario, and the aggregation of income, expenditure, tax and
repayments into a Debt Service Coverage Ratio (DSCR). Every function is pure
and works on ``Decimal`` values under the shared financial context, so it can
be called concurrently without coordination.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Mapping, NamedTuple, Union

from .data_models import CalculationResult, GraceState, LoanInput, Scenario
from .tax import calculate_income_tax
from .utils import ZERO, financial_precision, to_decimal

logger = logging.getLogger(__name__)

# Living expenses as a share of income; lower share above the threshold.
EXPENDITURE_THRESHOLD = Decimal("25000")
HIGH_INCOME_EXPENDITURE_RATE = Decimal("0.35")
LOW_INCOME_EXPENDITURE_RATE = Decimal("0.40")

MAINTENANCE_RATE = Decimal("0.05")


class AdjustedIncome(NamedTuple):
    salary: Decimal
    rent: Decimal
    other: Decimal
    project_income: Decimal


@financial_precision
def calculate_emi(principal: Any, annual_rate: Any, tenure_months: Any) -> Decimal:
    """Return the equated monthly installment for a fully amortizing loan.

    The formula is:

        payment = P * i * (1 + i)^n / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate
    (annual percent / 100 / 12) and ``n`` is the number of monthly payments.
    When the interest rate is zero the payment simplifies to ``P / n``; the
    same applies when the rate is too small for ``(1 + i)^n`` to differ from
    1 at working precision.
    """
    p = to_decimal(principal)
    n = to_decimal(tenure_months)
    if n <= 0:
        raise ValueError("Tenure must be positive")
    rate_per_month = to_decimal(annual_rate) / 100 / 12
    if rate_per_month == 0:
        return p / n
    factor = (1 + rate_per_month) ** n
    if factor == 1:
        return p / n
    return p * rate_per_month * factor / (factor - 1)


@financial_precision
def calculate_grace_period_payment(principal: Any, annual_rate: Any) -> Decimal:
    """Return the interest-only monthly payment owed during the grace period."""
    return to_decimal(principal) * to_decimal(annual_rate) / 100 / 12


@financial_precision
def apply_scenario_multipliers(loan_input: LoanInput, scenario: Scenario) -> AdjustedIncome:
    """Scale every income stream by the scenario's multiplier.

    Costs, rates and tenure are left alone; only salary, rent, other income
    and project income change.
    """
    multiplier = Scenario(scenario).income_multiplier
    return AdjustedIncome(
        salary=loan_input.salary * multiplier,
        rent=loan_input.rent * multiplier,
        other=loan_input.other * multiplier,
        project_income=loan_input.project_income * multiplier,
    )


@financial_precision
def calculate_bank_finance_amount(total_project_cost: Any, equity_percentage: Any) -> Decimal:
    """Portion of the project cost financed by the bank."""
    equity_ratio = to_decimal(equity_percentage) / 100
    return to_decimal(total_project_cost) * (1 - equity_ratio)


@financial_precision
def calculate_equity_amount(total_project_cost: Any, equity_percentage: Any) -> Decimal:
    """Portion of the project cost paid by the borrower."""
    return to_decimal(total_project_cost) * to_decimal(equity_percentage) / 100


def _expenditure_rate(total_income: Decimal) -> Decimal:
    if total_income > EXPENDITURE_THRESHOLD:
        return HIGH_INCOME_EXPENDITURE_RATE
    return LOW_INCOME_EXPENDITURE_RATE


def _maintenance_cost(adjusted: AdjustedIncome, grace_state: GraceState) -> Decimal:
    """5 % of rent plus, once the grace period is over, project income."""
    if adjusted.rent <= 0 and adjusted.project_income <= 0:
        return ZERO
    base = adjusted.rent
    if grace_state.is_after_grace:
        base += adjusted.project_income
    return base * MAINTENANCE_RATE


@financial_precision
def perform_calculations(
    loan_input: Union[LoanInput, Mapping[str, Any]],
    scenario: Union[Scenario, str] = Scenario.NORMAL,
    grace_state: Union[GraceState, str] = GraceState.IN_GRACE,
) -> CalculationResult:
    """Compute the full set of affordability figures.

    Parameters
    ----------
    loan_input: LoanInput or mapping
        The borrower's figures. A mapping of raw form strings is converted
        with :meth:`LoanInput.from_strings`.
    scenario: Scenario
        ``normal`` or the ``income_reduce`` stress case.
    grace_state: GraceState
        Whether the loan has left its grace period. This decides whether
        project income counts, whether maintenance covers project income and
        which repayment the borrower currently pays.

    Returns
    -------
    CalculationResult
        All figures as ``Decimal``. DSCR is always measured against the
        post-grace EMI plus existing loans, and is 0 when that obligation is 0.
    """
    if not isinstance(loan_input, LoanInput):
        loan_input = LoanInput.from_strings(loan_input)
    scenario = Scenario(scenario)
    grace_state = GraceState(grace_state)

    adjusted = apply_scenario_multipliers(loan_input, scenario)

    total_income = adjusted.salary + adjusted.rent + adjusted.other
    total_expenditure = total_income * _expenditure_rate(total_income)

    # Project income only starts flowing once the grace period ends.
    total_project_income = adjusted.project_income if grace_state.is_after_grace else ZERO

    bank_finance_amount = calculate_bank_finance_amount(
        loan_input.total_project_cost, loan_input.equity_percentage
    )
    equity_amount = calculate_equity_amount(
        loan_input.total_project_cost, loan_input.equity_percentage
    )

    after_grace_repayment = calculate_emi(
        bank_finance_amount, loan_input.rate, loan_input.repayment_period
    )
    grace_period_repayment = calculate_grace_period_payment(bank_finance_amount, loan_input.rate)
    current_repayment = (
        after_grace_repayment if grace_state.is_after_grace else grace_period_repayment
    )

    maintenance_cost = _maintenance_cost(adjusted, grace_state)

    annual_total_income = (total_income + total_project_income) * 12
    monthly_income_tax = calculate_income_tax(annual_total_income)

    total_project_expenditure = maintenance_cost + monthly_income_tax
    # Stress buffer: only non-zero in the income_reduce scenario.
    total_project_expenditure += total_income * scenario.stress_buffer_rate

    net_income = (
        total_income - total_expenditure + total_project_income - total_project_expenditure
    )

    total_obligation = loan_input.existing_loans + after_grace_repayment
    dscr = ZERO if total_obligation == 0 else net_income / total_obligation

    logger.debug(
        "Calculated DSCR %s (scenario=%s, grace_state=%s, obligation=%s)",
        dscr,
        scenario.value,
        grace_state.value,
        total_obligation,
    )

    return CalculationResult(
        total_income=total_income,
        total_expenditure=total_expenditure,
        total_project_income=total_project_income,
        total_project_expenditure=total_project_expenditure,
        net_income=net_income,
        monthly_repayment=current_repayment,
        after_grace_repayment=after_grace_repayment,
        grace_period_repayment=grace_period_repayment,
        dscr=dscr,
        income_tax=monthly_income_tax,
        maintenance_cost=maintenance_cost,
        bank_finance_amount=bank_finance_amount,
        equity_amount=equity_amount,
        scenario=scenario,
        grace_state=grace_state,
    )


def compare_scenarios(
    loan_input: Union[LoanInput, Mapping[str, Any]],
    grace_state: Union[GraceState, str] = GraceState.IN_GRACE,
) -> Dict[Scenario, CalculationResult]:
    """Run the calculation under every scenario for a side-by-side view."""
    return {
        scenario: perform_calculations(loan_input, scenario, grace_state)
        for scenario in Scenario
    }
