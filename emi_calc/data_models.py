"""Data models for the EMI calculator.

This module defines the value types that flow through the calculation
engine: the borrower's figures for one calculation (``LoanInput``), the
progressive tax table rows (``TaxBracket``), the stress scenario and loan
state variants, the structured result, and loan presets supplied by an
external collaborator. All of them are immutable.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .utils import ZERO, get_numeric_value


class Scenario(str, Enum):
    """Income scenario used for a calculation.

    ``INCOME_REDUCE`` is a stress case in which every income source drops by
    20 % and an extra buffer of 20 % of total income is booked as project
    expenditure.
    """

    NORMAL = "normal"
    INCOME_REDUCE = "income_reduce"

    @property
    def income_multiplier(self) -> Decimal:
        return Decimal("0.8") if self is Scenario.INCOME_REDUCE else Decimal("1")

    @property
    def stress_buffer_rate(self) -> Decimal:
        return Decimal("0.20") if self is Scenario.INCOME_REDUCE else ZERO


class GraceState(str, Enum):
    """Whether the loan is still inside its interest-only grace period."""

    IN_GRACE = "in_grace"
    AFTER_GRACE = "after_grace"

    @property
    def is_after_grace(self) -> bool:
        return self is GraceState.AFTER_GRACE

    @classmethod
    def from_flag(cls, is_after_grace: bool) -> "GraceState":
        return cls.AFTER_GRACE if is_after_grace else cls.IN_GRACE


# Raw form keys (as entered by the user) mapped to ``LoanInput`` attributes.
FORM_FIELDS = {
    "salary": "salary",
    "rent": "rent",
    "other": "other",
    "projectIncome": "project_income",
    "existingLoans": "existing_loans",
    "totalProjectCost": "total_project_cost",
    "equityPercentage": "equity_percentage",
    "rate": "rate",
    "repaymentPeriod": "repayment_period",
    "gracePeriod": "grace_period",
}


@dataclass(frozen=True)
class LoanInput:
    """Borrower figures for a single calculation.

    Attributes
    ----------
    salary, rent, other, project_income: Decimal
        Monthly income streams. Project income only counts once the grace
        period is over.
    existing_loans: Decimal
        Monthly repayment already owed on other debt.
    total_project_cost: Decimal
        Full cost of the project being financed.
    equity_percentage: Decimal
        Share of the project cost paid by the borrower, 0-100.
    rate: Decimal
        Annual nominal interest rate in percent.
    repayment_period: Decimal
        Repayment tenure in months.
    grace_period: Decimal
        Grace period in months. Informational; the loan state is chosen by
        the caller through ``GraceState``.
    """

    salary: Decimal = ZERO
    rent: Decimal = ZERO
    other: Decimal = ZERO
    project_income: Decimal = ZERO
    existing_loans: Decimal = ZERO
    total_project_cost: Decimal = ZERO
    equity_percentage: Decimal = ZERO
    rate: Decimal = ZERO
    repayment_period: Decimal = ZERO
    grace_period: Decimal = ZERO

    def __post_init__(self) -> None:
        # Accept ints, floats and strings; store Decimals only.
        for f in fields(self):
            object.__setattr__(self, f.name, get_numeric_value(getattr(self, f.name)))

    @classmethod
    def from_strings(cls, form: Mapping[str, Any]) -> "LoanInput":
        """Build a ``LoanInput`` from raw form values.

        Keys may be given in camelCase (``projectIncome``) or as attribute
        names (``project_income``). Missing or unparsable values become 0.
        """
        values: Dict[str, Decimal] = {}
        for form_key, attr in FORM_FIELDS.items():
            raw = form.get(form_key, form.get(attr))
            values[attr] = get_numeric_value(raw)
        return cls(**values)


@dataclass(frozen=True)
class TaxBracket:
    """One row of the progressive income tax table (annual amounts).

    ``upper_bound`` is ``None`` for the top, unbounded bracket. ``rate`` is a
    percentage of the income falling inside the bracket.
    """

    lower_bound: Decimal
    upper_bound: Optional[Decimal]
    rate: Decimal

    def as_dict(self) -> Dict[str, Optional[float]]:
        return {
            "min": float(self.lower_bound),
            "max": None if self.upper_bound is None else float(self.upper_bound),
            "rate": float(self.rate),
        }


@dataclass(frozen=True)
class CalculationResult:
    """Monthly affordability figures for one (input, scenario, state) triple.

    ``monthly_repayment`` is what the borrower pays right now: the
    interest-only amount during grace, the full EMI afterwards.
    ``after_grace_repayment`` is always the full EMI and is the figure DSCR is
    measured against.
    """

    total_income: Decimal
    total_expenditure: Decimal
    total_project_income: Decimal
    total_project_expenditure: Decimal
    net_income: Decimal
    monthly_repayment: Decimal
    after_grace_repayment: Decimal
    grace_period_repayment: Decimal
    dscr: Decimal
    income_tax: Decimal
    maintenance_cost: Decimal
    bank_finance_amount: Decimal
    equity_amount: Decimal
    scenario: Scenario = Scenario.NORMAL
    grace_state: GraceState = GraceState.IN_GRACE

    def to_dict(self) -> Dict[str, Any]:
        """Return the result with native floats, keyed for API consumers."""
        return {
            "totalIncome": float(self.total_income),
            "totalExpenditure": float(self.total_expenditure),
            "totalProjectIncome": float(self.total_project_income),
            "totalProjectExpenditure": float(self.total_project_expenditure),
            "netIncome": float(self.net_income),
            "monthlyRepayment": float(self.monthly_repayment),
            "afterGraceRepayment": float(self.after_grace_repayment),
            "gracePeriodRepayment": float(self.grace_period_repayment),
            "dscr": float(self.dscr),
            "incomeTax": float(self.income_tax),
            "maintenanceCost": float(self.maintenance_cost),
            "bankFinanceAmount": float(self.bank_finance_amount),
            "equityAmount": float(self.equity_amount),
            "scenario": self.scenario.value,
            "isAfterGrace": self.grace_state.is_after_grace,
        }


@dataclass(frozen=True)
class LoanPreset:
    """A named loan product whose rate and tenure seed a calculation."""

    id: str
    name: str
    interest_rate: Decimal
    tenure: Decimal = Decimal("60")

    def as_record(self) -> Dict[str, Any]:
        tenure = self.tenure
        return {
            "id": self.id,
            "name": self.name,
            "interestRate": float(self.interest_rate),
            "tenure": int(tenure) if tenure == tenure.to_integral_value() else float(tenure),
        }
