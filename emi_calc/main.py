"""Command-line interface for the EMI calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute affordability figures for a loan, compare the
normal and reduced-income scenarios, and inspect the tax table and loan
presets. Results can be printed to the terminal or exported to JSON/CSV
files.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import click

from .data_models import CalculationResult, GraceState, LoanInput, LoanPreset, Scenario
from .engine import compare_scenarios, perform_calculations
from .formatter import dscr_status, print_comparison, print_presets, print_result, print_tax_brackets
from .presets import apply_preset, find_preset, get_default_presets, load_presets_json
from .tax import get_tax_brackets

logger = logging.getLogger(__name__)

PRESETS_ENV_VAR = "EMI_CALC_PRESETS_FILE"


def read_presets(presets_file: Optional[str]) -> List[LoanPreset]:
    """Load presets from a JSON file of records, or the built-in defaults."""
    if not presets_file:
        return get_default_presets()
    try:
        text = Path(presets_file).read_text(encoding="utf-8")
    except OSError as exc:
        raise click.BadParameter(f"Cannot read presets file {presets_file}: {exc}")
    return load_presets_json(text)


def build_input_from_options(
    salary: str,
    rent: str,
    other: str,
    project_income: str,
    existing_loans: str,
    total_project_cost: str,
    equity_percentage: str,
    rate: Optional[str],
    tenure: Optional[str],
    grace_period: str,
    loan_type: Optional[str] = None,
    presets_file: Optional[str] = None,
) -> LoanInput:
    """Turn raw option strings into a ``LoanInput``.

    When ``loan_type`` names a preset, its rate and tenure fill whichever of
    ``rate``/``tenure`` were not given explicitly.
    """
    loan_input = LoanInput.from_strings(
        {
            "salary": salary,
            "rent": rent,
            "other": other,
            "projectIncome": project_income,
            "existingLoans": existing_loans,
            "totalProjectCost": total_project_cost,
            "equityPercentage": equity_percentage,
            "rate": rate if rate is not None else "9.0",
            "repaymentPeriod": tenure if tenure is not None else "240",
            "gracePeriod": grace_period,
        }
    )
    if loan_type:
        presets = read_presets(presets_file)
        preset = find_preset(presets, loan_type)
        if preset is None:
            known = ", ".join(p.id for p in presets)
            raise click.BadParameter(f"Unknown loan type {loan_type!r}; choose one of: {known}")
        loan_input = apply_preset(
            loan_input, preset, keep_rate=rate is not None, keep_tenure=tenure is not None
        )
    logger.debug("Built loan input: %s", loan_input)
    return loan_input


def _calculate(func: Callable[..., Any], *args: Any) -> Any:
    try:
        return func(*args)
    except ValueError as exc:
        raise click.ClickException(str(exc))


def export_to_json(path: Path, result: CalculationResult) -> None:
    """Export a calculation result to a JSON file."""
    data = result.to_dict()
    data["dscrStatus"] = dscr_status(result.dscr)
    with path.open("w", encoding="utf-8") as f:
        json.dump({"result": data}, f, indent=2)


def export_to_csv(path: Path, result: CalculationResult) -> None:
    """Export a calculation result to a two-column CSV file."""
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Metric", "Value"])
        for key, value in result.to_dict().items():
            writer.writerow([key, value])


def loan_input_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the borrower input options shared by ``calculate`` and ``compare``."""
    options = [
        click.option("--salary", default="80000", show_default=True, help="Monthly salary"),
        click.option("--rent", default="", help="Monthly rental income"),
        click.option("--other", default="", help="Other monthly income"),
        click.option("--project-income", "project_income", default="", help="Monthly project income"),
        click.option("--existing-loans", "existing_loans", default="", help="Monthly repayment on existing loans"),
        click.option("--cost", "total_project_cost", default="1800000", show_default=True, help="Total project cost"),
        click.option("--equity", "equity_percentage", default="10", show_default=True, help="Equity percentage (0-100)"),
        click.option("--rate", "-r", "rate", default=None, help="Annual interest rate (percent) [default: 9.0]"),
        click.option("--tenure", "-t", "tenure", default=None, help="Repayment period in months [default: 240]"),
        click.option("--grace-period", "grace_period", default="", help="Grace period in months"),
        click.option("--loan-type", "loan_type", default=None, help="Preset id supplying rate and tenure"),
        click.option(
            "--presets-file",
            "presets_file",
            envvar=PRESETS_ENV_VAR,
            default=None,
            help="JSON file with a list of loan preset records",
        ),
        click.option(
            "--after-grace/--in-grace",
            "after_grace",
            default=False,
            help="Whether the loan has passed its grace period",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Loan affordability calculator: EMI, income tax and DSCR."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_input_options
@click.option(
    "--scenario",
    type=click.Choice([s.value for s in Scenario]),
    default=Scenario.NORMAL.value,
    show_default=True,
    help="Income scenario",
)
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def calculate(
    scenario: str,
    output: Optional[str],
    after_grace: bool,
    **options: Any,
) -> None:
    """Compute and print affordability figures for one scenario."""
    loan_input = build_input_from_options(**options)
    result = _calculate(perform_calculations, loan_input, Scenario(scenario), GraceState.from_flag(after_grace))
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Result exported to {path}")
    else:
        print_result(result)


@cli.command()
@loan_input_options
def compare(after_grace: bool, **options: Any) -> None:
    """Compare the normal and reduced-income scenarios."""
    loan_input = build_input_from_options(**options)
    results: Dict[Scenario, CalculationResult] = _calculate(
        compare_scenarios, loan_input, GraceState.from_flag(after_grace)
    )
    print_comparison(results[Scenario.NORMAL], results[Scenario.INCOME_REDUCE])


@cli.command()
def brackets() -> None:
    """Print the progressive income tax table (annual amounts)."""
    print_tax_brackets(get_tax_brackets())


@cli.command()
@click.option("--presets-file", "presets_file", envvar=PRESETS_ENV_VAR, default=None, help="JSON file with a list of loan preset records")
def presets(presets_file: Optional[str]) -> None:
    """List the available loan presets."""
    print_presets(read_presets(presets_file))


if __name__ == "__main__":
    cli()
