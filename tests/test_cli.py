import csv
import json

import pytest
from click.testing import CliRunner

from emi_calc.engine import calculate_emi
from emi_calc.main import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_calculate_prints_result(runner):
    result = runner.invoke(cli, ["calculate"])
    assert result.exit_code == 0, result.output
    assert "Affordability" in result.output
    assert "1,620,000.00" in result.output
    assert "12,150.00" in result.output  # interest-only while in grace
    assert "Excellent" in result.output


def test_calculate_exports_json(runner, tmp_path):
    out = tmp_path / "result.json"
    result = runner.invoke(cli, ["calculate", "--after-grace", "--scenario", "income_reduce", "--output", str(out)])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text())["result"]
    assert data["isAfterGrace"] is True
    assert data["scenario"] == "income_reduce"
    assert data["totalIncome"] == 64000.0
    assert data["monthlyRepayment"] == data["afterGraceRepayment"]
    assert "dscrStatus" in data


def test_calculate_exports_csv(runner, tmp_path):
    out = tmp_path / "result.csv"
    result = runner.invoke(cli, ["calculate", "--output", str(out)])
    assert result.exit_code == 0, result.output
    rows = list(csv.reader(out.open()))
    assert rows[0] == ["Metric", "Value"]
    assert ["bankFinanceAmount", "1620000.0"] in rows


def test_calculate_rejects_unknown_export_format(runner, tmp_path):
    result = runner.invoke(cli, ["calculate", "--output", str(tmp_path / "result.txt")])
    assert result.exit_code != 0
    assert "Unsupported output format" in result.output


def test_loan_type_supplies_rate_and_tenure(runner, tmp_path):
    out = tmp_path / "result.json"
    result = runner.invoke(cli, ["calculate", "--loan-type", "car-loan", "--output", str(out)])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text())["result"]
    assert data["afterGraceRepayment"] == pytest.approx(float(calculate_emi(1620000, "9.5", 60)))


def test_explicit_rate_overrides_loan_type(runner, tmp_path):
    out = tmp_path / "result.json"
    result = runner.invoke(
        cli, ["calculate", "--loan-type", "car-loan", "--rate", "0", "--output", str(out)]
    )
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text())["result"]
    assert data["afterGraceRepayment"] == pytest.approx(1620000 / 60)


def test_unknown_loan_type(runner):
    result = runner.invoke(cli, ["calculate", "--loan-type", "spaceship"])
    assert result.exit_code != 0
    assert "Unknown loan type" in result.output


def test_zero_tenure_reports_error(runner):
    result = runner.invoke(cli, ["calculate", "--tenure", ""])
    assert result.exit_code == 1
    assert "Tenure must be positive" in result.output


def test_compare(runner):
    result = runner.invoke(cli, ["compare", "--rent", "10000"])
    assert result.exit_code == 0, result.output
    assert "normal" in result.output
    assert "income_reduce" in result.output
    assert "DSCR" in result.output


def test_brackets(runner):
    result = runner.invoke(cli, ["brackets"])
    assert result.exit_code == 0
    assert "720,000.00" in result.output
    assert "and above" in result.output


def test_presets_from_env_file(runner, tmp_path):
    presets_file = tmp_path / "presets.json"
    presets_file.write_text(json.dumps([{"id": "farm", "name": "Farm Loan", "interestRate": 6, "tenure": 180}]))
    result = runner.invoke(cli, ["presets"], env={"EMI_CALC_PRESETS_FILE": str(presets_file)})
    assert result.exit_code == 0, result.output
    assert "Farm Loan" in result.output
    assert "Home Loan" not in result.output


def test_presets_defaults(runner):
    result = runner.invoke(cli, ["presets"], env={"EMI_CALC_PRESETS_FILE": None})
    assert result.exit_code == 0
    assert "Home Loan" in result.output
