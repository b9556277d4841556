import logging
import os
from pathlib import Path

from flask import Flask, jsonify, request

from emi_calc.data_models import GraceState, LoanInput, Scenario
from emi_calc.engine import compare_scenarios, perform_calculations
from emi_calc.formatter import dscr_status
from emi_calc.presets import apply_preset, find_preset, get_default_presets, load_presets_json
from emi_calc.tax import get_tax_brackets

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["PRESETS_FILE"] = os.environ.get("EMI_CALC_PRESETS_FILE")


class RequestError(ValueError):
    """Raised for malformed API requests; answered with HTTP 400."""


@app.errorhandler(RequestError)
def _handle_request_error(exc):
    return jsonify({"error": str(exc)}), 400


def _load_presets():
    path = app.config.get("PRESETS_FILE")
    if not path:
        return get_default_presets()
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Cannot read presets file %s: %s", path, exc)
        return get_default_presets()
    return load_presets_json(text)


def _request_to_input():
    """Parse the JSON body into (LoanInput, Scenario, GraceState)."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise RequestError("Request body must be a JSON object")
    form = payload.get("form") or {}
    if not isinstance(form, dict):
        raise RequestError("'form' must be an object of field values")

    try:
        scenario = Scenario(payload.get("scenario", Scenario.NORMAL.value))
    except ValueError:
        raise RequestError(f"Unknown scenario: {payload.get('scenario')!r}")
    after_grace = payload.get("afterGrace", False)
    if not isinstance(after_grace, bool):
        raise RequestError("'afterGrace' must be a JSON boolean")
    grace_state = GraceState.from_flag(after_grace)

    loan_input = LoanInput.from_strings(form)
    loan_type = payload.get("loanType")
    if loan_type:
        preset = find_preset(_load_presets(), loan_type)
        if preset is None:
            raise RequestError(f"Unknown loan type: {loan_type!r}")
        # Values typed into the form win over the preset defaults.
        loan_input = apply_preset(
            loan_input,
            preset,
            keep_rate=_has_value(form, "rate"),
            keep_tenure=_has_value(form, "repaymentPeriod", "repayment_period"),
        )
    return loan_input, scenario, grace_state


def _has_value(form, *keys):
    return any(form.get(key) is not None and str(form.get(key)).strip() for key in keys)


def _serialize_result(result):
    data = result.to_dict()
    data["dscrStatus"] = dscr_status(result.dscr)
    return data


@app.get("/api/tax-brackets")
def tax_brackets():
    return jsonify([bracket.as_dict() for bracket in get_tax_brackets()])


@app.get("/api/presets")
def presets():
    return jsonify([preset.as_record() for preset in _load_presets()])


@app.post("/api/calculate")
def calculate():
    loan_input, scenario, grace_state = _request_to_input()
    try:
        result = perform_calculations(loan_input, scenario, grace_state)
    except ValueError as exc:
        raise RequestError(str(exc))
    return jsonify(_serialize_result(result))


@app.post("/api/compare")
def compare():
    loan_input, _, grace_state = _request_to_input()
    try:
        results = compare_scenarios(loan_input, grace_state)
    except ValueError as exc:
        raise RequestError(str(exc))
    return jsonify(
        {
            "normal": _serialize_result(results[Scenario.NORMAL]),
            "incomeReduce": _serialize_result(results[Scenario.INCOME_REDUCE]),
        }
    )


if __name__ == "__main__":
    print("Starting EMI calculator API...")
    app.run(host="0.0.0.0", port=8710, debug=os.environ.get("FLASK_DEBUG") == "1")
