import json

import pytest

from emi_calc_web.app import app

FORM = {
    "salary": "80000",
    "totalProjectCost": "1800000",
    "equityPercentage": "10",
    "rate": "9.0",
    "repaymentPeriod": "240",
}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setitem(app.config, "PRESETS_FILE", None)
    app.config["TESTING"] = True
    return app.test_client()


def test_tax_brackets(client):
    resp = client.get("/api/tax-brackets")
    assert resp.status_code == 200
    data = resp.get_json()
    assert len(data) == 5
    assert data[0] == {"min": 0.0, "max": 720000.0, "rate": 0.0}
    assert data[-1]["max"] is None


def test_presets_default(client):
    data = client.get("/api/presets").get_json()
    assert data[0] == {"id": "home-loan", "name": "Home Loan", "interestRate": 8.5, "tenure": 240}


def test_presets_from_file(client, tmp_path):
    presets_file = tmp_path / "presets.json"
    presets_file.write_text(json.dumps([{"id": "farm", "name": "Farm", "interestRate": 6, "tenure": 180}]))
    app.config["PRESETS_FILE"] = str(presets_file)
    data = client.get("/api/presets").get_json()
    assert [p["id"] for p in data] == ["farm"]


def test_calculate(client):
    resp = client.post("/api/calculate", json={"form": FORM, "afterGrace": True})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["bankFinanceAmount"] == 1620000.0
    assert data["totalExpenditure"] == 28000.0
    assert data["netIncome"] == 50900.0
    assert data["isAfterGrace"] is True
    assert data["dscrStatus"] == "Excellent"


def test_calculate_with_loan_type(client):
    form = {k: v for k, v in FORM.items() if k not in ("rate", "repaymentPeriod")}
    resp = client.post("/api/calculate", json={"form": form, "loanType": "personal-loan"})
    assert resp.status_code == 200
    data = resp.get_json()
    # grace payment at 12% on 1.62M
    assert data["gracePeriodRepayment"] == pytest.approx(16200.0)


def test_form_values_win_over_loan_type(client):
    resp = client.post("/api/calculate", json={"form": FORM, "loanType": "personal-loan"})
    data = resp.get_json()
    # rate 9.0 from the form, not the preset's 12%
    assert data["gracePeriodRepayment"] == pytest.approx(12150.0)


def test_tiny_rate_is_not_a_server_error(client):
    resp = client.post("/api/calculate", json={"form": {**FORM, "rate": "1e-26"}, "afterGrace": True})
    assert resp.status_code == 200
    assert resp.get_json()["afterGraceRepayment"] == pytest.approx(1620000 / 240)


def test_compare(client):
    data = client.post("/api/compare", json={"form": FORM}).get_json()
    assert data["normal"]["totalIncome"] == 80000.0
    assert data["incomeReduce"]["totalIncome"] == 64000.0


@pytest.mark.parametrize(
    "body",
    [
        {"form": FORM, "scenario": "boom"},
        {"form": FORM, "loanType": "spaceship"},
        {"form": "salary=1"},
        {"form": {**FORM, "repaymentPeriod": ""}},
        {"form": FORM, "afterGrace": "false"},
        {"form": FORM, "afterGrace": 1},
    ],
)
def test_bad_requests(client, body):
    resp = client.post("/api/calculate", json=body)
    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_non_json_body(client):
    resp = client.post("/api/calculate", data="nope", content_type="text/plain")
    assert resp.status_code == 400
