from decimal import ROUND_HALF_UP, Decimal, getcontext

from emi_calc.utils import financial_precision, get_numeric_value, round_to_places, to_decimal


def test_get_numeric_value_defaults_to_zero():
    assert get_numeric_value("") == 0
    assert get_numeric_value("   ") == 0
    assert get_numeric_value(None) == 0
    assert get_numeric_value("abc") == 0
    assert get_numeric_value(float("nan")) == 0
    assert get_numeric_value(float("inf")) == 0


def test_get_numeric_value_parses_leading_number():
    assert get_numeric_value("12.5 months") == Decimal("12.5")
    assert get_numeric_value(" 42 ") == 42
    assert get_numeric_value("-5") == -5
    assert get_numeric_value(".5") == Decimal("0.5")
    assert get_numeric_value("1e3") == 1000
    assert get_numeric_value("1,800,000") == 1800000


def test_get_numeric_value_accepts_numbers():
    assert get_numeric_value(80000) == 80000
    assert get_numeric_value(0.1) == Decimal("0.1")
    assert get_numeric_value(Decimal("9.25")) == Decimal("9.25")


def test_to_decimal_avoids_binary_float_expansion():
    assert to_decimal(0.1) + to_decimal(0.2) == Decimal("0.3")


def test_round_to_places_is_half_up():
    assert round_to_places(Decimal("2.345")) == Decimal("2.35")
    assert round_to_places("2.5", 0) == 3
    assert round_to_places(14575.5649, 2) == Decimal("14575.56")


def test_financial_precision_context():
    @financial_precision
    def inspect():
        ctx = getcontext()
        return ctx.prec, ctx.rounding

    assert inspect() == (28, ROUND_HALF_UP)
