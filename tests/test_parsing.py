import numpy as np
import pytest

from scorecard.parsing import (
    clean_key,
    clean_text,
    format_currency_0,
    format_delta_pp,
    format_percent_0,
    parse_amount,
    round_half_up,
    round_int,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1,234.56", 1234.56),
        ("12,5", 12.5),
        ("€ 43.810,04", 43810.04),
        ("€ 1.250.000,50", 1250000.5),
        ("1,000,000.25", 1000000.25),
        ("-3,5", -3.5),
        ("  42 ", 42.0),
        ("USD 7.25", 7.25),
    ],
)
def test_parse_amount_text(raw, expected):
    assert parse_amount(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["", "abc", "--", "1.2.3,4,5", "1.250.000", "1,000,000", None, float("nan"), True])
def test_parse_amount_unparseable_is_zero(raw):
    assert parse_amount(raw) == 0.0


def test_parse_amount_numeric_passthrough():
    assert parse_amount(1234.5) == 1234.5
    assert parse_amount(7) == 7.0
    assert parse_amount(np.float64(0.25)) == 0.25
    assert parse_amount(float("inf")) == 0.0


def test_clean_text_and_key():
    assert clean_text("  Sales ") == "Sales"
    assert clean_text(None) == ""
    assert clean_text(float("nan")) == ""
    assert clean_text("nan") == ""
    assert clean_key(101.0) == "101"
    assert clean_key(101.5) == "101.5"
    assert clean_key(" E7 ") == "E7"


def test_round_half_up():
    assert round_half_up(2.5) == 3.0
    assert round_half_up(3.5) == 4.0
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(None) is None
    assert round_int(7399.5) == 7400
    assert round_int(float("nan")) == 0


def test_formatters():
    assert format_currency_0(7400) == "€7,400"
    assert format_currency_0(None) == "N/A"
    assert format_percent_0(0.74) == "74%"
    assert format_delta_pp(None) == "—"
    assert format_delta_pp(10) == "+10.0pp"
    assert format_delta_pp(-2.5) == "-2.5pp"
