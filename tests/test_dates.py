import pytest

from ledger.utils import describe_payload, parse_amount, parse_date


@pytest.mark.parametrize(
    "value, expected",
    [
        ("3/15/2024", "2024-03-15"),
        ("12/1/1999", "1999-12-01"),
        ("03/04/2024", "2024-03-04"),
        ("1/31/2024 10:30 AM", "2024-01-31"),
        ("2024-03-15", "2024-03-15"),
        ("25/12/2024", "2024-12-25"),
        ("15-03-2024", "2024-03-15"),
        ("2024/03/15", "2024-03-15"),
        ("2024-03-15 08:00:00", "2024-03-15"),
        ("15 Mar 2024", "2024-03-15"),
        ("March 15, 2024", "2024-03-15"),
    ],
)
def test_parse_date_known_layouts(value, expected):
    assert parse_date(value) == expected


@pytest.mark.parametrize(
    "value",
    ["1/1/1899", "1/1/2101", "13/45/2024", "0/10/2024", "2/30/2024", "not a date", "", None, "2024-13-01"],
)
def test_parse_date_rejects_out_of_range(value):
    assert parse_date(value) is None


def test_mdy_takes_precedence_over_day_first():
    # Both segments are valid months, so the month-first reading wins.
    assert parse_date("04/05/2024") == "2024-04-05"


def test_parse_amount_strips_noise():
    assert parse_amount("$1,200.50") == 1200.5
    assert parse_amount("-45") == -45.0
    assert parse_amount("USD 300") == 300.0
    assert parse_amount(5000) == 5000.0
    assert parse_amount("abc") is None
    assert parse_amount("") is None
    assert parse_amount(None) is None
    assert parse_amount(True) is None
    assert parse_amount(float("inf")) is None
    assert parse_amount(float("nan")) is None
    assert parse_amount("9" * 400) is None


def test_describe_payload_uses_string_values_only():
    payload = {"ref": "INV-7", "qty": 3, "note": "", "party": "Acme"}
    assert describe_payload(payload) == "ref: INV-7; party: Acme"
