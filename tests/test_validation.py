"""
Tests for the request parsers in invoicely.api.validation.
"""
from decimal import Decimal

import pytest

from invoicely.api.validation import clean_str, parse_decimal, parse_invoice_payload, parse_items
from invoicely.errors import ValidationError


def test_clean_str_strips_and_blanks_to_none():
    assert clean_str("  Acme  ") == "Acme"
    assert clean_str("   ") is None
    assert clean_str(None) is None


@pytest.mark.parametrize("value", [123, 1.5, True, ["a"], {"a": 1}])
def test_clean_str_rejects_non_strings(value):
    with pytest.raises(ValidationError, match="company_name must be a string"):
        clean_str(value, "company_name")


def test_clean_str_max_length_applies_after_strip():
    assert clean_str("  abc  ", "code", max_length=3) == "abc"
    with pytest.raises(ValidationError, match="code must be at most 3 characters"):
        clean_str("abcd", "code", max_length=3)


@pytest.mark.parametrize("value, places, expected", [
    ("0.333", 2, Decimal("0.33")),
    ("0.335", 2, Decimal("0.34")),
    (0.1, 2, Decimal("0.10")),
    ("13.0005", 3, Decimal("13.001")),
    ("7", None, Decimal("7")),
])
def test_parse_decimal_rounds_half_up(value, places, expected):
    assert parse_decimal(value, "amount", places=places) == expected


def test_parse_decimal_checks_bounds_after_rounding():
    assert parse_decimal("100.004", "discount", maximum=100, places=2) == Decimal("100.00")
    with pytest.raises(ValidationError, match="discount must be at most 100"):
        parse_decimal("100.005", "discount", maximum=100, places=2)


def test_parse_items_rounds_to_stored_precision():
    [item] = parse_items([{"description": " Widgets ", "quantity": "1.23456", "unit_price": "9.999"}])
    assert item == {"description": "Widgets", "quantity": Decimal("1.235"), "unit_price": Decimal("10.00")}


def test_invoice_payload_limits_tax_type():
    data = {"client_id": "64b7f0c2a1b2c3d4e5f60718",
            "items": [{"description": "x", "quantity": 1, "unit_price": 1}],
            "tax_type": "ON-HST"}
    assert parse_invoice_payload(data)["tax_type"] == "ON-HST"

    data["tax_type"] = "X" * 21
    with pytest.raises(ValidationError, match="tax_type must be at most 20 characters"):
        parse_invoice_payload(data)
