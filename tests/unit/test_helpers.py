"""
Unit tests for the helper functions.
"""

from datetime import date

from pydantic import BaseModel

from travel_deck.utils.helpers import (
    first_integer,
    format_price,
    generate_id,
    get_country_name,
    get_currency_symbol,
    parse_amount,
    safe_serialize,
    to_json,
    truncate_text,
)


def test_generate_id():
    """Test ID generation with and without a prefix."""
    first = generate_id("budget")
    second = generate_id("budget")

    assert first.startswith("budget-")
    assert first != second
    assert "-" not in generate_id()


def test_parse_amount():
    """Test parsing of provider-supplied numbers."""
    assert parse_amount(12500) == 12500.0
    assert parse_amount("12,500") == 12500.0
    assert parse_amount("₹ 12,500") == 12500.0
    assert parse_amount("4.5 stars") == 4.5
    assert parse_amount("n/a") is None
    assert parse_amount(None) is None
    assert parse_amount(True) is None


def test_first_integer():
    """Test reading the first integer from duration text."""
    assert first_integer("5-7", 5) == 5
    assert first_integer("10-14", 5) == 10
    assert first_integer("Flexible", 5) == 5


def test_format_price():
    """Test price formatting."""
    assert format_price(12500) == "₹12,500"
    assert format_price(8325.4) == "₹8,325"
    assert format_price(50, "USD") == "$50"
    assert get_currency_symbol("xyz") == "xyz"


def test_safe_serialize():
    """Test serialization of nested values and models."""

    class Sample(BaseModel):
        name: str
        when: date

    result = safe_serialize({"item": Sample(name="Goa", when=date(2025, 1, 5))})

    assert result == {"item": {"name": "Goa", "when": "2025-01-05"}}


def test_to_json_keeps_symbols():
    """Test that JSON text keeps non-ASCII symbols and can be clipped."""
    assert to_json({"price": "₹500"}) == '{"price": "₹500"}'
    assert len(to_json({"text": "x" * 100}, max_length=20)) == 20


def test_truncate_text():
    """Test text truncation."""
    assert truncate_text("short", 10) == "short"
    assert truncate_text("a" * 20, 10) == "aaaaaaa..."


def test_get_country_name():
    """Test country name resolution."""
    assert get_country_name("Japan") == "Japan"
    assert get_country_name("FR") == "France"
    assert get_country_name("") is None
