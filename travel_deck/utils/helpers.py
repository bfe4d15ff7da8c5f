"""
Helper functions for the travel deck pipeline.

This module contains small formatting, parsing and lookup helpers shared by
the quality, generation and orchestration modules.
"""

import json
import re
import uuid
from datetime import date, datetime, time
from typing import Any

import pycountry

_AMOUNT_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")
_FIRST_INTEGER = re.compile(r"\d+")

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "AED": "د.إ",
    "THB": "฿",
    "SGD": "S$",
    "AUD": "A$",
    "CAD": "C$",
}


def generate_id(prefix: str = "") -> str:
    """
    Generate a unique ID with an optional prefix.

    Args:
        prefix: Optional prefix for the ID

    Returns:
        A unique ID string
    """
    unique_id = str(uuid.uuid4()).replace("-", "")
    if prefix:
        return f"{prefix}-{unique_id}"
    return unique_id


def safe_serialize(obj: Any) -> Any:
    """
    Safely serialize an object to a JSON-compatible format.

    Args:
        obj: Object to serialize

    Returns:
        JSON-compatible representation of the object
    """
    if obj is None or isinstance(obj, str | int | float | bool):
        return obj

    if isinstance(obj, datetime | date | time):
        return obj.isoformat()

    if isinstance(obj, list | tuple):
        return [safe_serialize(item) for item in obj]

    if isinstance(obj, dict):
        return {str(k): safe_serialize(v) for k, v in obj.items()}

    if hasattr(obj, "model_dump"):
        return safe_serialize(obj.model_dump())

    return safe_serialize(obj.__dict__) if hasattr(obj, "__dict__") else str(obj)


def to_json(obj: Any, max_length: int | None = None) -> str:
    """
    Serialize an arbitrary payload to JSON text, keeping non-ASCII symbols.

    Args:
        obj: Payload to serialize
        max_length: Truncate the text to this many characters (optional)

    Returns:
        JSON text
    """
    text = json.dumps(safe_serialize(obj), ensure_ascii=False, default=str)
    if max_length is not None:
        return truncate_text(text, max_length)
    return text


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate text to a maximum length, adding a suffix if truncated.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text

    return text[: max_length - len(suffix)] + suffix


def parse_amount(value: Any) -> float | None:
    """
    Parse a provider-supplied number such as ``12500``, ``"12,500"`` or ``"₹ 12,500"``.

    Args:
        value: Raw value

    Returns:
        The number, or None if nothing numeric could be read
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        match = _AMOUNT_PATTERN.search(value.replace(",", ""))
        if match:
            return float(match.group())
    return None


def first_integer(text: str, default: int) -> int:
    """Return the first integer in text, or default when there is none."""
    match = _FIRST_INTEGER.search(text or "")
    return int(match.group()) if match else default


def get_currency_symbol(currency_code: str) -> str:
    """
    Get the currency symbol for a currency code.

    Args:
        currency_code: ISO 4217 currency code

    Returns:
        Currency symbol or the code itself if not found
    """
    return CURRENCY_SYMBOLS.get(currency_code.upper(), currency_code)


def format_price(amount: float, currency: str = "INR") -> str:
    """
    Format a whole-unit price with the appropriate currency symbol.

    Args:
        amount: Price amount
        currency: ISO 4217 currency code

    Returns:
        Formatted price string, e.g. ``₹12,500``
    """
    return f"{get_currency_symbol(currency)}{round(amount):,}"


def get_country_name(place: str) -> str | None:
    """
    Resolve a country or region name to its ISO country name.

    Args:
        place: Country name, ISO code, or the name of a state/province

    Returns:
        Country name or None if not found
    """
    if not place:
        return None
    try:
        return pycountry.countries.lookup(place).name
    except LookupError:
        pass
    try:
        matches = pycountry.countries.search_fuzzy(place)
    except LookupError:
        return None
    return matches[0].name if matches else None
