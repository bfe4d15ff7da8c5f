"""
Parsing of generated text into card content.

Models wrap JSON in markdown fences or surround it with prose. The parser
strips fences, finds the first balanced JSON object and checks it against
the card's shape contract.
"""

import json
import re
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from travel_deck.data.models import CardType
from travel_deck.utils.error_handling import GenerationParseError

_FENCE = re.compile(r"```(?:json|JSON)?[ \t]*\n?")

ShapeCheck = Callable[[dict[str, Any]], str | None]


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text or "").strip()


def find_json_object(text: str) -> str | None:
    """
    Find the first balanced ``{...}`` span in text.

    Braces inside JSON strings are ignored, so ``{"tip": "use {x}"}`` is
    returned whole.

    Args:
        text: Text that may contain a JSON object

    Returns:
        The object text, or None if no balanced object was found
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        # Unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    return None


def _requires_budget(content: dict[str, Any]) -> str | None:
    if not content.get("budget") or not content.get("currency"):
        return "budget card needs 'budget' and 'currency'"
    return None


def _requires_list(field: str) -> ShapeCheck:
    def check(content: dict[str, Any]) -> str | None:
        if not isinstance(content.get(field), list):
            return f"'{field}' must be a list"
        return None

    return check


SHAPE_CONTRACTS: Mapping[CardType, ShapeCheck] = MappingProxyType(
    {
        CardType.BUDGET: _requires_budget,
        CardType.ITINERARY: _requires_list("days"),
        CardType.ATTRACTIONS: _requires_list("attractions"),
    }
)


def shape_violation(content: Any, card_type: CardType) -> str | None:
    """
    Check content against the card's shape contract.

    Returns:
        A description of the first violation, or None if the content conforms
    """
    if not isinstance(content, dict) or not content:
        return "content must be a non-empty object"
    check = SHAPE_CONTRACTS.get(card_type)
    return check(content) if check else None


def validate_shape(content: Any, card_type: CardType) -> bool:
    return shape_violation(content, card_type) is None


def parse_card_content(text: str, card_type: CardType) -> dict[str, Any]:
    """
    Parse generated text into card content.

    Args:
        text: Raw model output
        card_type: Card type the text was generated for

    Returns:
        The card content object

    Raises:
        GenerationParseError: If no valid JSON object is found, or it breaks
            the card's shape contract
    """
    cleaned = strip_code_fences(text)
    candidate = find_json_object(cleaned)
    if candidate is None:
        raise GenerationParseError("no JSON object in response", card_type.value, text)

    try:
        content = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise GenerationParseError(
            "invalid JSON", card_type.value, text, original_error=e
        ) from e

    violation = shape_violation(content, card_type)
    if violation:
        raise GenerationParseError(violation, card_type.value, text)
    return content
