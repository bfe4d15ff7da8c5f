"""
Card content generation: backends, prompts, parsing and fallbacks.
"""

from travel_deck.generation.backend import GeminiBackend, TextGenerationBackend
from travel_deck.generation.generator import (
    FALLBACK_CONFIDENCE,
    STRATEGY_CONFIDENCE,
    ContentGenerator,
)
from travel_deck.generation.parsing import parse_card_content, validate_shape
from travel_deck.generation.placeholders import build_placeholder
from travel_deck.generation.prompts import PromptBuilder
from travel_deck.generation.structuring import ApiStructurer

__all__ = [
    "FALLBACK_CONFIDENCE",
    "STRATEGY_CONFIDENCE",
    "ApiStructurer",
    "ContentGenerator",
    "GeminiBackend",
    "PromptBuilder",
    "TextGenerationBackend",
    "build_placeholder",
    "parse_card_content",
    "validate_shape",
]
