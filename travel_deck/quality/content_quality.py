"""
Heuristic quality scoring of generated card content.
"""

import re
from typing import Any

from travel_deck.config import QualityThresholds
from travel_deck.data.lookups import DEFAULT_CARD_CATALOG, CardCatalog
from travel_deck.data.models import CardType, QualityIndicators, Strategy
from travel_deck.utils.helpers import to_json

_CURRENCY_AMOUNT = re.compile(r"[$₹]\s?\d")
_SPECIFIC_DATA = re.compile(r"[$₹]\d+|\d{1,2}:\d{2}|[A-Z][a-z]+ \d+")
_ADVICE_VERBS = re.compile(r"\b(book|visit|try|avoid|check|bring|carry)", re.IGNORECASE)


class ContentQualityScorer:
    """
    Scores card content on completeness, accuracy, relevance and
    actionability. Scoring looks only at the content itself.
    """

    def __init__(
        self,
        catalog: CardCatalog = DEFAULT_CARD_CATALOG,
        thresholds: QualityThresholds | None = None,
    ):
        self.catalog = catalog
        self.thresholds = thresholds or QualityThresholds()

    def score(
        self,
        content: Any,
        card_type: CardType,
        destination: str | None = None,
    ) -> QualityIndicators:
        """
        Score one card's content.

        Args:
            content: Card content object
            card_type: Card type the content was generated for
            destination: Requested destination, used for relevance (optional)

        Returns:
            Quality indicators for the content
        """
        if not isinstance(content, dict) or not content:
            return QualityIndicators()

        expected = self.catalog.expected_field_count(card_type)
        completeness = min(len(content) / expected, 1.0)

        text = to_json(content)
        accuracy = 0.8 if _CURRENCY_AMOUNT.search(text) else 0.6

        if destination and destination.strip().lower() in text.lower():
            relevance = 0.9
        elif _SPECIFIC_DATA.search(text):
            relevance = 0.8
        else:
            relevance = 0.7

        actionability = 0.85 if _ADVICE_VERBS.search(text) else 0.6

        return QualityIndicators(
            completeness=completeness,
            accuracy=accuracy,
            relevance=relevance,
            actionability=actionability,
        )

    def needs_escalation(
        self, indicators: QualityIndicators, strategy: Strategy
    ) -> bool:
        """Thin content gets one enhanced retry unless it is already a fallback."""
        return (
            indicators.completeness < self.thresholds.escalation_completeness
            and strategy is not Strategy.LLM_FALLBACK
        )
