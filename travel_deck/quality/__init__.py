"""
Quality assessment for source data and generated content.
"""

from travel_deck.quality.content_quality import ContentQualityScorer
from travel_deck.quality.source_quality import (
    SourceQualityAssessor,
    destination_similarity,
)
from travel_deck.quality.strategy import StrategySelector

__all__ = [
    "ContentQualityScorer",
    "SourceQualityAssessor",
    "StrategySelector",
    "destination_similarity",
]
