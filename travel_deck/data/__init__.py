"""
Data models, provider records and lookup tables for the travel deck pipeline.
"""

from travel_deck.data.lookups import DEFAULT_CARD_CATALOG, CardCatalog
from travel_deck.data.models import (
    CardType,
    DataSource,
    GeneratedCardContent,
    QualityScore,
    SourceCategory,
    Strategy,
    TravelCard,
    TravelDeck,
    TravelRequest,
    ValidatedSourceData,
)
from travel_deck.data.sources import parse_source

__all__ = [
    "DEFAULT_CARD_CATALOG",
    "CardCatalog",
    "CardType",
    "DataSource",
    "GeneratedCardContent",
    "QualityScore",
    "SourceCategory",
    "Strategy",
    "TravelCard",
    "TravelDeck",
    "TravelRequest",
    "ValidatedSourceData",
    "parse_source",
]
