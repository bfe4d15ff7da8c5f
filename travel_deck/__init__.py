"""
Adaptive travel deck generation powered by Google Gemini.

This package turns a travel request into a deck of travel cards (overview,
itinerary, transport, accommodation, attractions, budget and visa). It
assesses the quality of external travel-data sources, picks a generation
strategy from that quality, generates every card concurrently with
structured API data, Gemini or deterministic placeholders, and attaches
provenance and quality metadata to each card.
"""

from travel_deck.data.models import (
    CardType,
    DataSource,
    Strategy,
    TravelCard,
    TravelDeck,
    TravelRequest,
)
from travel_deck.orchestration import DeckAssembler, create_deck_assembler

__version__ = "0.1.0"

__all__ = [
    "CardType",
    "DataSource",
    "DeckAssembler",
    "Strategy",
    "TravelCard",
    "TravelDeck",
    "TravelRequest",
    "create_deck_assembler",
]
