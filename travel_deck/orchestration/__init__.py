"""
Orchestration of the travel deck pipeline.
"""

from travel_deck.orchestration.deck_assembler import (
    DeckAssembler,
    create_deck_assembler,
)

__all__ = ["DeckAssembler", "create_deck_assembler"]
