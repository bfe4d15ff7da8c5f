"""
Collaborator services: currency conversion and travel-data fetching.
"""

from travel_deck.services.currency import (
    CurrencyConverter,
    CurrencyLookup,
    StaticRateTable,
)
from travel_deck.services.travel_data import (
    DEFAULT_SOURCE_HOSTS,
    FetchResult,
    SourceFetcher,
    TravelDataProvider,
    source_rate_limits,
)

__all__ = [
    "DEFAULT_SOURCE_HOSTS",
    "CurrencyConverter",
    "CurrencyLookup",
    "FetchResult",
    "SourceFetcher",
    "StaticRateTable",
    "TravelDataProvider",
    "source_rate_limits",
]
