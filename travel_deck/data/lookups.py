"""
Static lookup tables for the deck pipeline.

All tables are read-only mappings. Place-name lookups match whole words in
the lower-cased text against an explicit key table and fall back to a
documented default; they are approximations, not a gazetteer.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TypeVar

from travel_deck.data.models import CardType, SourceCategory, TravelRequest

V = TypeVar("V")

HOME_CURRENCY = "INR"
DEFAULT_FOREIGN_CURRENCY = "USD"

SOURCE_FRESHNESS: Mapping[SourceCategory, float] = MappingProxyType(
    {
        SourceCategory.TRAVEL_GUIDE: 0.8,
        SourceCategory.FLIGHTS: 0.9,
        SourceCategory.HOTELS: 0.8,
        SourceCategory.TRAINS: 0.7,
        SourceCategory.VISA: 0.7,
        SourceCategory.CURRENCY: 0.95,
    }
)

# Average fare per person in INR considered plausible
FLIGHT_PRICE_BANDS: Mapping[str, tuple[float, float]] = MappingProxyType(
    {"domestic": (5000.0, 25000.0), "international": (15000.0, 100000.0)}
)

DESTINATION_ALIASES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "dubai": ("uae", "emirates", "united arab emirates"),
        "abu dhabi": ("uae", "emirates", "united arab emirates"),
        "mumbai": ("bombay", "maharashtra"),
        "delhi": ("new delhi", "ncr"),
        "bangalore": ("bengaluru", "karnataka"),
        "chennai": ("madras", "tamil nadu"),
        "kolkata": ("calcutta", "west bengal"),
        "goa": ("panaji", "panjim"),
        "bangkok": ("thailand",),
        "phuket": ("thailand",),
        "singapore": ("sg",),
        "london": ("uk", "united kingdom", "england"),
        "tokyo": ("japan",),
        "new york": ("usa", "united states", "nyc"),
    }
)

DOMESTIC_KEYWORDS: tuple[str, ...] = (
    "india",
    "mumbai",
    "delhi",
    "bangalore",
    "bengaluru",
    "chennai",
    "kolkata",
    "pune",
    "hyderabad",
    "goa",
    "kerala",
    "rajasthan",
    "kashmir",
    "himachal",
    "jaipur",
    "udaipur",
    "agra",
    "varanasi",
    "rishikesh",
    "manali",
    "shimla",
    "ooty",
    "munnar",
    "leh",
    "ladakh",
    "darjeeling",
    "amritsar",
    "kochi",
    "mysore",
    "pondicherry",
    "andaman",
    "ahmedabad",
    "lucknow",
    "srinagar",
)

DESTINATION_CURRENCIES: Mapping[str, str] = MappingProxyType(
    {
        "dubai": "AED",
        "uae": "AED",
        "abu dhabi": "AED",
        "thailand": "THB",
        "bangkok": "THB",
        "phuket": "THB",
        "singapore": "SGD",
        "japan": "JPY",
        "tokyo": "JPY",
        "osaka": "JPY",
        "usa": "USD",
        "america": "USD",
        "new york": "USD",
        "california": "USD",
        "uk": "GBP",
        "britain": "GBP",
        "london": "GBP",
        "england": "GBP",
        "europe": "EUR",
        "germany": "EUR",
        "france": "EUR",
        "paris": "EUR",
        "italy": "EUR",
        "rome": "EUR",
        "spain": "EUR",
        "australia": "AUD",
        "sydney": "AUD",
        "melbourne": "AUD",
        "canada": "CAD",
        "toronto": "CAD",
        "vancouver": "CAD",
    }
)

DESTINATION_COUNTRIES: Mapping[str, str] = MappingProxyType(
    {
        "dubai": "United Arab Emirates",
        "abu dhabi": "United Arab Emirates",
        "bangkok": "Thailand",
        "phuket": "Thailand",
        "singapore": "Singapore",
        "tokyo": "Japan",
        "osaka": "Japan",
        "new york": "United States",
        "california": "United States",
        "london": "United Kingdom",
        "manchester": "United Kingdom",
        "paris": "France",
        "rome": "Italy",
        "berlin": "Germany",
        "sydney": "Australia",
        "melbourne": "Australia",
        "toronto": "Canada",
        "vancouver": "Canada",
    }
)

# Reference INR value of one unit of each currency
REFERENCE_INR_RATES: Mapping[str, float] = MappingProxyType(
    {
        "INR": 1.0,
        "USD": 83.25,
        "EUR": 90.15,
        "GBP": 105.5,
        "AED": 22.65,
        "THB": 2.35,
        "SGD": 61.8,
        "JPY": 0.56,
        "AUD": 54.2,
        "CAD": 61.9,
    }
)


@dataclass(frozen=True)
class BudgetTier:
    """Per-person spending guide for a budget level, in INR."""

    total: int
    daily: int
    accommodation: int
    food: int
    transport: int
    activities: int


BUDGET_TIERS: Mapping[str, BudgetTier] = MappingProxyType(
    {
        "Tight": BudgetTier(30000, 5000, 1500, 1000, 800, 700),
        "Comfortable": BudgetTier(60000, 10000, 3000, 2000, 1500, 1500),
        "Luxury": BudgetTier(120000, 20000, 8000, 5000, 3000, 4000),
    }
)

# International trips cost more per day on the ground
INTERNATIONAL_COST_FACTOR = 1.8


def _keyword_pattern(key: str) -> re.Pattern:
    return re.compile(rf"(?<![a-z]){re.escape(key)}(?![a-z])")


def match_keyword(text: str, table: Mapping[str, V], default: V) -> V:
    """
    Look a place name up in a keyed table.

    An exact key wins; otherwise the first key (in table order) that appears
    as a whole word in the text is used.

    Args:
        text: Place name or free text
        table: Keyed lookup table with lower-case keys
        default: Value returned when nothing matches

    Returns:
        The matched value, or default
    """
    lowered = (text or "").strip().lower()
    if lowered in table:
        return table[lowered]
    for key, value in table.items():
        if _keyword_pattern(key).search(lowered):
            return value
    return default


def mentions_any(text: str, keywords: tuple[str, ...]) -> bool:
    lowered = (text or "").lower()
    return any(_keyword_pattern(keyword).search(lowered) for keyword in keywords)


def is_domestic_travel(origin: str, destination: str) -> bool:
    """Both ends of the trip are in India."""
    return mentions_any(origin, DOMESTIC_KEYWORDS) and mentions_any(
        destination, DOMESTIC_KEYWORDS
    )


def destination_currency(request: TravelRequest) -> str:
    """Local currency at the destination, INR for domestic trips."""
    if is_domestic_travel(request.origin, request.destination):
        return HOME_CURRENCY
    return match_keyword(
        request.destination, DESTINATION_CURRENCIES, DEFAULT_FOREIGN_CURRENCY
    )


def budget_tier(request: TravelRequest) -> BudgetTier:
    return BUDGET_TIERS.get(request.budget.value, BUDGET_TIERS["Comfortable"])


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class CardCatalog:
    """
    Per-card-type configuration: order, headings, expected size and the
    sources each card draws on.
    """

    priorities: Mapping[CardType, int]
    titles: Mapping[CardType, str]
    subtitles: Mapping[CardType, str]
    expected_fields: Mapping[CardType, int]
    dependencies: Mapping[CardType, tuple[SourceCategory, ...]]
    card_types: tuple[CardType, ...] = field(default=tuple(CardType))

    def priority(self, card_type: CardType) -> int:
        return self.priorities.get(card_type, 99)

    def expected_field_count(self, card_type: CardType) -> int:
        return self.expected_fields.get(card_type, 4)

    def dependencies_for(self, card_type: CardType) -> tuple[SourceCategory, ...]:
        return self.dependencies.get(card_type, (SourceCategory.TRAVEL_GUIDE,))

    def _template_values(self, request: TravelRequest) -> dict[str, str | int]:
        return {
            "destination": request.destination,
            "origin": request.origin,
            "duration": request.duration.value,
            "budget": request.budget.value,
            "season": request.season.value,
            "travelers": request.traveler_count,
        }

    def title(self, card_type: CardType, request: TravelRequest) -> str:
        template = self.titles.get(card_type, card_type.value.title())
        return template.format(**self._template_values(request))

    def subtitle(self, card_type: CardType, request: TravelRequest) -> str:
        template = self.subtitles.get(card_type, "")
        return template.format(**self._template_values(request))


DEFAULT_CARD_CATALOG = CardCatalog(
    priorities=_frozen(
        {card_type: index for index, card_type in enumerate(CardType, start=1)}
    ),
    titles=_frozen(
        {
            CardType.OVERVIEW: "{destination} Overview",
            CardType.ITINERARY: "Your Journey Itinerary",
            CardType.TRANSPORT: "Transportation Guide",
            CardType.ACCOMMODATION: "Where to Stay",
            CardType.ATTRACTIONS: "Must-See & Do",
            CardType.DINING: "Food & Dining",
            CardType.BUDGET: "Budget Planner",
            CardType.VISA: "Visa & Documentation",
            CardType.WEATHER: "Weather & Packing",
            CardType.CULTURE: "Culture & Customs",
            CardType.EMERGENCY: "Emergency Information",
            CardType.SHOPPING: "Shopping Guide",
        }
    ),
    subtitles=_frozen(
        {
            CardType.OVERVIEW: "{duration} trip for {travelers} travelers",
            CardType.ITINERARY: "Day-by-day plan for your {duration} journey",
            CardType.TRANSPORT: "Flights, trains, and local transport",
            CardType.ACCOMMODATION: "{budget} tier options",
            CardType.ATTRACTIONS: "Top places and experiences",
            CardType.DINING: "Restaurants and local cuisine",
            CardType.BUDGET: "{budget} budget breakdown",
            CardType.VISA: "For Indian passport holders",
            CardType.WEATHER: "{season} season travel",
            CardType.CULTURE: "Local customs and etiquette",
            CardType.EMERGENCY: "Important contacts and safety",
            CardType.SHOPPING: "Markets and souvenirs",
        }
    ),
    expected_fields=_frozen(
        {
            CardType.OVERVIEW: 8,
            CardType.ITINERARY: 4,
            CardType.TRANSPORT: 5,
            CardType.ACCOMMODATION: 4,
            CardType.ATTRACTIONS: 3,
            CardType.DINING: 4,
            CardType.BUDGET: 6,
            CardType.VISA: 5,
            CardType.WEATHER: 3,
            CardType.CULTURE: 3,
            CardType.EMERGENCY: 4,
            CardType.SHOPPING: 3,
        }
    ),
    dependencies=_frozen(
        {
            CardType.OVERVIEW: (
                SourceCategory.TRAVEL_GUIDE,
                SourceCategory.FLIGHTS,
                SourceCategory.HOTELS,
                SourceCategory.CURRENCY,
            ),
            CardType.ITINERARY: (SourceCategory.TRAVEL_GUIDE,),
            CardType.TRANSPORT: (SourceCategory.FLIGHTS, SourceCategory.TRAINS),
            CardType.ACCOMMODATION: (SourceCategory.HOTELS,),
            CardType.ATTRACTIONS: (SourceCategory.TRAVEL_GUIDE,),
            CardType.DINING: (SourceCategory.TRAVEL_GUIDE,),
            CardType.BUDGET: (
                SourceCategory.FLIGHTS,
                SourceCategory.HOTELS,
                SourceCategory.CURRENCY,
            ),
            CardType.VISA: (SourceCategory.VISA,),
            CardType.WEATHER: (SourceCategory.TRAVEL_GUIDE,),
            CardType.CULTURE: (SourceCategory.TRAVEL_GUIDE,),
            CardType.EMERGENCY: (SourceCategory.TRAVEL_GUIDE,),
            CardType.SHOPPING: (SourceCategory.TRAVEL_GUIDE, SourceCategory.CURRENCY),
        }
    ),
)
