"""
Prompt builders for card generation.

Prompts are assembled from tagged sections. How much source data a prompt
carries depends on the strategy: the enhanced prompt embeds a quality
summary and a bounded slice of the raw source JSON, the contextual prompt
only names the usable sources, and the fallback prompt carries none.
"""

import json
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from travel_deck.config import QualityThresholds, config
from travel_deck.data.lookups import (
    DEFAULT_CARD_CATALOG,
    HOME_CURRENCY,
    CardCatalog,
    is_domestic_travel,
)
from travel_deck.data.models import (
    CardType,
    SourceCategory,
    Strategy,
    TravelRequest,
    TravelType,
    ValidatedSourceData,
)
from travel_deck.data.sources import FlightsRecord, HotelsRecord
from travel_deck.utils.helpers import format_price, to_json

# JSON skeleton the model is asked to fill for each card type
CARD_SHAPE_HINTS: Mapping[CardType, dict[str, Any]] = MappingProxyType(
    {
        CardType.OVERVIEW: {
            "destination": "string",
            "country": "string",
            "duration": "string",
            "travelType": "string",
            "highlights": ["string"],
            "bestTime": "string",
            "currency": "ISO code",
            "languages": ["string"],
            "quickTips": ["string"],
        },
        CardType.ITINERARY: {
            "duration": "string",
            "days": [
                {
                    "day": 1,
                    "title": "string",
                    "activities": [
                        {
                            "time": "HH:MM",
                            "title": "string",
                            "description": "string",
                            "location": "string",
                            "cost": "₹ amount",
                        }
                    ],
                }
            ],
        },
        CardType.TRANSPORT: {
            "destination": "string",
            "origin": "string",
            "flights": {"type": "string", "estimatedCost": "string"},
            "trains": "object or null",
            "localTransport": {"options": ["string"], "tips": ["string"]},
            "tips": ["string"],
        },
        CardType.ACCOMMODATION: {
            "destination": "string",
            "currency": "ISO code",
            "options": [{"type": "string", "name": "string", "price": "string"}],
            "bookingTips": ["string"],
        },
        CardType.ATTRACTIONS: {
            "destination": "string",
            "currency": "ISO code",
            "attractions": [
                {"name": "string", "description": "string", "cost": "string"}
            ],
        },
        CardType.DINING: {
            "destination": "string",
            "currency": "ISO code",
            "restaurants": [{"type": "string", "cost": "string"}],
            "localCuisine": ["string"],
            "dietaryOptions": {"vegetarian": "string"},
        },
        CardType.BUDGET: {
            "destination": "string",
            "currency": "INR",
            "budget": {
                "level": "Tight | Comfortable | Luxury",
                "total": 0,
                "daily": 0,
                "breakdown": {
                    "accommodation": 0,
                    "food": 0,
                    "transport": 0,
                    "activities": 0,
                },
            },
            "tips": ["string"],
        },
        CardType.VISA: {
            "destination": "string",
            "required": True,
            "indianPassport": True,
            "requirements": {"documents": ["string"]},
            "process": {"steps": ["string"]},
            "fees": {"fee": "string", "processing": "string"},
        },
        CardType.WEATHER: {
            "destination": "string",
            "season": "string",
            "climate": {"temperature": "string", "rainfall": "string"},
            "packing": ["string"],
        },
        CardType.CULTURE: {
            "destination": "string",
            "customs": ["string"],
            "etiquette": ["string"],
            "phrases": {"hello": "string"},
        },
        CardType.EMERGENCY: {
            "destination": "string",
            "indianEmbassy": "object or null",
            "emergencyNumbers": {"police": "string", "ambulance": "string"},
            "hospitals": [{"name": "string", "phone": "string"}],
            "safetyTips": ["string"],
        },
        CardType.SHOPPING: {
            "destination": "string",
            "currency": "ISO code",
            "markets": [{"name": "string", "specialty": "string"}],
            "souvenirs": ["string"],
            "customsLimits": "object or null",
        },
    }
)

# Cards whose prompts carry a flight and hotel price analysis
COST_BEARING_CARDS = frozenset(
    {CardType.OVERVIEW, CardType.TRANSPORT, CardType.ACCOMMODATION, CardType.BUDGET}
)


def _price_line(label: str, prices: list[float], unit: str = "") -> str:
    average = sum(prices) / len(prices)
    return (
        f"{label}: average {format_price(average)}{unit}, ranging from "
        f"{format_price(min(prices))} to {format_price(max(prices))}{unit}"
    )


class PromptBuilder:
    """Builds the system and user prompt for one card."""

    def __init__(
        self,
        slice_chars: int | None = None,
        thresholds: QualityThresholds | None = None,
        catalog: CardCatalog = DEFAULT_CARD_CATALOG,
    ):
        """
        Initialize the prompt builder.

        Args:
            slice_chars: Characters of raw source JSON embedded per prompt
            thresholds: Thresholds used to label source quality
            catalog: Card catalogue supplying each card's source dependencies
        """
        self.slice_chars = slice_chars or config.pipeline.source_slice_chars
        self.thresholds = thresholds or QualityThresholds()
        self.catalog = catalog

    def quality_label(self, overall: float) -> str:
        if overall >= self.thresholds.high:
            return "HIGH"
        if overall >= self.thresholds.medium:
            return "MEDIUM"
        if overall >= self.thresholds.low:
            return "LOW"
        return "POOR"

    def quality_summary(self, sources: ValidatedSourceData) -> str:
        """Machine-readable usability and quality of every assessed source."""
        summary = {
            category.value: {
                "usable": assessment.usable,
                "overall": round(assessment.overall, 2),
                "rating": self.quality_label(assessment.overall),
            }
            for category, assessment in sources.items()
        }
        return json.dumps(summary, indent=2)

    def relevant_data(
        self, card_type: CardType, sources: ValidatedSourceData
    ) -> dict[str, Any]:
        """Raw payloads of the usable sources a card draws on."""
        data = {
            category.value: sources[category].data
            for category in self.catalog.dependencies_for(card_type)
            if sources.is_usable(category)
        }
        guide = sources.usable_record(SourceCategory.TRAVEL_GUIDE)
        if card_type is CardType.ATTRACTIONS and guide is not None:
            data = {"attractions": [a.model_dump() for a in guide.attractions]}
        return data

    def relevant_slice(self, card_type: CardType, sources: ValidatedSourceData) -> str:
        data = self.relevant_data(card_type, sources)
        if not data:
            return "No source data available"
        return to_json(data, max_length=self.slice_chars)

    def pricing_analysis(
        self,
        card_type: CardType,
        sources: ValidatedSourceData,
        hotel_prices: list[float] | None = None,
    ) -> str | None:
        """
        Summarize flight and hotel prices for cards that talk about cost.

        Args:
            card_type: Card type
            sources: Assessed sources
            hotel_prices: Nightly hotel rates already converted to INR; when
                None, only hotels quoted in INR are summarized

        Returns:
            One line per priced source, or None when nothing is priced
        """
        if card_type not in COST_BEARING_CARDS:
            return None

        lines = []
        flights = sources.usable_record(SourceCategory.FLIGHTS)
        if isinstance(flights, FlightsRecord) and flights.prices:
            lines.append(_price_line("Flight fares", flights.prices, " per person"))
        if hotel_prices is None:
            hotel_prices = self._home_currency_hotel_prices(sources)
        if hotel_prices:
            lines.append(_price_line("Hotel rates", hotel_prices, " per night"))
        return "\n".join(lines) or None

    @staticmethod
    def _home_currency_hotel_prices(sources: ValidatedSourceData) -> list[float]:
        hotels = sources.usable_record(SourceCategory.HOTELS)
        if not isinstance(hotels, HotelsRecord):
            return []
        return [
            option.price_per_night
            for option in hotels.options
            if option.price_per_night is not None
            and option.price_per_night > 0
            and (option.currency or HOME_CURRENCY).upper() == HOME_CURRENCY
        ]

    def context_summary(self, sources: ValidatedSourceData) -> str:
        """Plain-language list of usable sources, without their data."""
        lines = []
        for category in sources.usable_sources():
            record = sources[category].record
            if category is SourceCategory.TRAVEL_GUIDE:
                region = record.reported_destination or "the destination"
                lines.append(
                    f"Travel guide: {len(record.attractions)} attractions for {region}"
                )
            elif category is SourceCategory.FLIGHTS:
                lines.append(f"Flights: {len(record.options)} options available")
            elif category is SourceCategory.HOTELS:
                lines.append(f"Hotels: {len(record.options)} options found")
            elif category is SourceCategory.TRAINS:
                lines.append(f"Trains: {len(record.trains)} trains on this route")
            elif category is SourceCategory.VISA:
                lines.append("Visa: requirements for Indian passport holders known")
            elif category is SourceCategory.CURRENCY:
                lines.append(
                    f"Currency: exchange rate available "
                    f"({record.from_currency} to {record.to_currency})"
                )
        return "\n".join(lines) or "Limited source data; rely on travel expertise"

    def traveler_profile(self, request: TravelRequest) -> str:
        details = request.traveler_details
        domestic = is_domestic_travel(request.origin, request.destination)
        lines = [
            f"- Destination: {request.destination}",
            f"- Origin: {request.origin}",
            f"- Trip: {'domestic' if domestic else 'international'}",
            f"- Duration: {request.duration.value} days "
            f"(plan for {request.duration_days})",
            f"- Budget: {request.budget.value}",
            f"- Travel type: {request.travel_type.value}",
        ]
        if request.travel_type is TravelType.FAMILY and details.family_members:
            members = details.family_members
            party = f"{members.adults} adult(s), {members.children} child(ren)"
            if members.children_ages:
                party += f" (ages: {', '.join(map(str, members.children_ages))})"
            if members.seniors:
                party += f", {members.seniors} senior(s)"
            lines.append(f"- Family: {party}")
        elif request.travel_type is TravelType.GROUP:
            lines.append(
                f"- Group: {request.group_sub_type}, {request.traveler_count} people"
            )
        elif details.traveler_age:
            lines.append(f"- Traveler age: {details.traveler_age} years")
        lines += [
            f"- Travel style: {request.travel_style.value}",
            f"- Dietary: {request.dietary.value}",
            f"- Season: {request.season.value}",
            f"- Motivation: {request.motivation}",
        ]
        if request.special_requirements:
            lines.append(
                f"- Special requirements: {'; '.join(request.special_requirements)}"
            )
        return "\n".join(lines)

    def _system_prompt(
        self,
        strategy: Strategy,
        card_type: CardType,
        sources: ValidatedSourceData,
    ) -> str:
        sections = [
            "<role>\n"
            f"You are an expert travel planner writing the {card_type.value} card "
            "of a travel deck for Indian travelers. You know:\n"
            "- Realistic costs for domestic and international trips, in INR\n"
            "- Visa rules for Indian passport holders\n"
            "- Vegetarian, Jain and Halal dining options abroad and at home\n"
            "- Family, group and solo travel logistics\n"
            "</role>"
        ]

        if strategy in (Strategy.API_FIRST, Strategy.API_ENHANCED):
            sections.append(
                "<data_quality>\n"
                f"{self.quality_summary(sources)}\n"
                "</data_quality>\n\n"
                "Use sources rated HIGH or MEDIUM as the primary facts. "
                "Treat LOW sources as hints and ignore POOR ones."
            )
        elif strategy is Strategy.LLM_WITH_CONTEXT:
            sections.append(
                "Some live travel data is available as reference points. "
                "Fill every gap from your own expertise."
            )
        else:
            sections.append(
                "No live travel data is available. Use your travel expertise "
                "and give realistic estimates."
            )

        sections.append(
            "<rules>\n"
            "- Write warm, conversational text, not raw data dumps\n"
            "- Quote prices in INR with the ₹ symbol (e.g. ₹8,500-12,000 per person)\n"
            "- Give specific places, timings and costs with booking advice\n"
            "- For family trips, consider the children's ages and safety\n"
            "- Never mention data sources, APIs or data quality\n"
            "</rules>"
        )
        sections.append(
            "<output_format>\n"
            "Return ONLY one JSON object, with no markdown, shaped like:\n"
            f"{json.dumps(CARD_SHAPE_HINTS[card_type], indent=2, ensure_ascii=False)}\n"
            "</output_format>"
        )
        return "\n\n".join(sections)

    def _user_prompt(
        self,
        strategy: Strategy,
        card_type: CardType,
        request: TravelRequest,
        sources: ValidatedSourceData,
        hotel_prices: list[float] | None = None,
    ) -> str:
        sections = [
            f"Create the {card_type.value} card for this trip.",
            f"<travel_request>\n{self.traveler_profile(request)}\n</travel_request>",
        ]

        if strategy in (Strategy.API_FIRST, Strategy.API_ENHANCED):
            sections.append(
                "<source_data>\n"
                f"{self.relevant_slice(card_type, sources)}\n"
                "</source_data>"
            )
            pricing = self.pricing_analysis(card_type, sources, hotel_prices)
            if pricing:
                sections.append(
                    f"<pricing_analysis>\n{pricing}\n</pricing_analysis>\n"
                    "Use these figures for cost recommendations."
                )
        elif strategy is Strategy.LLM_WITH_CONTEXT:
            sections.append(
                f"<available_context>\n{self.context_summary(sources)}\n"
                "</available_context>"
            )

        sections.append("Return the JSON content now.")
        return "\n\n".join(sections)

    def build(
        self,
        strategy: Strategy,
        card_type: CardType,
        request: TravelRequest,
        sources: ValidatedSourceData,
        hotel_prices: list[float] | None = None,
    ) -> tuple[str, str]:
        """
        Build the prompt pair for one card.

        Args:
            strategy: Strategy the card is generated with
            card_type: Card type
            request: Travel request
            sources: Assessed sources
            hotel_prices: Nightly hotel rates in INR for the pricing summary

        Returns:
            Tuple of (system prompt, user prompt)
        """
        return (
            self._system_prompt(strategy, card_type, sources),
            self._user_prompt(strategy, card_type, request, sources, hotel_prices),
        )
