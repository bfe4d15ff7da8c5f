"""
Data models for the travel deck pipeline.

This module defines the travel request coming in from the wizard, the
quality records produced while assessing source data, and the cards and
deck handed back to the caller.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from travel_deck.utils.error_handling import InvalidTravelRequestError
from travel_deck.utils.helpers import first_integer

# Request and deck models accept snake_case and emit camelCase on the wire
WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)

DEFAULT_GROUP_SIZE = 4
FLEXIBLE_DURATION_DAYS = 5
MINIMUM_QUALITY = 0.1


class TravelType(str, Enum):
    """Who is travelling."""

    SINGLE = "single"
    FAMILY = "family"
    GROUP = "group"


class Season(str, Enum):
    """Preferred travel season."""

    WINTER = "Winter"
    SUMMER = "Summer"
    MONSOON = "Monsoon"
    FLEXIBLE = "Flexible"


class Duration(str, Enum):
    """Trip length bucket in days."""

    SHORT = "2-3"
    WEEK = "5-7"
    LONG = "10-14"
    FLEXIBLE = "Flexible"


class BudgetLevel(str, Enum):
    """Budget tier."""

    TIGHT = "Tight"
    COMFORTABLE = "Comfortable"
    LUXURY = "Luxury"


class Dietary(str, Enum):
    """Dietary preference."""

    VEG = "Veg"
    NON_VEG = "Non-veg"
    JAIN = "Jain"
    HALAL = "Halal"
    FLEXIBLE = "Flexible"


class TravelStyle(str, Enum):
    """Style of travel."""

    ADVENTURE = "Adventure"
    LEISURE = "Leisure"
    BUSINESS = "Business"
    PILGRIMAGE = "Pilgrimage"
    EDUCATIONAL = "Educational"


class FamilyMembers(BaseModel):
    """Composition of a travelling family."""

    model_config = WIRE_CONFIG

    adults: int = Field(default=2, ge=1, le=20)
    children: int = Field(default=0, ge=0, le=10)
    children_ages: list[int] = Field(default_factory=list)
    seniors: int = Field(default=0, ge=0, le=10)

    @field_validator("children_ages")
    @classmethod
    def validate_children_ages(cls, value: list[int]) -> list[int]:
        """Children are 0 to 17 years old."""
        for age in value:
            if not (0 <= age <= 17):
                raise ValueError(f"Child age must be between 0 and 17, got {age}")
        return value


class TravelerDetails(BaseModel):
    """Traveler details; which fields matter depends on the travel type."""

    model_config = WIRE_CONFIG

    traveler_age: int | None = Field(default=None, ge=1, le=120)
    family_members: FamilyMembers | None = None
    group_size: int | None = Field(default=None, ge=3, le=50)


class TravelRequest(BaseModel):
    """One validated trip request. Immutable once built."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    destination: str = Field(..., min_length=2, max_length=100)
    origin: str = Field(..., min_length=2, max_length=100)
    duration: Duration
    budget: BudgetLevel
    travel_type: TravelType = TravelType.SINGLE
    group_sub_type: str | None = None
    traveler_details: TravelerDetails = Field(default_factory=TravelerDetails)
    travel_style: TravelStyle = TravelStyle.LEISURE
    dietary: Dietary = Dietary.FLEXIBLE
    season: Season = Season.FLEXIBLE
    motivation: str = Field(
        default="Sightseeing and relaxation", min_length=3, max_length=500
    )
    special_requirements: list[str] = Field(default_factory=list, max_length=10)

    @field_validator("destination", "origin", "motivation", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def validate_traveler_details(self) -> "TravelRequest":
        """Family and group trips must describe who is travelling."""
        details = self.traveler_details
        if self.travel_type is TravelType.FAMILY and details.family_members is None:
            raise ValueError("Family trips need family member details")
        if self.travel_type is TravelType.GROUP:
            if not self.group_sub_type:
                raise ValueError("Group trips need a group type")
            if details.group_size is None:
                raise ValueError("Group trips need a group size")
        return self

    @classmethod
    def from_payload(cls, payload: Any) -> "TravelRequest":
        """
        Build a request from a wizard payload.

        Args:
            payload: Mapping with snake_case or camelCase keys, or a TravelRequest

        Returns:
            Validated request

        Raises:
            InvalidTravelRequestError: If the payload is structurally invalid
        """
        if isinstance(payload, cls):
            return payload
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            issues = [
                f"{'.'.join(str(part) for part in error['loc']) or 'request'}: "
                f"{error['msg']}"
                for error in e.errors()
            ]
            raise InvalidTravelRequestError("Invalid travel request", issues) from e

    @property
    def traveler_count(self) -> int:
        details = self.traveler_details
        if self.travel_type is TravelType.FAMILY and details.family_members:
            members = details.family_members
            return members.adults + members.children
        if self.travel_type is TravelType.GROUP:
            return details.group_size or DEFAULT_GROUP_SIZE
        return 1

    @property
    def duration_days(self) -> int:
        return first_integer(self.duration.value, FLEXIBLE_DURATION_DAYS)


class SourceCategory(str, Enum):
    """External travel-data categories."""

    TRAVEL_GUIDE = "travelGuide"
    FLIGHTS = "flights"
    HOTELS = "hotels"
    TRAINS = "trains"
    VISA = "visa"
    CURRENCY = "currency"


# Assessed on every run; trains only when supplied
REQUIRED_SOURCES = (
    SourceCategory.TRAVEL_GUIDE,
    SourceCategory.FLIGHTS,
    SourceCategory.HOTELS,
    SourceCategory.VISA,
    SourceCategory.CURRENCY,
)


class QualityDetails(BaseModel):
    """Diagnostics recorded while scoring a source."""

    model_config = ConfigDict(frozen=True)

    missing_fields: tuple[str, ...] = ()
    inconsistencies: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()


class QualityScore(BaseModel):
    """Four-axis quality measure for one source response."""

    model_config = ConfigDict(frozen=True)

    completeness: float = Field(..., ge=0.0, le=1.0)
    accuracy: float = Field(..., ge=0.0, le=1.0)
    relevance: float = Field(..., ge=0.0, le=1.0)
    freshness: float = Field(..., ge=0.0, le=1.0)
    details: QualityDetails = Field(default_factory=QualityDetails)

    @computed_field
    @property
    def overall(self) -> float:
        return (self.completeness + self.accuracy + self.relevance + self.freshness) / 4

    @classmethod
    def minimum(cls, reason: str) -> "QualityScore":
        """Score used when a source returned nothing usable."""
        return cls(
            completeness=MINIMUM_QUALITY,
            accuracy=MINIMUM_QUALITY,
            relevance=MINIMUM_QUALITY,
            freshness=MINIMUM_QUALITY,
            details=QualityDetails(
                missing_fields=("all_data",),
                recommendations=(f"Source unavailable: {reason}",),
            ),
        )


@dataclass(frozen=True)
class SourceAssessment:
    """A raw source payload together with its typed record and quality."""

    category: SourceCategory
    data: Any
    record: Any
    quality: QualityScore
    usable: bool
    reason: str | None = None

    @property
    def overall(self) -> float:
        return self.quality.overall


class ValidatedSourceData(Mapping[SourceCategory, SourceAssessment]):
    """
    Read-only view of every assessed source for one request.

    Keys may be given as SourceCategory members or their string values.
    """

    def __init__(
        self, assessments: Mapping[SourceCategory, SourceAssessment] | None = None
    ):
        self._assessments = MappingProxyType(dict(assessments or {}))

    def __getitem__(self, key: SourceCategory | str) -> SourceAssessment:
        try:
            category = SourceCategory(key)
        except ValueError:
            raise KeyError(key) from None
        return self._assessments[category]

    def __iter__(self) -> Iterator[SourceCategory]:
        return iter(self._assessments)

    def __len__(self) -> int:
        return len(self._assessments)

    def __repr__(self) -> str:
        summary = ", ".join(
            f"{category.value}={assessment.overall:.2f}"
            for category, assessment in self._assessments.items()
        )
        return f"ValidatedSourceData({summary})"

    @property
    def mean_quality(self) -> float:
        if not self._assessments:
            return 0.0
        return sum(a.overall for a in self._assessments.values()) / len(
            self._assessments
        )

    def is_usable(self, category: SourceCategory | str) -> bool:
        assessment = self.get(category)
        return bool(assessment and assessment.usable)

    def usable_record(self, category: SourceCategory | str) -> Any:
        """Typed record for a usable source, otherwise None."""
        assessment = self.get(category)
        if assessment is None or not assessment.usable:
            return None
        return assessment.record

    def usable_sources(self) -> list[SourceCategory]:
        return [c for c, a in self._assessments.items() if a.usable]

    def usability(self) -> dict[str, bool]:
        return {c.value: a.usable for c, a in self._assessments.items()}

    def quality_by_source(self) -> dict[str, float]:
        return {c.value: round(a.overall, 3) for c, a in self._assessments.items()}


class Strategy(str, Enum):
    """Generation strategy, from most to least reliant on source data."""

    API_FIRST = "api_first"
    API_ENHANCED = "api_enhanced"
    LLM_WITH_CONTEXT = "llm_with_context"
    LLM_FALLBACK = "llm_fallback"


class CardType(str, Enum):
    """Sections of a travel deck."""

    OVERVIEW = "overview"
    ITINERARY = "itinerary"
    TRANSPORT = "transport"
    ACCOMMODATION = "accommodation"
    ATTRACTIONS = "attractions"
    DINING = "dining"
    BUDGET = "budget"
    VISA = "visa"
    WEATHER = "weather"
    CULTURE = "culture"
    EMERGENCY = "emergency"
    SHOPPING = "shopping"


class DataSource(str, Enum):
    """Where a card's content came from."""

    API = "api"
    LLM_ENHANCED = "llm_enhanced"
    LLM_GENERATED = "llm_generated"
    FALLBACK = "fallback"


class QualityIndicators(BaseModel):
    """Heuristic quality of generated card content."""

    model_config = WIRE_CONFIG

    completeness: float = Field(default=0.0, ge=0.0, le=1.0)
    accuracy: float = Field(default=0.0, ge=0.0, le=1.0)
    relevance: float = Field(default=0.0, ge=0.0, le=1.0)
    actionability: float = Field(default=0.0, ge=0.0, le=1.0)


@dataclass(frozen=True)
class CardGenerationRequest:
    """Everything a generator needs to produce one card."""

    card_type: CardType
    request: TravelRequest
    sources: ValidatedSourceData
    strategy: Strategy
    relevant_quality: float


class GeneratedCardContent(BaseModel):
    """Content produced for one card, with provenance."""

    content: dict[str, Any]
    confidence: float = Field(..., ge=0.0, le=1.0)
    data_source: DataSource
    model: str
    processing_time_ms: float = 0.0
    quality_indicators: QualityIndicators = Field(default_factory=QualityIndicators)
    escalated: bool = False


class CardMetadata(BaseModel):
    """Provenance and quality of one card."""

    model_config = WIRE_CONFIG

    data_source: DataSource
    confidence: float
    quality_indicators: QualityIndicators
    model: str
    processing_time_ms: float
    relevant_quality: float
    escalated: bool = False


class TravelCard(BaseModel):
    """One section of the deck."""

    model_config = WIRE_CONFIG

    id: str
    type: CardType
    title: str
    subtitle: str
    content: dict[str, Any]
    priority: int
    metadata: CardMetadata


class DeckMetadata(BaseModel):
    """Aggregate quality information for a deck."""

    model_config = WIRE_CONFIG

    strategy: Strategy
    source_usability: dict[str, bool]
    source_quality: dict[str, float]
    mean_quality: float
    mean_confidence: float
    data_source_distribution: dict[str, int]
    generation_time_ms: float
    card_count: int
    traveler_count: int
    cancelled: bool = False


class TravelDeck(BaseModel):
    """The ordered set of cards generated for one request."""

    model_config = WIRE_CONFIG

    id: str
    destination: str
    origin: str
    request: TravelRequest
    cards: list[TravelCard]
    metadata: DeckMetadata
    created_at: datetime = Field(default_factory=datetime.now)

    def card(self, card_type: CardType | str) -> TravelCard | None:
        """Return the card of the given type, if the deck has one."""
        card_type = CardType(card_type)
        return next((c for c in self.cards if c.type is card_type), None)
