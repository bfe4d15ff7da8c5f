"""
Unit tests for the data models.
"""

import pytest
from pydantic import ValidationError

from travel_deck.data.models import (
    MINIMUM_QUALITY,
    CardMetadata,
    CardType,
    DataSource,
    DeckMetadata,
    QualityIndicators,
    QualityScore,
    SourceAssessment,
    SourceCategory,
    Strategy,
    TravelCard,
    TravelDeck,
    TravelRequest,
    ValidatedSourceData,
)
from travel_deck.utils.error_handling import InvalidTravelRequestError


def test_request_from_camel_case_payload(dubai_request):
    """Test building a request from a wizard payload."""
    assert dubai_request.destination == "Dubai"
    assert dubai_request.travel_type.value == "family"
    assert dubai_request.traveler_details.family_members.children_ages == [8]
    assert dubai_request.traveler_count == 3
    assert dubai_request.duration_days == 5


def test_request_accepts_request_instance(goa_request):
    """Test that an existing request passes through unchanged."""
    assert TravelRequest.from_payload(goa_request) is goa_request


@pytest.mark.parametrize(
    "duration,days", [("2-3", 2), ("5-7", 5), ("10-14", 10), ("Flexible", 5)]
)
def test_duration_days(duration, days):
    """Test the planning length for each duration bucket."""
    request = TravelRequest(
        destination="Goa", origin="Mumbai", duration=duration, budget="Tight"
    )

    assert request.duration_days == days


def test_group_traveler_count():
    """Test traveler count for a group trip."""
    request = TravelRequest.from_payload(
        {
            "destination": "Manali",
            "origin": "Delhi",
            "duration": "5-7",
            "budget": "Tight",
            "travelType": "group",
            "groupSubType": "friends",
            "travelerDetails": {"groupSize": 6},
        }
    )

    assert request.traveler_count == 6


def test_invalid_request_lists_issues():
    """Test that structural problems are reported together."""
    with pytest.raises(InvalidTravelRequestError) as exc_info:
        TravelRequest.from_payload(
            {"destination": "G", "origin": "Mumbai", "duration": "3 weeks"}
        )

    issues = exc_info.value.issues
    assert any(issue.startswith("destination") for issue in issues)
    assert any(issue.startswith("duration") for issue in issues)
    assert any(issue.startswith("budget") for issue in issues)


def test_family_trip_needs_members():
    """Test the cross-field rule for family trips."""
    with pytest.raises(InvalidTravelRequestError):
        TravelRequest.from_payload(
            {
                "destination": "Goa",
                "origin": "Mumbai",
                "duration": "5-7",
                "budget": "Comfortable",
                "travelType": "family",
            }
        )


def test_request_is_immutable(goa_request):
    """Test that a validated request cannot be changed."""
    with pytest.raises(ValidationError):
        goa_request.destination = "Kerala"


def test_quality_score_overall():
    """Test that overall is the mean of the four axes."""
    score = QualityScore(completeness=1.0, accuracy=0.8, relevance=0.6, freshness=0.2)

    assert score.overall == pytest.approx(0.65)
    assert score.model_dump()["overall"] == pytest.approx(0.65)


def test_minimum_quality_score():
    """Test the score given to a missing source."""
    score = QualityScore.minimum("timed out")

    assert score.overall == pytest.approx(MINIMUM_QUALITY)
    assert score.details.missing_fields == ("all_data",)
    assert "timed out" in score.details.recommendations[0]


def _assessment(category, overall, usable):
    return SourceAssessment(
        category=category,
        data={"sample": True},
        record="record",
        quality=QualityScore(
            completeness=overall, accuracy=overall, relevance=overall, freshness=overall
        ),
        usable=usable,
    )


def test_validated_source_data_view():
    """Test lookups and aggregates on the assessed sources."""
    sources = ValidatedSourceData(
        {
            SourceCategory.FLIGHTS: _assessment(SourceCategory.FLIGHTS, 0.9, True),
            SourceCategory.HOTELS: _assessment(SourceCategory.HOTELS, 0.3, False),
        }
    )

    assert sources["flights"] is sources[SourceCategory.FLIGHTS]
    assert sources.mean_quality == pytest.approx(0.6)
    assert sources.usable_record("flights") == "record"
    assert sources.usable_record("hotels") is None
    assert sources.usable_record("visa") is None
    assert sources.usable_sources() == [SourceCategory.FLIGHTS]
    assert sources.usability() == {"flights": True, "hotels": False}
    assert sources.quality_by_source() == {"flights": 0.9, "hotels": 0.3}
    assert "unknown" not in sources


def test_empty_source_data():
    """Test the aggregates with nothing assessed."""
    sources = ValidatedSourceData()

    assert len(sources) == 0
    assert sources.mean_quality == 0.0
    assert not sources.is_usable(SourceCategory.VISA)


def test_deck_card_lookup_and_wire_format(goa_request):
    """Test card lookup and camelCase serialization of a deck."""
    card = TravelCard(
        id="budget-1",
        type=CardType.BUDGET,
        title="Budget Planner",
        subtitle="Comfortable budget breakdown",
        content={"currency": "INR"},
        priority=7,
        metadata=CardMetadata(
            data_source=DataSource.API,
            confidence=0.9,
            quality_indicators=QualityIndicators(completeness=1.0),
            model="api",
            processing_time_ms=1.5,
            relevant_quality=0.93,
        ),
    )
    deck = TravelDeck(
        id="deck-1",
        destination="Goa",
        origin="Mumbai",
        request=goa_request,
        cards=[card],
        metadata=DeckMetadata(
            strategy=Strategy.API_FIRST,
            source_usability={"flights": True},
            source_quality={"flights": 0.95},
            mean_quality=0.95,
            mean_confidence=0.9,
            data_source_distribution={"api": 1},
            generation_time_ms=10.0,
            card_count=1,
            traveler_count=1,
        ),
    )

    assert deck.card("budget") is card
    assert deck.card(CardType.VISA) is None

    wire = deck.model_dump(by_alias=True, mode="json")
    assert wire["cards"][0]["metadata"]["dataSource"] == "api"
    assert wire["metadata"]["dataSourceDistribution"] == {"api": 1}
    assert wire["request"]["travelType"] == "single"
