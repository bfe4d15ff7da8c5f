"""
Unit tests for source quality assessment.
"""

import pytest
from pydantic import ValidationError

from travel_deck.data.models import REQUIRED_SOURCES, SourceCategory
from travel_deck.quality.source_quality import (
    SourceQualityAssessor,
    destination_similarity,
)


@pytest.fixture
def assessor():
    """Create an assessor with the default thresholds."""
    return SourceQualityAssessor()


def test_good_sources_are_usable(good_sources):
    """Test that complete, plausible, relevant payloads score well."""
    assert set(good_sources) == set(REQUIRED_SOURCES)
    assert all(good_sources.is_usable(category) for category in good_sources)
    assert good_sources.mean_quality == pytest.approx(0.93)
    assert good_sources[SourceCategory.TRAVEL_GUIDE].overall == pytest.approx(0.95)
    assert good_sources[SourceCategory.HOTELS].overall == pytest.approx(0.925)


def test_overall_is_mean_of_axes(good_sources):
    """Test the overall score of every assessed source."""
    for assessment in good_sources.values():
        score = assessment.quality
        axes = (score.completeness, score.accuracy, score.relevance, score.freshness)
        assert 0.0 <= score.overall <= 1.0
        assert score.overall == pytest.approx(sum(axes) / 4)


def test_missing_payload_gets_minimum_score(assessor, goa_request):
    """Test that a failed fetch is unusable with the minimum score."""
    sources = assessor.assess(
        {"flights": None}, goa_request, fetch_errors={"flights": "timed out"}
    )

    flights = sources[SourceCategory.FLIGHTS]
    assert not flights.usable
    assert flights.overall <= 0.2
    assert flights.reason == "timed out"
    assert flights.record is None


def test_all_sources_missing(assessor, goa_request):
    """Test assessment when nothing was fetched."""
    sources = assessor.assess(None, goa_request)

    assert len(sources) == len(REQUIRED_SOURCES)
    assert sources.usable_sources() == []
    assert sources.mean_quality == pytest.approx(0.1)


def test_malformed_payload_keeps_raw_data(assessor, goa_request):
    """Test that a malformed payload is unusable but kept for diagnostics."""
    sources = assessor.assess({"hotels": "service unavailable"}, goa_request)

    hotels = sources[SourceCategory.HOTELS]
    assert not hotels.usable
    assert hotels.data == "service unavailable"
    assert "Malformed hotels payload" in hotels.reason


def test_trains_assessed_only_when_supplied(assessor, goa_request, good_raw_sources):
    """Test that trains are an optional source."""
    assert SourceCategory.TRAINS not in assessor.assess(good_raw_sources, goa_request)

    good_raw_sources["trains"] = {
        "trains": [
            {"trainNumber": "10103", "trainName": "Mandovi Express", "price": 750}
        ]
    }
    sources = assessor.assess(good_raw_sources, goa_request)

    assert sources.is_usable(SourceCategory.TRAINS)
    assert sources[SourceCategory.TRAINS].overall == pytest.approx(0.85)


def test_thin_travel_guide_is_unusable(assessor, goa_request):
    """Test that an empty travel guide falls below the usable cut-off."""
    sources = assessor.assess({"travelGuide": {}}, goa_request)

    guide = sources[SourceCategory.TRAVEL_GUIDE]
    assert not guide.usable
    assert "attractions" in guide.quality.details.missing_fields


def test_implausible_fares_lower_accuracy(assessor, goa_request):
    """Test that fares outside the domestic band are flagged."""
    sources = assessor.assess(
        {"flights": [{"airline": "IndiGo", "price": 60000, "duration": "1h"}]},
        goa_request,
    )

    score = sources[SourceCategory.FLIGHTS].quality
    assert score.accuracy == 0.6
    assert score.details.inconsistencies


def test_visa_required_for_domestic_trip(assessor, goa_request):
    """Test that a visa requirement inside India is inconsistent."""
    sources = assessor.assess(
        {"visa": {"required": True, "type": "Tourist", "documents": ["Passport"]}},
        goa_request,
    )

    score = sources[SourceCategory.VISA].quality
    assert score.accuracy == 0.5
    assert "domestic" in score.details.inconsistencies[0]


def test_currency_for_wrong_destination(assessor, dubai_request):
    """Test that a rate quoted for other currencies is less relevant."""
    sources = assessor.assess(
        {"currency": {"rate": 83.25, "from": "USD", "to": "INR"}}, dubai_request
    )

    score = sources[SourceCategory.CURRENCY].quality
    assert score.completeness == 1.0
    assert score.relevance == 0.6


def test_implausible_exchange_rate(assessor, dubai_request):
    """Test that an out-of-range rate lowers accuracy."""
    sources = assessor.assess(
        {"currency": {"rate": 5000, "from": "AED", "to": "INR"}}, dubai_request
    )

    assert sources[SourceCategory.CURRENCY].quality.accuracy == 0.6


@pytest.mark.parametrize(
    "reported,requested,expected",
    [
        ("Goa", "goa", 1.0),
        ("North Goa", "Goa", 0.8),
        ("UAE", "Dubai", 0.7),
        ("Bombay", "Mumbai", 0.7),
        ("Paris", "Goa", 0.3),
        ("England", "Phuket", 0.3),
        ("Singapore", "Lisgo", 0.3),
        ("Thailand", "Phuket", 0.7),
        (None, "Goa", None),
    ],
)
def test_destination_similarity(reported, requested, expected):
    """Test destination matching."""
    assert destination_similarity(reported, requested) == expected


def test_assessed_details_are_frozen(assessor, goa_request):
    """Test that scoring diagnostics cannot change after assessment."""
    sources = assessor.assess({"travelGuide": {}}, goa_request)
    details = sources[SourceCategory.TRAVEL_GUIDE].quality.details

    assert isinstance(details.missing_fields, tuple)
    with pytest.raises(ValidationError):
        details.missing_fields = ()
