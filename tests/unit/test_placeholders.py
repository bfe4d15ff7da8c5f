"""
Unit tests for the deterministic placeholder content.
"""

import pytest

from travel_deck.data.models import CardType, TravelRequest
from travel_deck.generation.parsing import validate_shape
from travel_deck.generation.placeholders import MAX_ITINERARY_DAYS, build_placeholder
from travel_deck.quality.content_quality import ContentQualityScorer


@pytest.mark.parametrize("card_type", list(CardType))
def test_placeholders_meet_contracts(card_type, goa_request, dubai_request):
    """Test that every placeholder is complete and meets its contract."""
    scorer = ContentQualityScorer()

    for request in (goa_request, dubai_request):
        content = build_placeholder(card_type, request)

        assert validate_shape(content, card_type)
        assert content["destination"] == request.destination
        assert scorer.score(content, card_type).completeness == 1.0


@pytest.mark.parametrize("card_type", list(CardType))
def test_placeholders_are_deterministic(card_type, dubai_request):
    """Test that the same request always yields the same content."""
    assert build_placeholder(card_type, dubai_request) == build_placeholder(
        card_type, dubai_request
    )


def test_domestic_budget(goa_request):
    """Test the budget placeholder for a domestic trip."""
    content = build_placeholder(CardType.BUDGET, goa_request)

    assert content["currency"] == "INR"
    assert content["isDomestic"] is True
    assert content["budget"]["level"] == "Comfortable"
    assert content["budget"]["total"] == 60000
    assert content["budget"]["groupTotal"] == 60000
    assert content["localCurrency"] == "INR"
    assert content["exchangeRate"] is None


def test_international_budget(dubai_request):
    """Test the budget placeholder for an international family trip."""
    content = build_placeholder(CardType.BUDGET, dubai_request)

    assert content["currency"] == "INR"
    assert content["budget"]["level"] == "Luxury"
    assert content["budget"]["total"] == 216000
    assert content["budget"]["travelers"] == 3
    assert content["budget"]["groupTotal"] == 648000
    assert content["localCurrency"] == "AED"
    assert content["exchangeRate"] == 22.65
    assert content["localEquivalent"]["total"] == round(216000 / 22.65, 2)


def test_visa_placeholder(goa_request, dubai_request):
    """Test visa requirements inside and outside India."""
    assert build_placeholder(CardType.VISA, goa_request)["required"] is False
    assert build_placeholder(CardType.VISA, dubai_request)["required"] is True


def test_emergency_numbers(goa_request, dubai_request):
    """Test emergency numbers for India and abroad."""
    domestic = build_placeholder(CardType.EMERGENCY, goa_request)
    abroad = build_placeholder(CardType.EMERGENCY, dubai_request)

    assert domestic["emergencyNumbers"]["police"] == "100"
    assert domestic["indianEmbassy"] is None
    assert abroad["emergencyNumbers"]["police"] == "999"
    assert "United Arab Emirates" in abroad["indianEmbassy"]["name"]


def test_international_costs_show_local_currency(dubai_request):
    """Test that prices abroad are quoted locally and in INR."""
    content = build_placeholder(CardType.ACCOMMODATION, dubai_request)

    assert content["currency"] == "AED"
    assert content["options"][0]["price"].startswith("د.إ")
    assert "₹" in content["options"][0]["price"]


@pytest.mark.parametrize("duration,days", [("2-3", 2), ("10-14", MAX_ITINERARY_DAYS)])
def test_itinerary_length(duration, days):
    """Test that itineraries follow the trip length, capped at a week."""
    request = TravelRequest(
        destination="Jaipur", origin="Delhi", duration=duration, budget="Tight"
    )

    content = build_placeholder(CardType.ITINERARY, request)

    assert content["totalDays"] == days
    assert [day["day"] for day in content["days"]] == list(range(1, days + 1))
