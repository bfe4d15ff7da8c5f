"""
Pytest configuration for the travel deck tests.
"""

import copy
import json
import re
from unittest.mock import AsyncMock, MagicMock

import pytest

# Register asyncio marker
pytest.importorskip("pytest_asyncio")
pytest.mark.asyncio = pytest.mark.asyncio

# Import project modules after configuring pytest
from travel_deck.config import (  # noqa: E402
    APIConfig,
    DeckConfig,
    PipelineConfig,
)
from travel_deck.data.models import TravelRequest  # noqa: E402
from travel_deck.utils import LogLevel, setup_logging  # noqa: E402
from travel_deck.utils.rate_limiting import (  # noqa: E402
    RateLimitConfig,
    RateLimitManager,
)

GOOD_RAW_SOURCES = {
    "travelGuide": {
        "destination": "Goa",
        "attractions": [
            {
                "name": "Baga Beach",
                "description": "Lively beach with water sports",
                "rating": 4.5,
                "type": "Beach",
            },
            {
                "name": "Fort Aguada",
                "description": "17th-century Portuguese fort",
                "rating": 4.3,
                "type": "Fort",
                "entryFee": "₹50",
            },
            {
                "name": "Basilica of Bom Jesus",
                "description": "UNESCO-listed baroque church",
                "rating": 4.7,
                "type": "Church",
                "tips": "Dress modestly",
            },
        ],
        "localInfo": {"language": "Konkani", "bestTime": "November to February"},
    },
    "flights": [
        {
            "airline": "IndiGo",
            "price": 5500,
            "duration": "1h 10m",
            "departure": "06:00",
            "destination": "Goa",
        },
        {
            "airline": "Air India",
            "price": "₹6,500",
            "duration": "1h 15m",
            "departure": "18:30",
            "destination": "Goa",
        },
    ],
    "hotels": [
        {
            "name": "Taj Fort Aguada",
            "pricePerNight": 12000,
            "rating": 4.7,
            "city": "Goa",
        },
        {"name": "Zostel Goa", "pricePerNight": 1200, "rating": 4.2, "city": "Goa"},
    ],
    "visa": {"required": False, "destination": "Goa", "country": "India"},
    "currency": {"rate": 1.0, "from": "INR", "to": "INR"},
}

GOOD_TRAINS = {
    "trains": [
        {
            "trainNumber": "10103",
            "trainName": "Mandovi Express",
            "price": 750,
            "departure": "07:10",
            "arrival": "18:45",
        }
    ]
}

# Satisfies every card's shape contract and expected field count
CANNED_CARD_CONTENT = {
    "destination": "Goa",
    "summary": "Book beach shacks early in peak season",
    "currency": "INR",
    "budget": {"level": "Comfortable", "total": 60000},
    "days": [{"day": 1, "title": "Arrival", "activities": []}],
    "attractions": [{"name": "Baga Beach", "cost": "Free"}],
    "highlights": ["Beaches", "Forts"],
    "tips": ["Carry sunscreen", "Try the fish curry"],
    "bestTime": "November to February",
}

_CARD_IN_PROMPT = re.compile(r"Create the (\w+) card")


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """Set up logging for tests."""
    setup_logging(LogLevel.DEBUG)


@pytest.fixture
def mock_gemini_client():
    """Mock Gemini client for testing."""
    mock_client = MagicMock()

    # Mock the aio.models.generate_content method
    mock_response = MagicMock()
    mock_response.text = "Test response"

    mock_client.aio = MagicMock()
    mock_client.aio.models = MagicMock()
    mock_client.aio.models.generate_content = AsyncMock(return_value=mock_response)

    return mock_client


@pytest.fixture
def canned_reply():
    """Model reply that meets every card's contract."""
    return json.dumps(CANNED_CARD_CONTENT)


@pytest.fixture
def mock_backend(canned_reply):
    """Text backend that answers every prompt with complete card content."""
    backend = MagicMock()
    backend.service_name = "gemini"
    backend.generate = AsyncMock(return_value=canned_reply)
    return backend


@pytest.fixture
def card_prompts():
    """Record of which card type each backend prompt asked for."""
    return []


@pytest.fixture
def recording_backend(mock_backend, card_prompts):
    """Mock backend that also records the card type named in each prompt."""

    async def generate(system_prompt, user_prompt, profile):
        match = _CARD_IN_PROMPT.search(user_prompt)
        card_prompts.append(match.group(1) if match else None)
        return json.dumps(CANNED_CARD_CONTENT)

    mock_backend.generate = AsyncMock(side_effect=generate)
    return mock_backend


@pytest.fixture
def rate_limits():
    """Rate-limit registry with room for every call a test makes."""
    return RateLimitManager(
        default_config=RateLimitConfig(
            service_name="default",
            max_requests=1000,
            window_seconds=60.0,
            min_wait_seconds=0.01,
            max_wait_seconds=0.05,
            backoff_ceiling_seconds=0.2,
        )
    )


@pytest.fixture
def test_config():
    """Test pipeline configuration."""
    return DeckConfig(
        api=APIConfig(gemini_api_key="test-key", rapidapi_key="test-key"),
        pipeline=PipelineConfig(
            max_concurrency=4,
            generation_timeout=5.0,
            source_timeout=5.0,
            rate_limit_ceiling=0.2,
        ),
    )


@pytest.fixture
def goa_request():
    """Domestic request: Mumbai to Goa, 5-7 days, Comfortable."""
    return TravelRequest.from_payload(
        {
            "destination": "Goa",
            "origin": "Mumbai",
            "duration": "5-7",
            "budget": "Comfortable",
        }
    )


@pytest.fixture
def dubai_request():
    """International family request: Mumbai to Dubai, Luxury."""
    return TravelRequest.from_payload(
        {
            "destination": "Dubai",
            "origin": "Mumbai",
            "duration": "5-7",
            "budget": "Luxury",
            "travelType": "family",
            "travelerDetails": {
                "familyMembers": {"adults": 2, "children": 1, "childrenAges": [8]}
            },
            "dietary": "Veg",
        }
    )


@pytest.fixture
def good_raw_sources():
    """Provider payloads for the Goa request that all score well."""
    return copy.deepcopy(GOOD_RAW_SOURCES)


@pytest.fixture
def good_trains():
    """Trains payload for the Mumbai to Goa route."""
    return copy.deepcopy(GOOD_TRAINS)


@pytest.fixture
def good_sources(goa_request, good_raw_sources):
    """Assessed sources for the Goa request, all usable."""
    from travel_deck.quality.source_quality import SourceQualityAssessor

    return SourceQualityAssessor().assess(good_raw_sources, goa_request)
