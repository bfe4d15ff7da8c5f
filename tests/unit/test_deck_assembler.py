"""
Unit tests for deck assembly.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from travel_deck.config import APIConfig, DeckConfig, PipelineConfig
from travel_deck.data.models import CardType, DataSource, SourceCategory, Strategy
from travel_deck.generation.generator import ContentGenerator
from travel_deck.orchestration import DeckAssembler, create_deck_assembler
from travel_deck.services.travel_data import DEFAULT_SOURCE_HOSTS, SourceFetcher
from travel_deck.utils.error_handling import InvalidTravelRequestError
from travel_deck.utils.rate_limiting import RateLimitConfig

GOA_PAYLOAD = {
    "destination": "Goa",
    "origin": "Mumbai",
    "duration": "5-7",
    "budget": "Comfortable",
}


def _config(max_concurrency=4):
    return DeckConfig(
        api=APIConfig(gemini_api_key="test-key", rapidapi_key="test-key"),
        pipeline=PipelineConfig(
            max_concurrency=max_concurrency,
            generation_timeout=5.0,
            source_timeout=5.0,
            rate_limit_ceiling=0.2,
        ),
    )


@pytest.fixture
def failing_provider():
    """Provider whose every call fails."""
    provider = MagicMock()
    provider.fetch = AsyncMock(side_effect=ConnectionError("connection refused"))
    return provider


@pytest.fixture
def make_assembler(rate_limits, test_config):
    """Factory for assemblers sharing the test rate limits."""

    def make(backend, provider=None, deck_config=None):
        deck_config = deck_config or test_config
        generator = ContentGenerator(
            backend, rate_limits=rate_limits, deck_config=deck_config
        )
        fetcher = (
            SourceFetcher(
                provider,
                rate_limits=rate_limits,
                timeout=deck_config.pipeline.source_timeout,
            )
            if provider is not None
            else None
        )
        return DeckAssembler(generator, fetcher=fetcher, deck_config=deck_config)

    return make


@pytest.mark.asyncio
async def test_all_sources_down_without_backend(make_assembler, failing_provider):
    """Test that a run with nothing to work from still yields every card."""
    assembler = make_assembler(None, failing_provider)

    deck = await assembler.assemble(GOA_PAYLOAD)

    assert len(deck.cards) == len(CardType)
    assert all(card.metadata.data_source is DataSource.FALLBACK for card in deck.cards)
    assert all(card.metadata.confidence == 0.4 for card in deck.cards)
    assert deck.metadata.strategy is Strategy.LLM_FALLBACK
    assert deck.metadata.mean_quality == 0.1
    assert not any(deck.metadata.source_usability.values())
    assert deck.metadata.data_source_distribution == {"fallback": len(CardType)}


@pytest.mark.asyncio
async def test_all_sources_down_with_backend(
    make_assembler, mock_backend, failing_provider
):
    """Test that the model fills every card when no source is usable."""
    assembler = make_assembler(mock_backend, failing_provider)

    deck = await assembler.assemble(GOA_PAYLOAD)

    assert len(deck.cards) == len(CardType)
    assert {card.metadata.data_source for card in deck.cards} <= {
        DataSource.LLM_GENERATED,
        DataSource.FALLBACK,
    }
    assert deck.metadata.strategy is Strategy.LLM_FALLBACK
    assert deck.metadata.mean_confidence == 0.65
    assert not any(card.metadata.escalated for card in deck.cards)


@pytest.mark.asyncio
async def test_high_quality_sources(
    make_assembler, recording_backend, card_prompts, good_raw_sources
):
    """Test a well-sourced run that builds most cards without the model."""
    assembler = make_assembler(recording_backend)

    deck = await assembler.assemble(GOA_PAYLOAD, good_raw_sources)

    assert deck.metadata.strategy is Strategy.API_FIRST
    assert deck.metadata.mean_quality >= 0.8
    budget = deck.card(CardType.BUDGET)
    assert budget.metadata.data_source is DataSource.API
    assert budget.content["currency"] == "INR"
    assert budget.content["budget"]["level"] == "Comfortable"
    assert sorted(card_prompts) == sorted(
        ["dining", "weather", "culture", "emergency", "shopping"]
    )
    assert deck.metadata.data_source_distribution == {"api": 7, "llm_enhanced": 5}


@pytest.mark.asyncio
async def test_cards_in_priority_order(make_assembler, mock_backend, good_raw_sources):
    """Test card order, titles and ids."""
    assembler = make_assembler(mock_backend)

    deck = await assembler.assemble(GOA_PAYLOAD, good_raw_sources)

    assert [card.type for card in deck.cards] == list(CardType)
    assert [card.priority for card in deck.cards] == list(range(1, 13))
    assert deck.cards[0].title == "Goa Overview"
    assert all(card.id.startswith(card.type.value) for card in deck.cards)
    assert len({card.id for card in deck.cards}) == len(deck.cards)
    assert deck.id.startswith("deck")


@pytest.mark.asyncio
async def test_deck_metadata(make_assembler, mock_backend, good_raw_sources):
    """Test run-level metadata for a family trip."""
    assembler = make_assembler(mock_backend)
    payload = {
        **GOA_PAYLOAD,
        "travelType": "family",
        "travelerDetails": {"familyMembers": {"adults": 2, "children": 2}},
    }

    deck = await assembler.assemble(payload, good_raw_sources)

    assert deck.metadata.traveler_count == 4
    assert deck.metadata.card_count == len(CardType)
    assert not deck.metadata.cancelled
    assert deck.metadata.generation_time_ms >= 0
    assert sum(deck.metadata.data_source_distribution.values()) == len(CardType)
    assert set(deck.metadata.source_quality) == set(deck.metadata.source_usability)


@pytest.mark.asyncio
async def test_rate_limited_source(
    make_assembler, mock_backend, rate_limits, good_raw_sources, good_trains
):
    """Test a run where the hotels host has no capacity left."""
    hotels_host = DEFAULT_SOURCE_HOSTS[SourceCategory.HOTELS]
    rate_limits.register_service(
        RateLimitConfig(
            service_name=hotels_host,
            max_requests=1,
            window_seconds=3600.0,
            min_wait_seconds=0.01,
            max_wait_seconds=0.02,
            backoff_ceiling_seconds=0.1,
        )
    )
    assert await rate_limits.get_limiter(hotels_host).try_acquire()

    payloads = {**good_raw_sources, **good_trains}

    async def fetch(category, request):
        return payloads[category.value]

    provider = MagicMock()
    provider.fetch = AsyncMock(side_effect=fetch)
    assembler = make_assembler(mock_backend, provider)

    deck = await assembler.assemble(GOA_PAYLOAD)

    assert deck.metadata.source_usability["hotels"] is False
    assert deck.metadata.source_usability["trains"] is True
    assert deck.metadata.strategy is Strategy.API_ENHANCED
    assert len(deck.cards) == len(CardType)
    assert deck.card(CardType.ACCOMMODATION).metadata.relevant_quality == 0.1
    assert deck.card(CardType.DINING).metadata.data_source is DataSource.LLM_ENHANCED
    assert deck.card(CardType.DINING).metadata.relevant_quality >= 0.8
    assert SourceCategory.HOTELS not in [
        call.args[0] for call in provider.fetch.await_args_list
    ]


@pytest.mark.asyncio
async def test_rate_limited_source_reason(
    mock_backend, rate_limits, good_raw_sources, goa_request
):
    """Test that the exhausted host is named as the reason for the gap."""
    hotels_host = DEFAULT_SOURCE_HOSTS[SourceCategory.HOTELS]
    rate_limits.register_service(
        RateLimitConfig(
            service_name=hotels_host,
            max_requests=1,
            window_seconds=3600.0,
            min_wait_seconds=0.01,
            max_wait_seconds=0.02,
            backoff_ceiling_seconds=0.1,
        )
    )
    assert await rate_limits.get_limiter(hotels_host).try_acquire()
    provider = MagicMock()
    provider.fetch = AsyncMock(
        side_effect=lambda category, request: good_raw_sources.get(category.value)
    )
    fetcher = SourceFetcher(provider, rate_limits=rate_limits)

    result = await fetcher.fetch_all(goa_request)

    assert "rate limit exhausted" in result.errors["hotels"]


@pytest.mark.asyncio
async def test_cancel_before_start(make_assembler, mock_backend, good_raw_sources):
    """Test that a pre-set cancel event skips every card."""
    assembler = make_assembler(mock_backend)
    cancel_event = asyncio.Event()
    cancel_event.set()

    deck = await assembler.assemble(
        GOA_PAYLOAD, good_raw_sources, cancel_event=cancel_event
    )

    assert deck.cards == []
    assert deck.metadata.cancelled
    assert deck.metadata.mean_confidence == 0.0
    assert deck.metadata.card_count == 0
    mock_backend.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_cancel_mid_run(make_assembler, mock_backend, canned_reply):
    """Test that cards already running finish and the rest are skipped."""
    assembler = make_assembler(mock_backend, deck_config=_config(max_concurrency=1))
    cancel_event = asyncio.Event()

    async def generate_then_cancel(system_prompt, user_prompt, profile):
        cancel_event.set()
        return canned_reply

    mock_backend.generate = AsyncMock(side_effect=generate_then_cancel)

    deck = await assembler.assemble(GOA_PAYLOAD, {}, cancel_event=cancel_event)

    assert [card.type for card in deck.cards] == [CardType.OVERVIEW]
    assert deck.metadata.cancelled
    assert mock_backend.generate.await_count == 1


@pytest.mark.asyncio
async def test_outer_cancellation_stops_card_tasks(make_assembler, mock_backend):
    """Test that cancelling the run cancels its card tasks."""
    started = asyncio.Event()

    async def blocking_generate(system_prompt, user_prompt, profile):
        started.set()
        await asyncio.Event().wait()

    mock_backend.generate = AsyncMock(side_effect=blocking_generate)
    assembler = make_assembler(mock_backend)

    run = asyncio.create_task(assembler.assemble(GOA_PAYLOAD, {}))
    await started.wait()
    run.cancel()

    with pytest.raises(asyncio.CancelledError):
        await run
    for _ in range(3):
        await asyncio.sleep(0)

    pending = [
        task for task in asyncio.all_tasks() if task.get_name().startswith("card-")
    ]
    assert pending == []


@pytest.mark.asyncio
async def test_generator_failure_uses_static_fallback(
    make_assembler, mock_backend, good_raw_sources
):
    """Test that an exception from the generator costs no card."""
    assembler = make_assembler(mock_backend)

    with patch.object(
        assembler.generator, "generate", AsyncMock(side_effect=RuntimeError("boom"))
    ):
        deck = await assembler.assemble(GOA_PAYLOAD, good_raw_sources)

    assert len(deck.cards) == len(CardType)
    assert all(card.metadata.data_source is DataSource.FALLBACK for card in deck.cards)
    assert all(card.metadata.confidence == 0.4 for card in deck.cards)
    assert all(card.metadata.model == "fallback" for card in deck.cards)
    assert deck.card(CardType.EMERGENCY).content["emergencyNumbers"]["police"] == "100"


@pytest.mark.asyncio
async def test_invalid_request(make_assembler, mock_backend):
    """Test that a structurally invalid request is rejected up front."""
    assembler = make_assembler(mock_backend)

    with pytest.raises(InvalidTravelRequestError):
        await assembler.assemble({"destination": "", "duration": "5-7"}, {})

    mock_backend.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_concurrency_is_bounded(make_assembler, mock_backend, canned_reply):
    """Test that no more card tasks run at once than configured."""
    in_flight = 0
    peak = 0

    async def tracked_generate(system_prompt, user_prompt, profile):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return canned_reply

    mock_backend.generate = AsyncMock(side_effect=tracked_generate)
    assembler = make_assembler(mock_backend)

    deck = await assembler.assemble(GOA_PAYLOAD, {})

    assert len(deck.cards) == len(CardType)
    assert 1 < peak <= assembler.max_concurrency


def test_create_without_key(rate_limits):
    """Test wiring without a Gemini key or a provider."""
    deck_config = DeckConfig(api=APIConfig(gemini_api_key=""))

    assembler = create_deck_assembler(deck_config=deck_config, rate_limits=rate_limits)

    assert assembler.generator.backend is None
    assert assembler.fetcher is None
    assert rate_limits.is_registered("gemini")


def test_create_with_provider(rate_limits, mock_backend):
    """Test that a provider gets a fetcher."""
    provider = MagicMock()
    provider.fetch = AsyncMock(return_value={})

    assembler = create_deck_assembler(
        mock_backend, provider, deck_config=_config(), rate_limits=rate_limits
    )

    assert assembler.generator.backend is mock_backend
    assert assembler.fetcher is not None
    assert assembler.fetcher.provider is provider
    assert assembler.fetcher.timeout == 5.0


def test_create_with_key(rate_limits):
    """Test that a configured key builds the Gemini backend."""
    with patch(
        "travel_deck.orchestration.deck_assembler.GeminiBackend"
    ) as mock_backend_cls:
        assembler = create_deck_assembler(
            deck_config=_config(), rate_limits=rate_limits
        )

    mock_backend_cls.assert_called_once_with("test-key")
    assert assembler.generator.backend is mock_backend_cls.return_value
    assert assembler.max_concurrency == 4
