"""
Deck assembly for the travel deck pipeline.

This module runs one request end to end: it validates the request, fetches
and assesses the sources, selects a strategy once, generates every card
concurrently and assembles the ordered deck with its quality metadata.
A failure inside one card never costs the deck that card.
"""

import asyncio
import time
from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any

from travel_deck.config import DeckConfig, config
from travel_deck.data.lookups import DEFAULT_CARD_CATALOG, CardCatalog
from travel_deck.data.models import (
    CardGenerationRequest,
    CardMetadata,
    CardType,
    DataSource,
    DeckMetadata,
    GeneratedCardContent,
    Strategy,
    TravelCard,
    TravelDeck,
    TravelRequest,
    ValidatedSourceData,
)
from travel_deck.generation.backend import GeminiBackend, TextGenerationBackend
from travel_deck.generation.generator import (
    FALLBACK_CONFIDENCE,
    FALLBACK_MODEL,
    ContentGenerator,
)
from travel_deck.generation.placeholders import build_placeholder
from travel_deck.generation.structuring import ApiStructurer
from travel_deck.quality.source_quality import SourceQualityAssessor
from travel_deck.quality.strategy import StrategySelector
from travel_deck.services.currency import (
    CurrencyConverter,
    CurrencyLookup,
    StaticRateTable,
)
from travel_deck.services.travel_data import SourceFetcher, TravelDataProvider
from travel_deck.utils.error_handling import safe_execute
from travel_deck.utils.helpers import generate_id
from travel_deck.utils.logging import get_logger
from travel_deck.utils.rate_limiting import (
    RateLimitManager,
    initialize_rate_limiting,
    rate_limit_manager,
)

logger = get_logger(__name__)


class DeckAssembler:
    """
    Builds a complete travel deck for one request.

    Every configured card type is generated, so the deck always has one
    card per type unless the caller cancels the run.
    """

    def __init__(
        self,
        generator: ContentGenerator,
        *,
        fetcher: SourceFetcher | None = None,
        assessor: SourceQualityAssessor | None = None,
        selector: StrategySelector | None = None,
        catalog: CardCatalog = DEFAULT_CARD_CATALOG,
        deck_config: DeckConfig | None = None,
        card_types: Iterable[CardType] | None = None,
    ):
        """
        Initialize the assembler.

        Args:
            generator: Card content generator
            fetcher: Source fetcher used when no raw sources are supplied
            assessor: Source quality assessor
            selector: Strategy selector
            catalog: Card catalogue (order, titles, dependencies)
            deck_config: Configuration (concurrency, thresholds)
            card_types: Card types to generate (defaults to the catalogue's)
        """
        self.config = deck_config or config
        self.generator = generator
        self.fetcher = fetcher
        self.assessor = assessor or SourceQualityAssessor(self.config.thresholds)
        self.selector = selector or StrategySelector(self.config.thresholds, catalog)
        self.catalog = catalog
        self.card_types = tuple(card_types or catalog.card_types)
        self.max_concurrency = self.config.pipeline.max_concurrency

    async def assemble(
        self,
        request: TravelRequest | Mapping[str, Any],
        raw_sources: Mapping[str, Any] | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> TravelDeck:
        """
        Assemble the deck for a request.

        Args:
            request: Travel request, or a wizard payload to validate
            raw_sources: Provider payloads keyed by source category; fetched
                through the configured fetcher when None
            cancel_event: Once set, card tasks that have not started are skipped

        Returns:
            The deck, with cards in priority order

        Raises:
            InvalidTravelRequestError: If the request is structurally invalid
        """
        started = time.perf_counter()
        travel_request = TravelRequest.from_payload(request)
        logger.info(
            f"Assembling deck: {travel_request.origin} to "
            f"{travel_request.destination}, {travel_request.duration.value} days, "
            f"{travel_request.budget.value}"
        )

        fetch_errors: dict[str, str] = {}
        if raw_sources is None and self.fetcher is not None:
            fetched = await self.fetcher.fetch_all(travel_request)
            raw_sources, fetch_errors = fetched.raw_sources, fetched.errors

        sources = self.assessor.assess(raw_sources, travel_request, fetch_errors)
        strategy = self.selector.select_strategy(sources)

        semaphore = asyncio.Semaphore(self.max_concurrency)
        tasks = [
            asyncio.create_task(
                self._build_card(
                    card_type,
                    travel_request,
                    sources,
                    strategy,
                    semaphore,
                    cancel_event,
                ),
                name=f"card-{card_type.value}",
            )
            for card_type in self.card_types
        ]
        try:
            results = await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            logger.warning("Deck assembly cancelled, stopping card tasks")
            for task in tasks:
                task.cancel()
            raise

        cards = sorted(
            (card for card in results if card is not None),
            key=lambda card: card.priority,
        )
        cancelled = bool(cancel_event and cancel_event.is_set())
        elapsed_ms = (time.perf_counter() - started) * 1000

        deck = TravelDeck(
            id=generate_id("deck"),
            destination=travel_request.destination,
            origin=travel_request.origin,
            request=travel_request,
            cards=cards,
            metadata=self._deck_metadata(
                travel_request, sources, strategy, cards, elapsed_ms, cancelled
            ),
        )
        logger.info(
            f"Assembled {len(cards)}/{len(self.card_types)} cards in "
            f"{elapsed_ms:.0f}ms with {strategy.value}"
            + (" (cancelled)" if cancelled else "")
        )
        return deck

    async def _build_card(
        self,
        card_type: CardType,
        request: TravelRequest,
        sources: ValidatedSourceData,
        strategy: Strategy,
        semaphore: asyncio.Semaphore,
        cancel_event: asyncio.Event | None,
    ) -> TravelCard | None:
        async with semaphore:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Skipping {card_type.value} card, run cancelled")
                return None

            relevant_quality = self.selector.relevant_quality(card_type, sources)
            try:
                generated = await self.generator.generate(
                    CardGenerationRequest(
                        card_type=card_type,
                        request=request,
                        sources=sources,
                        strategy=strategy,
                        relevant_quality=relevant_quality,
                    )
                )
            except Exception as e:
                logger.error(f"Card {card_type.value} failed, using fallback: {e!s}")
                generated = self._static_fallback(card_type, request)

            return self._card(card_type, request, generated, relevant_quality)

    def _static_fallback(
        self, card_type: CardType, request: TravelRequest
    ) -> GeneratedCardContent:
        content = safe_execute(
            build_placeholder,
            card_type,
            request,
            default={"destination": request.destination},
        )
        return GeneratedCardContent(
            content=content,
            confidence=FALLBACK_CONFIDENCE,
            data_source=DataSource.FALLBACK,
            model=FALLBACK_MODEL,
            quality_indicators=self.generator.scorer.score(
                content, card_type, request.destination
            ),
        )

    def _card(
        self,
        card_type: CardType,
        request: TravelRequest,
        generated: GeneratedCardContent,
        relevant_quality: float,
    ) -> TravelCard:
        return TravelCard(
            id=generate_id(card_type.value),
            type=card_type,
            title=self.catalog.title(card_type, request),
            subtitle=self.catalog.subtitle(card_type, request),
            content=generated.content,
            priority=self.catalog.priority(card_type),
            metadata=CardMetadata(
                data_source=generated.data_source,
                confidence=generated.confidence,
                quality_indicators=generated.quality_indicators,
                model=generated.model,
                processing_time_ms=generated.processing_time_ms,
                relevant_quality=round(relevant_quality, 3),
                escalated=generated.escalated,
            ),
        )

    @staticmethod
    def _deck_metadata(
        request: TravelRequest,
        sources: ValidatedSourceData,
        strategy: Strategy,
        cards: list[TravelCard],
        elapsed_ms: float,
        cancelled: bool,
    ) -> DeckMetadata:
        confidences = [card.metadata.confidence for card in cards]
        distribution = Counter(card.metadata.data_source.value for card in cards)
        return DeckMetadata(
            strategy=strategy,
            source_usability=sources.usability(),
            source_quality=sources.quality_by_source(),
            mean_quality=round(sources.mean_quality, 3),
            mean_confidence=(
                round(sum(confidences) / len(confidences), 3) if confidences else 0.0
            ),
            data_source_distribution=dict(distribution),
            generation_time_ms=round(elapsed_ms, 2),
            card_count=len(cards),
            traveler_count=request.traveler_count,
            cancelled=cancelled,
        )


def create_deck_assembler(
    backend: TextGenerationBackend | None = None,
    provider: TravelDataProvider | None = None,
    currency_lookup: CurrencyLookup | None = None,
    *,
    deck_config: DeckConfig | None = None,
    rate_limits: RateLimitManager | None = None,
) -> DeckAssembler:
    """
    Wire a DeckAssembler with the default collaborators.

    Args:
        backend: Text backend; a Gemini backend is built when GEMINI_API_KEY
            is configured, otherwise cards use placeholder content
        provider: Travel-data provider; without one, raw sources must be
            passed to ``assemble``
        currency_lookup: Exchange-rate source (defaults to the static table)
        deck_config: Configuration (defaults to the global one)
        rate_limits: Rate-limit registry (defaults to the global one)

    Returns:
        Ready-to-use assembler
    """
    deck_config = deck_config or config
    rate_limits = rate_limits or rate_limit_manager
    if not rate_limits.is_registered("gemini"):
        initialize_rate_limiting(
            ceiling_seconds=deck_config.pipeline.rate_limit_ceiling,
            manager=rate_limits,
        )

    if backend is None:
        if deck_config.api.gemini_api_key:
            backend = GeminiBackend(deck_config.api.gemini_api_key)
        else:
            logger.warning(
                "GEMINI_API_KEY is not set; cards will use placeholder content"
            )

    converter = CurrencyConverter(currency_lookup or StaticRateTable())
    generator = ContentGenerator(
        backend,
        structurer=ApiStructurer(converter),
        rate_limits=rate_limits,
        deck_config=deck_config,
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
