"""
Card content generation.

The generator turns one CardGenerationRequest into card content following
the run's strategy:

* api_first restructures usable source data with no model call, and falls
  through to api_enhanced when it cannot;
* api_enhanced prompts the model with a quality summary and a slice of the
  raw source data;
* llm_with_context prompts with the names of the usable sources only;
* llm_fallback prompts with the traveler profile alone.

Any failure along the way (unparseable reply, broken shape contract,
timeout, rate-limit ceiling, backend error) yields the card's deterministic
placeholder instead. Thin content is retried once with api_enhanced.
"""

import asyncio
import time
from collections.abc import Mapping
from types import MappingProxyType

from travel_deck.config import DeckConfig, ModelProfile, config
from travel_deck.data.models import (
    CardGenerationRequest,
    DataSource,
    GeneratedCardContent,
    Strategy,
)
from travel_deck.generation.backend import TextGenerationBackend
from travel_deck.generation.parsing import parse_card_content, shape_violation
from travel_deck.generation.placeholders import build_placeholder
from travel_deck.generation.prompts import COST_BEARING_CARDS, PromptBuilder
from travel_deck.generation.structuring import ApiStructurer
from travel_deck.quality.content_quality import ContentQualityScorer
from travel_deck.utils.error_handling import GenerationParseError, RateLimitExceeded
from travel_deck.utils.logging import PipelineLogger
from travel_deck.utils.rate_limiting import RateLimitManager, rate_limit_manager

STRATEGY_CONFIDENCE: Mapping[Strategy, float] = MappingProxyType(
    {
        Strategy.API_FIRST: 0.9,
        Strategy.API_ENHANCED: 0.85,
        Strategy.LLM_WITH_CONTEXT: 0.75,
        Strategy.LLM_FALLBACK: 0.65,
    }
)

STRATEGY_DATA_SOURCE: Mapping[Strategy, DataSource] = MappingProxyType(
    {
        Strategy.API_FIRST: DataSource.API,
        Strategy.API_ENHANCED: DataSource.LLM_ENHANCED,
        Strategy.LLM_WITH_CONTEXT: DataSource.LLM_GENERATED,
        Strategy.LLM_FALLBACK: DataSource.LLM_GENERATED,
    }
)

FALLBACK_CONFIDENCE = 0.4
API_MODEL = "api"
FALLBACK_MODEL = "fallback"
DEFAULT_BACKEND_SERVICE = "gemini"


class ContentGenerator:
    """
    Generates the content of one card at a time.

    ``generate`` never raises; cancellation is the only exception that
    escapes it.
    """

    def __init__(
        self,
        backend: TextGenerationBackend | None,
        *,
        structurer: ApiStructurer | None = None,
        scorer: ContentQualityScorer | None = None,
        prompts: PromptBuilder | None = None,
        rate_limits: RateLimitManager | None = None,
        deck_config: DeckConfig | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize the generator.

        Args:
            backend: Text-generation backend; None means every model call
                is replaced by the card's placeholder
            structurer: Structurer used by the api_first strategy
            scorer: Scorer for generated content
            prompts: Prompt builder
            rate_limits: Rate-limit registry consulted before each model call
            deck_config: Configuration supplying model profiles and thresholds
            timeout: Hard timeout for one model call, in seconds
        """
        self.backend = backend
        self.config = deck_config or config
        self.structurer = structurer or ApiStructurer()
        self.scorer = scorer or ContentQualityScorer(thresholds=self.config.thresholds)
        self.prompts = prompts or PromptBuilder(
            self.config.pipeline.source_slice_chars, self.config.thresholds
        )
        self.rate_limits = rate_limits or rate_limit_manager
        self.timeout = (
            timeout if timeout is not None else self.config.pipeline.generation_timeout
        )

    @property
    def backend_service(self) -> str:
        return getattr(self.backend, "service_name", DEFAULT_BACKEND_SERVICE)

    async def generate(self, request: CardGenerationRequest) -> GeneratedCardContent:
        """
        Generate content for one card.

        Args:
            request: Card type, travel request, sources, strategy and the
                card's relevant source quality

        Returns:
            Generated content with provenance and quality indicators
        """
        started = time.perf_counter()
        card_type = request.card_type
        log = PipelineLogger("generator", card_type.value)

        result = await self._attempt(request, request.strategy, log)
        indicators = self.scorer.score(
            result.content, card_type, request.request.destination
        )

        escalated = False
        if self.scorer.needs_escalation(indicators, request.strategy):
            log.info(
                f"Completeness {indicators.completeness:.2f} is low, "
                f"retrying once with {Strategy.API_ENHANCED.value}"
            )
            escalated = True
            retry = await self._attempt(request, Strategy.API_ENHANCED, log)
            if retry.confidence > result.confidence:
                result = retry
                indicators = self.scorer.score(
                    result.content, card_type, request.request.destination
                )

        elapsed_ms = (time.perf_counter() - started) * 1000
        log.debug(
            f"Generated {card_type.value} from {result.data_source.value} "
            f"(confidence {result.confidence:.2f}) in {elapsed_ms:.0f}ms"
        )
        return result.model_copy(
            update={
                "processing_time_ms": round(elapsed_ms, 2),
                "quality_indicators": indicators,
                "escalated": escalated,
            }
        )

    async def _attempt(
        self,
        request: CardGenerationRequest,
        strategy: Strategy,
        log: PipelineLogger,
    ) -> GeneratedCardContent:
        card_type = request.card_type

        if strategy is Strategy.API_FIRST:
            content = await self._structure(request, log)
            if content is not None:
                return GeneratedCardContent(
                    content=content,
                    confidence=STRATEGY_CONFIDENCE[Strategy.API_FIRST],
                    data_source=DataSource.API,
                    model=API_MODEL,
                )
            strategy = Strategy.API_ENHANCED

        if self.backend is None:
            log.warning("No text backend configured, using placeholder content")
            return self._fallback(request)

        profile = self.config.get_model_profile(card_type)
        hotel_prices = None
        if strategy is Strategy.API_ENHANCED and card_type in COST_BEARING_CARDS:
            try:
                hotel_prices = await self.structurer.hotel_prices_inr(request.sources)
            except Exception as e:
                log.warning(f"Could not convert hotel rates to INR: {e!s}")
        system_prompt, user_prompt = self.prompts.build(
            strategy, card_type, request.request, request.sources, hotel_prices
        )
        try:
            text = await self._call_backend(system_prompt, user_prompt, profile, log)
            content = parse_card_content(text, card_type)
        except GenerationParseError as e:
            log.warning(f"Discarding generated content: {e!s}")
            return self._fallback(request)
        except TimeoutError:
            log.warning(f"Model call timed out after {self.timeout:g}s")
            return self._fallback(request)
        except RateLimitExceeded as e:
            log.warning(str(e))
            return self._fallback(request)
        except Exception as e:
            log.error(f"Model call failed: {e!s}")
            return self._fallback(request)

        return GeneratedCardContent(
            content=content,
            confidence=STRATEGY_CONFIDENCE[strategy],
            data_source=STRATEGY_DATA_SOURCE[strategy],
            model=profile.name,
        )

    async def _structure(
        self, request: CardGenerationRequest, log: PipelineLogger
    ) -> dict | None:
        try:
            content = await self.structurer.structure(
                request.card_type, request.request, request.sources
            )
        except Exception as e:
            log.error(f"Structuring source data failed: {e!s}")
            return None
        if content is None:
            return None

        violation = shape_violation(content, request.card_type)
        if violation:
            log.info(f"Structured content rejected: {violation}")
            return None
        return content

    async def _call_backend(
        self,
        system_prompt: str,
        user_prompt: str,
        profile: ModelProfile,
        log: PipelineLogger,
    ) -> str:
        """
        Make exactly one model call.

        The rate-limit wait happens before the timeout starts, so time spent
        queueing does not count against the call.

        Raises:
            RateLimitExceeded: If the backend's limiter hits its backoff ceiling
            TimeoutError: If the call exceeds the generation timeout
        """
        await self.rate_limits.wait_if_needed(self.backend_service)
        log.log_llm_input(profile.name, system_prompt, user_prompt, profile.temperature)
        async with asyncio.timeout(self.timeout):
            text = await self.backend.generate(system_prompt, user_prompt, profile)
        log.log_llm_output(profile.name, text)
        return text

    def _fallback(self, request: CardGenerationRequest) -> GeneratedCardContent:
        return GeneratedCardContent(
            content=build_placeholder(request.card_type, request.request),
            confidence=FALLBACK_CONFIDENCE,
            data_source=DataSource.FALLBACK,
            model=FALLBACK_MODEL,
        )
