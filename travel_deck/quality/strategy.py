"""
Strategy selection from assessed source quality.
"""

from travel_deck.config import QualityThresholds
from travel_deck.data.lookups import DEFAULT_CARD_CATALOG, CardCatalog
from travel_deck.data.models import (
    MINIMUM_QUALITY,
    CardType,
    Strategy,
    ValidatedSourceData,
)
from travel_deck.utils.logging import get_logger

logger = get_logger(__name__)

# Rounding keeps float noise from dropping a mean of exactly 0.8 a tier
_PRECISION = 9


class StrategySelector:
    """
    Picks one generation strategy per run and rates each card's sources.
    """

    def __init__(
        self,
        thresholds: QualityThresholds | None = None,
        catalog: CardCatalog = DEFAULT_CARD_CATALOG,
    ):
        self.thresholds = thresholds or QualityThresholds()
        self.catalog = catalog

    def strategy_for_quality(self, quality: float) -> Strategy:
        """
        Map a mean quality to a strategy; a boundary value takes the higher tier.

        Args:
            quality: Mean overall quality in [0, 1]

        Returns:
            The strategy for that quality
        """
        quality = round(quality, _PRECISION)
        if quality >= self.thresholds.high:
            return Strategy.API_FIRST
        if quality >= self.thresholds.medium:
            return Strategy.API_ENHANCED
        if quality >= self.thresholds.low:
            return Strategy.LLM_WITH_CONTEXT
        return Strategy.LLM_FALLBACK

    def select_strategy(self, sources: ValidatedSourceData) -> Strategy:
        """
        Select the run-level strategy from the mean quality of all sources.

        Args:
            sources: Assessed sources for the request

        Returns:
            The strategy every card in the run starts from
        """
        strategy = self.strategy_for_quality(sources.mean_quality)
        logger.info(
            f"Selected {strategy.value} (mean source quality "
            f"{sources.mean_quality:.2f} over {len(sources)} sources)"
        )
        return strategy

    def relevant_quality(
        self, card_type: CardType, sources: ValidatedSourceData
    ) -> float:
        """
        Mean quality of the sources a card type draws on.

        Args:
            card_type: Card type
            sources: Assessed sources for the request

        Returns:
            Mean overall quality of the assessed dependencies, or the minimum
            score when none of them was assessed
        """
        scores = [
            sources[category].overall
            for category in self.catalog.dependencies_for(card_type)
            if category in sources
        ]
        if not scores:
            return MINIMUM_QUALITY
        return sum(scores) / len(scores)
