"""
Unit tests for strategy selection.
"""

import pytest

from travel_deck.config import QualityThresholds
from travel_deck.data.models import (
    MINIMUM_QUALITY,
    CardType,
    Strategy,
    ValidatedSourceData,
)
from travel_deck.quality.strategy import StrategySelector

STRATEGY_RANK = [
    Strategy.LLM_FALLBACK,
    Strategy.LLM_WITH_CONTEXT,
    Strategy.API_ENHANCED,
    Strategy.API_FIRST,
]


@pytest.fixture
def selector():
    """Create a selector with the default thresholds."""
    return StrategySelector()


@pytest.mark.parametrize(
    "quality,strategy",
    [
        (1.0, Strategy.API_FIRST),
        (0.8, Strategy.API_FIRST),
        (0.7999, Strategy.API_ENHANCED),
        (0.6, Strategy.API_ENHANCED),
        (0.5999, Strategy.LLM_WITH_CONTEXT),
        (0.4, Strategy.LLM_WITH_CONTEXT),
        (0.3999, Strategy.LLM_FALLBACK),
        (0.0, Strategy.LLM_FALLBACK),
    ],
)
def test_strategy_for_quality(selector, quality, strategy):
    """Test the tiers, with boundary values taking the higher tier."""
    assert selector.strategy_for_quality(quality) is strategy


def test_float_noise_at_boundary(selector):
    """Test that float noise just under a threshold does not drop a tier."""
    quality = 0.1 + 0.7

    assert quality < 0.8
    assert selector.strategy_for_quality(quality) is Strategy.API_FIRST


def test_strategy_is_monotonic(selector):
    """Test that higher quality never selects a lower tier."""
    ranks = [
        STRATEGY_RANK.index(selector.strategy_for_quality(step / 100))
        for step in range(101)
    ]

    assert ranks == sorted(ranks)


def test_custom_thresholds():
    """Test selection with configured thresholds."""
    selector = StrategySelector(QualityThresholds(high=0.9, medium=0.7, low=0.5))

    assert selector.strategy_for_quality(0.85) is Strategy.API_ENHANCED
    assert selector.strategy_for_quality(0.45) is Strategy.LLM_FALLBACK


def test_select_strategy_from_sources(selector, good_sources):
    """Test the run-level strategy for well-scored sources."""
    assert selector.select_strategy(good_sources) is Strategy.API_FIRST


def test_select_strategy_without_sources(selector):
    """Test that an empty assessment selects the fallback strategy."""
    assert selector.select_strategy(ValidatedSourceData()) is Strategy.LLM_FALLBACK


def test_relevant_quality(selector, good_sources):
    """Test the mean quality of a card's dependencies."""
    budget = selector.relevant_quality(CardType.BUDGET, good_sources)
    visa = selector.relevant_quality(CardType.VISA, good_sources)

    assert budget == pytest.approx((0.95 + 0.925 + 0.95) / 3)
    assert visa == pytest.approx(good_sources["visa"].overall)


def test_relevant_quality_skips_unassessed(selector, good_sources):
    """Test that sources never assessed do not count."""
    transport = selector.relevant_quality(CardType.TRANSPORT, good_sources)

    assert transport == pytest.approx(good_sources["flights"].overall)
    assert (
        selector.relevant_quality(CardType.TRANSPORT, ValidatedSourceData())
        == MINIMUM_QUALITY
    )
