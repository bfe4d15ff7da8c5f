"""
Currency lookup and conversion to the traveler's home currency.
"""

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from travel_deck.data.lookups import HOME_CURRENCY, REFERENCE_INR_RATES
from travel_deck.utils.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class CurrencyLookup(Protocol):
    """Source of exchange rates."""

    async def get_rate(self, from_currency: str, to_currency: str) -> float | None:
        """Units of ``to_currency`` for one unit of ``from_currency``, or None."""
        ...


class StaticRateTable:
    """
    Exchange rates from a fixed table of INR reference values.

    Pairs that do not involve INR are crossed through it.
    """

    def __init__(self, inr_rates: Mapping[str, float] = REFERENCE_INR_RATES):
        self.inr_rates = inr_rates

    async def get_rate(self, from_currency: str, to_currency: str) -> float | None:
        source = self.inr_rates.get(from_currency.upper())
        target = self.inr_rates.get(to_currency.upper())
        if source is None or target is None:
            return None
        return source / target


class CurrencyConverter:
    """Converts amounts between currencies using a CurrencyLookup."""

    def __init__(self, lookup: CurrencyLookup | None = None):
        """
        Initialize the converter.

        Args:
            lookup: Rate source; defaults to the static reference table
        """
        self.lookup = lookup or StaticRateTable()

    async def convert(
        self, amount: float, from_currency: str, to_currency: str = HOME_CURRENCY
    ) -> float | None:
        """
        Convert an amount between currencies.

        Args:
            amount: Amount in ``from_currency``
            from_currency: ISO 4217 code of the amount
            to_currency: ISO 4217 code to convert to (defaults to INR)

        Returns:
            The converted amount rounded to two decimals, or None when no
            rate is known for the pair
        """
        if from_currency.upper() == to_currency.upper():
            return round(amount, 2)

        rate = await self.lookup.get_rate(from_currency, to_currency)
        if rate is None or rate <= 0:
            logger.warning(f"No exchange rate for {from_currency} to {to_currency}")
            return None
        return round(amount * rate, 2)
