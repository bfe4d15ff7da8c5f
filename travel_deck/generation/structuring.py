"""
Direct structuring of high-quality source data into card content.

Used by the api_first strategy: provider records are reshaped into the
card schema without a model rewrite. A structurer returns None when the
sources it needs are not usable, and the generator falls back to the
enhanced strategy.
"""

from collections.abc import Awaitable, Callable
from itertools import cycle
from typing import Any

from travel_deck.data.lookups import (
    HOME_CURRENCY,
    INTERNATIONAL_COST_FACTOR,
    budget_tier,
    destination_currency,
    is_domestic_travel,
)
from travel_deck.data.models import (
    CardType,
    SourceCategory,
    TravelRequest,
    ValidatedSourceData,
)
from travel_deck.data.sources import (
    CurrencyRecord,
    FlightsRecord,
    HotelsRecord,
    TrainsRecord,
    TravelGuideRecord,
    VisaRecord,
)
from travel_deck.generation.placeholders import DAY_TITLES, MAX_ITINERARY_DAYS
from travel_deck.services.currency import CurrencyConverter
from travel_deck.utils.helpers import format_price, get_currency_symbol
from travel_deck.utils.logging import get_logger

logger = get_logger(__name__)

Structurer = Callable[
    [TravelRequest, ValidatedSourceData], Awaitable[dict[str, Any] | None]
]

ACTIVITY_TIMES = ("09:00", "14:00")


def _price_range(prices: list[float], unit: str = "") -> str:
    low, high = min(prices), max(prices)
    if low == high:
        return f"{format_price(low)}{unit}"
    return f"{format_price(low)} - {format_price(high)}{unit}"


class ApiStructurer:
    """Reshapes usable provider records into card content."""

    def __init__(self, converter: CurrencyConverter | None = None):
        """
        Initialize the structurer.

        Args:
            converter: Converter used to bring foreign prices into INR
        """
        self.converter = converter or CurrencyConverter()
        self._structurers: dict[CardType, Structurer] = {
            CardType.OVERVIEW: self._overview,
            CardType.ITINERARY: self._itinerary,
            CardType.TRANSPORT: self._transport,
            CardType.ACCOMMODATION: self._accommodation,
            CardType.ATTRACTIONS: self._attractions,
            CardType.BUDGET: self._budget,
            CardType.VISA: self._visa,
        }

    def supports(self, card_type: CardType) -> bool:
        return card_type in self._structurers

    async def structure(
        self,
        card_type: CardType,
        request: TravelRequest,
        sources: ValidatedSourceData,
    ) -> dict[str, Any] | None:
        """
        Structure source data for one card.

        Args:
            card_type: Card type
            request: Travel request
            sources: Assessed sources

        Returns:
            Card content, or None when the card has no structurer or its
            sources are not usable
        """
        structurer = self._structurers.get(card_type)
        if structurer is None:
            return None
        content = await structurer(request, sources)
        if content is None:
            logger.debug(f"No usable source data to structure {card_type.value}")
        return content

    async def to_inr(
        self, amount: float, currency: str | None, sources: ValidatedSourceData
    ) -> float | None:
        """
        Convert a provider price to INR.

        A usable currency source quoting the pair wins over the converter.

        Args:
            amount: Price
            currency: ISO code of the price; None means INR
            sources: Assessed sources

        Returns:
            The price in INR, or None if no rate is known
        """
        if not currency or currency.upper() == HOME_CURRENCY:
            return amount
        currency = currency.upper()

        record = sources.usable_record(SourceCategory.CURRENCY)
        if isinstance(record, CurrencyRecord) and record.rate:
            pair = (record.from_currency, record.to_currency)
            if pair == (currency, HOME_CURRENCY):
                return round(amount * record.rate, 2)
            if pair == (HOME_CURRENCY, currency):
                return round(amount / record.rate, 2)

        return await self.converter.convert(amount, currency, HOME_CURRENCY)

    async def hotel_prices_inr(self, sources: ValidatedSourceData) -> list[float]:
        """Nightly rates of the usable hotels in INR, skipping unconvertible ones."""
        hotels = sources.usable_record(SourceCategory.HOTELS)
        if not isinstance(hotels, HotelsRecord):
            return []
        return [price for _, price in await self._hotel_prices_inr(hotels, sources)]

    async def _hotel_prices_inr(
        self, hotels: HotelsRecord, sources: ValidatedSourceData
    ) -> list[tuple[Any, float]]:
        priced = []
        for option in hotels.options:
            if option.price_per_night is None or option.price_per_night <= 0:
                continue
            price = await self.to_inr(option.price_per_night, option.currency, sources)
            if price is not None:
                priced.append((option, price))
        return priced

    async def _overview(
        self, request: TravelRequest, sources: ValidatedSourceData
    ) -> dict[str, Any] | None:
        guide = sources.usable_record(SourceCategory.TRAVEL_GUIDE)
        if not isinstance(guide, TravelGuideRecord) or not guide.attractions:
            return None

        content: dict[str, Any] = {
            "destination": request.destination,
            "region": guide.reported_destination or request.destination,
            "duration": request.duration.value,
            "travelType": request.travel_type.value,
            "travelers": request.traveler_count,
            "highlights": [a.name for a in guide.attractions if a.name][:4],
            "currency": destination_currency(request),
            "localInfo": guide.local_info,
        }

        flights = sources.usable_record(SourceCategory.FLIGHTS)
        if isinstance(flights, FlightsRecord) and flights.prices:
            content["flightsFrom"] = format_price(min(flights.prices))
        hotels = sources.usable_record(SourceCategory.HOTELS)
        if isinstance(hotels, HotelsRecord):
            priced = await self._hotel_prices_inr(hotels, sources)
            if priced:
                cheapest = min(price for _, price in priced)
                content["hotelsFrom"] = f"{format_price(cheapest)}/night"
        currency = sources.usable_record(SourceCategory.CURRENCY)
        if isinstance(currency, CurrencyRecord) and currency.rate:
            content["exchangeRate"] = {
                "from": currency.from_currency,
                "to": currency.to_currency,
                "rate": currency.rate,
            }
        return content

    async def _itinerary(
        self, request: TravelRequest, sources: ValidatedSourceData
    ) -> dict[str, Any] | None:
        guide = sources.usable_record(SourceCategory.TRAVEL_GUIDE)
        if not isinstance(guide, TravelGuideRecord):
            return None
        attractions = [a for a in guide.attractions if a.name]
        if not attractions:
            return None

        pool = cycle(attractions)
        days = []
        for day in range(1, min(request.duration_days, MAX_ITINERARY_DAYS) + 1):
            activities = []
            for time in ACTIVITY_TIMES:
                attraction = next(pool)
                activities.append(
                    {
                        "time": time,
                        "title": attraction.name,
                        "description": attraction.description or attraction.type,
                        "location": request.destination,
                        "cost": attraction.entry_fee or "Free",
                    }
                )
            days.append(
                {
                    "day": day,
                    "title": f"Day {day} - {DAY_TITLES[day - 1]}",
                    "activities": activities,
                }
            )
        return {
            "destination": request.destination,
            "duration": request.duration.value,
            "totalDays": len(days),
            "days": days,
        }

    async def _transport(
        self, request: TravelRequest, sources: ValidatedSourceData
    ) -> dict[str, Any] | None:
        flights = sources.usable_record(SourceCategory.FLIGHTS)
        trains = sources.usable_record(SourceCategory.TRAINS)
        has_flights = isinstance(flights, FlightsRecord) and flights.options
        has_trains = isinstance(trains, TrainsRecord) and trains.trains
        if not (has_flights or has_trains):
            return None

        domestic = is_domestic_travel(request.origin, request.destination)
        content: dict[str, Any] = {
            "destination": request.destination,
            "origin": request.origin,
            "flights": None,
            "trains": None,
            "tips": ["Book early for the best fares", "Check baggage limits"],
        }
        if has_flights:
            content["flights"] = {
                "type": "domestic" if domestic else "international",
                "estimatedCost": (
                    _price_range(flights.prices, " per person")
                    if flights.prices
                    else None
                ),
                "options": [
                    {
                        "airline": option.airline,
                        "price": (
                            format_price(option.price)
                            if option.price is not None
                            else None
                        ),
                        "duration": option.duration,
                        "departure": option.departure,
                    }
                    for option in flights.options
                ],
            }
        if has_trains:
            content["trains"] = [
                {
                    "number": train.train_number,
                    "name": train.train_name,
                    "price": (
                        format_price(train.price) if train.price is not None else None
                    ),
                    "departure": train.departure,
                    "arrival": train.arrival,
                }
                for train in trains.trains
            ]
            content["tips"].append("Book trains on IRCTC as soon as bookings open")
        return content

    async def _accommodation(
        self, request: TravelRequest, sources: ValidatedSourceData
    ) -> dict[str, Any] | None:
        hotels = sources.usable_record(SourceCategory.HOTELS)
        if not isinstance(hotels, HotelsRecord) or not hotels.options:
            return None

        hotel_prices = await self._hotel_prices_inr(hotels, sources)
        priced = {id(option): price for option, price in hotel_prices}
        options = []
        for option in hotels.options:
            price = priced.get(id(option))
            options.append(
                {
                    "name": option.name,
                    "rating": option.rating,
                    "city": option.city,
                    "price": f"{format_price(price)}/night" if price else None,
                }
            )
        return {
            "destination": request.destination,
            "currency": HOME_CURRENCY,
            "options": options,
            "bookingTips": [
                "Compare prices on multiple platforms",
                "Check the cancellation policy",
            ],
        }

    async def _attractions(
        self, request: TravelRequest, sources: ValidatedSourceData
    ) -> dict[str, Any] | None:
        guide = sources.usable_record(SourceCategory.TRAVEL_GUIDE)
        if not isinstance(guide, TravelGuideRecord) or not guide.attractions:
            return None
        return {
            "destination": request.destination,
            "currency": destination_currency(request),
            "attractions": [
                {
                    "name": attraction.name,
                    "description": attraction.description,
                    "rating": attraction.rating,
                    "type": attraction.type or "Attraction",
                    "cost": attraction.entry_fee or "Free",
                    "tips": attraction.tips or "Visit during off-peak hours",
                }
                for attraction in guide.attractions
            ],
        }

    async def _budget(
        self, request: TravelRequest, sources: ValidatedSourceData
    ) -> dict[str, Any] | None:
        flights = sources.usable_record(SourceCategory.FLIGHTS)
        hotels = sources.usable_record(SourceCategory.HOTELS)
        fares = flights.prices if isinstance(flights, FlightsRecord) else []
        rooms = []
        if isinstance(hotels, HotelsRecord):
            rooms = [p for _, p in await self._hotel_prices_inr(hotels, sources)]
        if not fares and not rooms:
            return None

        domestic = is_domestic_travel(request.origin, request.destination)
        tier = budget_tier(request)
        factor = 1.0 if domestic else INTERNATIONAL_COST_FACTOR
        days = request.duration_days
        nights = max(days - 1, 1)

        # Return fare; hotel rate per night; everything else from the tier
        flights_cost = round(2 * sum(fares) / len(fares)) if fares else 0
        nightly = sum(rooms) / len(rooms) if rooms else tier.accommodation * factor
        breakdown = {
            "flights": flights_cost,
            "accommodation": round(nightly * nights),
            "food": round(tier.food * factor * days),
            "transport": round(tier.transport * factor * days),
            "activities": round(tier.activities * factor * days),
        }
        total = sum(breakdown.values())

        content: dict[str, Any] = {
            "destination": request.destination,
            "currency": HOME_CURRENCY,
            "currencySymbol": get_currency_symbol(HOME_CURRENCY),
            "isDomestic": domestic,
            "budget": {
                "level": request.budget.value,
                "total": total,
                "daily": round(total / days),
                "travelers": request.traveler_count,
                "groupTotal": total * request.traveler_count,
                "breakdown": breakdown,
            },
            "localCurrency": destination_currency(request),
            "exchangeRate": None,
            "tips": [
                "Book flights and hotels together to compare totals",
                "Keep 10% aside for unplanned expenses",
            ],
        }
        currency = sources.usable_record(SourceCategory.CURRENCY)
        if isinstance(currency, CurrencyRecord) and currency.rate:
            content["exchangeRate"] = currency.rate
        return content

    async def _visa(
        self, request: TravelRequest, sources: ValidatedSourceData
    ) -> dict[str, Any] | None:
        visa = sources.usable_record(SourceCategory.VISA)
        if not isinstance(visa, VisaRecord) or visa.required is None:
            return None
        return {
            "destination": request.destination,
            "required": visa.required,
            "indianPassport": True,
            "type": visa.type,
            "requirements": {"documents": visa.documents},
            "fees": {"fee": visa.fee, "processing": visa.processing_time},
            "country": visa.country,
        }
