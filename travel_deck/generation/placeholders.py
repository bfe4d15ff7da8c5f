"""
Deterministic placeholder content for every card type.

Placeholders are used when generation fails. They depend only on the
request, so the same request always yields the same content, and every
placeholder satisfies its card's shape contract.
"""

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from travel_deck.data.lookups import (
    DESTINATION_COUNTRIES,
    HOME_CURRENCY,
    INTERNATIONAL_COST_FACTOR,
    REFERENCE_INR_RATES,
    budget_tier,
    destination_currency,
    is_domestic_travel,
    match_keyword,
)
from travel_deck.data.models import CardType, TravelRequest
from travel_deck.utils.helpers import (
    format_price,
    get_country_name,
    get_currency_symbol,
)

MAX_ITINERARY_DAYS = 7

DAY_TITLES = (
    "Arrival & Exploration",
    "Main Attractions",
    "Cultural Immersion",
    "Adventure Day",
    "Relaxation",
    "Shopping & Local Markets",
    "Departure",
)

HIGHLIGHTS: Mapping[str, list[str]] = MappingProxyType(
    {
        "dubai": ["Burj Khalifa", "Gold Souk", "Desert Safari", "Luxury Shopping"],
        "thailand": ["Temples", "Street Food", "Beaches", "Thai Massage"],
        "bangkok": ["Grand Palace", "Street Food", "Floating Markets", "Temples"],
        "singapore": [
            "Gardens by the Bay",
            "Marina Bay Sands",
            "Hawker Centers",
            "Sentosa",
        ],
        "japan": ["Temples", "Cherry Blossoms", "Technology", "Sushi"],
        "tokyo": ["Shibuya Crossing", "Senso-ji", "Tsukiji Outer Market", "Sushi"],
        "goa": ["Beaches", "Portuguese Churches", "Seafood Shacks", "Nightlife"],
        "kerala": ["Backwaters", "Tea Gardens", "Ayurveda", "Houseboats"],
        "jaipur": ["Amber Fort", "Hawa Mahal", "City Palace", "Bazaars"],
        "usa": ["Skyscrapers", "Museums", "Entertainment", "Diversity"],
        "uk": ["History", "Castles", "Pubs", "Royal Heritage"],
        "london": ["Tower of London", "British Museum", "West End", "Royal Parks"],
    }
)
DEFAULT_HIGHLIGHTS = ["Culture", "Local Cuisine", "Architecture", "Heritage"]

LANGUAGES: Mapping[str, list[str]] = MappingProxyType(
    {
        "dubai": ["Arabic", "English"],
        "thailand": ["Thai", "English"],
        "bangkok": ["Thai", "English"],
        "singapore": ["English", "Mandarin", "Malay", "Tamil"],
        "japan": ["Japanese", "English"],
        "tokyo": ["Japanese", "English"],
        "france": ["French", "English"],
        "paris": ["French", "English"],
        "germany": ["German", "English"],
        "usa": ["English"],
        "uk": ["English"],
        "london": ["English"],
    }
)
DEFAULT_LANGUAGES = ["English", "Local Language"]
DOMESTIC_LANGUAGES = ["Hindi", "English", "Regional language"]

CUISINE: Mapping[str, list[str]] = MappingProxyType(
    {
        "dubai": ["Shawarma", "Hummus", "Dates", "Arabic Coffee"],
        "thailand": ["Pad Thai", "Tom Yum", "Green Curry", "Mango Sticky Rice"],
        "bangkok": ["Pad Thai", "Tom Yum", "Green Curry", "Mango Sticky Rice"],
        "singapore": ["Hainanese Chicken Rice", "Laksa", "Satay", "Kaya Toast"],
        "japan": ["Sushi", "Ramen", "Tempura", "Wagyu Beef"],
        "tokyo": ["Sushi", "Ramen", "Tempura", "Wagyu Beef"],
        "goa": ["Fish Curry Rice", "Bebinca", "Xacuti", "Poi"],
        "kerala": ["Appam with Stew", "Sadya", "Puttu", "Karimeen Pollichathu"],
        "jaipur": ["Dal Baati Churma", "Ghevar", "Pyaaz Kachori", "Laal Maas"],
    }
)
DEFAULT_CUISINE = [
    "Local specialties",
    "Traditional dishes",
    "Regional cuisine",
    "Street food",
]

DOMESTIC_EMERGENCY_NUMBERS = MappingProxyType(
    {"police": "100", "ambulance": "102", "fire": "101", "national": "112"}
)
EMERGENCY_NUMBERS: Mapping[str, dict[str, str]] = MappingProxyType(
    {
        "united arab emirates": {"police": "999", "ambulance": "998", "fire": "997"},
        "thailand": {"police": "191", "ambulance": "1669", "fire": "199"},
        "singapore": {"police": "999", "ambulance": "995", "fire": "995"},
        "japan": {"police": "110", "ambulance": "119", "fire": "119"},
        "united states": {"police": "911", "ambulance": "911", "fire": "911"},
        "canada": {"police": "911", "ambulance": "911", "fire": "911"},
        "united kingdom": {"police": "999", "ambulance": "999", "fire": "999"},
        "australia": {"police": "000", "ambulance": "000", "fire": "000"},
    }
)
DEFAULT_EMERGENCY_NUMBERS = {"police": "112", "ambulance": "112", "fire": "112"}

Builder = Callable[["_PlaceholderContext"], dict[str, Any]]


class _PlaceholderContext:
    """Request-derived values shared by the placeholder builders."""

    def __init__(self, request: TravelRequest):
        self.request = request
        self.destination = request.destination
        self.domestic = is_domestic_travel(request.origin, request.destination)
        self.currency = destination_currency(request)
        self.rate = REFERENCE_INR_RATES.get(self.currency, REFERENCE_INR_RATES["USD"])
        self.country = self._country()

    def _country(self) -> str:
        if self.domestic:
            return "India"
        return (
            match_keyword(self.destination, DESTINATION_COUNTRIES, None)
            or get_country_name(self.destination)
            or self.destination
        )

    def cost(self, inr_amount: float) -> str:
        """A price in INR, with the local-currency amount first when abroad."""
        if self.domestic:
            return format_price(inr_amount)
        local = inr_amount / self.rate
        symbol = get_currency_symbol(self.currency)
        return f"{symbol}{local:,.2f} ({format_price(inr_amount)})"

    def lookup(self, table: Mapping[str, list[str]], default: list[str]) -> list[str]:
        return list(match_keyword(self.destination, table, default))


def _overview(ctx: _PlaceholderContext) -> dict[str, Any]:
    request = ctx.request
    if ctx.domestic:
        tips = [
            "Carry ID proof",
            "Book trains early",
            "Check the weather forecast",
            "Carry cash for local vendors",
        ]
    else:
        tips = [
            "Check visa requirements",
            "Get travel insurance",
            "Notify your bank",
            "Download offline maps",
            "Carry passport copies",
        ]
    return {
        "destination": ctx.destination,
        "country": ctx.country,
        "duration": request.duration.value,
        "travelType": request.travel_type.value,
        "travelers": request.traveler_count,
        "highlights": ctx.lookup(HIGHLIGHTS, DEFAULT_HIGHLIGHTS),
        "bestTime": "October to March",
        "currency": ctx.currency,
        "languages": (
            list(DOMESTIC_LANGUAGES)
            if ctx.domestic
            else ctx.lookup(LANGUAGES, DEFAULT_LANGUAGES)
        ),
        "quickTips": tips,
    }


def _itinerary(ctx: _PlaceholderContext) -> dict[str, Any]:
    days = []
    for day in range(1, min(ctx.request.duration_days, MAX_ITINERARY_DAYS) + 1):
        days.append(
            {
                "day": day,
                "title": f"Day {day} - {DAY_TITLES[day - 1]}",
                "activities": [
                    {
                        "time": "09:00",
                        "title": f"Morning in {ctx.destination}",
                        "description": f"Explore {ctx.destination} morning attractions",
                        "location": ctx.destination,
                        "cost": ctx.cost(500 if ctx.domestic else 2000),
                    },
                    {
                        "time": "14:00",
                        "title": f"Afternoon in {ctx.destination}",
                        "description": f"Visit popular {ctx.destination} landmarks",
                        "location": ctx.destination,
                        "cost": ctx.cost(800 if ctx.domestic else 3300),
                    },
                ],
            }
        )
    return {
        "destination": ctx.destination,
        "duration": ctx.request.duration.value,
        "totalDays": len(days),
        "days": days,
    }


def _transport(ctx: _PlaceholderContext) -> dict[str, Any]:
    if ctx.domestic:
        flights = {
            "type": "domestic",
            "estimatedCost": "₹8,000 - ₹15,000",
            "duration": "2-3 hours",
        }
        local = ["Metro", "Bus", "Auto", "Taxi"]
    else:
        flights = {
            "type": "international",
            "estimatedCost": ctx.cost(25000),
            "duration": "6-8 hours",
        }
        local = ["Metro", "Taxi", "Bus", "Ride-sharing"]
    return {
        "destination": ctx.destination,
        "origin": ctx.request.origin,
        "flights": flights,
        "localTransport": {
            "options": local,
            "tips": ["Download local transport apps", "Keep change ready"],
        },
        "tips": [
            "Book flights 2-3 months in advance",
            "Check baggage limits",
            "Arrive 2 hours before departure",
        ],
    }


def _accommodation(ctx: _PlaceholderContext) -> dict[str, Any]:
    prices = (1500, 4000, 10000) if ctx.domestic else (2500, 6600, 16600)
    return {
        "destination": ctx.destination,
        "currency": ctx.currency,
        "options": [
            {"type": tier, "price": f"{ctx.cost(price)}/night"}
            for tier, price in zip(("Budget", "Mid-range", "Luxury"), prices)
        ],
        "bookingTips": [
            "Compare prices on multiple platforms",
            "Read recent reviews",
            "Check the cancellation policy",
        ],
    }


def _attractions(ctx: _PlaceholderContext) -> dict[str, Any]:
    return {
        "destination": ctx.destination,
        "currency": ctx.currency,
        "attractions": [
            {
                "name": f"{highlight}, {ctx.destination}",
                "description": f"One of the best-known sights in {ctx.destination}",
                "cost": ctx.cost(cost),
            }
            for highlight, cost in zip(
                ctx.lookup(HIGHLIGHTS, DEFAULT_HIGHLIGHTS), (500, 300, 1200, 0)
            )
        ],
    }


def _dining(ctx: _PlaceholderContext) -> dict[str, Any]:
    if ctx.domestic:
        restaurants = [
            {"type": "Street Food", "cost": "₹200-500"},
            {"type": "Local Restaurant", "cost": "₹800-1,500"},
            {"type": "Fine Dining", "cost": "₹2,500-5,000"},
        ]
    else:
        restaurants = [
            {"type": kind, "cost": ctx.cost(amount)}
            for kind, amount in (
                ("Street Food", 650),
                ("Local Restaurant", 2000),
                ("Fine Dining", 5000),
            )
        ]
    return {
        "destination": ctx.destination,
        "currency": ctx.currency,
        "restaurants": restaurants,
        "localCuisine": ctx.lookup(CUISINE, DEFAULT_CUISINE),
        "dietaryOptions": {
            "preference": ctx.request.dietary.value,
            "vegetarian": (
                "Widely available" if ctx.domestic else "Available in most restaurants"
            ),
            "jain": (
                "Ask for no onion or garlic" if ctx.domestic else "Limited; plan ahead"
            ),
            "halal": "Available" if ctx.domestic else "Check with restaurants",
        },
    }


def _budget(ctx: _PlaceholderContext) -> dict[str, Any]:
    tier = budget_tier(ctx.request)
    factor = 1.0 if ctx.domestic else INTERNATIONAL_COST_FACTOR
    total = round(tier.total * factor)
    daily = round(tier.daily * factor)
    content = {
        "destination": ctx.destination,
        "currency": HOME_CURRENCY,
        "currencySymbol": get_currency_symbol(HOME_CURRENCY),
        "isDomestic": ctx.domestic,
        "budget": {
            "level": ctx.request.budget.value,
            "total": total,
            "daily": daily,
            "travelers": ctx.request.traveler_count,
            "groupTotal": total * ctx.request.traveler_count,
            "breakdown": {
                "accommodation": round(tier.accommodation * factor),
                "food": round(tier.food * factor),
                "transport": round(tier.transport * factor),
                "activities": round(tier.activities * factor),
                "shopping": round(daily * 0.2),
                "miscellaneous": round(daily * 0.1),
            },
        },
        "localCurrency": ctx.currency,
        "exchangeRate": None,
        "localEquivalent": None,
        "tips": [
            "Book accommodation in advance for better rates",
            "Use local transport to save money",
            (
                "Carry cash for small vendors"
                if ctx.domestic
                else "Notify your bank about international travel"
            ),
            "Compare prices before making purchases",
        ],
    }
    if not ctx.domestic:
        content["exchangeRate"] = ctx.rate
        content["localEquivalent"] = {
            "total": round(total / ctx.rate, 2),
            "daily": round(daily / ctx.rate, 2),
        }
    return content


def _visa(ctx: _PlaceholderContext) -> dict[str, Any]:
    if ctx.domestic:
        return {
            "destination": ctx.destination,
            "required": False,
            "indianPassport": True,
            "requirements": {"documents": ["Valid government photo ID"]},
            "process": None,
            "fees": None,
            "notes": "No visa is needed for travel within India",
        }
    return {
        "destination": ctx.destination,
        "required": True,
        "indianPassport": True,
        "requirements": {
            "documents": [
                "Passport valid for 6 months",
                "Visa application form",
                "Recent photographs",
                "Bank statements",
                "Return ticket",
            ]
        },
        "process": {
            "steps": [
                "Apply online",
                "Submit documents",
                "Pay fees",
                "Wait for approval",
            ]
        },
        "fees": {"fee": ctx.cost(4000), "processing": "3-7 working days"},
        "notes": f"Check the latest rules for Indian passport holders visiting "
        f"{ctx.country} before booking",
    }


def _weather(ctx: _PlaceholderContext) -> dict[str, Any]:
    return {
        "destination": ctx.destination,
        "season": ctx.request.season.value,
        "climate": {
            "description": "Varies by season",
            "temperature": "15-30°C",
            "rainfall": "Moderate",
        },
        "packing": [
            "Comfortable clothes",
            "Walking shoes",
            "Sunscreen",
            "Medicines",
            "Power adapter" if not ctx.domestic else "Umbrella",
        ],
    }


def _culture(ctx: _PlaceholderContext) -> dict[str, Any]:
    if ctx.domestic:
        customs = ["Respect local customs", "Dress modestly at religious places"]
    else:
        customs = [
            "Research local customs",
            "Learn basic phrases",
            "Respect cultural differences",
        ]
    return {
        "destination": ctx.destination,
        "customs": customs,
        "etiquette": [
            "Be polite",
            "Remove shoes when required",
            "Ask before photographing people",
        ],
        "phrases": {
            "hello": "Hello",
            "thankYou": "Thank you",
            "help": "Help",
            "sorry": "Sorry",
        },
    }


def _emergency(ctx: _PlaceholderContext) -> dict[str, Any]:
    if ctx.domestic:
        numbers = dict(DOMESTIC_EMERGENCY_NUMBERS)
        embassy = None
    else:
        numbers = dict(
            EMERGENCY_NUMBERS.get(ctx.country.lower(), DEFAULT_EMERGENCY_NUMBERS)
        )
        embassy = {
            "name": f"Embassy of India, {ctx.country}",
            "note": "Register with the embassy if staying longer than a week",
        }
    return {
        "destination": ctx.destination,
        "indianEmbassy": embassy,
        "emergencyNumbers": numbers,
        "hospitals": [{"name": f"General Hospital, {ctx.destination}"}],
        "safetyTips": [
            "Keep documents safe",
            "Avoid isolated areas at night",
            "Stay alert in crowds",
            "Keep emergency contacts handy",
        ],
    }


def _shopping(ctx: _PlaceholderContext) -> dict[str, Any]:
    return {
        "destination": ctx.destination,
        "currency": ctx.currency,
        "markets": [
            {"name": f"Local Market, {ctx.destination}", "specialty": "Local crafts"}
        ],
        "souvenirs": ["Local handicrafts", "Traditional items", "Regional specialties"],
        "customsLimits": (
            None
            if ctx.domestic
            else {"dutyFree": format_price(50000), "restrictions": "No fresh food"}
        ),
    }


_BUILDERS: Mapping[CardType, Builder] = MappingProxyType(
    {
        CardType.OVERVIEW: _overview,
        CardType.ITINERARY: _itinerary,
        CardType.TRANSPORT: _transport,
        CardType.ACCOMMODATION: _accommodation,
        CardType.ATTRACTIONS: _attractions,
        CardType.DINING: _dining,
        CardType.BUDGET: _budget,
        CardType.VISA: _visa,
        CardType.WEATHER: _weather,
        CardType.CULTURE: _culture,
        CardType.EMERGENCY: _emergency,
        CardType.SHOPPING: _shopping,
    }
)


def build_placeholder(card_type: CardType, request: TravelRequest) -> dict[str, Any]:
    """
    Build placeholder content for a card.

    Args:
        card_type: Card type
        request: Travel request the deck is for

    Returns:
        Content that meets the card's shape contract
    """
    return _BUILDERS[CardType(card_type)](_PlaceholderContext(request))
