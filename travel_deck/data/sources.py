"""
Typed records for travel-data provider payloads.

Providers return loosely shaped JSON. Each category is shaped into one of
the record models below exactly once, when the payload enters the
pipeline; everything downstream reads typed fields instead of probing
dictionaries. Values that cannot be read (a rating of ``"n/a"``, a price of
``"call us"``) become None rather than failing the whole record.
"""

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from travel_deck.data.models import SourceCategory
from travel_deck.utils.error_handling import MalformedSourceError
from travel_deck.utils.helpers import parse_amount


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return None


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _dicts(value: Any) -> list[dict]:
    return [item for item in _as_list(value) if isinstance(item, dict)]


class SourceRecord(BaseModel):
    """Base for provider records: camelCase aliases, unknown keys kept."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )


class Attraction(SourceRecord):
    name: str | None = None
    description: str | None = None
    rating: float | None = None
    type: str | None = None
    entry_fee: str | None = None
    tips: str | None = None

    @field_validator(
        "name", "description", "type", "entry_fee", "tips", mode="before"
    )
    @classmethod
    def coerce_text(cls, value: Any) -> str | None:
        return _as_text(value)

    @field_validator("rating", mode="before")
    @classmethod
    def coerce_number(cls, value: Any) -> float | None:
        return parse_amount(value)

    @property
    def is_complete(self) -> bool:
        return bool(self.name and self.description and (self.rating or self.type))


class TravelGuideRecord(SourceRecord):
    destination: str | None = None
    region: str | None = None
    attractions: list[Attraction] = Field(default_factory=list)
    local_info: Any = None

    @field_validator("destination", "region", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str | None:
        return _as_text(value)

    @field_validator("attractions", mode="before")
    @classmethod
    def keep_objects(cls, value: Any) -> list[dict]:
        return _dicts(value)

    @property
    def reported_destination(self) -> str | None:
        return self.destination or self.region


class FlightOption(SourceRecord):
    airline: str | None = None
    price: float | None = None
    duration: str | None = None
    departure: str | None = None
    arrival: str | None = None
    destination: str | None = None

    @field_validator(
        "airline", "duration", "departure", "arrival", "destination", mode="before"
    )
    @classmethod
    def coerce_text(cls, value: Any) -> str | None:
        return _as_text(value)

    @field_validator("price", mode="before")
    @classmethod
    def coerce_number(cls, value: Any) -> float | None:
        return parse_amount(value)

    @property
    def is_complete(self) -> bool:
        return bool(
            self.price is not None
            and self.airline
            and (self.duration or self.departure)
        )


class FlightsRecord(SourceRecord):
    options: list[FlightOption] = Field(default_factory=list)
    available: bool = True
    message: str | None = None

    @property
    def prices(self) -> list[float]:
        return [o.price for o in self.options if o.price is not None and o.price > 0]


class HotelOption(SourceRecord):
    name: str | None = None
    price_per_night: float | None = None
    rating: float | None = None
    city: str | None = None
    currency: str | None = None

    @field_validator("name", "city", "currency", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str | None:
        return _as_text(value)

    @field_validator("price_per_night", "rating", mode="before")
    @classmethod
    def coerce_number(cls, value: Any) -> float | None:
        return parse_amount(value)

    @property
    def is_complete(self) -> bool:
        return bool(
            self.name and self.price_per_night is not None and self.rating is not None
        )


class HotelsRecord(SourceRecord):
    options: list[HotelOption] = Field(default_factory=list)
    message: str | None = None

    @property
    def prices(self) -> list[float]:
        return [
            o.price_per_night
            for o in self.options
            if o.price_per_night is not None and o.price_per_night > 0
        ]


class TrainOption(SourceRecord):
    train_number: str | None = None
    train_name: str | None = None
    price: float | None = None
    departure: str | None = None
    arrival: str | None = None

    @field_validator(
        "train_number", "train_name", "departure", "arrival", mode="before"
    )
    @classmethod
    def coerce_text(cls, value: Any) -> str | None:
        return _as_text(value)

    @field_validator("price", mode="before")
    @classmethod
    def coerce_number(cls, value: Any) -> float | None:
        return parse_amount(value)

    @property
    def is_complete(self) -> bool:
        return bool(self.train_number and self.train_name and self.price is not None)


class TrainsRecord(SourceRecord):
    trains: list[TrainOption] = Field(default_factory=list)


class VisaRecord(SourceRecord):
    required: bool | None = None
    type: str | None = None
    documents: list[str] = Field(default_factory=list)
    processing_time: str | None = None
    fee: str | None = None
    destination: str | None = None
    country: str | None = None

    @model_validator(mode="before")
    @classmethod
    def documents_from_requirements(cls, data: Any) -> Any:
        if isinstance(data, dict) and "documents" not in data:
            requirements = data.get("requirements")
            if isinstance(requirements, list):
                return {**data, "documents": requirements}
        return data

    @field_validator(
        "type", "processing_time", "fee", "destination", "country", mode="before"
    )
    @classmethod
    def coerce_text(cls, value: Any) -> str | None:
        return _as_text(value)

    @field_validator("required", mode="before")
    @classmethod
    def coerce_required(cls, value: Any) -> bool | None:
        if isinstance(value, bool) or value is None:
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in {"yes", "true", "required"}:
                return True
            if lowered in {"no", "false", "not required", "visa free", "visa-free"}:
                return False
        return None

    @field_validator("documents", mode="before")
    @classmethod
    def coerce_documents(cls, value: Any) -> list[str]:
        return [text for text in map(_as_text, _as_list(value)) if text]

    @property
    def reported_destination(self) -> str | None:
        return self.destination or self.country


class CurrencyRecord(SourceRecord):
    rate: float | None = None
    converted_amount: float | None = None
    from_currency: str | None = Field(default=None, alias="from")
    to_currency: str | None = Field(default=None, alias="to")

    @field_validator("rate", "converted_amount", mode="before")
    @classmethod
    def coerce_number(cls, value: Any) -> float | None:
        return parse_amount(value)

    @field_validator("from_currency", "to_currency", mode="before")
    @classmethod
    def normalize_code(cls, value: Any) -> str | None:
        text = _as_text(value)
        return text.upper() if text else None


def _shape_flights(raw: Any) -> dict[str, Any]:
    if isinstance(raw, list):
        return {"options": _dicts(raw)}
    if isinstance(raw, dict):
        if isinstance(raw.get("flights"), list):
            return {"options": _dicts(raw["flights"])}
        if raw.get("available") is False:
            return {
                "options": [],
                "available": False,
                "message": _as_text(raw.get("message")),
            }
    raise ValueError(f"expected a list of flights, got {type(raw).__name__}")


def _shape_hotels(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict) and isinstance(raw.get("hotels"), list):
        raw = raw["hotels"]
    if not isinstance(raw, list):
        raise ValueError(f"expected a list of hotels, got {type(raw).__name__}")
    options = _dicts(raw)
    # Providers answer "no results" with a one-element message list
    if options and all("name" not in o for o in options) and "message" in options[0]:
        return {"options": [], "message": _as_text(options[0]["message"])}
    return {"options": options}


def _shape_trains(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        raw = raw.get("trains")
    if not isinstance(raw, list):
        raise ValueError("expected a list of trains")
    return {"trains": _dicts(raw)}


def _shape_mapping(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValueError(f"expected an object, got {type(raw).__name__}")
    return raw


_RECORD_TYPES: dict[SourceCategory, tuple[type[SourceRecord], Any]] = {
    SourceCategory.TRAVEL_GUIDE: (TravelGuideRecord, _shape_mapping),
    SourceCategory.FLIGHTS: (FlightsRecord, _shape_flights),
    SourceCategory.HOTELS: (HotelsRecord, _shape_hotels),
    SourceCategory.TRAINS: (TrainsRecord, _shape_trains),
    SourceCategory.VISA: (VisaRecord, _shape_mapping),
    SourceCategory.CURRENCY: (CurrencyRecord, _shape_mapping),
}


def parse_source(category: SourceCategory, raw: Any) -> SourceRecord:
    """
    Shape a raw provider payload into its typed record.

    Args:
        category: Source category the payload belongs to
        raw: Provider payload (must not be None)

    Returns:
        The typed record

    Raises:
        MalformedSourceError: If the payload cannot be shaped into the record
    """
    record_type, shape = _RECORD_TYPES[SourceCategory(category)]
    try:
        return record_type.model_validate(shape(raw))
    except (ValueError, ValidationError) as e:
        raise MalformedSourceError(str(e), SourceCategory(category).value) from e
