"""
Quality assessment of raw travel-data responses.

Each source response is scored on completeness, accuracy, relevance and
freshness. Scores are heuristics over the typed record: they only need to
rank a good response above a thin or implausible one. Assessment never
raises; a missing, failed or malformed response gets the minimum score.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from travel_deck.config import QualityThresholds
from travel_deck.data.lookups import (
    DESTINATION_ALIASES,
    FLIGHT_PRICE_BANDS,
    SOURCE_FRESHNESS,
    destination_currency,
    is_domestic_travel,
    mentions_any,
)
from travel_deck.data.models import (
    REQUIRED_SOURCES,
    QualityDetails,
    QualityScore,
    SourceAssessment,
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
    parse_source,
)
from travel_deck.utils.error_handling import MalformedSourceError, safe_execute
from travel_deck.utils.logging import get_logger

logger = get_logger(__name__)

EXACT_MATCH = 1.0
SUBSTRING_MATCH = 0.8
ALIAS_MATCH = 0.7
NO_MATCH = 0.3

MISSING_FIELD_PENALTY = 0.3
MAX_PLAUSIBLE_RATE = 1000.0

Scorer = Callable[[Any, TravelRequest], QualityScore]


@dataclass
class _DetailsDraft:
    """Diagnostics collected while one source is scored."""

    missing_fields: list[str] = field(default_factory=list)
    inconsistencies: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def freeze(self) -> QualityDetails:
        return QualityDetails(
            missing_fields=tuple(self.missing_fields),
            inconsistencies=tuple(self.inconsistencies),
            recommendations=tuple(self.recommendations),
        )


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def destination_similarity(reported: str | None, requested: str) -> float | None:
    """
    Compare a destination reported by a provider with the requested one.

    Args:
        reported: Destination, region or city named in the response
        requested: Destination from the travel request

    Returns:
        1.0 for an exact match, 0.8 when one contains the other, 0.7 for a
        known alias, 0.3 otherwise; None when the provider named nothing
    """
    if not reported or not requested:
        return None
    reported = reported.strip().lower()
    requested = requested.strip().lower()
    if reported == requested:
        return EXACT_MATCH
    if reported in requested or requested in reported:
        return SUBSTRING_MATCH
    for place, aliases in DESTINATION_ALIASES.items():
        names = (place, *aliases)
        if mentions_any(requested, names) and mentions_any(reported, names):
            return ALIAS_MATCH
    return NO_MATCH


class SourceQualityAssessor:
    """
    Scores every source response for one travel request.

    The result is an immutable ValidatedSourceData that the rest of the
    pipeline reads but never changes.
    """

    def __init__(self, thresholds: QualityThresholds | None = None):
        """
        Initialize the assessor.

        Args:
            thresholds: Quality thresholds; ``low`` is the usable cut-off
        """
        self.usable_threshold = (thresholds or QualityThresholds()).low
        self._scorers: dict[SourceCategory, Scorer] = {
            SourceCategory.TRAVEL_GUIDE: self._score_travel_guide,
            SourceCategory.FLIGHTS: self._score_flights,
            SourceCategory.HOTELS: self._score_hotels,
            SourceCategory.TRAINS: self._score_trains,
            SourceCategory.VISA: self._score_visa,
            SourceCategory.CURRENCY: self._score_currency,
        }

    def assess(
        self,
        raw_sources: Mapping[str, Any] | None,
        request: TravelRequest,
        fetch_errors: Mapping[str, str] | None = None,
    ) -> ValidatedSourceData:
        """
        Assess all source responses for a request.

        Args:
            raw_sources: Provider payloads keyed by source category
            request: The travel request the payloads were fetched for
            fetch_errors: Reasons for sources whose fetch failed (optional)

        Returns:
            Immutable view of every assessed source
        """
        raw = {str(getattr(k, "value", k)): v for k, v in (raw_sources or {}).items()}
        errors = {
            str(getattr(k, "value", k)): v for k, v in (fetch_errors or {}).items()
        }

        categories = list(REQUIRED_SOURCES)
        if SourceCategory.TRAINS.value in raw:
            categories.append(SourceCategory.TRAINS)

        assessments = {
            category: self.assess_source(
                category,
                raw.get(category.value),
                request,
                reason=errors.get(category.value),
            )
            for category in categories
        }
        sources = ValidatedSourceData(assessments)

        logger.info(
            f"Assessed {len(sources)} sources for {request.destination}: "
            f"mean quality {sources.mean_quality:.2f}, "
            f"usable {[c.value for c in sources.usable_sources()]}"
        )
        return sources

    def assess_source(
        self,
        category: SourceCategory,
        raw: Any,
        request: TravelRequest,
        reason: str | None = None,
    ) -> SourceAssessment:
        """
        Assess one source response.

        Args:
            category: Source category
            raw: Provider payload, or None when the fetch failed
            request: The travel request
            reason: Why the payload is missing, if known

        Returns:
            Assessment of the source; never raises
        """
        if raw is None:
            return self._unavailable(category, reason or f"No {category.value} data")

        try:
            record = parse_source(category, raw)
        except MalformedSourceError as e:
            logger.warning(str(e))
            return self._unavailable(category, str(e), data=raw)

        score = safe_execute(self._scorers[category], record, request)
        if score is None:
            return self._unavailable(
                category, f"Could not score {category.value} data", data=raw
            )

        usable = round(score.overall, 9) >= self.usable_threshold
        for inconsistency in score.details.inconsistencies:
            logger.info(f"{category.value}: {inconsistency}")
        return SourceAssessment(
            category=category,
            data=raw,
            record=record,
            quality=score,
            usable=usable,
        )

    def _unavailable(
        self, category: SourceCategory, reason: str, data: Any = None
    ) -> SourceAssessment:
        logger.warning(f"{category.value} source unavailable: {reason}")
        return SourceAssessment(
            category=category,
            data=data,
            record=None,
            quality=QualityScore.minimum(reason),
            usable=False,
            reason=reason,
        )

    @staticmethod
    def _build(
        category: SourceCategory,
        completeness: float,
        accuracy: float,
        relevance: float,
        details: _DetailsDraft,
    ) -> QualityScore:
        return QualityScore(
            completeness=_clamp(completeness),
            accuracy=_clamp(accuracy),
            relevance=_clamp(relevance),
            freshness=SOURCE_FRESHNESS[category],
            details=details.freeze(),
        )

    def _score_travel_guide(
        self, record: TravelGuideRecord, request: TravelRequest
    ) -> QualityScore:
        details = _DetailsDraft()
        present = 0
        if record.reported_destination:
            present += 1
        else:
            details.missing_fields.append("destination/region")
        if record.attractions:
            present += 1
        else:
            details.missing_fields.append("attractions")
        if record.local_info:
            present += 1
        else:
            details.missing_fields.append("localInfo")

        if record.attractions:
            accuracy = _mean([float(a.is_complete) for a in record.attractions])
            bad_ratings = [
                a.name
                for a in record.attractions
                if a.rating is not None and not (0.0 <= a.rating <= 5.0)
            ]
            if bad_ratings:
                details.inconsistencies.append(
                    f"Attraction ratings outside 0-5: {bad_ratings}"
                )
                accuracy *= 1 - 0.5 * len(bad_ratings) / len(record.attractions)
        else:
            accuracy = NO_MATCH
            details.recommendations.append(
                "Describe attractions from general knowledge"
            )

        relevance = destination_similarity(
            record.reported_destination, request.destination
        )
        return self._build(
            SourceCategory.TRAVEL_GUIDE,
            present / 3,
            accuracy,
            NO_MATCH if relevance is None else relevance,
            details,
        )

    def _score_flights(
        self, record: FlightsRecord, request: TravelRequest
    ) -> QualityScore:
        details = _DetailsDraft()
        if not record.available:
            details.missing_fields.append("flight_options")
            details.recommendations.append(
                record.message or "No flights on this route; suggest alternatives"
            )
            completeness = 0.3
        elif record.options:
            complete = [o for o in record.options if o.is_complete]
            completeness = len(complete) / len(record.options)
            if completeness < 1.0:
                details.missing_fields.append("price/airline/timing on some options")
        else:
            details.missing_fields.append("flight_options")
            completeness = 0.0

        prices = record.prices
        if prices:
            domestic = is_domestic_travel(request.origin, request.destination)
            low, high = FLIGHT_PRICE_BANDS["domestic" if domestic else "international"]
            average = _mean(prices)
            if low <= average <= high:
                accuracy = 0.9
            else:
                accuracy = 0.6
                details.inconsistencies.append(
                    f"Average fare {average:.0f} outside expected range "
                    f"{low:.0f}-{high:.0f}"
                )
        else:
            accuracy = 0.5

        reported = next((o.destination for o in record.options if o.destination), None)
        relevance = destination_similarity(reported, request.destination)
        return self._build(
            SourceCategory.FLIGHTS,
            completeness,
            accuracy,
            0.8 if relevance is None else relevance,
            details,
        )

    def _score_hotels(
        self, record: HotelsRecord, request: TravelRequest
    ) -> QualityScore:
        details = _DetailsDraft()
        if record.options:
            complete = [o for o in record.options if o.is_complete]
            completeness = len(complete) / len(record.options)
            if completeness < 1.0:
                details.missing_fields.append("name/price/rating on some hotels")
        elif record.message:
            details.recommendations.append(record.message)
            completeness = 0.2
        else:
            details.missing_fields.append("hotel_options")
            completeness = 0.0

        invalid = [
            o.name
            for o in record.options
            if o.rating is not None and not (1.0 <= o.rating <= 5.0)
        ]
        if invalid:
            details.inconsistencies.append(f"Hotel ratings outside 1-5: {invalid}")
        accuracy = 0.7 if invalid else 0.9

        reported = next((o.city for o in record.options if o.city), None)
        relevance = destination_similarity(reported, request.destination)
        return self._build(
            SourceCategory.HOTELS,
            completeness,
            accuracy,
            0.8 if relevance is None else relevance,
            details,
        )

    def _score_trains(
        self, record: TrainsRecord, request: TravelRequest
    ) -> QualityScore:
        details = _DetailsDraft()
        if record.trains:
            complete = [t for t in record.trains if t.is_complete]
            completeness = len(complete) / len(record.trains)
            if completeness < 1.0:
                details.missing_fields.append("number/name/price on some trains")
        else:
            details.missing_fields.append("trains")
            completeness = 0.0

        return self._build(SourceCategory.TRAINS, completeness, 0.8, 0.9, details)

    def _score_visa(self, record: VisaRecord, request: TravelRequest) -> QualityScore:
        details = _DetailsDraft()
        if record.required is None:
            details.missing_fields.append("visa_requirement_status")
        elif record.required:
            if not record.type:
                details.missing_fields.append("visa_type")
            if not record.documents:
                details.missing_fields.append("required_documents")
        completeness = 1.0 - MISSING_FIELD_PENALTY * len(details.missing_fields)

        accuracy = 0.8
        if record.required and is_domestic_travel(request.origin, request.destination):
            accuracy = 0.5
            details.inconsistencies.append(
                "Visa reported as required for a domestic trip"
            )

        relevance = destination_similarity(
            record.reported_destination, request.destination
        )
        return self._build(
            SourceCategory.VISA,
            completeness,
            accuracy,
            0.9 if relevance is None else relevance,
            details,
        )

    def _score_currency(
        self, record: CurrencyRecord, request: TravelRequest
    ) -> QualityScore:
        details = _DetailsDraft()
        if record.rate is None and record.converted_amount is None:
            details.missing_fields.append("exchange_rate")
        if not record.from_currency:
            details.missing_fields.append("from_currency")
        if not record.to_currency:
            details.missing_fields.append("to_currency")
        completeness = 1.0 - MISSING_FIELD_PENALTY * len(details.missing_fields)

        accuracy = 0.95
        if record.rate is not None and not (0 < record.rate <= MAX_PLAUSIBLE_RATE):
            accuracy = 0.6
            details.inconsistencies.append(f"Implausible exchange rate {record.rate}")

        expected = destination_currency(request)
        quoted = {record.from_currency, record.to_currency} - {None}
        relevance = 0.9
        if quoted and expected not in quoted:
            relevance = 0.6
            details.inconsistencies.append(
                f"Rate quoted for {sorted(quoted)}, destination uses {expected}"
            )
        return self._build(
            SourceCategory.CURRENCY, completeness, accuracy, relevance, details
        )
