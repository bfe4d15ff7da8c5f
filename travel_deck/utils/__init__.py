"""
Utility modules for the travel deck pipeline.
"""

from travel_deck.config import LogLevel
from travel_deck.utils.error_handling import (
    GenerationParseError,
    InvalidTravelRequestError,
    MalformedSourceError,
    RateLimitExceeded,
    SourceFetchError,
    TravelDeckError,
    safe_execute,
)
from travel_deck.utils.helpers import (
    format_price,
    generate_id,
    get_country_name,
    get_currency_symbol,
    parse_amount,
    safe_serialize,
    to_json,
    truncate_text,
)
from travel_deck.utils.logging import PipelineLogger, get_logger, setup_logging

__all__ = [
    "GenerationParseError",
    "InvalidTravelRequestError",
    "LogLevel",
    "MalformedSourceError",
    "PipelineLogger",
    "RateLimitExceeded",
    "SourceFetchError",
    "TravelDeckError",
    "format_price",
    "generate_id",
    "get_country_name",
    "get_currency_symbol",
    "get_logger",
    "parse_amount",
    "safe_execute",
    "safe_serialize",
    "setup_logging",
    "to_json",
    "truncate_text",
]
