"""
Error handling utilities for the travel deck pipeline.

This module provides the exception taxonomy shared by the pipeline stages
and a helper for running a step that must not take its caller down with it.
Everything except InvalidTravelRequestError is caught close to where it is
raised and turned into a degraded score or a fallback card.
"""

import traceback
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger

T = TypeVar("T")


class TravelDeckError(Exception):
    """Base exception class for all travel deck errors."""

    def __init__(self, message: str, original_error: Exception | None = None):
        """
        Initialize a TravelDeckError.

        Args:
            message: Error message
            original_error: The original exception that caused this error (optional)
        """
        self.original_error = original_error
        if original_error:
            message = f"{message} - Original error: {original_error!s}"
        super().__init__(message)


class SourceFetchError(TravelDeckError):
    """Error raised when a travel-data provider call fails or times out."""

    def __init__(
        self,
        message: str,
        source: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ):
        """
        Initialize a SourceFetchError.

        Args:
            message: Error message
            source: Source category that failed
            status_code: HTTP status code (optional)
            original_error: The original exception that caused this error (optional)
        """
        self.source = source
        self.status_code = status_code
        status_str = f" (status: {status_code})" if status_code else ""
        full_message = f"Error fetching {source} data{status_str}: {message}"
        super().__init__(full_message, original_error)


class MalformedSourceError(TravelDeckError):
    """Error raised when a provider payload cannot be shaped into its record type."""

    def __init__(
        self, message: str, source: str, original_error: Exception | None = None
    ):
        self.source = source
        super().__init__(f"Malformed {source} payload: {message}", original_error)


class GenerationParseError(TravelDeckError):
    """Error raised when generated text is not a usable card payload."""

    def __init__(
        self,
        message: str,
        card_type: str,
        raw_response: str | None = None,
        original_error: Exception | None = None,
    ):
        """
        Initialize a GenerationParseError.

        Args:
            message: Error message
            card_type: Card type whose content failed to parse
            raw_response: Start of the offending response, kept for diagnostics
            original_error: The original exception that caused this error (optional)
        """
        self.card_type = card_type
        self.raw_response = raw_response[:200] if raw_response else raw_response
        full_message = f"Unusable content for '{card_type}' card: {message}"
        super().__init__(full_message, original_error)


class RateLimitExceeded(TravelDeckError):
    """Error raised when a rate limiter's backoff ceiling is reached."""

    def __init__(
        self,
        service_name: str,
        waited_seconds: float,
        original_error: Exception | None = None,
    ):
        self.service_name = service_name
        self.waited_seconds = waited_seconds
        super().__init__(
            f"Rate limit for {service_name} still exhausted after "
            f"{waited_seconds:.1f}s of backoff",
            original_error,
        )


class InvalidTravelRequestError(TravelDeckError):
    """Error raised when a travel request is structurally invalid."""

    def __init__(
        self,
        message: str,
        issues: list[str] | None = None,
        original_error: Exception | None = None,
    ):
        self.issues = issues or []
        if self.issues:
            message = f"{message}: {'; '.join(self.issues)}"
        super().__init__(message, original_error)


def safe_execute(
    func: Callable[..., T], *args: Any, default: T | None = None, **kwargs: Any
) -> T | None:
    """
    Execute a function safely, catching any exceptions and
    optionally returning a default value.

    Args:
        func: Function to execute
        *args: Positional arguments to pass to the function
        default: Default value to return if an exception occurs (optional)
        **kwargs: Keyword arguments to pass to the function

    Returns:
        Result of the function or default value if an exception occurs
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        func_name = getattr(func, "__name__", str(func))
        logger.error(f"Error executing {func_name}: {e!s}")
        logger.debug(f"Traceback: {traceback.format_exc()}")
        return default
