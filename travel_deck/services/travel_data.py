"""
Concurrent fetching of travel data from external providers.

The HTTP clients themselves live behind the TravelDataProvider protocol.
The fetcher adds what every provider call needs: a wait on the provider
host's rate limiter, a hard timeout, and conversion of every failure into
a SourceFetchError so that one bad source never stops the others.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

from travel_deck.config import config
from travel_deck.data.lookups import is_domestic_travel
from travel_deck.data.models import REQUIRED_SOURCES, SourceCategory, TravelRequest
from travel_deck.utils.error_handling import RateLimitExceeded, SourceFetchError
from travel_deck.utils.logging import get_logger
from travel_deck.utils.rate_limiting import (
    RateLimitConfig,
    RateLimitManager,
    rate_limit_manager,
)

logger = get_logger(__name__)

DEFAULT_SOURCE_HOSTS: Mapping[SourceCategory, str] = MappingProxyType(
    {
        SourceCategory.TRAVEL_GUIDE: "travel-guide-attractions.p.rapidapi.com",
        SourceCategory.FLIGHTS: "flight-data-search.p.rapidapi.com",
        SourceCategory.HOTELS: "hotel-search-booking.p.rapidapi.com",
        SourceCategory.TRAINS: "irctc1.p.rapidapi.com",
        SourceCategory.VISA: "visa-requirement.p.rapidapi.com",
        SourceCategory.CURRENCY: "currency-exchange-rates.p.rapidapi.com",
    }
)

# RapidAPI basic plans allow 1000 requests per hour per host
HOST_REQUESTS_PER_WINDOW = 1000
HOST_WINDOW_SECONDS = 3600.0


@runtime_checkable
class TravelDataProvider(Protocol):
    """Client for one or more travel-data APIs."""

    async def fetch(self, category: SourceCategory, request: TravelRequest) -> Any:
        """Return the provider payload for a source category."""
        ...


def source_rate_limits(
    hosts: Mapping[SourceCategory, str] = DEFAULT_SOURCE_HOSTS,
    ceiling_seconds: float | None = None,
) -> list[RateLimitConfig]:
    """
    Rate-limit configurations for the travel-data hosts.

    Args:
        hosts: Host per source category
        ceiling_seconds: Backoff ceiling per host (defaults to configuration)

    Returns:
        One configuration per distinct host
    """
    ceiling = ceiling_seconds or config.pipeline.rate_limit_ceiling
    return [
        RateLimitConfig(
            service_name=host,
            max_requests=HOST_REQUESTS_PER_WINDOW,
            window_seconds=HOST_WINDOW_SECONDS,
            backoff_ceiling_seconds=ceiling,
        )
        for host in dict.fromkeys(hosts.values())
    ]


@dataclass
class FetchResult:
    """Payloads of the sources that were fetched, and why the others failed."""

    raw_sources: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)


class SourceFetcher:
    """Fetches every source a request needs, concurrently."""

    def __init__(
        self,
        provider: TravelDataProvider,
        rate_limits: RateLimitManager | None = None,
        timeout: float | None = None,
        hosts: Mapping[SourceCategory, str] = DEFAULT_SOURCE_HOSTS,
    ):
        """
        Initialize the fetcher.

        Args:
            provider: Travel-data provider
            rate_limits: Rate-limit registry (defaults to the global one)
            timeout: Hard timeout for one fetch, in seconds
            hosts: Host per source category, used as the rate-limit key
        """
        self.provider = provider
        self.rate_limits = rate_limits or rate_limit_manager
        self.timeout = (
            timeout if timeout is not None else config.pipeline.source_timeout
        )
        self.hosts = hosts

        for host_config in source_rate_limits(hosts):
            if not self.rate_limits.is_registered(host_config.service_name):
                self.rate_limits.register_service(host_config)

    def categories_for(self, request: TravelRequest) -> list[SourceCategory]:
        """Sources to fetch; trains only run inside India."""
        categories = list(REQUIRED_SOURCES)
        if is_domestic_travel(request.origin, request.destination):
            categories.append(SourceCategory.TRAINS)
        return categories

    async def fetch_source(
        self, category: SourceCategory, request: TravelRequest
    ) -> Any:
        """
        Fetch one source.

        Args:
            category: Source category
            request: Travel request

        Returns:
            The provider payload

        Raises:
            SourceFetchError: If the host stays rate limited, the call times
                out, or the provider fails
        """
        host = self.hosts.get(category, category.value)
        try:
            await self.rate_limits.wait_if_needed(host)
            async with asyncio.timeout(self.timeout):
                return await self.provider.fetch(category, request)
        except SourceFetchError:
            raise
        except RateLimitExceeded as e:
            raise SourceFetchError(
                "rate limit exhausted", category.value, original_error=e
            ) from e
        except TimeoutError as e:
            raise SourceFetchError(
                f"timed out after {self.timeout:g}s", category.value
            ) from e
        except Exception as e:
            raise SourceFetchError(
                "provider call failed", category.value, original_error=e
            ) from e

    async def _fetch_or_error(
        self, category: SourceCategory, request: TravelRequest
    ) -> tuple[SourceCategory, Any, str | None]:
        try:
            return category, await self.fetch_source(category, request), None
        except SourceFetchError as e:
            logger.warning(str(e))
            return category, None, str(e)

    async def fetch_all(self, request: TravelRequest) -> FetchResult:
        """
        Fetch every source for a request concurrently.

        Args:
            request: Travel request

        Returns:
            Payloads keyed by source category; failed sources map to None
            and have their reason recorded in ``errors``
        """
        categories = self.categories_for(request)
        logger.info(
            f"Fetching {len(categories)} sources for "
            f"{request.origin} to {request.destination}"
        )
        outcomes = await asyncio.gather(
            *(self._fetch_or_error(category, request) for category in categories)
        )

        result = FetchResult()
        for category, payload, error in outcomes:
            result.raw_sources[category.value] = payload
            if error:
                result.errors[category.value] = error
        logger.info(
            f"Fetched {len(categories) - len(result.errors)}/{len(categories)} "
            f"sources successfully"
        )
        return result
