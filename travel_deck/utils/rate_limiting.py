"""
Rate limiting for outbound calls to the text backend and travel-data hosts.

Every outbound call waits on a per-host limiter first. A limiter combines a
sliding window of request timestamps with an aiolimiter leaky bucket; when
neither has room, the caller backs off exponentially (tenacity) until a slot
frees up or the backoff ceiling is reached, at which point
RateLimitExceeded is raised.
"""

import time
from collections import deque
from dataclasses import dataclass, replace
from typing import Any

from aiolimiter import AsyncLimiter
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_delay,
    wait_exponential,
)

from travel_deck.utils.error_handling import RateLimitExceeded


@dataclass
class RateLimitConfig:
    """Configuration for a service's rate limits."""

    service_name: str
    max_requests: int  # Requests allowed inside one window
    window_seconds: float = 60.0
    min_wait_seconds: float = 0.5  # First backoff step
    max_wait_seconds: float = 10.0  # Largest single backoff step
    backoff_ceiling_seconds: float = 30.0  # Total backoff before giving up


class WindowExhausted(Exception):
    """Raised inside the retry loop while a limiter has no free slot."""

    def __init__(self, service_name: str, retry_after: float):
        self.service_name = service_name
        self.retry_after = retry_after
        super().__init__(
            f"No capacity for {service_name}, next slot in {retry_after:.2f}s"
        )


def before_sleep_callback(retry_state: RetryCallState) -> None:
    """
    Callback executed before sleeping between capacity checks.

    Args:
        retry_state: Current retry state
    """
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    sleep = retry_state.next_action.sleep if retry_state.next_action else 0.0
    if exception:
        logger.warning(
            f"Rate limited (attempt {retry_state.attempt_number}), "
            f"backing off {sleep:.2f} seconds: {exception!s}"
        )


class ServiceRateLimiter:
    """
    Sliding-window rate limiter for one service or host.

    The window admits at most ``max_requests`` calls per ``window_seconds``.
    The aiolimiter bucket smooths bursts inside the window.
    """

    def __init__(self, config: RateLimitConfig):
        """
        Initialize the rate limiter.

        Args:
            config: Rate limit configuration
        """
        self.config = config
        self.limiter = AsyncLimiter(config.max_requests, config.window_seconds)
        self.request_timestamps: deque[float] = deque()
        self.total_requests = 0
        self.rejected_requests = 0

        logger.info(
            f"Initialized rate limiter for {config.service_name} "
            f"({config.max_requests}/{config.window_seconds:g}s)"
        )

    def _prune(self, now: float) -> None:
        window_start = now - self.config.window_seconds
        while self.request_timestamps and self.request_timestamps[0] <= window_start:
            self.request_timestamps.popleft()

    async def try_acquire(self) -> bool:
        """
        Take a slot if one is free right now.

        Returns:
            True if the request may proceed, False otherwise
        """
        now = time.monotonic()
        self._prune(now)
        if len(self.request_timestamps) >= self.config.max_requests:
            return False
        if not self.limiter.has_capacity():
            return False

        # Bucket capacity was just checked, so this does not suspend
        await self.limiter.acquire()
        self.request_timestamps.append(now)
        self.total_requests += 1
        return True

    def get_backoff_time(self) -> float:
        """
        Calculate how long until the oldest request leaves the window.

        Returns:
            Backoff time in seconds
        """
        if len(self.request_timestamps) >= self.config.max_requests:
            oldest = self.request_timestamps[0]
            return max(0.0, oldest + self.config.window_seconds - time.monotonic())
        return self.config.min_wait_seconds

    async def acquire(self) -> float:
        """
        Wait cooperatively until a slot is free.

        Returns:
            Seconds spent waiting

        Raises:
            RateLimitExceeded: If no slot frees up before the backoff ceiling
        """
        started = time.monotonic()
        if await self.try_acquire():
            return 0.0

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(WindowExhausted),
                stop=stop_after_delay(self.config.backoff_ceiling_seconds),
                wait=wait_exponential(
                    multiplier=self.config.min_wait_seconds,
                    min=self.config.min_wait_seconds,
                    max=self.config.max_wait_seconds,
                ),
                before_sleep=before_sleep_callback,
            ):
                with attempt:
                    if not await self.try_acquire():
                        raise WindowExhausted(
                            self.config.service_name, self.get_backoff_time()
                        )
        except RetryError as e:
            waited = time.monotonic() - started
            self.rejected_requests += 1
            logger.error(
                f"Backoff ceiling reached for {self.config.service_name} "
                f"after {waited:.2f} seconds"
            )
            raise RateLimitExceeded(self.config.service_name, waited) from e

        return time.monotonic() - started

    def get_stats(self) -> dict[str, Any]:
        """
        Get usage statistics.

        Returns:
            Dictionary with usage statistics
        """
        self._prune(time.monotonic())
        return {
            "service": self.config.service_name,
            "window_limit": self.config.max_requests,
            "window_seconds": self.config.window_seconds,
            "current_window_usage": len(self.request_timestamps),
            "total_requests": self.total_requests,
            "rejected_requests": self.rejected_requests,
        }


class RateLimitManager:
    """
    Registry of rate limiters keyed by service or host name.

    Services that were never registered get a limiter built from the
    default configuration on first use.
    """

    def __init__(self, default_config: RateLimitConfig | None = None):
        """
        Initialize the rate limit manager.

        Args:
            default_config: Limits applied to unregistered services (optional)
        """
        self.limiters: dict[str, ServiceRateLimiter] = {}
        self.default_config = default_config or RateLimitConfig(
            service_name="default",
            max_requests=30,
            window_seconds=60.0,
        )

    def register_service(self, config: RateLimitConfig) -> ServiceRateLimiter:
        """
        Register a service with the rate limit manager.

        Args:
            config: Rate limit configuration for the service

        Returns:
            ServiceRateLimiter for the registered service
        """
        limiter = ServiceRateLimiter(config)
        self.limiters[config.service_name] = limiter
        return limiter

    def is_registered(self, service_name: str) -> bool:
        return service_name in self.limiters

    def get_limiter(self, service_name: str) -> ServiceRateLimiter:
        """
        Get the rate limiter for a service.

        Args:
            service_name: Name of the service

        Returns:
            ServiceRateLimiter for the service, or a default one if not registered
        """
        if service_name not in self.limiters:
            logger.warning(
                f"No rate limiter configured for {service_name}, "
                f"using default configuration."
            )
            self.register_service(
                replace(self.default_config, service_name=service_name)
            )

        return self.limiters[service_name]

    def get_all_stats(self) -> list[dict[str, Any]]:
        """
        Get usage statistics for all services.

        Returns:
            List of dictionaries with statistics for each service
        """
        return [limiter.get_stats() for limiter in self.limiters.values()]

    async def wait_if_needed(self, service_name: str) -> float:
        """
        Wait until the service has capacity for one more request.

        Args:
            service_name: Name of the service or host

        Returns:
            Seconds spent waiting

        Raises:
            RateLimitExceeded: If the backoff ceiling is reached
        """
        return await self.get_limiter(service_name).acquire()


# Create a global instance for the application to use
rate_limit_manager = RateLimitManager()


def configure_rate_limits(
    service_configs: list[RateLimitConfig], manager: RateLimitManager | None = None
) -> None:
    """
    Configure rate limits for multiple services.

    Args:
        service_configs: List of rate limit configurations for services
        manager: Manager to configure (defaults to the global one)
    """
    manager = manager or rate_limit_manager
    for service_config in service_configs:
        manager.register_service(service_config)


# Gemini API free tier: 15 requests per minute
DEFAULT_RATE_LIMITS = [
    RateLimitConfig(
        service_name="gemini",
        max_requests=15,
        window_seconds=60.0,
        min_wait_seconds=1.0,
        max_wait_seconds=10.0,
        backoff_ceiling_seconds=30.0,
    ),
]


def initialize_rate_limiting(
    extra_configs: list[RateLimitConfig] | None = None,
    ceiling_seconds: float | None = None,
    manager: RateLimitManager | None = None,
) -> RateLimitManager:
    """
    Initialize rate limiting with default configurations.

    Args:
        extra_configs: Additional services to register (e.g. travel-data hosts)
        ceiling_seconds: Backoff ceiling applied to every registered service
        manager: Manager to configure (defaults to the global one)

    Returns:
        The configured manager
    """
    manager = manager or rate_limit_manager
    configs = [*DEFAULT_RATE_LIMITS, *(extra_configs or [])]
    if ceiling_seconds is not None:
        configs = [
            replace(service_config, backoff_ceiling_seconds=ceiling_seconds)
            for service_config in configs
        ]
    configure_rate_limits(configs, manager)
    logger.info(f"Initialized rate limiting for {len(configs)} services")
    return manager
