"""
RateLimiter module providing the delay policies applied between API calls
"""

import time
from typing import Any, Dict, Optional, Protocol

from .config_loader import ConfigurationError


class RateLimitPolicy(Protocol):
    """Protocol for policies that pace sequential API calls"""

    def wait(self) -> None:
        """Block until the next call may be issued"""
        ...


class FixedIntervalRateLimiter:
    """Sleeps a fixed interval after every call regardless of elapsed time"""

    def __init__(self, interval_seconds: float = 1.0):
        if interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative")
        self.interval_seconds = interval_seconds

    def wait(self) -> None:
        time.sleep(self.interval_seconds)


class TokenBucketRateLimiter:
    """
    Token bucket allowing short bursts while holding the long-run request rate

    The bucket starts full. Each wait() consumes one token and sleeps only
    when the bucket is empty.
    """

    def __init__(self, requests_per_second: float, burst: int = 1):
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.requests_per_second = requests_per_second
        self.burst = burst
        self.tokens = float(burst)
        self.last_refill: Optional[float] = None

    def _refill(self) -> None:
        now = time.monotonic()
        if self.last_refill is not None:
            elapsed = now - self.last_refill
            self.tokens = min(float(self.burst), self.tokens + elapsed * self.requests_per_second)
        self.last_refill = now

    def wait(self) -> None:
        self._refill()

        if self.tokens < 1.0:
            delay = (1.0 - self.tokens) / self.requests_per_second
            time.sleep(delay)
            self.tokens = 1.0
            self.last_refill = time.monotonic()

        self.tokens -= 1.0


class NoDelayRateLimiter:
    """Policy that never waits"""

    def wait(self) -> None:
        return None


class RateLimiterFactory:
    """Factory for creating the rate limit policy named in configuration"""

    STRATEGIES = {
        'fixed_interval': FixedIntervalRateLimiter,
        'token_bucket': TokenBucketRateLimiter,
        'none': NoDelayRateLimiter
    }

    @classmethod
    def create_limiter(cls, rate_limits_config: Dict[str, Any]) -> RateLimitPolicy:
        """
        Create rate limit policy instance based on configuration

        Args:
            rate_limits_config: Contents of the [rate_limits] section

        Returns:
            Configured rate limit policy

        Raises:
            ConfigurationError: If the strategy is not supported
        """
        strategy_type = rate_limits_config.get('strategy', 'fixed_interval')

        if strategy_type not in cls.STRATEGIES:
            raise ConfigurationError(f"Unsupported rate limit strategy: {strategy_type}")

        if strategy_type == 'fixed_interval':
            return FixedIntervalRateLimiter(
                float(rate_limits_config.get('interval_seconds', 1.0))
            )

        if strategy_type == 'token_bucket':
            return TokenBucketRateLimiter(
                float(rate_limits_config.get('requests_per_second', 1.0)),
                int(rate_limits_config.get('burst', 1))
            )

        return NoDelayRateLimiter()
