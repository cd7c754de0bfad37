"""
Listing fetcher package for the Google Business Profile REST APIs
Provides an authenticated request executor, a page-token paginator with
pluggable rate limiting, and per-resource endpoint builders
"""

from .config_loader import ConfigLoader, APIConfig, ConfigurationError, EnvironmentError
from .http_client import HTTPClient, APIRequest, RequestError
from .rate_limiter import (
    RateLimitPolicy, FixedIntervalRateLimiter, TokenBucketRateLimiter,
    NoDelayRateLimiter, RateLimiterFactory
)
from .pagination_strategy import Paginator, PageTokenPagination, PaginationLimitExceeded
from .endpoints import (
    ListingFetcher, ResourceEndpoint, LegacyEndpointDisabled, batch_location_names
)

__all__ = [
    'ConfigLoader',
    'APIConfig',
    'ConfigurationError',
    'EnvironmentError',
    'HTTPClient',
    'APIRequest',
    'RequestError',
    'RateLimitPolicy',
    'FixedIntervalRateLimiter',
    'TokenBucketRateLimiter',
    'NoDelayRateLimiter',
    'RateLimiterFactory',
    'Paginator',
    'PageTokenPagination',
    'PaginationLimitExceeded',
    'ListingFetcher',
    'ResourceEndpoint',
    'LegacyEndpointDisabled',
    'batch_location_names'
]
