"""
Endpoint builders for the Business Profile account, business information,
place actions and legacy v4 services
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .config_loader import APIConfig, ConfigLoader, ConfigurationError, DEFAULT_READ_MASK, DEFAULT_PAGE_SIZES
from .http_client import APIRequest, HTTPClient, TokenProvider
from .pagination_strategy import Paginator, PageTokenPagination, append_query
from .rate_limiter import RateLimitPolicy, RateLimiterFactory


ACCOUNT_MANAGEMENT = 'account_management'
BUSINESS_INFORMATION = 'business_information'
PLACE_ACTIONS = 'place_actions'
LEGACY_V4 = 'legacy_v4'

DEFAULT_BASE_URLS = {
    ACCOUNT_MANAGEMENT: 'https://mybusinessaccountmanagement.googleapis.com/v1',
    BUSINESS_INFORMATION: 'https://mybusinessbusinessinformation.googleapis.com/v1',
    PLACE_ACTIONS: 'https://mybusinessplaceactions.googleapis.com/v1',
    LEGACY_V4: 'https://mybusiness.googleapis.com/v4'
}

PAGE_TOKEN_STRATEGY = 'page_token'

# Upstream limit for locations per reportInsights call
MAX_INSIGHT_LOCATIONS = 10


class LegacyEndpointDisabled(Exception):
    """Raised when a v4 endpoint is called while the legacy surface is switched off"""
    pass


@dataclass(frozen=True)
class ResourceEndpoint:
    """
    Declarative description of one upstream resource

    Args:
        service: Key of the base URL the path is resolved against
        path_template: Path relative to the service base URL, formatted with resource names
        items_field: Response field holding page items; None for single-object endpoints
        query: Fixed query parameters appended to every request
    """
    service: str
    path_template: str
    items_field: Optional[str] = None
    query: Dict[str, Any] = field(default_factory=dict)

    @property
    def paginated(self) -> bool:
        return self.items_field is not None

    @property
    def legacy(self) -> bool:
        return self.service == LEGACY_V4

    def build_uri(self, base_url: str, path_params: Optional[Dict[str, str]] = None,
                  caller_query: Optional[Dict[str, Any]] = None) -> str:
        """
        Compose the absolute URI for this resource

        Resource names are inserted verbatim; caller_query is placed ahead of
        the fixed query parameters.
        """
        path = self.path_template.format(**(path_params or {}))
        uri = f"{base_url}/{path}"
        uri = append_query(uri, caller_query)
        return append_query(uri, self.query)


def build_resources(region_code: str = 'JP', language_code: str = 'ja',
                    read_mask: str = DEFAULT_READ_MASK,
                    page_sizes: Optional[Dict[str, int]] = None) -> Dict[str, ResourceEndpoint]:
    """Instantiate the endpoint table for the given locale and paging settings"""
    sizes = {**DEFAULT_PAGE_SIZES, **(page_sizes or {})}

    return {
        'accounts': ResourceEndpoint(
            ACCOUNT_MANAGEMENT, 'accounts', 'accounts',
            {'pageSize': sizes['accounts']}),
        'locations': ResourceEndpoint(
            BUSINESS_INFORMATION, '{account_name}/locations', 'locations',
            {'pageSize': sizes['locations'], 'readMask': read_mask}),
        'categories': ResourceEndpoint(
            BUSINESS_INFORMATION, 'categories', 'categories',
            {'regionCode': region_code, 'languageCode': language_code, 'view': 'FULL'}),
        'attributes': ResourceEndpoint(
            BUSINESS_INFORMATION, 'attributes', 'attributeMetadata',
            {'regionCode': region_code, 'languageCode': language_code, 'showAll': 'true'}),
        'location_search': ResourceEndpoint(
            BUSINESS_INFORMATION, 'googleLocations:search'),
        'location_attributes': ResourceEndpoint(
            BUSINESS_INFORMATION, '{location_name}/attributes'),
        'google_updated': ResourceEndpoint(
            BUSINESS_INFORMATION, '{location_name}:getGoogleUpdated', None,
            {'readMask': read_mask}),
        'chains': ResourceEndpoint(
            BUSINESS_INFORMATION, 'chains:search', None,
            {'pageSize': sizes['chains']}),
        'place_action_links': ResourceEndpoint(
            PLACE_ACTIONS, '{location_name}/placeActionLinks', 'placeActionLinks'),
        'insights': ResourceEndpoint(
            LEGACY_V4, '{account_name}/locations:reportInsights'),
        'local_posts': ResourceEndpoint(
            LEGACY_V4, '{account_name}/{location_name}/localPosts', 'localPosts',
            {'pageSize': sizes['local_posts']}),
        'reviews': ResourceEndpoint(
            LEGACY_V4, '{account_name}/{location_name}/reviews', 'reviews',
            {'pageSize': sizes['reviews']})
    }


def batch_location_names(location_names: Sequence[str],
                         size: int = MAX_INSIGHT_LOCATIONS) -> Iterator[List[str]]:
    """Split location names into batches accepted by a single insights call"""
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    for start in range(0, len(location_names), size):
        yield list(location_names[start:start + size])


class ListingFetcher:
    """
    Retrieves accounts, locations and related listing data

    Every call runs sequentially through one HTTPClient and waits on the
    rate limit policy after each response.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        rate_limiter: Optional[RateLimitPolicy] = None,
        base_urls: Optional[Dict[str, str]] = None,
        max_pages: Optional[int] = None,
        region_code: str = 'JP',
        language_code: str = 'ja',
        read_mask: str = DEFAULT_READ_MASK,
        page_sizes: Optional[Dict[str, int]] = None,
        legacy_enabled: bool = True,
        pagination: Optional[PageTokenPagination] = None
    ):
        self.http_client = http_client
        self.base_urls = {**DEFAULT_BASE_URLS, **(base_urls or {})}
        self.page_sizes = {**DEFAULT_PAGE_SIZES, **(page_sizes or {})}
        self.resources = build_resources(region_code, language_code, read_mask, self.page_sizes)
        self.legacy_enabled = legacy_enabled
        self.paginator = Paginator(
            http_client.make_request,
            rate_limiter=rate_limiter,
            strategy=pagination,
            max_pages=max_pages
        )
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: APIConfig,
                    token_provider: Optional[TokenProvider] = None) -> 'ListingFetcher':
        """
        Wire an HTTP client, rate limiter and paginator from configuration

        Args:
            config: Loaded APIConfig
            token_provider: Optional zero-argument callable returning a bearer token.
                When omitted, credentials come from the [authentication] section.

        Returns:
            Configured ListingFetcher

        Raises:
            ConfigurationError: If pagination or authentication settings are unusable
            EnvironmentError: If the token environment variable is unset or empty
        """
        strategy = config.pagination.get('strategy')
        if strategy != PAGE_TOKEN_STRATEGY:
            raise ConfigurationError(f"Unsupported pagination strategy: {strategy}")

        if token_provider is not None:
            credentials = {'type': 'token_provider', 'provider': token_provider}
        else:
            credentials = ConfigLoader.build_credentials(config)

        http_client = HTTPClient()
        http_client.authenticate(credentials)

        max_pages = config.pagination.get('max_pages')

        return cls(
            http_client,
            rate_limiter=RateLimiterFactory.create_limiter(config.rate_limits),
            base_urls=config.endpoints,
            max_pages=int(max_pages) if max_pages is not None else None,
            region_code=config.region_code,
            language_code=config.language_code,
            read_mask=config.read_mask,
            page_sizes=config.page_sizes,
            legacy_enabled=config.legacy_enabled,
            pagination=PageTokenPagination(config.pagination)
        )

    def _resolve(self, resource: str, path_params: Optional[Dict[str, str]] = None,
                 caller_query: Optional[Dict[str, Any]] = None) -> Tuple[ResourceEndpoint, str]:
        endpoint = self.resources[resource]
        if endpoint.legacy and not self.legacy_enabled:
            raise LegacyEndpointDisabled(f"Legacy v4 endpoint '{resource}' is disabled")
        uri = endpoint.build_uri(self.base_urls[endpoint.service], path_params, caller_query)
        return endpoint, uri

    def _collect(self, resource: str, path_params: Optional[Dict[str, str]] = None,
                 extra_query: Optional[Dict[str, Any]] = None) -> List[Any]:
        endpoint, uri = self._resolve(resource, path_params)
        return self.paginator.collect_pages(uri, endpoint.items_field, extra_query)

    def _fetch(self, resource: str, path_params: Optional[Dict[str, str]] = None,
               caller_query: Optional[Dict[str, Any]] = None,
               method: str = 'GET', payload: Optional[Any] = None) -> Any:
        _, uri = self._resolve(resource, path_params, caller_query)
        return self.paginator.fetch_single(APIRequest(url=uri, method=method, payload=payload))

    def get_accounts(self, parent_account: str = '') -> List[Dict[str, Any]]:
        """
        Get every account visible to the authenticated user

        Args:
            parent_account: Optional parent account resource name to filter by

        Returns:
            List of account objects
        """
        return self._collect('accounts', extra_query={'parentAccount': parent_account})

    def get_locations(self, account_name: str) -> List[Dict[str, Any]]:
        """
        Get every location under an account

        Args:
            account_name: Account resource name, e.g. 'accounts/123'

        Returns:
            List of location objects restricted to the configured read mask
        """
        return self._collect('locations', {'account_name': account_name})

    def search_all_categories(self) -> List[Dict[str, Any]]:
        """Get every category available for the configured region and language"""
        return self._collect('categories')

    def search_all_attributes(self) -> List[Dict[str, Any]]:
        """Get metadata for every attribute available for the configured region and language"""
        return self._collect('attributes')

    def search_locations(self, query: str) -> Any:
        """
        Search Google for locations matching a free-text query

        Args:
            query: Search text

        Returns:
            Raw search response
        """
        payload = {
            'pageSize': str(self.page_sizes['location_search']),
            'query': query
        }
        return self._fetch('location_search', method='POST', payload=payload)

    def get_insights(self, account_name: str, location_names: Sequence[str],
                     start_time: str, end_time: str) -> Any:
        """
        Report aggregated insights for up to 10 locations (legacy v4 API)

        The 10-location limit is the upstream's; larger lists are sent as-is
        and the upstream decides. Use batch_location_names() to split them.

        Args:
            account_name: Account resource name, e.g. 'accounts/123'
            location_names: Location resource names, e.g. 'locations/456'
            start_time: RFC 3339 start of the reporting range
            end_time: RFC 3339 end of the reporting range

        Returns:
            Raw insights response
        """
        if len(location_names) > MAX_INSIGHT_LOCATIONS:
            self.logger.warning(
                f"Insights requested for {len(location_names)} locations; "
                f"the API accepts at most {MAX_INSIGHT_LOCATIONS} per call"
            )

        payload = {
            'locationNames': [f"{account_name}/{name}" for name in location_names],
            'basicRequest': {
                'metricRequests': [{
                    'metric': 'ALL',
                    'options': [
                        'AGGREGATED_TOTAL',
                        'AGGREGATED_DAILY'
                    ]
                }],
                'timeRange': {
                    'startTime': start_time,
                    'endTime': end_time
                }
            }
        }
        return self._fetch('insights', {'account_name': account_name},
                           method='POST', payload=payload)

    def get_attributes(self, location_name: str) -> Any:
        """Get the attributes set on a location"""
        return self._fetch('location_attributes', {'location_name': location_name})

    def get_google_updated(self, location_name: str) -> Any:
        """Get the Google-updated version of a location"""
        return self._fetch('google_updated', {'location_name': location_name})

    def get_place_action_links(self, location_name: str) -> List[Dict[str, Any]]:
        """Get every place action link attached to a location"""
        return self._collect('place_action_links', {'location_name': location_name})

    def search_chains(self, chain_name: str) -> Any:
        """
        Search for chains by name

        Args:
            chain_name: Chain name to search for

        Returns:
            Raw search response; this endpoint is not paginated
        """
        return self._fetch('chains', caller_query={'chainName': chain_name})

    def get_local_posts(self, account_name: str, location_name: str) -> List[Dict[str, Any]]:
        """Get every local post for a location (legacy v4 API)"""
        return self._collect('local_posts', {
            'account_name': account_name,
            'location_name': location_name
        })

    def get_reviews(self, account_name: str, location_name: str) -> List[Dict[str, Any]]:
        """Get every review for a location (legacy v4 API)"""
        return self._collect('reviews', {
            'account_name': account_name,
            'location_name': location_name
        })

    def close(self) -> None:
        self.http_client.close_connection()
