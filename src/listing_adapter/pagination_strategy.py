"""
PaginationStrategy module for walking page-token result sets
"""

import logging
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote, urlencode

from .http_client import APIRequest
from .rate_limiter import RateLimitPolicy, FixedIntervalRateLimiter


# Characters left literal in query values (read masks, resource names)
QUERY_SAFE_CHARS = ',/'


class PaginationLimitExceeded(Exception):
    """Raised when a result set still has pages after max_pages were fetched"""

    def __init__(self, pages_fetched: int, items_field: str):
        self.pages_fetched = pages_fetched
        self.items_field = items_field
        super().__init__(
            f"Pagination for '{items_field}' stopped after {pages_fetched} pages "
            f"with a continuation token still present"
        )


def append_query(uri: str, params: Optional[Dict[str, Any]]) -> str:
    """
    Append query parameters to a URI, choosing '?' or '&' as separator

    Args:
        uri: URI which may already contain a query string
        params: Parameters to append; empty values are skipped

    Returns:
        URI with the encoded parameters appended
    """
    if not params:
        return uri

    filtered = {key: value for key, value in params.items() if value not in (None, '')}
    if not filtered:
        return uri

    encoded = urlencode(filtered, safe=QUERY_SAFE_CHARS, quote_via=quote)
    separator = '&' if '?' in uri else '?'
    return f"{uri}{separator}{encoded}"


class PageTokenPagination:
    """Cursor-based pagination using a page token query parameter"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.token_param = config.get('token_param', 'pageToken')
        self.next_token_field = config.get('next_token_field', 'nextPageToken')

    def get_page_url(self, base_uri: str, page_token: Optional[str],
                     extra_query: Optional[Dict[str, Any]] = None) -> str:
        """Build the URL for one page: base, then page token, then extra query"""
        url = base_uri
        if page_token:
            url = append_query(url, {self.token_param: page_token})
        return append_query(url, extra_query)

    def extract_next_token(self, response: Any) -> Optional[str]:
        """Return the continuation token, or None when the collection is done"""
        if not isinstance(response, dict):
            return None
        return response.get(self.next_token_field) or None

    @staticmethod
    def extract_items(response: Any, items_field: str) -> List[Any]:
        """Return the page's items; a missing or null field yields no items"""
        if not isinstance(response, dict):
            return []
        return response.get(items_field) or []


class Paginator:
    """
    Repeatedly invokes the request executor and concatenates page items

    Args:
        fetch: Callable issuing one request and returning the parsed JSON body
        rate_limiter: Policy waited on after every successful call
        strategy: Page token handling; defaults to pageToken/nextPageToken
        max_pages: Upper bound on pages per collection, None for unbounded
    """

    def __init__(self, fetch: Callable[[APIRequest], Any],
                 rate_limiter: Optional[RateLimitPolicy] = None,
                 strategy: Optional[PageTokenPagination] = None,
                 max_pages: Optional[int] = None):
        if max_pages is not None and max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self.fetch = fetch
        self.rate_limiter = rate_limiter if rate_limiter is not None else FixedIntervalRateLimiter()
        self.strategy = strategy or PageTokenPagination()
        self.max_pages = max_pages
        self.logger = logging.getLogger(__name__)

    def fetch_single(self, request: APIRequest) -> Any:
        """
        Issue one request and apply the inter-call delay

        Args:
            request: APIRequest to execute

        Returns:
            Parsed JSON response
        """
        response = self.fetch(request)
        self.rate_limiter.wait()
        return response

    def collect_pages(self, base_uri: str, items_field: str,
                      extra_query: Optional[Dict[str, Any]] = None,
                      method: str = "GET", payload: Optional[Any] = None) -> List[Any]:
        """
        Collect every item of a paginated collection in page order

        Args:
            base_uri: Endpoint URI including its fixed query parameters
            items_field: Response field holding each page's items
            extra_query: Caller-supplied parameters appended after the page token
            method: HTTP method used for every page
            payload: Fixed payload sent with every page for POST endpoints

        Returns:
            List of all items across all pages

        Raises:
            PaginationLimitExceeded: If max_pages is reached with a token still held
            RequestError: If any page request fails; partial results are discarded
        """
        results: List[Any] = []
        page_token: Optional[str] = None
        pages_fetched = 0

        while True:
            if self.max_pages is not None and pages_fetched >= self.max_pages:
                raise PaginationLimitExceeded(pages_fetched, items_field)

            url = self.strategy.get_page_url(base_uri, page_token, extra_query)
            response = self.fetch_single(APIRequest(url=url, method=method, payload=payload))
            pages_fetched += 1

            results.extend(self.strategy.extract_items(response, items_field))
            page_token = self.strategy.extract_next_token(response)

            if not page_token:
                break

        self.logger.info(f"Collected {len(results)} {items_field} across {pages_fetched} pages")
        return results
