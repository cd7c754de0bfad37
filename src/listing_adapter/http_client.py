"""
HTTPClient module for issuing authenticated requests to the Business Profile APIs
"""

import json
import logging
import requests
from typing import Any, Callable, Dict, Optional
from dataclasses import dataclass


TokenProvider = Callable[[], str]


class RequestError(Exception):
    """Raised when the upstream API answers with a non-200 status"""

    DEFAULT_MESSAGE = 'This Request was not successful'

    def __init__(self, status_code: int, body: str, message: str = DEFAULT_MESSAGE):
        self.status_code = status_code
        self.body = body
        self.message = message
        super().__init__(f"{message} (status {status_code}): {body}")


@dataclass(frozen=True)
class APIRequest:
    """Represents a single API request"""
    url: str
    method: str = "GET"
    payload: Optional[Any] = None


class HTTPClient:
    """HTTP client that injects a fresh bearer token into every request"""

    SUCCESS_STATUS_CODE = 200

    def __init__(self, token_provider: Optional[TokenProvider] = None,
                 session: Optional[requests.Session] = None):
        self.token_provider = token_provider
        self.session = session
        self.logger = logging.getLogger(__name__)

    def authenticate(self, credentials: Dict[str, Any]) -> None:
        """
        Configure the token provider based on credential type

        Args:
            credentials: Dictionary containing authentication information

        Raises:
            ValueError: If authentication type is not supported
        """
        auth_type = credentials.get('type')

        if auth_type == 'bearer_token':
            token = credentials['token']
            self.token_provider = lambda: token

        elif auth_type == 'token_provider':
            provider = credentials['provider']
            if not callable(provider):
                raise ValueError("Token provider must be callable")
            self.token_provider = provider

        else:
            raise ValueError(f"Unsupported authentication type: {auth_type}")

    def build_headers(self) -> Dict[str, str]:
        """
        Build request headers with a token fetched for this request only

        Returns:
            Dictionary of Authorization and Content-Type headers

        Raises:
            RuntimeError: If no token provider has been configured
        """
        if self.token_provider is None:
            raise RuntimeError("HTTPClient has no token provider; call authenticate() first")

        return {
            'Authorization': f"Bearer {self.token_provider()}",
            'Content-Type': 'application/json'
        }

    def make_request(self, request: APIRequest) -> Any:
        """
        Make exactly one HTTP request and return the parsed JSON body

        Args:
            request: APIRequest object containing request details

        Returns:
            Parsed JSON value of the response body

        Raises:
            ValueError: If the request URL is empty
            RequestError: If the response status is anything other than 200
            requests.exceptions.RequestException: If the transport fails
        """
        if not request.url:
            raise ValueError("Request URL must not be empty")

        # Create session if not exists
        if self.session is None:
            self.session = requests.Session()

        method = request.method.upper()
        headers = self.build_headers()

        # Body is only sent for non-GET requests carrying a payload
        body = None
        if request.payload and method != 'GET':
            body = json.dumps(request.payload)

        self.logger.debug(f"{method} {request.url}")
        response = self.session.request(method, request.url, headers=headers, data=body)

        if response.status_code != self.SUCCESS_STATUS_CODE:
            self.logger.error(
                f"{method} {request.url} failed with status {response.status_code}: {response.text}"
            )
            raise RequestError(response.status_code, response.text)

        return response.json()

    def close_connection(self) -> None:
        """
        Close HTTP session and release resources
        """
        if self.session:
            self.session.close()
            self.session = None

    def __enter__(self) -> 'HTTPClient':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close_connection()
