"""Base MicroLend API Client.

Owns the single HTTP session shared by every API client, the default
Authorization header carried by all outgoing requests, and the response
hooks used for cross-cutting handling such as expired sessions.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from .network_error_handler import (
    APIClientError,
    NetworkErrorHandler,
    error_details,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

ResponseHook = Callable[[httpx.Response], Awaitable[None]]


class MicroLendAPIClient:
    """HTTP client with a mutable default Authorization header."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the shared API client.

        Args:
            base_url: Base URL of the lending API
            timeout: Global request timeout in seconds
            transport: Optional transport override
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._session: Optional[httpx.AsyncClient] = None
        self._auth_token: Optional[str] = None
        self._response_hooks: List[ResponseHook] = []
        self._network_error_handler = NetworkErrorHandler()

    @property
    def session(self) -> httpx.AsyncClient:
        """Get or create the HTTP session."""
        if self._session is None or self._session.is_closed:
            self._session = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers=self.default_headers,
                event_hooks={"response": [self._dispatch_response_hooks]},
                transport=self._transport,
            )
        return self._session

    @property
    def default_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        return headers

    @property
    def auth_token(self) -> Optional[str]:
        return self._auth_token

    def set_auth_token(self, token: str) -> None:
        """Attach the bearer token to every subsequent request."""
        self._auth_token = token
        if self._session is not None and not self._session.is_closed:
            self._session.headers["Authorization"] = f"Bearer {token}"
        logger.debug(f"Authorization header set for token {token[:6]}...")

    def clear_auth_token(self) -> None:
        """Stop sending the Authorization header."""
        self._auth_token = None
        if self._session is not None and not self._session.is_closed:
            self._session.headers.pop("Authorization", None)

    def add_response_hook(self, hook: ResponseHook) -> None:
        """Register a coroutine called with every response received."""
        self._response_hooks.append(hook)

    async def _dispatch_response_hooks(self, response: httpx.Response) -> None:
        for hook in self._response_hooks:
            await hook(response)

    async def request(self, method: str, endpoint: str, **kwargs) -> Any:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments for httpx request

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            AuthenticationError: On 401
            PermissionDeniedError: On 403
            NotFoundError: On 404
            ServerError: On 5xx
            NetworkError: If no response was received
            APIClientError: On other error status or an unreadable body
        """
        try:
            response = await self.session.request(method, endpoint, **kwargs)
        except httpx.TransportError as e:
            logger.debug(f"{method} {endpoint} failed without response: {e}")
            self._network_error_handler.classify_network_error(e)
            raise  # classify_network_error always raises

        if response.status_code >= 400:
            try:
                self._network_error_handler.classify_response(response)
            except APIClientError as e:
                logger.debug(f"{method} {endpoint} failed: {error_details(e)}")
                raise

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise APIClientError(
                f"Invalid JSON in response from {endpoint}: {e}", response.status_code
            )

    async def get(self, endpoint: str, **kwargs) -> Any:
        return await self.request("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, **kwargs) -> Any:
        return await self.request("POST", endpoint, **kwargs)

    async def put(self, endpoint: str, **kwargs) -> Any:
        return await self.request("PUT", endpoint, **kwargs)

    async def delete(self, endpoint: str, **kwargs) -> Any:
        return await self.request("DELETE", endpoint, **kwargs)

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.is_closed:
            await self._session.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class ResourceAPIClient:
    """Base for clients of one REST resource on the shared API client."""

    def __init__(self, api: MicroLendAPIClient):
        self.api = api
