"""Network Error Handler for the MicroLend API Client.

Classifies httpx transport failures and HTTP error responses into the client's
exception hierarchy and provides the single user-facing message shown for
each failure.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred. Please try again."
NO_RESPONSE_MESSAGE = "No response from server. Please check your internet connection."
PERMISSION_DENIED_MESSAGE = "You do not have permission to perform this action"
NOT_FOUND_MESSAGE = "The requested resource was not found"
SERVER_ERROR_MESSAGE = "Server error. Please try again later."
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."


class APIClientError(Exception):
    """Base exception for API client errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        server_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.server_message = server_message


class AuthenticationError(APIClientError):
    """Raised on 401 responses."""

    pass


class PermissionDeniedError(APIClientError):
    """Raised on 403 responses."""

    pass


class NotFoundError(APIClientError):
    """Raised on 404 responses."""

    pass


class ServerError(APIClientError):
    """Raised for server-side errors (5xx responses)."""

    pass


class NetworkError(APIClientError):
    """Raised when no response was received from the server."""

    pass


class NetworkConnectionError(NetworkError):
    """Exception raised for connection-related network failures."""

    pass


class NetworkTimeoutError(NetworkError):
    """Exception raised for timeout-related network failures."""

    pass


class DNSResolutionError(NetworkError):
    """Exception raised for DNS resolution failures."""

    pass


class SSLCertificateError(NetworkError):
    """Exception raised for SSL certificate verification failures."""

    pass


def extract_server_message(response: httpx.Response) -> Optional[str]:
    """Pull the server-supplied message out of an error body, if any."""
    try:
        data = response.json()
    except (json.JSONDecodeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    message = data.get("message") or data.get("detail")
    return str(message) if message else None


class NetworkErrorHandler:
    """Handles network error classification."""

    def __init__(self):
        self._dns_error_patterns = [
            r"name.*resolution.*failed",
            r"name.*or.*service.*not.*known",
            r"nodename.*nor.*servname.*provided",
            r"temporary.*failure.*in.*name.*resolution",
        ]
        self._connection_error_patterns = [
            r"connection.*refused",
            r"connection.*reset",
            r"network.*is.*unreachable",
            r"no.*route.*to.*host",
        ]
        self._ssl_error_patterns = [
            r"ssl.*certificate.*verification.*failed",
            r"certificate.*verify.*failed",
            r"ssl.*handshake.*failed",
            r"bad.*certificate",
        ]

    def classify_network_error(self, error: Exception) -> None:
        """Classify an httpx exception and raise the matching client exception.

        Args:
            error: The original httpx exception

        Raises:
            NetworkError subclass for transport failures
        """
        error_message = str(error).lower()

        if isinstance(error, httpx.ConnectError):
            self._handle_connect_error(error, error_message)
        elif isinstance(error, httpx.TimeoutException):
            self._handle_timeout_error(error_message)
        elif isinstance(error, httpx.NetworkError):
            raise NetworkConnectionError(f"Network error: {error}")
        else:
            raise NetworkConnectionError(f"Unknown network error: {error}")

    def _handle_connect_error(
        self, error: httpx.ConnectError, error_message: str
    ) -> None:
        """Handle connection errors with specific classification."""
        if any(
            re.search(pattern, error_message) for pattern in self._dns_error_patterns
        ):
            raise DNSResolutionError(
                "Cannot resolve server address. Check your internet connection and API URL."
            )

        if any(
            re.search(pattern, error_message) for pattern in self._ssl_error_patterns
        ):
            raise SSLCertificateError(
                "SSL certificate verification failed. Server may be using invalid certificate."
            )

        if any(
            re.search(pattern, error_message)
            for pattern in self._connection_error_patterns
        ):
            raise NetworkConnectionError(
                "Cannot connect to server. Check if server is running and accessible."
            )

        raise NetworkConnectionError(f"Connection failed: {error}")

    def _handle_timeout_error(self, error_message: str) -> None:
        if "connect" in error_message:
            raise NetworkTimeoutError(
                "Connection timed out. Check your network connection or try again later."
            )
        raise NetworkTimeoutError(
            "Request timed out. Check your network connection or try again later."
        )

    def classify_response(self, response: httpx.Response) -> None:
        """Raise the matching client exception for a 4xx/5xx response.

        Args:
            response: Response with status code >= 400
        """
        status_code = response.status_code
        server_message = extract_server_message(response)
        detail = server_message or f"HTTP {status_code}"

        if status_code == 401:
            raise AuthenticationError(
                f"Authentication failed: {detail}", status_code, server_message
            )
        if status_code == 403:
            raise PermissionDeniedError(detail, status_code, server_message)
        if status_code == 404:
            raise NotFoundError(detail, status_code, server_message)
        if 500 <= status_code < 600:
            raise ServerError(
                f"Server is experiencing issues: {detail}", status_code, server_message
            )
        raise APIClientError(detail, status_code, server_message)


def describe_error(error: Exception) -> str:
    """Return the single user-facing notification text for a failure."""
    if isinstance(error, AuthenticationError):
        return SESSION_EXPIRED_MESSAGE
    if isinstance(error, PermissionDeniedError):
        return PERMISSION_DENIED_MESSAGE
    if isinstance(error, NotFoundError):
        return NOT_FOUND_MESSAGE
    if isinstance(error, ServerError):
        return SERVER_ERROR_MESSAGE
    if isinstance(error, NetworkError):
        return NO_RESPONSE_MESSAGE
    if isinstance(error, APIClientError) and error.server_message:
        return error.server_message
    return GENERIC_ERROR_MESSAGE


def error_details(error: Exception) -> Dict[str, Any]:
    """Structured view of an error for debug logging."""
    return {
        "type": type(error).__name__,
        "status_code": getattr(error, "status_code", None),
        "message": str(error),
    }
