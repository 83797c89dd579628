"""Authentication API Client for the MicroLend server.

Thin wrappers around the /auth endpoints. Session state (token persistence,
default headers) is owned by the session manager, not by this client.
"""

import logging
from typing import Any, Dict, Optional

from .base_client import ResourceAPIClient
from .network_error_handler import APIClientError

logger = logging.getLogger(__name__)

LOGIN_ENDPOINT = "/auth/login"
REQUEST_OTP_ENDPOINT = "/auth/request-otp"
VERIFY_OTP_ENDPOINT = "/auth/verify-otp"
CREATE_PASSWORD_ENDPOINT = "/auth/create-password"
VALIDATE_TOKEN_ENDPOINT = "/auth/validate-token"
CHANGE_PASSWORD_ENDPOINT = "/auth/change-password"

# 401s from these are ordinary credential failures, not expired sessions
CREDENTIAL_EXCHANGE_ENDPOINTS = frozenset(
    {
        LOGIN_ENDPOINT,
        REQUEST_OTP_ENDPOINT,
        VERIFY_OTP_ENDPOINT,
        CREATE_PASSWORD_ENDPOINT,
    }
)


class AuthAPIClient(ResourceAPIClient):
    """API client for the authentication endpoints."""

    async def login(self, phone_number: str, password: str) -> Dict[str, Any]:
        """Exchange credentials for a token and user record.

        Returns:
            Server body: {success, token, user, message?}
        """
        return await self.api.post(
            LOGIN_ENDPOINT, json={"phone_number": phone_number, "password": password}
        )

    async def request_otp(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Ask the server to send a verification code."""
        return await self.api.post(REQUEST_OTP_ENDPOINT, json=payload)

    async def verify_otp(self, phone_number: str, otp: str) -> Dict[str, Any]:
        return await self.api.post(
            VERIFY_OTP_ENDPOINT, json={"phone_number": phone_number, "otp": otp}
        )

    async def create_password(
        self, phone_number: str, password: str, confirm_password: Optional[str] = None
    ) -> Dict[str, Any]:
        """Final signup step.

        Returns:
            Server body: {success, token, user, message?}
        """
        return await self.api.post(
            CREATE_PASSWORD_ENDPOINT,
            json={
                "phone_number": phone_number,
                "password": password,
                "confirmPassword": (
                    confirm_password if confirm_password is not None else password
                ),
            },
        )

    async def validate_token(self) -> Dict[str, Any]:
        """Check the current Authorization header against the server."""
        return await self.api.get(VALIDATE_TOKEN_ENDPOINT)

    async def change_password(self, password_data: Dict[str, Any]) -> Dict[str, Any]:
        """Change the password of the logged-in user.

        Raises:
            APIClientError: If the server reports failure
        """
        response = await self.api.post(CHANGE_PASSWORD_ENDPOINT, json=password_data)
        if not response or not response.get("success"):
            message = (response or {}).get("message") or "Failed to change password"
            raise APIClientError(message, server_message=message)
        return dict(response)
