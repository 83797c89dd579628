"""Global handling of expired sessions.

Registered as a response hook on the shared API client: a 401 from any
endpoint other than the credential exchanges ends the session and sends the
user back to login.
"""

import logging
from typing import Callable, Optional

import httpx

from ..api_clients.auth_client import CREDENTIAL_EXCHANGE_ENDPOINTS
from ..api_clients.base_client import MicroLendAPIClient
from ..api_clients.network_error_handler import SESSION_EXPIRED_MESSAGE
from .manager import SessionManager
from .notifications import Notifier

logger = logging.getLogger(__name__)


class UnauthorizedInterceptor:
    """Logs the session out on 401 responses.

    Args:
        session: Session to clear
        notifier: Receives the session-expired message
        on_session_expired: Called after logout, e.g. to return to login
    """

    def __init__(
        self,
        session: SessionManager,
        notifier: Optional[Notifier] = None,
        on_session_expired: Optional[Callable[[], None]] = None,
    ):
        self.session = session
        self.notifier = notifier or session.notifier
        self.on_session_expired = on_session_expired

    def install(self, api: MicroLendAPIClient) -> "UnauthorizedInterceptor":
        api.add_response_hook(self)
        return self

    def _is_exempt(self, response: httpx.Response) -> bool:
        path = response.request.url.path
        return any(
            path.endswith(endpoint) for endpoint in CREDENTIAL_EXCHANGE_ENDPOINTS
        )

    async def __call__(self, response: httpx.Response) -> None:
        if response.status_code != 401 or self._is_exempt(response):
            return

        logger.info(f"401 from {response.request.url.path}, ending session")
        self.session.logout()
        self.notifier.error(SESSION_EXPIRED_MESSAGE)
        if self.on_session_expired is not None:
            self.on_session_expired()
