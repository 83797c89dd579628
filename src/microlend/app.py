"""Composition root for the MicroLend client.

Builds the shared API client, the session manager, the 401 interceptor and
the endpoint clients, and ties their lifecycle together.
"""

import logging
from typing import Callable, Optional

import httpx

from .api_clients.auth_client import AuthAPIClient
from .api_clients.base_client import MicroLendAPIClient
from .api_clients.customers_client import CustomersAPIClient
from .api_clients.employees_client import EmployeesAPIClient
from .api_clients.loans_client import LoansAPIClient
from .api_clients.transactions_client import TransactionsAPIClient
from .api_clients.users_client import UsersAPIClient
from .config import ClientConfig
from .session.interceptor import UnauthorizedInterceptor
from .session.manager import SessionManager
from .session.notifications import Notifier
from .session.storage import FileSessionStore, SessionStore

logger = logging.getLogger(__name__)


class MicroLendApp:
    """Everything a front end needs, wired once.

    Use as an async context manager: entering revalidates the persisted
    session, exiting disposes it and closes the HTTP client.

    Args:
        config: Client configuration
        store: Session storage, defaults to a FileSessionStore in
            config.session_dir
        notifier: Receives transient messages
        on_session_expired: Called when a 401 ends the session
        transport: Optional httpx transport override
    """

    def __init__(
        self,
        config: ClientConfig,
        store: Optional[SessionStore] = None,
        notifier: Optional[Notifier] = None,
        on_session_expired: Optional[Callable[[], None]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.notifier = notifier or Notifier()
        self.api = MicroLendAPIClient(
            config.api_url, timeout=config.timeout, transport=transport
        )
        self.auth = AuthAPIClient(self.api)
        self.session = SessionManager(
            self.api,
            store if store is not None else FileSessionStore(config.session_dir),
            notifier=self.notifier,
            auth_client=self.auth,
        )
        self.interceptor = UnauthorizedInterceptor(
            self.session, self.notifier, on_session_expired
        ).install(self.api)

        self.customers = CustomersAPIClient(self.api)
        self.employees = EmployeesAPIClient(self.api)
        self.users = UsersAPIClient(self.api)
        self.loans = LoansAPIClient(self.api)
        self.transactions = TransactionsAPIClient(self.api)

    async def start(self) -> None:
        await self.session.init()
        logger.debug(f"Session state after start: {self.session.state.value}")

    async def close(self) -> None:
        self.session.dispose()
        await self.api.close()

    async def __aenter__(self) -> "MicroLendApp":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
