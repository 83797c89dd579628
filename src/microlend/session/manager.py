"""Session Manager for the MicroLend client.

Owns the authenticated-session lifecycle: token acquisition, persistence,
validation on load and teardown. The manager is constructed explicitly and
handed to whatever composes the UI; consumers read its state or subscribe to
changes instead of looking the session up globally.

States: LOADING (before storage is read), UNAUTHENTICATED, AUTHENTICATED.
Network-calling operations never raise; they return an AuthResult.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..api_clients.auth_client import AuthAPIClient
from ..api_clients.base_client import MicroLendAPIClient
from ..api_clients.network_error_handler import APIClientError
from .models import (
    AuthResult,
    IdentityUpdate,
    Role,
    SessionState,
    SessionUser,
)
from .notifications import Notifier
from .storage import TOKEN_KEY, USER_KEY, SessionStorageError, SessionStore

logger = logging.getLogger(__name__)

# Accepted without asking the server, in every environment. Kept as-is
# until the system owner decides whether it is a backdoor or a test stub.
FIXED_VERIFICATION_CODE = "123456"

SessionListener = Callable[["SessionManager"], None]


def _server_message(response: Any) -> Optional[str]:
    if isinstance(response, dict) and response.get("message"):
        return str(response["message"])
    return None


class SessionManager:
    """Authenticated-session service.

    Args:
        api: Shared API client whose default Authorization header is managed
        store: Client-local storage for the token and user entries
        notifier: Receives one transient message per outcome
        auth_client: Override for the /auth endpoint client
    """

    def __init__(
        self,
        api: MicroLendAPIClient,
        store: SessionStore,
        notifier: Optional[Notifier] = None,
        auth_client: Optional[AuthAPIClient] = None,
    ):
        self.api = api
        self.store = store
        self.notifier = notifier or Notifier()
        self.auth_client = auth_client or AuthAPIClient(api)
        self._state = SessionState.LOADING
        self._token: Optional[str] = None
        self._user: Optional[SessionUser] = None
        self._listeners: List[SessionListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_user(self) -> Optional[SessionUser]:
        return self._user

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def role(self) -> Optional[Role]:
        return self._user.role if self._user else None

    @property
    def is_authenticated(self) -> bool:
        return self._state == SessionState.AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        return self._state == SessionState.LOADING

    def has_role(self, *roles: Role) -> bool:
        return self._user is not None and self._user.role in roles

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener called after every session change.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    async def init(self) -> None:
        """Start the lifecycle by revalidating any persisted session."""
        await self.validate_on_load()

    def dispose(self) -> None:
        self._listeners.clear()

    def _load_stored_user(self) -> Optional[SessionUser]:
        stored_user = self.store.get(USER_KEY)
        if not stored_user:
            return None
        try:
            return SessionUser.model_validate_json(stored_user)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable stored user: {e.error_count()} errors")
            return None

    async def validate_on_load(self) -> None:
        """Read the persisted session and confirm it with the server.

        The persisted user is trusted first so the UI does not block on the
        network, then replaced by the server's record or cleared.
        """
        token = self.store.get(TOKEN_KEY)
        if not token:
            logger.debug("No persisted token, session starts unauthenticated")
            self.logout()
            return

        self.api.set_auth_token(token)

        stored_user = self._load_stored_user()
        if stored_user is not None:
            self._token = token
            self._user = stored_user
            self._state = SessionState.AUTHENTICATED
            self._publish()

        try:
            response = await self.auth_client.validate_token()
        except APIClientError as e:
            logger.warning(f"Token validation error: {e}")
            self.logout()
            return

        if not isinstance(response, dict) or not response.get("success"):
            logger.info("Persisted token was rejected by the server")
            self.logout()
            return

        try:
            user = SessionUser.model_validate(response.get("user") or {})
            self.store.set(USER_KEY, user.to_storage())
        except (ValidationError, SessionStorageError) as e:
            logger.warning(f"Could not accept validated user: {e}")
            self.logout()
            return

        self._token = token
        self._user = user
        self._state = SessionState.AUTHENTICATED
        self._publish()

    def _establish(self, token: str, user: SessionUser) -> None:
        self.store.set(TOKEN_KEY, token)
        self.store.set(USER_KEY, user.to_storage())
        self.api.set_auth_token(token)
        self._token = token
        self._user = user
        self._state = SessionState.AUTHENTICATED
        logger.info(f"Session established for user {user.id} ({user.role.value})")
        self._publish()

    def _fail(self, message: str) -> AuthResult:
        self.notifier.error(message)
        return AuthResult(success=False, message=message)

    def _complete_token_exchange(
        self, response: Any, success_message: str, failure_message: str
    ) -> AuthResult:
        """Shared tail of login and create_password."""
        if not isinstance(response, dict) or not response.get("success"):
            server_message = _server_message(response)
            return self._fail(server_message or failure_message)

        token = response.get("token")
        if not token or not isinstance(token, str):
            return self._fail(failure_message)

        try:
            user = SessionUser.model_validate(response.get("user") or {})
        except ValidationError as e:
            logger.warning(f"Server returned an unusable user record: {e}")
            return self._fail(failure_message)

        try:
            self._establish(token, user)
        except SessionStorageError as e:
            logger.error(f"Failed to persist session: {e}")
            return self._fail(failure_message)

        self.notifier.success(success_message)
        return AuthResult(success=True)

    async def login(self, phone_number: str, password: str) -> AuthResult:
        """Exchange credentials for a session.

        Concurrent calls are not serialized; the last response to resolve
        determines the session.
        """
        try:
            response = await self.auth_client.login(phone_number, password)
        except APIClientError as e:
            logger.debug(f"Login request failed: {e}")
            return self._fail(e.server_message or "An error occurred during login")

        return self._complete_token_exchange(
            response,
            success_message="Login successful!",
            failure_message="Login failed",
        )

    async def request_verification_code(self, payload: Dict[str, Any]) -> AuthResult:
        """Ask the server to send a verification code to a phone number."""
        phone = payload.get("phone") or payload.get("phone_number")
        if not phone:
            return self._fail("Phone number is required")

        try:
            response = await self.auth_client.request_otp(payload)
        except APIClientError as e:
            return self._fail(
                e.server_message or "An error occurred during registration"
            )

        if not isinstance(response, dict) or not response.get("success"):
            server_message = _server_message(response)
            return self._fail(server_message or "Registration failed")

        self.notifier.success("Verification code sent!")
        return AuthResult(success=True, data=response)

    async def verify_code(self, phone_number: str, code: str) -> AuthResult:
        """Check a verification code for a phone number.

        FIXED_VERIFICATION_CODE is accepted without contacting the server.
        """
        if code == FIXED_VERIFICATION_CODE:
            logger.warning(f"Fixed verification code accepted for {phone_number}")
            self.notifier.success("Phone verified successfully!")
            return AuthResult(
                success=True,
                data={
                    "success": True,
                    "message": "OTP verified successfully",
                    "phone_number": phone_number,
                },
            )

        try:
            response = await self.auth_client.verify_otp(phone_number, code)
        except APIClientError as e:
            return self._fail(e.server_message or "Invalid OTP. Please try again.")

        if not isinstance(response, dict) or not response.get("success"):
            server_message = _server_message(response)
            return self._fail(server_message or "Verification failed")

        self.notifier.success("Phone verified successfully!")
        return AuthResult(success=True, data=response)

    async def create_password(self, phone_number: str, password: str) -> AuthResult:
        """Final signup step; establishes a session like login."""
        try:
            response = await self.auth_client.create_password(phone_number, password)
        except APIClientError as e:
            return self._fail(
                e.server_message or "An error occurred during account creation"
            )

        return self._complete_token_exchange(
            response,
            success_message="Account created successfully!",
            failure_message="Failed to create password",
        )

    def logout(self) -> None:
        """Clear the session locally. Idempotent, no network call."""
        for key in (TOKEN_KEY, USER_KEY):
            try:
                self.store.remove(key)
            except OSError as e:
                logger.warning(f"Failed to clear stored {key}: {e}")
        self.api.clear_auth_token()

        changed = (
            self._state != SessionState.UNAUTHENTICATED
            or self._user is not None
            or self._token is not None
        )
        self._token = None
        self._user = None
        self._state = SessionState.UNAUTHENTICATED
        if changed:
            logger.info("Session cleared")
            self._publish()

    def update_identity(
        self, partial: Union[IdentityUpdate, Mapping[str, Any]]
    ) -> Optional[SessionUser]:
        """Merge updatable identity fields into the held user, no network call.

        Fields other than name, email and phone_number are ignored.

        Returns:
            The updated user, or None when no user is held
        """
        if self._user is None:
            return None

        if isinstance(partial, Mapping):
            ignored = set(partial) - set(IdentityUpdate.model_fields)
            if ignored:
                logger.debug(f"Ignoring non-identity fields: {sorted(ignored)}")

        changes = IdentityUpdate.from_partial(partial).changes()
        updated = self._user.model_copy(update=changes)
        self.store.set(USER_KEY, updated.to_storage())
        self._user = updated
        self._publish()
        return updated
