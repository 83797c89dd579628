"""Session management for the MicroLend client.

Provides the session manager, its persisted storage, notifications and the
global 401 interceptor.
"""

from .models import (
    STAFF_ROLES,
    AuthResult,
    IdentityUpdate,
    Role,
    SessionState,
    SessionUser,
)
from .storage import (
    TOKEN_KEY,
    USER_KEY,
    FileSessionStore,
    MemorySessionStore,
    SessionStorageError,
    SessionStore,
)
from .notifications import ConsoleNotifier, Notifier
from .manager import FIXED_VERIFICATION_CODE, SessionManager
from .interceptor import UnauthorizedInterceptor

__all__ = [
    "STAFF_ROLES",
    "AuthResult",
    "IdentityUpdate",
    "Role",
    "SessionState",
    "SessionUser",
    "TOKEN_KEY",
    "USER_KEY",
    "FileSessionStore",
    "MemorySessionStore",
    "SessionStorageError",
    "SessionStore",
    "ConsoleNotifier",
    "Notifier",
    "FIXED_VERIFICATION_CODE",
    "SessionManager",
    "UnauthorizedInterceptor",
]
