"""
Shared pytest fixtures for MicroLend client tests.

Provides an isolated configuration environment, a recording notifier and a
session manager wired to an in-memory store.
"""

from typing import Any, Dict, List, Tuple

import pytest

from microlend import config as config_module
from microlend.api_clients.base_client import MicroLendAPIClient
from microlend.config import (
    ENV_API_TIMEOUT,
    ENV_API_URL,
    ENV_LOG_LEVEL,
    ENV_SESSION_DIR,
)
from microlend.session.manager import SessionManager
from microlend.session.notifications import Notifier
from microlend.session.storage import MemorySessionStore

API_URL = "http://localhost:3000"


class RecordingNotifier(Notifier):
    """Notifier that remembers every message it was given."""

    def __init__(self):
        self.messages: List[Tuple[str, str]] = []

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    @property
    def errors(self) -> List[str]:
        return [text for kind, text in self.messages if kind == "error"]

    @property
    def successes(self) -> List[str]:
        return [text for kind, text in self.messages if kind == "success"]


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests away from the real ~/.microlend and MICROLEND_* variables."""
    for name in (ENV_API_URL, ENV_API_TIMEOUT, ENV_LOG_LEVEL, ENV_SESSION_DIR):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(
        config_module, "DEFAULT_CONFIG_PATH", tmp_path / "no-config" / "config.json"
    )


@pytest.fixture
def customer_user() -> Dict[str, Any]:
    return {
        "id": 7,
        "role": "customer",
        "name": "Bat-Erdene",
        "email": "bat@example.com",
        "phone_number": "+31 615957803",
    }


@pytest.fixture
def admin_user() -> Dict[str, Any]:
    return {
        "id": 1,
        "role": "admin",
        "name": "Admin",
        "email": "admin@example.com",
        "phone_number": "+31 600000001",
    }


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def api_url() -> str:
    return API_URL


@pytest.fixture
def api() -> MicroLendAPIClient:
    return MicroLendAPIClient(API_URL)


@pytest.fixture
def session_manager(api, store, notifier) -> SessionManager:
    return SessionManager(api, store, notifier=notifier)

