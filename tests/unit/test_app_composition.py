"""Unit tests for the MicroLendApp composition root."""

import json

import pytest

from microlend.api_clients.network_error_handler import (
    SESSION_EXPIRED_MESSAGE,
    AuthenticationError,
)
from microlend.app import MicroLendApp
from microlend.config import ClientConfig
from microlend.session.models import SessionState
from microlend.session.storage import (
    TOKEN_KEY,
    USER_KEY,
    FileSessionStore,
    MemorySessionStore,
)


@pytest.fixture
def client_config(tmp_path, api_url):
    return ClientConfig(api_url=api_url, session_dir=tmp_path / "session")


class TestWiring:
    def test_clients_share_one_api(self, client_config):
        app = MicroLendApp(client_config, store=MemorySessionStore())

        for client in (
            app.auth,
            app.customers,
            app.employees,
            app.users,
            app.loans,
            app.transactions,
        ):
            assert client.api is app.api
        assert app.session.api is app.api

    def test_default_store_uses_session_dir(self, client_config):
        app = MicroLendApp(client_config)

        assert isinstance(app.session.store, FileSessionStore)
        assert app.session.store.directory == client_config.session_dir


@pytest.mark.asyncio
class TestLifecycle:
    async def test_start_without_session(self, client_config, httpx_mock):
        async with MicroLendApp(client_config, store=MemorySessionStore()) as app:
            assert app.session.state == SessionState.UNAUTHENTICATED

        assert httpx_mock.get_requests() == []

    async def test_expired_session_reaches_callback(
        self, client_config, notifier, httpx_mock, api_url, admin_user
    ):
        expired = []
        store = MemorySessionStore({TOKEN_KEY: "abc", USER_KEY: json.dumps(admin_user)})
        httpx_mock.add_response(
            method="GET",
            url=f"{api_url}/auth/validate-token",
            json={"success": True, "user": admin_user},
        )
        httpx_mock.add_response(
            method="GET", url=f"{api_url}/api/employees", status_code=401
        )

        async with MicroLendApp(
            client_config,
            store=store,
            notifier=notifier,
            on_session_expired=lambda: expired.append(True),
        ) as app:
            assert app.session.is_authenticated
            with pytest.raises(AuthenticationError):
                await app.employees.list_employees()
            assert app.session.state == SessionState.UNAUTHENTICATED

        assert expired == [True]
        assert notifier.errors == [SESSION_EXPIRED_MESSAGE]
        assert store.keys() == []
