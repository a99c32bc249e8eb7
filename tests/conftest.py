"""Pytest hooks and fixtures."""

import pytest
import pytest_asyncio

from odoo_xmlrpc.core.config import ConnectionConfig, Settings, get_settings
from odoo_xmlrpc.services.auth_service import AuthService
from tests.helpers import FakeRPCClient, FakeSleep


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Keep the cached settings from leaking between tests."""
    for field in Settings.model_fields:
        for name in (f"ODOO_{field.upper()}", f"odoo_{field}"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def config():
    return ConnectionConfig(
        url="http://erp.test/",
        database="demo",
        username="admin",
        password="secret",
        api_key="key-123",
    )


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def common_rpc():
    return FakeRPCClient(url="http://erp.test/xmlrpc/2/common")


@pytest.fixture
def object_rpc():
    return FakeRPCClient()


@pytest.fixture
def auth(config, common_rpc, object_rpc):
    return AuthService(config, common_client=common_rpc, object_client=object_rpc)


@pytest_asyncio.fixture
async def logged_in(auth, common_rpc):
    common_rpc.queue(7)
    await auth.authenticate()
    return auth
