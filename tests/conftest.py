"""Shared fixtures for the storefront test suite."""

from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from storefront.core.session import BuyerSession, SessionManager
from storefront.services.order_history import OrderHistoryReader
from storefront.services.order_lifecycle import OrderLifecycleManager
from storefront.services.razorpay_gateway import RazorpayGateway

from factories import CHECKOUT_SCRIPT_URL, KEY_ID, KEY_SECRET, FlakyOrderDatabase, ScriptHost


def pytest_collection_modifyitems(config, items):
    """Mark tests by the layer they exercise."""
    for item in items:
        if Path(item.fspath).name == "test_api.py":
            item.add_marker(pytest.mark.api)
        else:
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def script_host():
    return ScriptHost()


@pytest.fixture
def gateway(script_host):
    return RazorpayGateway(
        key_id=KEY_ID,
        key_secret=KEY_SECRET,
        checkout_script_url=CHECKOUT_SCRIPT_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(script_host)),
    )


@pytest.fixture
def order_db():
    return FlakyOrderDatabase()


@pytest.fixture
def lifecycle(order_db, gateway):
    return OrderLifecycleManager(store=order_db, gateway=gateway)


@pytest.fixture
def history(order_db):
    return OrderHistoryReader(store=order_db, default_page_size=10, max_page_size=50)


@pytest.fixture
def sessions():
    return SessionManager()


@pytest.fixture
def session(sessions) -> BuyerSession:
    return sessions.create_session(buyer_id="user-3")


@pytest.fixture
def client(sessions, order_db, gateway, lifecycle, history):
    from storefront import dependencies
    from storefront.main import app

    app.dependency_overrides[dependencies.get_session_manager] = lambda: sessions
    app.dependency_overrides[dependencies.get_order_store] = lambda: order_db
    app.dependency_overrides[dependencies.get_razorpay_gateway] = lambda: gateway
    app.dependency_overrides[dependencies.get_order_lifecycle] = lambda: lifecycle
    app.dependency_overrides[dependencies.get_order_history] = lambda: history

    # One event loop for the whole test so gateway attempts outlive a request
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
