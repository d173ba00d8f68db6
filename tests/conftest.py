"""
Pytest fixtures and configuration for Comanda Backend tests

This file provides shared fixtures that can be used across all test modules.
None of the tests need a database: repositories are patched at
get_db_connection_dict and MercadoPago at the connector.

Author: TM3
"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from comanda.core.auth import create_session_token
from comanda.core.config import settings
from comanda.domain.mercadopago import MpCredentials

TEST_AUTH_SECRET = "test-secret-0123456789abcdef0123456789abcdef"


@pytest.fixture(autouse=True)
def configured_settings(monkeypatch):
    """
    Deterministic settings for every test

    Scope: function (monkeypatch restores previous values afterwards)
    """
    monkeypatch.setattr(settings, "AUTH_SECRET", TEST_AUTH_SECRET)
    monkeypatch.setattr(settings, "AUTH_COOKIE_NAME", "__session")
    monkeypatch.setattr(settings, "AUTH_COOKIE_DOMAIN", "")
    monkeypatch.setattr(settings, "ENVIRONMENT", "test")
    monkeypatch.setattr(settings, "DEFAULT_LOCALE", "es-MX")
    monkeypatch.setattr(settings, "DEFAULT_CURRENCY", "MXN")
    monkeypatch.setattr(settings, "DEFAULT_TIME_ZONE", "America/Mexico_City")
    monkeypatch.setattr(settings, "MP_CLIENT_ID", "mp-client-id")
    monkeypatch.setattr(settings, "MP_CLIENT_SECRET", "mp-client-secret")
    monkeypatch.setattr(settings, "MP_REDIRECT_URI", "/api/mercadopago/webhook")
    monkeypatch.setattr(settings, "MP_WEBHOOK_SECRET", "")
    return settings


@pytest.fixture
def app():
    """The FastAPI app, with dependency overrides cleared after each test"""
    from comanda.main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """
    Provides a fresh TestClient for each test

    Redirects are not followed so tests can inspect Location headers.
    """
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client


@pytest.fixture
def session_token():
    """Factory for signed session tokens"""
    def _make(sub="user-1", tenant_id="tenant-1", role="admin", **extra):
        claims = {"tenant_id": tenant_id, "role": role, **extra}
        return create_session_token(sub, {k: v for k, v in claims.items() if v is not None})
    return _make


@pytest.fixture
def mock_db():
    """
    MagicMock connection/cursor pair

    Usage:
        with patch('comanda.repositories.x.get_db_connection_dict', return_value=mock_db.conn):
            ...
    """
    conn = MagicMock()
    cursor = MagicMock()
    conn.cursor.return_value = cursor
    return MagicMock(conn=conn, cursor=cursor)


@pytest.fixture
def mp_credentials():
    return MpCredentials(
        id="cred-1",
        tenant_id="tenant-1",
        access_token="APP_USR-token",
        app_id="mp-client-id",
        user_id="123456",
        contact_email="owner@example.com",
    )


@pytest.fixture
def mp_repository(mp_credentials):
    """MercadoPagoRepository stand-in resolving user 123456 to tenant-1"""
    repo = MagicMock()
    repo.find_credentials_by_user_id.return_value = mp_credentials
    repo.get_active_credentials.return_value = mp_credentials
    repo.upsert_credentials.return_value = mp_credentials
    repo.update_attempt.return_value = True
    return repo


@pytest.fixture
def mp_connector():
    """MercadoPagoConnector stand-in with async API methods"""
    connector = MagicMock()
    connector.exchange_code_for_token = AsyncMock()
    connector.get_user_info = AsyncMock()
    connector.fetch_payment_details = AsyncMock()
    return connector


@pytest.fixture
def sample_order_row():
    """
    Provides an order header row as returned by RealDictCursor
    """
    return {
        "id": "order-1",
        "tenant_id": "tenant-1",
        "position": 7,
        "total": 10500,
        "created": datetime(2025, 3, 1, 13, 30, tzinfo=timezone.utc),
        "updated": None,
        "closed": None,
        "deleted": None,
    }


@pytest.fixture
def sample_order_line_rows():
    """
    Provides order line rows (order_items joined with products)

    Two tacos at the current price, one at an older price and one agua.
    """
    return [
        {"id": 1, "product_id": "taco", "name": "Taco al pastor", "price": 2500,
         "is_takeaway": False, "payment_option_id": None},
        {"id": 2, "product_id": "agua", "name": "Agua de jamaica", "price": 3500,
         "is_takeaway": True, "payment_option_id": 1},
        {"id": 3, "product_id": "taco", "name": "Taco al pastor", "price": 2500,
         "is_takeaway": False, "payment_option_id": None},
        {"id": 4, "product_id": "taco", "name": "Taco al pastor", "price": 2000,
         "is_takeaway": False, "payment_option_id": None},
    ]
