"""
Tests for the MercadoPago endpoints

Repository and connector are replaced through FastAPI dependency overrides.
"""
import hashlib
import hmac
from urllib.parse import parse_qs, urlparse

import pytest

from comanda.api.mercadopago import get_mp_connector, get_mp_repository
from comanda.core.config import settings
from comanda.core.exceptions import MercadoPagoAPIError
from comanda.domain.mercadopago import OAuthTokenResponse, OAuthUserInfo, PaymentDetails, PaymentSyncAttempt

OAUTH_COOKIES = ("mp_oauth_state", "mp_oauth_tenant", "mp_oauth_email")


@pytest.fixture
def mp_client(app, client, mp_repository, mp_connector):
    app.dependency_overrides[get_mp_repository] = lambda: mp_repository
    app.dependency_overrides[get_mp_connector] = lambda: mp_connector
    return client


def _set_oauth_cookies(client, state="state-1", tenant="tenant-1", email="owner@example.com"):
    client.cookies.set("mp_oauth_state", state)
    client.cookies.set("mp_oauth_tenant", tenant)
    client.cookies.set("mp_oauth_email", email)


def _deleted_cookies(response):
    return {
        header.split("=", 1)[0]
        for header in response.headers.get_list("set-cookie")
        if "Max-Age=0" in header
    }


class TestOAuthAuthorize:

    def test_email_required(self, client, session_token):
        client.cookies.set("__session", session_token())
        response = client.get("/api/mercadopago/oauth/authorize")
        assert response.status_code == 400
        assert response.json() == {"error": "Contact email is required"}

    def test_email_invalid(self, client, session_token):
        client.cookies.set("__session", session_token())
        response = client.get("/api/mercadopago/oauth/authorize?email=not-an-email")
        assert response.status_code == 400
        assert response.json() == {"error": "Contact email is invalid"}

    def test_requires_tenant_session(self, client):
        response = client.get("/api/mercadopago/oauth/authorize?email=owner@example.com")
        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    def test_redirects_to_provider_with_state_cookies(self, client, session_token):
        client.cookies.set("__session", session_token(tenant_id="tenant-1"))

        response = client.get("/api/mercadopago/oauth/authorize?email=%20Owner@Example.com")

        assert response.status_code == 307
        location = urlparse(response.headers["location"])
        query = parse_qs(location.query)
        assert location.path == "/authorization"
        assert query["redirect_uri"] == ["http://testserver/api/mercadopago/webhook"]

        cookies = {h.split("=", 1)[0]: h for h in response.headers.get_list("set-cookie")}
        assert set(OAUTH_COOKIES) <= set(cookies)
        assert all("Max-Age=600" in cookies[name] and "HttpOnly" in cookies[name] for name in OAUTH_COOKIES)
        assert client.cookies.get("mp_oauth_state") == query["state"][0]
        assert "owner@example.com" in cookies["mp_oauth_email"]


class TestOAuthCallback:

    @pytest.fixture(autouse=True)
    def provider_answers(self, mp_connector):
        mp_connector.exchange_code_for_token.return_value = OAuthTokenResponse(access_token="APP_USR-new")
        mp_connector.get_user_info.return_value = OAuthUserInfo(id=123456)

    @pytest.mark.parametrize("path", ["/api/mercadopago/oauth/callback", "/api/mercadopago/webhook"])
    def test_success(self, mp_client, mp_repository, path):
        _set_oauth_cookies(mp_client)

        response = mp_client.get(f"{path}?code=code-1&state=state-1")

        assert response.status_code == 307
        assert response.headers["location"] == "http://testserver/?mp_oauth=success"
        assert set(OAUTH_COOKIES) <= _deleted_cookies(response)
        mp_repository.upsert_credentials.assert_called_once_with(
            tenant_id="tenant-1",
            access_token="APP_USR-new",
            app_id="mp-client-id",
            user_id="123456",
            contact_email="owner@example.com",
        )
        mp_repository.complete_access_request.assert_called_once_with("tenant-1", "owner@example.com")

    def test_both_entry_points_converge(self, mp_client, mp_repository, mp_connector):
        responses = []
        for path in ("/api/mercadopago/oauth/callback", "/api/mercadopago/webhook"):
            _set_oauth_cookies(mp_client)
            responses.append(mp_client.get(f"{path}?code=code-1&state=state-1"))

        assert [r.status_code for r in responses] == [307, 307]
        assert responses[0].headers["location"] == responses[1].headers["location"]
        first, second = mp_repository.upsert_credentials.call_args_list
        assert first == second
        first, second = mp_connector.exchange_code_for_token.call_args_list
        assert first == second

    @pytest.mark.parametrize("query,cookies,error", [
        ("state=state-1", {}, "Missing code or state parameter"),
        ("code=code-1", {}, "Missing code or state parameter"),
        ("code=code-1&state=other", {"state": "state-1"}, "Invalid state parameter"),
        ("code=code-1&state=state-1", {"tenant": ""}, "Missing tenant context"),
        ("code=code-1&state=state-1", {"email": ""}, "Missing contact email"),
    ])
    def test_validation_errors(self, mp_client, mp_repository, query, cookies, error):
        values = {"state": "state-1", "tenant": "tenant-1", "email": "owner@example.com", **cookies}
        for key, name in (("state", "mp_oauth_state"), ("tenant", "mp_oauth_tenant"), ("email", "mp_oauth_email")):
            if values[key]:
                mp_client.cookies.set(name, values[key])

        response = mp_client.get(f"/api/mercadopago/oauth/callback?{query}")

        assert response.status_code == 400
        assert response.json() == {"error": error}
        mp_repository.upsert_credentials.assert_not_called()

    def test_provider_error_redirects(self, mp_client, mp_connector):
        response = mp_client.get("/api/mercadopago/webhook?error=access_denied&error_description=User%20denied")

        assert response.status_code == 307
        query = parse_qs(urlparse(response.headers["location"]).query)
        assert query == {"mp_oauth": ["error"], "message": ["User denied"]}
        mp_connector.exchange_code_for_token.assert_not_called()

    def test_exchange_failure_redirects_and_clears_cookies(self, mp_client, mp_repository, mp_connector):
        mp_connector.exchange_code_for_token.side_effect = MercadoPagoAPIError("invalid_grant", status_code=400)
        _set_oauth_cookies(mp_client)

        response = mp_client.get("/api/mercadopago/oauth/callback?code=code-1&state=state-1")

        assert response.status_code == 307
        query = parse_qs(urlparse(response.headers["location"]).query)
        assert query == {"mp_oauth": ["error"], "message": ["invalid_grant"]}
        assert set(OAUTH_COOKIES) <= _deleted_cookies(response)
        mp_repository.upsert_credentials.assert_not_called()


def _signed_headers(body_data_id, request_id="req-1", ts="1700000000", secret="webhook-secret"):
    manifest = f"id:{body_data_id};request-id:{request_id};ts:{ts};"
    digest = hmac.new(secret.encode(), manifest.encode(), hashlib.sha256).hexdigest()
    return {"x-signature": f"ts={ts},v1={digest}", "x-request-id": request_id}


NOTIFICATION = {
    "id": 555,
    "live_mode": True,
    "type": "payment",
    "date_created": "2025-03-01T13:30:00Z",
    "user_id": 123456,
    "api_version": "v1",
    "action": "payment.updated",
    "data": {"id": "987"},
}


class TestWebhookNotifications:

    @pytest.fixture(autouse=True)
    def approved_payment(self, mp_repository, mp_connector):
        mp_connector.fetch_payment_details.return_value = PaymentDetails(
            id=987, status="approved", external_reference="order-1"
        )
        mp_repository.find_active_attempt.return_value = PaymentSyncAttempt(
            id=10, tenant_id="tenant-1", order_id="order-1", status="pending"
        )

    def test_payment_applied(self, mp_client, mp_repository):
        response = mp_client.post("/api/mercadopago/webhook", json=NOTIFICATION)

        assert response.status_code == 200
        body = response.json()
        assert body["received"] is True
        assert body["ok"] is True
        assert body["tenant_id"] == "tenant-1"
        mp_repository.update_attempt.assert_called_once()

    def test_unknown_tenant_is_acknowledged(self, mp_client, mp_repository):
        mp_repository.find_credentials_by_user_id.return_value = None

        response = mp_client.post("/api/mercadopago/webhook", json=NOTIFICATION)

        assert response.status_code == 200
        assert response.json()["ok"] is False

    def test_processing_failure_is_500(self, mp_client, mp_connector):
        mp_connector.fetch_payment_details.side_effect = MercadoPagoAPIError("timeout")

        response = mp_client.post("/api/mercadopago/webhook", json=NOTIFICATION)

        assert response.status_code == 500
        assert response.json() == {"error": "Webhook processing failed"}

    def test_storage_failure_is_500(self, mp_client, mp_repository):
        mp_repository.find_credentials_by_user_id.side_effect = RuntimeError("db down")

        response = mp_client.post("/api/mercadopago/webhook", json=NOTIFICATION)

        assert response.status_code == 500
        assert response.json() == {"error": "Webhook processing failed"}

    def test_valid_signature(self, mp_client, mp_repository, monkeypatch):
        monkeypatch.setattr(settings, "MP_WEBHOOK_SECRET", "webhook-secret")

        response = mp_client.post("/api/mercadopago/webhook", json=NOTIFICATION, headers=_signed_headers("987"))

        assert response.status_code == 200
        mp_repository.update_attempt.assert_called_once()

    def test_invalid_signature(self, mp_client, mp_repository, monkeypatch):
        monkeypatch.setattr(settings, "MP_WEBHOOK_SECRET", "webhook-secret")

        response = mp_client.post(
            "/api/mercadopago/webhook", json=NOTIFICATION, headers=_signed_headers("987", secret="wrong")
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid signature"}
        mp_repository.find_credentials_by_user_id.assert_not_called()

    def test_malformed_body(self, mp_client):
        response = mp_client.post("/api/mercadopago/webhook", json={"hello": "world"})

        assert response.status_code == 400
