"""
MercadoPago API Connector
Handles all interactions with the MercadoPago OAuth and REST APIs

Author: TM3
"""
import logging
from typing import Dict, Optional
from urllib.parse import urlencode

import httpx

from comanda.core.config import settings
from comanda.core.exceptions import MercadoPagoAPIError
from comanda.domain.mercadopago import OAuthConfig, OAuthTokenResponse, OAuthUserInfo, PaymentDetails

logger = logging.getLogger(__name__)

OAUTH_TIMEOUT = 20.0
WEBHOOK_FETCH_TIMEOUT = 15.0


class MercadoPagoConnector:
    """
    Connector for MercadoPago

    Handles:
    - OAuth authorization URL and code exchange
    - Account (user) info
    - Payment details for webhook reconciliation

    Unlike read-only sync connectors, failures here raise
    MercadoPagoAPIError: callers decide whether the provider should retry.
    """

    def __init__(
        self,
        api_base_url: Optional[str] = None,
        auth_base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize MercadoPago connector

        Args:
            api_base_url: REST API base (default MP_API_BASE_URL)
            auth_base_url: Country-specific auth domain (default MP_AUTH_BASE_URL)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_base_url = (api_base_url or settings.MP_API_BASE_URL).rstrip("/")
        self.auth_base_url = (auth_base_url or settings.MP_AUTH_BASE_URL).rstrip("/")
        self._transport = transport
        self.api_calls = 0

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=timeout)

    async def _request(self, method: str, endpoint: str, timeout: float, **kwargs) -> Dict:
        """
        Make a request to the MercadoPago API

        Raises:
            MercadoPagoAPIError on transport errors and non-2xx answers
        """
        url = f"{self.api_base_url}{endpoint}"
        headers = {'Accept': 'application/json', **kwargs.pop('headers', {})}

        async with self._client(timeout) as client:
            try:
                response = await client.request(method, url, headers=headers, **kwargs)
                self.api_calls += 1
                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                logger.error(f"MercadoPago request failed: {e.response.status_code} - {e.response.text}")
                raise MercadoPagoAPIError(
                    f"{method} {endpoint} failed: {e.response.text or 'Unknown error'}",
                    status_code=e.response.status_code,
                ) from e
            except httpx.HTTPError as e:
                logger.error(f"MercadoPago request error: {e}")
                raise MercadoPagoAPIError(f"{method} {endpoint} failed: {e}") from e

    # ==================== OAUTH ====================

    def get_authorize_url(self, config: OAuthConfig, state: str) -> str:
        """
        Build the authorization URL the merchant is redirected to

        Args:
            config: OAuth client configuration
            state: Random value echoed back to the callback (CSRF protection)
        """
        params = {
            'client_id': config.client_id,
            'response_type': 'code',
            'platform_id': 'mp',
            'redirect_uri': config.redirect_uri,
            'state': state,
        }
        return f"{self.auth_base_url}/authorization?{urlencode(params)}"

    async def exchange_code_for_token(self, config: OAuthConfig, code: str) -> OAuthTokenResponse:
        """Exchange an authorization code for an access token"""
        data = {
            'grant_type': 'authorization_code',
            'client_id': config.client_id,
            'client_secret': config.client_secret,
            'code': code,
            'redirect_uri': config.redirect_uri,
        }
        response = await self._request("POST", "/oauth/token", OAUTH_TIMEOUT, data=data)
        return OAuthTokenResponse(**response)

    async def get_user_info(self, access_token: str) -> OAuthUserInfo:
        """Fetch the account that granted the access token"""
        response = await self._request(
            "GET", "/users/me", OAUTH_TIMEOUT,
            headers={'Authorization': f'Bearer {access_token}'},
        )
        return OAuthUserInfo(**response)

    # ==================== PAYMENTS ====================

    async def fetch_payment_details(self, access_token: str, payment_id: str) -> PaymentDetails:
        """
        Get full payment details

        Needed for `payment` notifications, which only carry the payment ID.
        `external_reference` holds our order ID.
        """
        response = await self._request(
            "GET", f"/v1/payments/{payment_id}", WEBHOOK_FETCH_TIMEOUT,
            headers={'Authorization': f'Bearer {access_token}'},
        )
        return PaymentDetails(**response)
