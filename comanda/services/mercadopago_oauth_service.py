"""
MercadoPago OAuth Service
Authorization code flow used to connect a tenant's MercadoPago account

Flow:
1. /oauth/authorize stores state, tenant and contact email in short-lived cookies
2. MercadoPago redirects back with `code` and `state`
3. handle_oauth_callback exchanges the code and stores the tenant credentials

Author: TM3
"""
import logging
import secrets
from typing import Optional
from urllib.parse import urlencode, urljoin

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.responses import Response

from comanda.connectors.mercadopago_connector import MercadoPagoConnector
from comanda.core.config import settings
from comanda.core.exceptions import ComandaError, ConfigurationError
from comanda.domain.mercadopago import OAuthConfig
from comanda.repositories.mercadopago_repository import MercadoPagoRepository

logger = logging.getLogger(__name__)

STATE_COOKIE = "mp_oauth_state"
TENANT_COOKIE = "mp_oauth_tenant"
EMAIL_COOKIE = "mp_oauth_email"
OAUTH_COOKIES = (STATE_COOKIE, TENANT_COOKIE, EMAIL_COOKIE)
OAUTH_COOKIE_MAX_AGE = 600  # 10 minutes


def get_oauth_config(origin: Optional[str] = None) -> OAuthConfig:
    """
    OAuth client configuration from settings

    MP_REDIRECT_URI may be relative (e.g. `/api/mercadopago/webhook`), in
    which case it is resolved against the request origin.

    Raises:
        ConfigurationError if any MP_CLIENT_ID / MP_CLIENT_SECRET / MP_REDIRECT_URI is missing
    """
    missing = [
        name for name in ("MP_CLIENT_ID", "MP_CLIENT_SECRET", "MP_REDIRECT_URI")
        if not getattr(settings, name)
    ]
    if missing:
        raise ConfigurationError(f"Missing MercadoPago OAuth configuration: {', '.join(missing)}")

    redirect_uri = settings.MP_REDIRECT_URI
    if redirect_uri.startswith("/"):
        redirect_uri = urljoin(origin or "http://localhost:3000", redirect_uri)

    return OAuthConfig(
        client_id=settings.MP_CLIENT_ID,
        client_secret=settings.MP_CLIENT_SECRET,
        redirect_uri=redirect_uri,
    )


def generate_oauth_state() -> str:
    """Random CSRF state for the authorization request"""
    return secrets.token_hex(32)


def request_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


def set_oauth_cookies(response: Response, state: str, tenant_id: str, contact_email: str) -> Response:
    for name, value in ((STATE_COOKIE, state), (TENANT_COOKIE, tenant_id), (EMAIL_COOKIE, contact_email)):
        response.set_cookie(
            name,
            value,
            max_age=OAUTH_COOKIE_MAX_AGE,
            path="/",
            httponly=True,
            samesite="lax",
            secure=settings.is_production,
        )
    return response


def _clear_oauth_cookies(response: Response) -> Response:
    for name in OAUTH_COOKIES:
        response.delete_cookie(name, path="/")
    return response


def _error_redirect(origin: str, message: str) -> RedirectResponse:
    query = urlencode({"mp_oauth": "error", "message": message})
    return RedirectResponse(f"{origin}/?{query}")


async def handle_oauth_callback(
    request: Request,
    connector: MercadoPagoConnector,
    repository: MercadoPagoRepository,
) -> Response:
    """
    Complete the OAuth flow for the tenant stored in the `mp_oauth_*` cookies

    Shared by every URL MercadoPago may redirect the authorization to.
    Validation failures answer 400 JSON; failures after validation
    redirect to `/?mp_oauth=error` and drop the OAuth cookies.
    """
    params = request.query_params
    origin = request_origin(request)

    error = params.get("error")
    if error:
        description = params.get("error_description") or "OAuth error"
        logger.warning(f"MP OAuth error: {error} - {description}")
        return _error_redirect(origin, description)

    code = params.get("code")
    state = params.get("state")
    if not code or not state:
        return JSONResponse({"error": "Missing code or state parameter"}, status_code=400)

    stored_state = request.cookies.get(STATE_COOKIE)
    tenant_id = request.cookies.get(TENANT_COOKIE)
    contact_email = request.cookies.get(EMAIL_COOKIE)

    if not stored_state or not secrets.compare_digest(stored_state.encode(), state.encode()):
        return JSONResponse({"error": "Invalid state parameter"}, status_code=400)
    if not tenant_id:
        return JSONResponse({"error": "Missing tenant context"}, status_code=400)
    if not contact_email:
        return JSONResponse({"error": "Missing contact email"}, status_code=400)

    try:
        config = get_oauth_config(origin)
        token = await connector.exchange_code_for_token(config, code)
        user_info = await connector.get_user_info(token.access_token)

        credentials = repository.upsert_credentials(
            tenant_id=tenant_id,
            access_token=token.access_token,
            app_id=config.client_id,
            user_id=str(user_info.id),
            contact_email=contact_email,
        )
        repository.complete_access_request(tenant_id, contact_email)

        logger.info(
            f"MercadoPago connected for tenant {tenant_id} "
            f"(app_id={credentials.app_id}, user_id={credentials.user_id})"
        )
        response = RedirectResponse(f"{origin}/?mp_oauth=success")

    except Exception as e:
        logger.exception(f"OAuth callback error for tenant {tenant_id}")
        message = str(e) if isinstance(e, ComandaError) else "OAuth callback failed"
        response = _error_redirect(origin, message)

    return _clear_oauth_cookies(response)
