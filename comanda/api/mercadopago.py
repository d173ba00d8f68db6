"""
MercadoPago API Endpoints
OAuth account connection and webhook notifications

OAuth redirects may arrive at /oauth/callback (legacy redirect URI) or at
GET /webhook (the URI registered with MercadoPago). Both delegate to the
same handler.

Author: TM3
"""
import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from comanda.connectors.mercadopago_connector import MercadoPagoConnector
from comanda.core.auth import SessionPayload, get_session_optional
from comanda.core.config import settings
from comanda.core.exceptions import ConfigurationError
from comanda.domain.mercadopago import WebhookNotification
from comanda.repositories.mercadopago_repository import MercadoPagoRepository
from comanda.services.mercadopago_oauth_service import (
    generate_oauth_state,
    get_oauth_config,
    handle_oauth_callback,
    request_origin,
    set_oauth_cookies,
)
from comanda.services.mercadopago_webhook_service import MercadoPagoWebhookService, validate_webhook_signature

logger = logging.getLogger(__name__)

router = APIRouter()

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


# Dependency: Get services
def get_mp_connector() -> MercadoPagoConnector:
    return MercadoPagoConnector()


def get_mp_repository() -> MercadoPagoRepository:
    return MercadoPagoRepository()


# ==================== OAUTH ====================

@router.get("/oauth/authorize")
async def oauth_authorize(
    request: Request,
    email: Optional[str] = Query(None, description="Contact email of the merchant"),
    session: Optional[SessionPayload] = Depends(get_session_optional),
    connector: MercadoPagoConnector = Depends(get_mp_connector),
):
    """
    Start the OAuth flow for the session tenant

    Stores state, tenant and contact email in 10 minute cookies and
    redirects to MercadoPago's authorization page.
    """
    contact_email = (email or "").strip().lower()
    if not contact_email:
        raise HTTPException(status_code=400, detail="Contact email is required")
    if not EMAIL_PATTERN.match(contact_email):
        raise HTTPException(status_code=400, detail="Contact email is invalid")

    if session is None or not session.tenant_id:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        config = get_oauth_config(request_origin(request))
    except ConfigurationError:
        logger.exception("MercadoPago OAuth is not configured")
        raise HTTPException(status_code=500, detail="Failed to initiate OAuth")

    state = generate_oauth_state()
    response = RedirectResponse(connector.get_authorize_url(config, state))
    return set_oauth_cookies(response, state, session.tenant_id, contact_email)


@router.get("/oauth/callback")
async def oauth_callback(
    request: Request,
    connector: MercadoPagoConnector = Depends(get_mp_connector),
    repository: MercadoPagoRepository = Depends(get_mp_repository),
):
    """Legacy redirect URI, kept for apps registered before /webhook"""
    return await handle_oauth_callback(request, connector, repository)


@router.get("/webhook")
async def webhook_oauth_redirect(
    request: Request,
    connector: MercadoPagoConnector = Depends(get_mp_connector),
    repository: MercadoPagoRepository = Depends(get_mp_repository),
):
    """OAuth redirect URI registered with MercadoPago"""
    return await handle_oauth_callback(request, connector, repository)


# ==================== WEBHOOKS ====================

@router.post("/webhook")
async def receive_webhook(
    request: Request,
    connector: MercadoPagoConnector = Depends(get_mp_connector),
    repository: MercadoPagoRepository = Depends(get_mp_repository),
):
    """
    Receive a MercadoPago notification

    Answers 2xx once the notification is applied or can never be applied.
    Any failure worth retrying answers 500 so MercadoPago redelivers it.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    try:
        notification = WebhookNotification(**payload)
    except (TypeError, ValidationError):
        logger.warning(f"Malformed MercadoPago notification: {payload}")
        raise HTTPException(status_code=400, detail="Invalid notification payload")

    if settings.MP_WEBHOOK_SECRET:
        data_id = request.query_params.get("data.id") or notification.data.id
        valid = validate_webhook_signature(
            request.headers.get("x-signature", ""),
            request.headers.get("x-request-id", ""),
            data_id,
            settings.MP_WEBHOOK_SECRET,
        )
        if not valid:
            logger.warning(f"Invalid signature for MercadoPago notification {notification.id}")
            raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        service = MercadoPagoWebhookService(repository, connector)
        result = await service.process_webhook(notification)

    except Exception:
        logger.exception(f"Error processing MercadoPago notification {notification.id} ({notification.type})")
        raise HTTPException(status_code=500, detail="Webhook processing failed")

    return {"received": True, **result.to_dict()}
