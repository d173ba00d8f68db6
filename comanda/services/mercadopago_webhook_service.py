"""
MercadoPago Webhook Service
Validates and applies MercadoPago notifications

Flow:
1. Validate the x-signature HMAC (when a webhook secret is configured)
2. Resolve the tenant from the notification user_id
3. Route by notification type: payment | point_integration_wh/order | claim | mp-connect

Deliveries are retried by MercadoPago until it gets a 2xx, so every
handler is idempotent: applying the same notification twice leaves the
same state as applying it once.

Author: TM3
"""
import hashlib
import hmac
import logging

from comanda.connectors.mercadopago_connector import MercadoPagoConnector
from comanda.domain.mercadopago import (
    MpCredentials,
    ProcessWebhookResult,
    SyncAttemptStatus,
    WebhookNotification,
    WebhookResult,
)
from comanda.repositories.mercadopago_repository import MercadoPagoRepository

logger = logging.getLogger(__name__)


# ==================== SIGNATURE ====================

def validate_webhook_signature(x_signature: str, x_request_id: str, data_id: str, secret: str) -> bool:
    """
    Validate the `x-signature` header sent by MercadoPago

    Header format: `ts=<unix_ms>,v1=<hex_hmac>`
    Manifest:      `id:<data.id>;request-id:<x-request-id>;ts:<ts>;`

    Segments without a value are left out of the manifest.
    """
    ts = ""
    received_hash = ""
    for part in (x_signature or "").split(","):
        key, sep, value = part.partition("=")
        if not sep:
            continue
        key = key.strip()
        if key == "ts":
            ts = value.strip()
        elif key == "v1":
            received_hash = value.strip()

    if not ts or not received_hash:
        return False

    segments = []
    if data_id:
        segments.append(f"id:{data_id}")
    if x_request_id:
        segments.append(f"request-id:{x_request_id}")
    segments.append(f"ts:{ts}")
    manifest = ";".join(segments) + ";"

    computed = hmac.new(secret.encode(), manifest.encode(), hashlib.sha256).hexdigest()
    return hmac.compare_digest(computed, received_hash.lower())


# ==================== STATUS MAPPING ====================

MP_STATUS_TO_SYNC = {
    'approved': SyncAttemptStatus.APPROVED,
    'authorized': SyncAttemptStatus.APPROVED,
    'in_process': SyncAttemptStatus.PROCESSING,
    'in_mediation': SyncAttemptStatus.PROCESSING,
    'pending': SyncAttemptStatus.PENDING,
    'rejected': SyncAttemptStatus.REJECTED,
    'cancelled': SyncAttemptStatus.CANCELED,
    'refunded': SyncAttemptStatus.CANCELED,
    'charged_back': SyncAttemptStatus.ERROR,
}

POINT_ACTION_TO_SYNC = {
    'state_FINISHED': SyncAttemptStatus.APPROVED,
    'state_CANCELED': SyncAttemptStatus.CANCELED,
    'state_ERROR': SyncAttemptStatus.ERROR,
}


def map_mp_status(mp_status: str) -> SyncAttemptStatus:
    return MP_STATUS_TO_SYNC.get(mp_status, SyncAttemptStatus.ERROR)


# ==================== SERVICE ====================

class MercadoPagoWebhookService:
    """Applies MercadoPago notifications to payment sync attempts and credentials"""

    def __init__(self, repository: MercadoPagoRepository, connector: MercadoPagoConnector):
        self.repository = repository
        self.connector = connector

    async def handle_payment_event(
        self,
        notification: WebhookNotification,
        credentials: MpCredentials,
        tenant_id: str,
    ) -> WebhookResult:
        """
        `type: payment`: fetch the payment, map its status onto the order's
        active attempt.

        Raises:
            MercadoPagoAPIError if the payment cannot be fetched (retryable)
        """
        active = self.repository.get_active_credentials(tenant_id)
        access_token = active.access_token if active else credentials.access_token

        payment = await self.connector.fetch_payment_details(access_token, notification.data.id)

        order_id = payment.external_reference
        if not order_id:
            return WebhookResult(handled=False, detail="No external_reference in payment")

        attempt = self.repository.find_active_attempt(tenant_id, order_id=order_id)
        if not attempt:
            return WebhookResult(handled=False, detail=f"No active attempt for order {order_id}")

        notification_id = str(notification.id)
        if attempt.last_mp_notification_id == notification_id:
            return WebhookResult(
                handled=True,
                detail=f"Duplicate payment notification {notification_id}, already processed",
            )

        new_status = map_mp_status(payment.status)
        self.repository.update_attempt(
            attempt.id,
            status=new_status,
            notification_id=notification_id,
            response_data=payment.model_dump(),
            mp_transaction_id=str(payment.id),
        )

        return WebhookResult(handled=True, detail=f"Payment {payment.id} -> {new_status.value}")

    async def handle_point_integration_event(
        self,
        notification: WebhookNotification,
        tenant_id: str,
    ) -> WebhookResult:
        """`type: point_integration_wh` / `order`: terminal (Point) payment intents"""
        intent_id = notification.data.id
        action = notification.action or ""

        new_status = POINT_ACTION_TO_SYNC.get(action)
        if new_status is None:
            return WebhookResult(handled=True, detail=f"Ignored point action: {action}")

        attempt = self.repository.find_active_attempt(tenant_id, mp_transaction_id=intent_id)
        if not attempt:
            return WebhookResult(handled=False, detail=f"No active attempt for intent {intent_id}")

        notification_id = str(notification.id)
        if attempt.last_mp_notification_id == notification_id:
            return WebhookResult(
                handled=True,
                detail=f"Duplicate point notification {notification_id}, already processed",
            )

        self.repository.update_attempt(
            attempt.id,
            status=new_status,
            notification_id=notification_id,
            response_data=notification.model_dump(),
        )

        return WebhookResult(handled=True, detail=f"Point intent {intent_id} -> {new_status.value}")

    async def handle_claim_event(self, notification: WebhookNotification, tenant_id: str) -> WebhookResult:
        """
        `type: claim`: buyer dispute against a payment

        `data.id` carries the disputed payment ID, so the active attempt
        charged with it is marked `error` for the POS to show the conflict.
        """
        claim_id = notification.data.id
        action = notification.action or "created"
        logger.warning(f"MercadoPago claim {claim_id} (action={action}) for tenant {tenant_id}")
        if not claim_id:
            return WebhookResult(handled=False, detail="Claim without payment ID")

        attempt = self.repository.find_active_attempt(tenant_id, mp_transaction_id=claim_id)
        if not attempt:
            return WebhookResult(handled=True, detail=f"Claim {claim_id} (action={action}), no active attempt")

        notification_id = str(notification.id)
        if attempt.last_mp_notification_id == notification_id:
            return WebhookResult(
                handled=True,
                detail=f"Duplicate claim notification {notification_id}, already processed",
            )

        self.repository.update_attempt(
            attempt.id,
            status=SyncAttemptStatus.ERROR,
            notification_id=notification_id,
            response_data=notification.model_dump(),
        )

        return WebhookResult(handled=True, detail=f"Claim {claim_id} (action={action}), attempt marked error")

    async def handle_mp_connect_event(self, notification: WebhookNotification, tenant_id: str) -> WebhookResult:
        """`type: mp-connect`: OAuth lifecycle (deauthorization)"""
        if notification.action == "application.deauthorized":
            self.repository.deactivate_credentials(tenant_id)
            return WebhookResult(handled=True, detail="Credentials deauthorized")

        return WebhookResult(handled=True, detail=f"mp-connect action: {notification.action}")

    async def process_webhook(self, notification: WebhookNotification) -> ProcessWebhookResult:
        """
        Central webhook dispatcher

        Returns a result for outcomes that will never change on retry (unknown
        tenant, no matching attempt). Storage and API errors propagate so the
        route answers non-2xx and MercadoPago retries the delivery.
        """
        mp_user_id = str(notification.user_id)

        credentials = self.repository.find_credentials_by_user_id(mp_user_id)
        if credentials is None:
            return ProcessWebhookResult(
                ok=False,
                type=notification.type,
                detail=f"No tenant found for MP user_id={mp_user_id}",
            )

        tenant_id = credentials.tenant_id

        if notification.type == "payment":
            result = await self.handle_payment_event(notification, credentials, tenant_id)
        elif notification.type in ("point_integration_wh", "order"):
            # The Orders API (v1/orders) emits "order" with the same actions
            result = await self.handle_point_integration_event(notification, tenant_id)
        elif notification.type == "claim":
            result = await self.handle_claim_event(notification, tenant_id)
        elif notification.type == "mp-connect":
            result = await self.handle_mp_connect_event(notification, tenant_id)
        else:
            result = WebhookResult(handled=True, detail=f"Acknowledged unhandled type: {notification.type}")

        logger.info(f"MP webhook {notification.type} for tenant {tenant_id}: {result.detail}")

        return ProcessWebhookResult(
            ok=result.handled,
            type=notification.type,
            tenant_id=tenant_id,
            detail=result.detail,
        )
