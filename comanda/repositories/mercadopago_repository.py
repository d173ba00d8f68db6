"""
MercadoPago Repository - credentials and payment sync attempts

Author: TM3
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from psycopg2.extras import Json

from comanda.core.database import get_db_connection_dict
from comanda.domain.mercadopago import (
    TERMINAL_STATUSES,
    MpCredentials,
    PaymentSyncAttempt,
    SyncAttemptStatus,
)

logger = logging.getLogger(__name__)

CREDENTIAL_COLUMNS = "id, tenant_id, access_token, app_id, user_id, contact_email, status, created"
ATTEMPT_COLUMNS = """id, tenant_id, order_id, status, mp_transaction_id, amount_cents,
                     last_mp_notification_id, last_processed_at, created"""


class MercadoPagoRepository:
    """
    Repository for MercadoPago persistence

    Writes are idempotent in end state so repeated provider deliveries
    (OAuth callbacks and webhooks) converge on the same rows.
    """

    # ==================== CREDENTIALS ====================

    def get_active_credentials(self, tenant_id: str) -> Optional[MpCredentials]:
        """Active credentials of a tenant, or None if not connected"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {CREDENTIAL_COLUMNS}
                FROM mercadopago_credentials
                WHERE tenant_id = %s AND status = 'active' AND deleted IS NULL
                ORDER BY created DESC
                LIMIT 1
            """, (tenant_id,))
            row = cursor.fetchone()
            return MpCredentials(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_credentials_by_user_id(self, mp_user_id: str) -> Optional[MpCredentials]:
        """Active credentials owned by a MercadoPago account (webhook tenant lookup)"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {CREDENTIAL_COLUMNS}
                FROM mercadopago_credentials
                WHERE user_id = %s AND status = 'active' AND deleted IS NULL
                ORDER BY created DESC
                LIMIT 1
            """, (mp_user_id,))
            row = cursor.fetchone()
            return MpCredentials(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def upsert_credentials(
        self,
        tenant_id: str,
        access_token: str,
        app_id: str,
        user_id: str,
        contact_email: Optional[str] = None,
    ) -> MpCredentials:
        """
        Replace the tenant's active credentials

        Deactivates the current active row and inserts the new one in a
        single transaction, so a tenant never has two active rows.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE mercadopago_credentials
                SET status = 'inactive'
                WHERE tenant_id = %s AND status = 'active'
            """, (tenant_id,))

            cursor.execute(f"""
                INSERT INTO mercadopago_credentials
                    (tenant_id, access_token, app_id, user_id, contact_email, status)
                VALUES (%s, %s, %s, %s, %s, 'active')
                RETURNING {CREDENTIAL_COLUMNS}
            """, (tenant_id, access_token, app_id, user_id, contact_email))

            row = cursor.fetchone()
            conn.commit()
            return MpCredentials(**row)

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def deactivate_credentials(self, tenant_id: str) -> int:
        """Mark the tenant's active credentials inactive, returns rows touched"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE mercadopago_credentials
                SET status = 'inactive'
                WHERE tenant_id = %s AND status = 'active'
            """, (tenant_id,))
            conn.commit()
            return cursor.rowcount

        finally:
            cursor.close()
            conn.close()

    def complete_access_request(self, tenant_id: str, contact_email: str) -> None:
        """Close the pending onboarding request opened for this tenant/email"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE mercadopago_access_requests
                SET status = 'completed', completed_at = NOW(), updated_at = NOW()
                WHERE tenant_id = %s AND contact_email = %s AND status = 'pending'
            """, (tenant_id, contact_email))
            conn.commit()

        finally:
            cursor.close()
            conn.close()

    # ==================== PAYMENT SYNC ATTEMPTS ====================

    def find_active_attempt(
        self,
        tenant_id: str,
        order_id: Optional[str] = None,
        mp_transaction_id: Optional[str] = None,
    ) -> Optional[PaymentSyncAttempt]:
        """
        Latest non-terminal attempt of a tenant matching an order or a
        MercadoPago transaction/intent ID
        """
        if not order_id and not mp_transaction_id:
            raise ValueError("order_id or mp_transaction_id is required")

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = ["tenant_id = %s", "NOT (status = ANY(%s))"]
            params = [tenant_id, [s.value for s in TERMINAL_STATUSES]]

            if order_id:
                conditions.append("order_id = %s")
                params.append(order_id)
            if mp_transaction_id:
                conditions.append("mp_transaction_id = %s")
                params.append(mp_transaction_id)

            where_clause = " AND ".join(conditions)

            cursor.execute(f"""
                SELECT {ATTEMPT_COLUMNS}
                FROM payment_sync_attempts
                WHERE {where_clause}
                ORDER BY created DESC
                LIMIT 1
            """, params)
            row = cursor.fetchone()
            return PaymentSyncAttempt(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def update_attempt(
        self,
        attempt_id: int,
        status: SyncAttemptStatus,
        notification_id: str,
        response_data: Optional[Dict[str, Any]] = None,
        mp_transaction_id: Optional[str] = None,
    ) -> bool:
        """
        Apply a notification to an attempt

        The notification ID is written in the same statement that checks it,
        so concurrent deliveries of one notification update the row once.

        Returns:
            True if the row changed, False if the notification was already applied
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE payment_sync_attempts
                SET status = %s,
                    mp_transaction_id = COALESCE(%s, mp_transaction_id),
                    response_data = %s,
                    last_mp_notification_id = %s,
                    last_processed_at = %s,
                    updated = NOW()
                WHERE id = %s
                  AND last_mp_notification_id IS DISTINCT FROM %s
            """, (
                status.value,
                mp_transaction_id,
                Json(response_data) if response_data is not None else None,
                notification_id,
                datetime.now(timezone.utc),
                attempt_id,
                notification_id,
            ))
            conn.commit()

            updated = cursor.rowcount > 0
            if not updated:
                logger.info(f"Attempt {attempt_id} already has notification {notification_id}")
            return updated

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
