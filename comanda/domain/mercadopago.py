"""
MercadoPago Domain Models

Payloads exchanged with MercadoPago (OAuth, webhooks, payments) and the
rows we keep about them.

Author: TM3
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OAuthConfig(BaseModel):
    client_id: str
    client_secret: str
    redirect_uri: str


class OAuthTokenResponse(BaseModel):
    access_token: str
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None
    scope: Optional[str] = None
    user_id: Optional[int] = None
    public_key: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class OAuthUserInfo(BaseModel):
    id: int
    nickname: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class WebhookData(BaseModel):
    id: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _stringify(cls, value):
        return "" if value is None else str(value)


class WebhookNotification(BaseModel):
    """
    Notification body POSTed by MercadoPago

    Only `type`, `user_id` and `data.id` are needed to route it; the rest
    is kept for logging and audit.
    """

    id: Union[int, str]
    live_mode: Optional[bool] = None
    type: str
    date_created: Optional[str] = None
    user_id: Union[int, str]
    api_version: Optional[str] = None
    action: Optional[str] = None
    data: WebhookData = Field(default_factory=WebhookData)

    model_config = ConfigDict(extra="allow")


class PaymentDetails(BaseModel):
    """Subset of /v1/payments/{id} we rely on"""

    id: int
    status: str
    status_detail: Optional[str] = None
    external_reference: Optional[str] = None
    transaction_amount: Optional[float] = None
    currency_id: Optional[str] = None
    payment_method_id: Optional[str] = None
    date_approved: Optional[str] = None
    date_created: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class SyncAttemptStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELED = "canceled"
    ERROR = "error"


TERMINAL_STATUSES = (
    SyncAttemptStatus.APPROVED,
    SyncAttemptStatus.REJECTED,
    SyncAttemptStatus.CANCELED,
    SyncAttemptStatus.ERROR,
)


class PaymentSyncAttempt(BaseModel):
    """A charge sent to MercadoPago for an order, tracked until it settles"""

    id: int
    tenant_id: str
    order_id: str
    status: SyncAttemptStatus
    mp_transaction_id: Optional[str] = None
    amount_cents: int = 0
    last_mp_notification_id: Optional[str] = None
    last_processed_at: Optional[datetime] = None
    created: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class MpCredentials(BaseModel):
    """Active OAuth credentials of a tenant"""

    id: str
    tenant_id: str
    access_token: str
    app_id: str
    user_id: str
    contact_email: Optional[str] = None
    status: str = "active"
    created: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class WebhookResult(BaseModel):
    """Outcome of one type-specific handler"""
    handled: bool
    detail: Optional[str] = None


class ProcessWebhookResult(BaseModel):
    """Outcome of a whole notification, returned to MercadoPago"""
    ok: bool
    type: str
    tenant_id: Optional[str] = None
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
