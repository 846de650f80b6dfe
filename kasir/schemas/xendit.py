"""
Xendit QR code API payloads.

Only the fields this service reads are declared; everything else the gateway
sends is kept as extra data and passed through to clients unchanged.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict


class QrPaymentItem(BaseModel):
    """Line item sent with a QR code request."""
    reference_id: str
    name: str
    category: str
    currency: str
    quantity: int
    price: int
    type: str = "PRODUCT"


class QrPayment(BaseModel):
    """A QR payment request as returned by POST/GET /qr_codes."""
    id: str
    reference_id: Optional[str] = None
    status: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    qr_string: Optional[str] = None
    expires_at: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class XenditPaymentDetail(BaseModel):
    receipt_id: Optional[str] = None
    source: Optional[str] = None
    amount: Optional[int] = None

    model_config = ConfigDict(extra="allow")


class XenditPaymentData(BaseModel):
    id: str
    status: str
    business_id: Optional[str] = None
    currency: Optional[str] = None
    amount: Optional[int] = None
    created: Optional[str] = None
    qr_id: Optional[str] = None
    qr_string: Optional[str] = None
    reference_id: Optional[str] = None
    type: Optional[str] = None
    channel_code: Optional[str] = None
    expires_at: Optional[str] = None
    payment_detail: Optional[XenditPaymentDetail] = None

    model_config = ConfigDict(extra="allow")


class XenditWebhook(BaseModel):
    """Body of a qr.payment callback."""
    event: Optional[str] = None
    created: Optional[str] = None
    business_id: Optional[str] = None
    data: XenditPaymentData

    model_config = ConfigDict(extra="allow")
