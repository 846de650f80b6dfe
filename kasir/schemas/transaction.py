"""
Checkout and transaction schemas.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from kasir.models.transaction import PaymentMethod
from kasir.schemas.xendit import QrPayment


class CheckoutRequest(BaseModel):
    """Totals come from the cart; only cash tendered is taken from the client."""
    name_consumer: str = Field(min_length=1, max_length=255)
    amount_paid: int = Field(default=0, ge=0)
    payment_method: PaymentMethod


class CheckoutResult(BaseModel):
    transaction_id: int
    invoice_number: str
    total_amount: int
    amount_paid: int
    change: int
    status: str
    qr_payment: Optional[QrPayment] = None


class DetailTransactionResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    product_price: int
    quantity: int
    subtotal: int

    model_config = ConfigDict(from_attributes=True)


class TransactionResponse(BaseModel):
    id: int
    invoice_number: str
    staff_id: Optional[int] = None
    outlet_id: Optional[int] = None
    name_consumer: str
    total_amount: int
    amount_paid: int
    change: int
    payment_method: str
    status: str
    provider: Optional[str] = None
    payment_reference: Optional[str] = None
    transaction_date: datetime
    notes: Optional[str] = None
    details: List[DetailTransactionResponse] = []

    model_config = ConfigDict(from_attributes=True)


class CallbackResult(BaseModel):
    """Outcome of a processed gateway callback."""
    invoice_number: Optional[str] = None
    status: str
    applied: bool
