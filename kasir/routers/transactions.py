"""
Transaction router: checkout, transaction reads, the payment gateway
callback and QR code helpers.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Header, status
from sqlalchemy.orm import Session

from kasir.core.config import Settings, get_settings
from kasir.core.deps import PrincipalContext, get_payment_gateway, get_principal, require_roles
from kasir.db.session import get_db
from kasir.models.user import Role
from kasir.schemas.common import ApiResponse
from kasir.schemas.transaction import CallbackResult, CheckoutRequest, CheckoutResult, TransactionResponse
from kasir.schemas.xendit import QrPayment
from kasir.services.checkout import CheckoutService
from kasir.services.reconciler import PaymentCallbackService
from kasir.services.xendit import XenditClient

router = APIRouter(prefix="/transaction", tags=["transactions"])

cashier = require_roles(Role.MANAGER, Role.STAFF)


def get_checkout_service(
    db: Session = Depends(get_db),
    gateway: XenditClient = Depends(get_payment_gateway),
    settings: Settings = Depends(get_settings),
) -> CheckoutService:
    return CheckoutService(
        db,
        gateway,
        clear_cart=settings.CLEAR_CART_ON_CHECKOUT,
        currency=settings.CURRENCY,
    )


@router.post("", response_model=ApiResponse[CheckoutResult], status_code=status.HTTP_201_CREATED)
def checkout(
    request: CheckoutRequest,
    principal: PrincipalContext = Depends(cashier),
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Check out the caller's cart.

    Cash payments complete immediately. QRIS payments return a QR code and
    stay pending until the gateway callback settles them.
    """
    result = service.checkout(principal, request)
    return ApiResponse.ok(result, status_code=status.HTTP_201_CREATED)


@router.get("", response_model=ApiResponse[List[TransactionResponse]])
def list_transactions(
    principal: PrincipalContext = Depends(cashier),
    service: CheckoutService = Depends(get_checkout_service),
):
    transactions = service.list_transactions(principal)
    return ApiResponse.ok([TransactionResponse.model_validate(t) for t in transactions])


@router.post("/callback", response_model=ApiResponse[CallbackResult])
def payment_callback(
    payload: Any = Body(None),
    x_callback_token: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Xendit qr.payment webhook."""
    service = PaymentCallbackService(db, callback_token=settings.XENDIT_CALLBACK_TOKEN)
    result = service.handle_callback(payload, x_callback_token)
    return ApiResponse.ok(result)


@router.get("/qr-code/{qr_id}", response_model=ApiResponse[QrPayment])
def get_qr_code(
    qr_id: str,
    principal: PrincipalContext = Depends(get_principal),
    gateway: XenditClient = Depends(get_payment_gateway),
):
    return ApiResponse.ok(gateway.get_qr_code(qr_id))


@router.post("/qr-code/simulate-payment/{qr_id}", response_model=ApiResponse[Dict[str, Any]])
def simulate_qr_code_payment(
    qr_id: str,
    principal: PrincipalContext = Depends(get_principal),
    gateway: XenditClient = Depends(get_payment_gateway),
):
    return ApiResponse.ok(gateway.simulate_payment_qr_code(qr_id))


@router.get("/payment-request/{payment_request_id}", response_model=ApiResponse[Dict[str, Any]])
def get_payment_request(
    payment_request_id: str,
    principal: PrincipalContext = Depends(get_principal),
    gateway: XenditClient = Depends(get_payment_gateway),
):
    return ApiResponse.ok(gateway.get_payment_request(payment_request_id))


@router.post("/payment-request/simulate-payment/{qr_id}", response_model=ApiResponse[Dict[str, Any]])
def simulate_payment_request(
    qr_id: str,
    principal: PrincipalContext = Depends(get_principal),
    gateway: XenditClient = Depends(get_payment_gateway),
):
    return ApiResponse.ok(gateway.simulate_payment_qr_code(qr_id))


@router.get("/{transaction_id}", response_model=ApiResponse[TransactionResponse])
def get_transaction(
    transaction_id: int,
    principal: PrincipalContext = Depends(cashier),
    service: CheckoutService = Depends(get_checkout_service),
):
    transaction = service.get_transaction(principal, transaction_id)
    return ApiResponse.ok(TransactionResponse.model_validate(transaction))
