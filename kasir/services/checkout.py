"""
Checkout orchestration.

Turns the caller's cart into a Transaction with immutable DetailTransaction
snapshots. Cash sales settle immediately; QRIS sales create a gateway QR code
and stay pending until the payment callback arrives.

Flow:
    cart lines -> priced total -> (cash: completed | qris: pending + QR) -> single commit
"""
import logging
import random
import time
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from kasir.core.deps import PrincipalContext
from kasir.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    UnauthenticatedError,
)
from kasir.models.cart import Cart
from kasir.models.product import Product
from kasir.models.transaction import (
    DetailTransaction,
    PaymentMethod,
    Transaction,
    TransactionStatus,
)
from kasir.models.user import Role
from kasir.schemas.transaction import CheckoutRequest, CheckoutResult
from kasir.schemas.xendit import QrPayment, QrPaymentItem
from kasir.services.xendit import XenditClient

logger = logging.getLogger(__name__)

QRIS_PROVIDER = "QRIS"
INVOICE_ATTEMPTS = 5


def generate_invoice_number() -> str:
    """INV-<epoch millis>-<0..999>."""
    return f"INV-{int(time.time() * 1000)}-{random.randint(0, 999)}"


class CheckoutService:
    """Creates and reads transactions for managers and staff."""

    def __init__(self, db: Session, gateway: XenditClient, clear_cart: bool = False, currency: str = "IDR"):
        self.db = db
        self.gateway = gateway
        self.clear_cart = clear_cart
        self.currency = currency

    def checkout(self, ctx: Optional[PrincipalContext], request: CheckoutRequest) -> CheckoutResult:
        if ctx is None:
            raise UnauthenticatedError("User not found")
        role = ctx.role
        if role is Role.OWNER:
            raise ForbiddenError("Owners cannot perform checkout")
        if role is not Role.MANAGER and role is not Role.STAFF:
            raise ValueError(f"Unhandled role: {role}")

        outlet = ctx.require_outlet()
        if not outlet.is_active:
            raise BadRequestError("Outlet is closed")

        lines = (
            self.db.query(Cart)
            .options(joinedload(Cart.product).joinedload(Product.category))
            .filter(Cart.staff_id == ctx.user_id, Cart.outlet_id == outlet.id)
            .order_by(Cart.id)
            .all()
        )
        if not lines:
            raise NotFoundError("Cart is empty")
        for line in lines:
            if line.product is None or line.product.deleted_at is not None:
                raise NotFoundError("Product not found")

        total = sum(line.product.price * line.quantity for line in lines)

        if request.payment_method is PaymentMethod.CASH and request.amount_paid < total:
            raise BadRequestError(
                "Amount paid is less than the total",
                error={"total_amount": total, "amount_paid": request.amount_paid},
            )

        # reserve the invoice number before any gateway call
        invoice_number = self._unique_invoice_number()

        qr_payment: Optional[QrPayment] = None
        if request.payment_method is PaymentMethod.QRIS:
            items = [
                QrPaymentItem(
                    reference_id=invoice_number,
                    name=line.product.name,
                    category=line.product.category.name if line.product.category else "product",
                    currency=self.currency,
                    quantity=line.quantity,
                    price=line.product.price,
                )
                for line in lines
            ]
            qr_payment = self.gateway.create_qr_code(total, invoice_number, items)
            transaction = Transaction(
                invoice_number=invoice_number,
                amount_paid=0,
                change=0,
                status=TransactionStatus.PENDING.value,
                provider=QRIS_PROVIDER,
                payment_reference=qr_payment.id,
            )
        elif request.payment_method is PaymentMethod.CASH:
            transaction = Transaction(
                invoice_number=invoice_number,
                amount_paid=request.amount_paid,
                change=request.amount_paid - total,
                status=TransactionStatus.COMPLETED.value,
            )
        else:
            raise ValueError(f"Unhandled payment method: {request.payment_method}")

        transaction.staff_id = ctx.user_id
        transaction.outlet_id = outlet.id
        transaction.name_consumer = request.name_consumer
        transaction.total_amount = total
        transaction.payment_method = request.payment_method.value
        transaction.transaction_date = datetime.now(timezone.utc)
        transaction.details = [
            DetailTransaction(
                product_id=line.product_id,
                product_name=line.product.name,
                product_price=line.product.price,
                quantity=line.quantity,
                subtotal=line.product.price * line.quantity,
            )
            for line in lines
        ]

        self.db.add(transaction)
        if self.clear_cart:
            for line in lines:
                self.db.delete(line)

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            self._log_orphaned_qr(qr_payment, invoice_number)
            raise ConflictError("Invoice number already exists, please retry") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            self._log_orphaned_qr(qr_payment, invoice_number)
            logger.error("Failed to persist transaction %s: %s", invoice_number, e)
            raise InternalError("Failed to save transaction") from e

        self.db.refresh(transaction)
        logger.info(
            "Checkout %s created: method=%s status=%s total=%s outlet=%s",
            invoice_number, transaction.payment_method, transaction.status, total, outlet.id,
        )

        return CheckoutResult(
            transaction_id=transaction.id,
            invoice_number=invoice_number,
            total_amount=total,
            amount_paid=transaction.amount_paid,
            change=transaction.change,
            status=transaction.status,
            qr_payment=qr_payment,
        )

    def list_transactions(self, ctx: PrincipalContext) -> List[Transaction]:
        query = self.db.query(Transaction).options(selectinload(Transaction.details))
        role = ctx.role
        if role is Role.STAFF:
            query = query.filter(Transaction.staff_id == ctx.user_id)
        elif role is Role.MANAGER:
            query = query.filter(Transaction.outlet_id == ctx.require_outlet().id)
        elif role is Role.OWNER:
            raise ForbiddenError("You do not have permission to access this resource")
        else:
            raise ValueError(f"Unhandled role: {role}")
        return query.order_by(Transaction.transaction_date.desc(), Transaction.id.desc()).all()

    def get_transaction(self, ctx: PrincipalContext, transaction_id: int) -> Transaction:
        transaction = self.db.get(Transaction, transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction not found")

        role = ctx.role
        if role is Role.STAFF:
            allowed = transaction.staff_id == ctx.user_id
        elif role is Role.MANAGER:
            allowed = transaction.outlet_id == ctx.require_outlet().id
        elif role is Role.OWNER:
            allowed = False
        else:
            raise ValueError(f"Unhandled role: {role}")

        if not allowed:
            raise ForbiddenError("You do not have access to this transaction")
        return transaction

    def _unique_invoice_number(self) -> str:
        for _ in range(INVOICE_ATTEMPTS):
            candidate = generate_invoice_number()
            taken = (
                self.db.query(Transaction.id)
                .filter(Transaction.invoice_number == candidate)
                .first()
            )
            if taken is None:
                return candidate
        raise ConflictError("Could not allocate a unique invoice number, please retry")

    @staticmethod
    def _log_orphaned_qr(qr_payment: Optional[QrPayment], invoice_number: str) -> None:
        if qr_payment is not None:
            logger.error(
                "QR code %s was issued for %s but the transaction was not saved",
                qr_payment.id, invoice_number,
            )
