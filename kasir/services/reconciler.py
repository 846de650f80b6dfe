"""
Payment callback reconciliation.

Applies a gateway qr.payment callback to the pending transaction whose invoice
number matches the callback reference_id. A transaction leaves the pending
state at most once: the update is conditional on the row still being pending,
so repeated or concurrent deliveries of the same callback find nothing to
change.
"""
import hmac
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kasir.core.exceptions import BadRequestError, InternalError, NotFoundError, UnauthenticatedError
from kasir.models.transaction import Transaction, TransactionStatus
from kasir.schemas.transaction import CallbackResult
from kasir.schemas.xendit import XenditWebhook

logger = logging.getLogger(__name__)

SUCCEEDED = "SUCCEEDED"
PENDING = "PENDING"


class PaymentCallbackService:

    def __init__(self, db: Session, callback_token: Optional[str] = None):
        self.db = db
        self.callback_token = callback_token

    def verify_token(self, received: Optional[str]) -> None:
        if not self.callback_token:
            logger.warning("XENDIT_CALLBACK_TOKEN is not configured, accepting unverified callback")
            return
        if not received or not hmac.compare_digest(received, self.callback_token):
            logger.warning("Rejected callback with invalid x-callback-token")
            raise UnauthenticatedError("Invalid callback token")

    def handle_callback(self, payload: Any, received_token: Optional[str] = None) -> CallbackResult:
        self.verify_token(received_token)

        try:
            webhook = XenditWebhook.model_validate(payload)
        except ValidationError as e:
            logger.warning("Rejected malformed callback payload")
            raise BadRequestError("Invalid callback payload", error=e.errors(include_url=False)) from e

        data = webhook.data
        status = data.status.upper()
        reference_id = data.reference_id

        if status == PENDING:
            logger.info("Callback for %s still pending, nothing to apply", reference_id)
            return CallbackResult(invoice_number=reference_id, status=TransactionStatus.PENDING.value, applied=False)

        transaction = (
            self.db.query(Transaction)
            .filter(
                Transaction.invoice_number == reference_id,
                Transaction.status == TransactionStatus.PENDING.value,
            )
            .first()
        )
        if transaction is None:
            raise NotFoundError("Transaction not found")

        paid_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        if status == SUCCEEDED:
            detail = data.payment_detail
            amount_paid = detail.amount if detail and detail.amount is not None else data.amount
            if amount_paid is None:
                raise BadRequestError("Invalid callback payload", error="payment amount is missing")
            receipt_id = detail.receipt_id if detail else None
            values = {
                "status": TransactionStatus.COMPLETED.value,
                "amount_paid": amount_paid,
                "change": max(amount_paid - transaction.total_amount, 0),
                "notes": _append_note(transaction.notes, f"Paid via QRIS at {paid_at}. Payment ID: {receipt_id}"),
            }
        else:
            values = {
                "status": TransactionStatus.FAILED.value,
                "notes": _append_note(transaction.notes, f"QRIS payment {status} at {paid_at}"),
            }
        values["updated_at"] = func.now()

        stmt = (
            update(Transaction)
            .where(
                Transaction.id == transaction.id,
                Transaction.status == TransactionStatus.PENDING.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                self.db.rollback()
                logger.warning("Callback for %s lost the race to another delivery", reference_id)
                raise NotFoundError("Transaction not found")
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to apply callback for %s: %s", reference_id, e)
            raise InternalError("Failed to update transaction") from e

        self.db.expire(transaction)
        logger.info("Callback applied to %s: %s -> %s", reference_id, status, values["status"])
        return CallbackResult(invoice_number=reference_id, status=values["status"], applied=True)


def _append_note(existing: Optional[str], note: str) -> str:
    return f"{existing}\n{note}" if existing else note
