"""
Transaction and DetailTransaction models for completed and pending sales.
"""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import relationship

from kasir.db.base import Base


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    QRIS = "qris"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Transaction(Base):
    """
    A checkout receipt.

    total_amount equals the sum of its details' subtotals at creation time.
    Status only moves pending -> completed or pending -> failed.
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_number = Column(String(64), nullable=False, unique=True)
    staff_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    outlet_id = Column(Integer, ForeignKey("outlets.id", ondelete="SET NULL"))
    name_consumer = Column(String(255), nullable=False)
    total_amount = Column(Integer, nullable=False)
    amount_paid = Column(Integer, nullable=False, default=0)
    change = Column(Integer, nullable=False, default=0)
    payment_method = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=TransactionStatus.PENDING.value)
    provider = Column(String(50))
    payment_reference = Column(String(100))  # gateway QR id
    transaction_date = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    details = relationship(
        "DetailTransaction",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="DetailTransaction.id",
    )

    __table_args__ = (
        Index("idx_transactions_outlet_date", "outlet_id", "transaction_date"),
        Index("idx_transactions_invoice_status", "invoice_number", "status"),
    )


class DetailTransaction(Base):
    """Snapshot of a cart line at checkout; later product edits do not touch it."""
    __tablename__ = "detail_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"))
    product_name = Column(String(100), nullable=False)
    product_price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    subtotal = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    transaction = relationship("Transaction", back_populates="details")
