"""
Cart line model.
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, Index, func
from sqlalchemy.orm import relationship

from kasir.db.base import Base


class Cart(Base):
    """
    One product line in a staff member's cart at an outlet.

    At most one row exists per (product_id, staff_id, outlet_id); adding the
    same product again increments quantity on the existing row.
    """
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    staff_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    outlet_id = Column(Integer, ForeignKey("outlets.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    product = relationship("Product")
    staff = relationship("User")
    outlet = relationship("Outlet")

    __table_args__ = (
        UniqueConstraint("product_id", "staff_id", "outlet_id", name="uq_carts_product_staff_outlet"),
        Index("idx_carts_staff_outlet", "staff_id", "outlet_id"),
    )
