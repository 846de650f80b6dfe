"""
Product catalog models.
"""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from kasir.db.base import Base


class ProductStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    OUT_OF_STOCK = "out_of_stock"


class Category(Base):
    """Product grouping (Drinks, Food, Snacks)."""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    products = relationship("Product", back_populates="category")


class Product(Base):
    """Sellable item of an outlet. Price is in the smallest currency unit."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    price = Column(Integer, nullable=False)
    description = Column(Text)
    status = Column(String(20), nullable=False, default=ProductStatus.ACTIVE.value)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"))
    outlet_id = Column(Integer, ForeignKey("outlets.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    # soft delete
    deleted_at = Column(DateTime)

    category = relationship("Category", back_populates="products")
    outlet = relationship("Outlet", back_populates="products")
