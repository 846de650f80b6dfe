"""
SQLAlchemy models for Kasir.
"""
# Identity
from kasir.models.user import Role, AuthAccount, User, UserOutlet
from kasir.models.outlet import Outlet, OutletStatus

# Catalog
from kasir.models.product import Category, Product, ProductStatus

# Sales
from kasir.models.cart import Cart
from kasir.models.transaction import (
    DetailTransaction,
    PaymentMethod,
    Transaction,
    TransactionStatus,
)

# Token Blacklist
from kasir.models.token_blacklist import TokenBlacklist


__all__ = [
    # Identity
    "Role",
    "AuthAccount",
    "User",
    "UserOutlet",
    "Outlet",
    "OutletStatus",
    # Catalog
    "Category",
    "Product",
    "ProductStatus",
    # Sales
    "Cart",
    "Transaction",
    "DetailTransaction",
    "PaymentMethod",
    "TransactionStatus",
    # Token Blacklist
    "TokenBlacklist",
]
