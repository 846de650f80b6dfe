"""
Product catalog scoped by outlet.

Owners manage every outlet's products; managers only their own outlet's.
Deleted products keep their row (detail transactions still point at them) and
are hidden from every read.
"""
import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from kasir.core.deps import PrincipalContext
from kasir.core.exceptions import BadRequestError, ForbiddenError, InternalError, NotFoundError
from kasir.models.outlet import Outlet
from kasir.models.product import Category, Product
from kasir.models.user import Role
from kasir.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


class ProductService:

    def __init__(self, db: Session):
        self.db = db

    def list_products(self, ctx: PrincipalContext) -> List[Product]:
        query = (
            self.db.query(Product)
            .options(joinedload(Product.category))
            .filter(Product.deleted_at.is_(None))
        )
        if ctx.role is not Role.OWNER:
            query = query.filter(Product.outlet_id == ctx.require_outlet().id)
        return query.order_by(Product.id).all()

    def get_product(self, ctx: PrincipalContext, product_id: int) -> Product:
        product = self._get(product_id)
        if ctx.role is not Role.OWNER and product.outlet_id != ctx.require_outlet().id:
            raise ForbiddenError("You do not have access to this product")
        return product

    def create_product(self, ctx: PrincipalContext, data: ProductCreate) -> Product:
        """Managers always create into their own outlet; owners must name one."""
        role = ctx.role
        if role is Role.MANAGER:
            outlet_id = ctx.require_outlet().id
        elif role is Role.OWNER:
            if data.outlet_id is None:
                raise BadRequestError("outlet_id is required")
            outlet_id = data.outlet_id
        elif role is Role.STAFF:
            raise ForbiddenError("Staff cannot create products")
        else:
            raise ValueError(f"Unhandled role: {role}")

        self._check_outlet(outlet_id)
        self._check_category(data.category_id)

        product = Product(
            name=data.name,
            price=data.price,
            description=data.description,
            status=data.status.value,
            category_id=data.category_id,
            outlet_id=outlet_id,
        )
        self.db.add(product)
        self._commit("create product")
        self.db.refresh(product)
        logger.info("Created product %s at outlet %s", product.id, outlet_id)
        return product

    def update_product(self, ctx: PrincipalContext, product_id: int, data: ProductUpdate) -> Product:
        product = self._get_managed(ctx, product_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        outlet_id = changes.pop("outlet_id", None)
        if outlet_id is not None and outlet_id != product.outlet_id:
            if ctx.role is not Role.OWNER:
                raise ForbiddenError("Cannot move a product to another outlet")
            self._check_outlet(outlet_id)
            product.outlet_id = outlet_id

        if "category_id" in changes:
            self._check_category(changes["category_id"])
        if "status" in changes:
            changes["status"] = changes["status"].value

        for field, value in changes.items():
            setattr(product, field, value)

        self._commit("update product")
        self.db.refresh(product)
        return product

    def delete_product(self, ctx: PrincipalContext, product_id: int) -> None:
        product = self._get_managed(ctx, product_id)
        product.deleted_at = datetime.now(timezone.utc)
        self._commit("delete product")
        logger.info("Deleted product %s", product_id)

    # ============ Helpers ============

    def _get(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if product is None or product.deleted_at is not None:
            raise NotFoundError("Product not found")
        return product

    def _get_managed(self, ctx: PrincipalContext, product_id: int) -> Product:
        product = self._get(product_id)
        role = ctx.role
        if role is Role.OWNER:
            return product
        if role is Role.MANAGER:
            # another outlet's product is reported as missing
            if product.outlet_id != ctx.require_outlet().id:
                raise NotFoundError("Product not found")
            return product
        if role is Role.STAFF:
            raise ForbiddenError("Staff cannot manage products")
        raise ValueError(f"Unhandled role: {role}")

    def _check_outlet(self, outlet_id: int) -> None:
        if self.db.get(Outlet, outlet_id) is None:
            raise NotFoundError("Outlet not found")

    def _check_category(self, category_id: int) -> None:
        if self.db.get(Category, category_id) is None:
            raise NotFoundError("Category not found")

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to %s: %s", action, e)
            raise InternalError(f"Failed to {action}") from e
