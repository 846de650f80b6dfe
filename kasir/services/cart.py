"""
Cart aggregate: per-staff, per-outlet product lines awaiting checkout.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from kasir.core.deps import PrincipalContext
from kasir.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalError,
    InvalidStateError,
    NotFoundError,
)
from kasir.models.cart import Cart
from kasir.models.outlet import Outlet
from kasir.models.product import Product
from kasir.models.user import Role, User, UserOutlet
from kasir.schemas.cart import CartCreate, CartUpdate

logger = logging.getLogger(__name__)


class CartService:
    """
    Cart operations scoped by the caller's role.

    Owners may touch every line, managers only lines of their outlet and
    staff only their own lines.
    """

    def __init__(self, db: Session):
        self.db = db

    # ============ Writes ============

    def add_to_cart(self, ctx: PrincipalContext, data: CartCreate) -> Cart:
        """Merge into the existing (product, staff, outlet) line or insert a new one."""
        staff_id, outlet = self._resolve_staff_and_outlet(ctx, data)

        if not outlet.is_active:
            raise BadRequestError("Outlet is closed")

        self._get_outlet_product(data.product_id, outlet.id)

        line = self._find_line(data.product_id, staff_id, outlet.id)
        if line is not None:
            line.quantity += data.quantity
            self._commit()
            self.db.refresh(line)
            return line

        line = Cart(
            product_id=data.product_id,
            staff_id=staff_id,
            outlet_id=outlet.id,
            quantity=data.quantity,
        )
        self.db.add(line)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent add created the line first; apply ours as a merge.
            self.db.rollback()
            line = self._find_line(data.product_id, staff_id, outlet.id)
            if line is None:
                raise InternalError("Failed to add product to cart")
            line.quantity += data.quantity
            self._commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to insert cart line: %s", e)
            raise InternalError("Failed to add product to cart") from e

        self.db.refresh(line)
        return line

    def reduce_quantity(self, ctx: PrincipalContext, cart_id: int) -> List[Cart]:
        """
        Decrement a line by one.

        Returns an empty list when the last unit is removed (the line is
        deleted), otherwise a one-element list with the updated line.
        """
        line = self._get_line(cart_id)
        self._check_access(ctx, line)

        if line.quantity <= 0:
            raise InvalidStateError("Cart quantity cannot be less than 0")

        if line.quantity == 1:
            self.db.delete(line)
            self._commit()
            return []

        line.quantity -= 1
        self._commit()
        self.db.refresh(line)
        return [line]

    def update_line(self, ctx: PrincipalContext, cart_id: int, changes: CartUpdate) -> Cart:
        line = self._get_line(cart_id)
        self._check_access(ctx, line)

        product_id = changes.product_id if changes.product_id is not None else line.product_id
        outlet_id = line.outlet_id
        staff_id = line.staff_id

        role = ctx.role
        if role is Role.OWNER:
            if changes.outlet_id is not None:
                if self.db.get(Outlet, changes.outlet_id) is None:
                    raise NotFoundError("Outlet not found")
                outlet_id = changes.outlet_id
            if changes.staff_id is not None:
                if self.db.get(User, changes.staff_id) is None:
                    raise NotFoundError("User not found")
                staff_id = changes.staff_id
            if (outlet_id, staff_id) != (line.outlet_id, line.staff_id) and not self._is_linked(staff_id, outlet_id):
                raise BadRequestError("Staff is not assigned to this outlet")
        elif role is Role.MANAGER:
            if changes.outlet_id is not None and changes.outlet_id != ctx.require_outlet().id:
                raise ForbiddenError("Cannot move a cart line to another outlet")
        elif role is Role.STAFF:
            # staff keep their own outlet and identity on every line
            pass
        else:
            raise ValueError(f"Unhandled role: {role}")

        if product_id != line.product_id or outlet_id != line.outlet_id:
            self._get_outlet_product(product_id, outlet_id)

        line.product_id = product_id
        line.outlet_id = outlet_id
        line.staff_id = staff_id
        if changes.quantity is not None:
            line.quantity = changes.quantity

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("A cart line for this product already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to update cart line %s: %s", cart_id, e)
            raise InternalError("Failed to update cart") from e

        self.db.refresh(line)
        return line

    def remove_line(self, ctx: PrincipalContext, cart_id: int) -> None:
        line = self._get_line(cart_id)
        self._check_access(ctx, line)
        self.db.delete(line)
        self._commit()

    def remove_by_product(self, ctx: PrincipalContext, product_id: int) -> int:
        """Delete every line of a product within the caller's scope. Returns the count."""
        if self.db.get(Product, product_id) is None:
            raise NotFoundError("Product not found")

        query = self.db.query(Cart).filter(Cart.product_id == product_id)
        role = ctx.role
        if role is Role.OWNER:
            pass
        elif role is Role.MANAGER:
            query = query.filter(Cart.outlet_id == ctx.require_outlet().id)
        elif role is Role.STAFF:
            query = query.filter(Cart.staff_id == ctx.user_id)
        else:
            raise ValueError(f"Unhandled role: {role}")

        deleted = query.delete(synchronize_session=False)
        self._commit()
        return deleted

    def remove_by_staff(self, ctx: PrincipalContext) -> int:
        deleted = (
            self.db.query(Cart)
            .filter(Cart.staff_id == ctx.user_id)
            .delete(synchronize_session=False)
        )
        self._commit()
        return deleted

    # ============ Reads ============

    def list_carts(self, ctx: PrincipalContext) -> List[Cart]:
        query = self._lines_with_product()
        role = ctx.role
        if role is Role.OWNER:
            pass
        elif role is Role.MANAGER or role is Role.STAFF:
            query = query.filter(Cart.staff_id == ctx.user_id)
        else:
            raise ValueError(f"Unhandled role: {role}")
        return self._ensure_products(query.order_by(Cart.id).all())

    def list_own_carts(self, ctx: PrincipalContext) -> List[Cart]:
        if ctx.role is Role.OWNER:
            raise BadRequestError("Owners do not have a cart")
        lines = (
            self._lines_with_product()
            .filter(Cart.staff_id == ctx.user_id)
            .order_by(Cart.id)
            .all()
        )
        return self._ensure_products(lines)

    def get_line(self, ctx: PrincipalContext, cart_id: int) -> Cart:
        line = self._lines_with_product().filter(Cart.id == cart_id).first()
        if line is None:
            raise NotFoundError("Cart not found")
        self._check_access(ctx, line)
        self._ensure_products([line])
        return line

    # ============ Helpers ============

    def _resolve_staff_and_outlet(self, ctx: PrincipalContext, data: CartCreate) -> tuple[int, Outlet]:
        role = ctx.role
        if role is Role.OWNER:
            if data.outlet_id is None or data.staff_id is None:
                raise BadRequestError("Owner must provide staff_id and outlet_id")
            outlet = self.db.get(Outlet, data.outlet_id)
            if outlet is None:
                raise NotFoundError("Outlet not found")
            staff_id = data.staff_id
            if not self._is_linked(staff_id, outlet.id):
                raise BadRequestError("Staff is not assigned to this outlet")
        elif role is Role.MANAGER or role is Role.STAFF:
            outlet = ctx.require_outlet()
            staff_id = ctx.user_id
            if not self._is_linked(staff_id, outlet.id):
                raise BadRequestError("User is not assigned to this outlet")
        else:
            raise ValueError(f"Unhandled role: {role}")
        return staff_id, outlet

    def _is_linked(self, user_id: int, outlet_id: int) -> bool:
        link = (
            self.db.query(UserOutlet)
            .filter(UserOutlet.user_id == user_id, UserOutlet.outlet_id == outlet_id)
            .first()
        )
        return link is not None

    def _check_access(self, ctx: PrincipalContext, line: Cart) -> None:
        role = ctx.role
        if role is Role.OWNER:
            return
        if role is Role.MANAGER:
            if line.outlet_id != ctx.require_outlet().id:
                raise ForbiddenError("You do not have access to this cart")
        elif role is Role.STAFF:
            if line.staff_id != ctx.user_id:
                raise ForbiddenError("You do not have access to this cart")
        else:
            raise ValueError(f"Unhandled role: {role}")

    def _get_outlet_product(self, product_id: int, outlet_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if product is None or product.deleted_at is not None:
            raise NotFoundError("Product not found")
        if product.outlet_id != outlet_id:
            raise BadRequestError("Product is not sold at this outlet")
        return product

    def _find_line(self, product_id: int, staff_id: int, outlet_id: int) -> Optional[Cart]:
        return (
            self.db.query(Cart)
            .filter(
                Cart.product_id == product_id,
                Cart.staff_id == staff_id,
                Cart.outlet_id == outlet_id,
            )
            .first()
        )

    def _get_line(self, cart_id: int) -> Cart:
        line = self.db.get(Cart, cart_id)
        if line is None:
            raise NotFoundError("Cart not found")
        return line

    def _lines_with_product(self):
        return self.db.query(Cart).options(
            joinedload(Cart.product).joinedload(Product.category)
        )

    @staticmethod
    def _ensure_products(lines: List[Cart]) -> List[Cart]:
        for line in lines:
            if line.product is None or line.product.deleted_at is not None:
                raise NotFoundError("Product not found")
        return lines

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Cart write failed: %s", e)
            raise InternalError("Failed to save cart") from e
