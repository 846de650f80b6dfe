"""
Cart router.

Every route requires an authenticated principal; role scoping happens in
CartService.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from kasir.core.deps import PrincipalContext, get_principal
from kasir.db.session import get_db
from kasir.schemas.cart import CartCreate, CartResponse, CartUpdate, CartWithProductResponse
from kasir.schemas.common import ApiResponse, MessageResponse
from kasir.services.cart import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


@router.post("", response_model=ApiResponse[CartResponse], status_code=status.HTTP_201_CREATED)
def add_to_cart(
    data: CartCreate,
    principal: PrincipalContext = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """Add a product to the cart, merging with an existing line."""
    line = CartService(db).add_to_cart(principal, data)
    return ApiResponse.ok(CartResponse.model_validate(line), status_code=status.HTTP_201_CREATED)


@router.get("", response_model=ApiResponse[List[CartWithProductResponse]])
def list_carts(
    principal: PrincipalContext = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """Owners see every cart line; everyone else sees their own."""
    lines = CartService(db).list_carts(principal)
    return ApiResponse.ok([CartWithProductResponse.model_validate(line) for line in lines])


@router.get("/users", response_model=ApiResponse[List[CartWithProductResponse]])
def list_own_carts(
    principal: PrincipalContext = Depends(get_principal),
    db: Session = Depends(get_db),
):
    lines = CartService(db).list_own_carts(principal)
    return ApiResponse.ok([CartWithProductResponse.model_validate(line) for line in lines])


@router.delete("/users", response_model=ApiResponse[MessageResponse])
def remove_own_carts(
    principal: PrincipalContext = Depends(get_principal),
    db: Session = Depends(get_db),
):
    CartService(db).remove_by_staff(principal)
    return ApiResponse.ok(MessageResponse(message="Cart deleted"))


@router.delete("/product/{product_id}", response_model=ApiResponse[MessageResponse])
def remove_by_product(
    product_id: int,
    principal: PrincipalContext = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """Remove a product from every cart the caller can see."""
    CartService(db).remove_by_product(principal, product_id)
    return ApiResponse.ok(MessageResponse(message="Cart deleted"))


@router.post("/reduce/{cart_id}", response_model=ApiResponse[List[CartResponse]])
def reduce_quantity(
    cart_id: int,
    principal: PrincipalContext = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """Decrement a line by one; the last unit removes the line."""
    lines = CartService(db).reduce_quantity(principal, cart_id)
    return ApiResponse.ok([CartResponse.model_validate(line) for line in lines])


@router.get("/{cart_id}", response_model=ApiResponse[CartWithProductResponse])
def get_cart(
    cart_id: int,
    principal: PrincipalContext = Depends(get_principal),
    db: Session = Depends(get_db),
):
    line = CartService(db).get_line(principal, cart_id)
    return ApiResponse.ok(CartWithProductResponse.model_validate(line))


@router.patch("/{cart_id}", response_model=ApiResponse[CartResponse])
def update_cart(
    cart_id: int,
    changes: CartUpdate,
    principal: PrincipalContext = Depends(get_principal),
    db: Session = Depends(get_db),
):
    line = CartService(db).update_line(principal, cart_id, changes)
    return ApiResponse.ok(CartResponse.model_validate(line))


@router.delete("/{cart_id}", response_model=ApiResponse[MessageResponse])
def remove_cart(
    cart_id: int,
    principal: PrincipalContext = Depends(get_principal),
    db: Session = Depends(get_db),
):
    CartService(db).remove_line(principal, cart_id)
    return ApiResponse.ok(MessageResponse(message="Cart deleted"))
