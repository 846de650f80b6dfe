"""
Product catalog router: outlet-scoped listing, lookup and management.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from kasir.core.deps import PrincipalContext, get_principal, require_roles
from kasir.db.session import get_db
from kasir.models.user import Role
from kasir.schemas.common import ApiResponse, MessageResponse
from kasir.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from kasir.services.products import ProductService

router = APIRouter(prefix="/products", tags=["products"])

owner_or_manager = require_roles(Role.OWNER, Role.MANAGER)


@router.get("", response_model=ApiResponse[List[ProductResponse]])
def list_products(
    principal: PrincipalContext = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """Owners see every product; managers and staff see their outlet's."""
    products = ProductService(db).list_products(principal)
    return ApiResponse.ok([ProductResponse.model_validate(p) for p in products])


@router.get("/{product_id}", response_model=ApiResponse[ProductResponse])
def get_product(
    product_id: int,
    principal: PrincipalContext = Depends(get_principal),
    db: Session = Depends(get_db),
):
    product = ProductService(db).get_product(principal, product_id)
    return ApiResponse.ok(ProductResponse.model_validate(product))


@router.post("", response_model=ApiResponse[ProductResponse], status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    principal: PrincipalContext = Depends(owner_or_manager),
    db: Session = Depends(get_db),
):
    """
    Create a product.

    Managers always create into their own outlet; owners must name one.
    """
    product = ProductService(db).create_product(principal, data)
    return ApiResponse.ok(ProductResponse.model_validate(product), status_code=status.HTTP_201_CREATED)


@router.patch("/{product_id}", response_model=ApiResponse[ProductResponse])
def update_product(
    product_id: int,
    data: ProductUpdate,
    principal: PrincipalContext = Depends(owner_or_manager),
    db: Session = Depends(get_db),
):
    product = ProductService(db).update_product(principal, product_id, data)
    return ApiResponse.ok(ProductResponse.model_validate(product))


@router.delete("/{product_id}", response_model=ApiResponse[MessageResponse])
def delete_product(
    product_id: int,
    principal: PrincipalContext = Depends(owner_or_manager),
    db: Session = Depends(get_db),
):
    ProductService(db).delete_product(principal, product_id)
    return ApiResponse.ok(MessageResponse(message="Product deleted"))
