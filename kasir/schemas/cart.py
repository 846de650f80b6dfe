"""
Cart Pydantic schemas for request/response validation.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from kasir.schemas.product import ProductResponse


class CartCreate(BaseModel):
    """Add a product to a cart. Owners must name the staff and outlet."""
    product_id: int = Field(gt=0)
    quantity: int = Field(gt=0)
    staff_id: Optional[int] = Field(default=None, gt=0)
    outlet_id: Optional[int] = Field(default=None, gt=0)


class CartUpdate(BaseModel):
    product_id: Optional[int] = Field(default=None, gt=0)
    quantity: Optional[int] = Field(default=None, gt=0)
    staff_id: Optional[int] = Field(default=None, gt=0)
    outlet_id: Optional[int] = Field(default=None, gt=0)


class CartResponse(BaseModel):
    id: int
    product_id: int
    staff_id: int
    outlet_id: int
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class CartWithProductResponse(CartResponse):
    product: ProductResponse
