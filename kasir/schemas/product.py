"""
Product Pydantic schemas.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from kasir.models.product import ProductStatus


class CategoryResponse(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class ProductResponse(BaseModel):
    """Product as embedded in cart lines and catalog listings."""
    id: int
    name: str
    price: int
    description: Optional[str] = None
    status: str
    category_id: Optional[int] = None
    outlet_id: int
    category: Optional[CategoryResponse] = None

    model_config = ConfigDict(from_attributes=True)


class ProductCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    price: int = Field(ge=0)
    description: Optional[str] = Field(default=None, max_length=500)
    status: ProductStatus = ProductStatus.ACTIVE
    category_id: int = Field(gt=0)
    outlet_id: Optional[int] = Field(default=None, gt=0)


class ProductUpdate(BaseModel):
    """Partial update; outlet_id is only honoured for owners."""
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    price: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = Field(default=None, max_length=500)
    status: Optional[ProductStatus] = None
    category_id: Optional[int] = Field(default=None, gt=0)
    outlet_id: Optional[int] = Field(default=None, gt=0)
